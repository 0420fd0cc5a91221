"""Release operator: detect releasable commits and publish package sets."""

__version__ = "0.3.0"
