"""Exit codes for the operator commands.

The surrounding pipeline only distinguishes success from failure, so every
fatal condition maps to ``FAILURE``.
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Process exit codes. Values are part of the pipeline contract."""

    OK = 0
    FAILURE = 1
