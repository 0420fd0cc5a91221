"""Release detection and publishing."""
