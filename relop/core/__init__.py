"""Core types shared by every layer."""

from .config import ConfigError, OperatorConfig, load_config, resolve_config
from .errors import ErrorCode
from .result import Err, Ok, Result

__all__ = [
    # config
    "ConfigError",
    "OperatorConfig",
    "load_config",
    "resolve_config",
    # errors
    "ErrorCode",
    # result
    "Err",
    "Ok",
    "Result",
]
