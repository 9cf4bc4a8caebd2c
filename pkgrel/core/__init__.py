"""Core types: results, errors, configuration."""

from .config import Config, ConfigError, load_project_config
from .errors import ErrorCode, ReleaseError
from .result import Err, Ok, Result, is_err, is_ok

__all__ = [
    # config
    "Config",
    "ConfigError",
    "load_project_config",
    # errors
    "ErrorCode",
    "ReleaseError",
    # result
    "Err",
    "Ok",
    "Result",
    "is_err",
    "is_ok",
]
