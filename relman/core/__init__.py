"""Core domain types: configuration, layout, results and exit codes."""

from .config import Config, ConfigError, RepoConfig, TargetConfig, load_config
from .errors import ErrorCode
from .layout import TargetLayout
from .result import Err, Ok, Result

__all__ = [
    # config
    "Config",
    "ConfigError",
    "RepoConfig",
    "TargetConfig",
    "load_config",
    # errors
    "ErrorCode",
    # layout
    "TargetLayout",
    # result
    "Err",
    "Ok",
    "Result",
]
