"""Core domain types and logic."""

from .cancel import Context
from .config import Config, ConfigError, load_config
from .errors import ErrorCode, PipelineError, exit_code_for
from .result import Err, Ok, Result

__all__ = [
    # cancel
    "Context",
    # config
    "Config",
    "ConfigError",
    "load_config",
    # errors
    "ErrorCode",
    "PipelineError",
    "exit_code_for",
    # result
    "Err",
    "Ok",
    "Result",
]
