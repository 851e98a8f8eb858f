"""Console output and error rendering for the CLI."""

from .console import ConsoleProtocol, MockConsole, RichConsole
from .errors import pipeline_error_exit_code, print_config_error, print_pipeline_error

__all__ = [
    "ConsoleProtocol",
    "MockConsole",
    "RichConsole",
    "pipeline_error_exit_code",
    "print_config_error",
    "print_pipeline_error",
]
