from .loader import load_commands, resolve_commands
from .types import (
    CommandFileError,
    CommandSpec,
    ConfigError,
    RunConfig,
    UnsupportedCommandFileError,
)

__all__ = [
    "load_commands",
    "resolve_commands",
    "CommandSpec",
    "RunConfig",
    "ConfigError",
    "CommandFileError",
    "UnsupportedCommandFileError",
]
