from nebula_console.core.config.loader import load_console_config
from nebula_console.core.config.models import ConsoleConfig
from nebula_console.core.exceptions import (
    ConfigError,
    ConsoleError,
    EngineRequestError,
    NetworkError,
    NotFound,
    OperatorInputError,
    ServerError,
    Unauthorized,
    ValidationError,
)

__all__ = [
    "load_console_config",
    "ConsoleConfig",
    "ConfigError",
    "ConsoleError",
    "EngineRequestError",
    "NetworkError",
    "NotFound",
    "OperatorInputError",
    "ServerError",
    "Unauthorized",
    "ValidationError",
]
