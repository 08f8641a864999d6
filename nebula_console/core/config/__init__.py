from nebula_console.core.config.loader import load_console_config
from nebula_console.core.config.models import ConsoleConfig, EndpointConfig, PollingConfig
from nebula_console.core.config.env import get_env_overrides

__all__ = ["load_console_config", "ConsoleConfig", "EndpointConfig", "PollingConfig", "get_env_overrides"]
