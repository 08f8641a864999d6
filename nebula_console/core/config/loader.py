import json
from pathlib import Path

import pydantic

from nebula_console.core.config.env import get_env_overrides, load_env_from_path
from nebula_console.core.config.models import ConsoleConfig
from nebula_console.core.exceptions import ConfigError


def load_console_config(
    config_path: str | Path | None = None,
    project_root: Path | None = None,
    env: dict[str, str] | None = None,
) -> ConsoleConfig:
    """Load console settings from an optional JSON file, then apply environment overrides."""
    root = project_root or Path.cwd()
    data: dict = {}
    if config_path is not None:
        path = Path(config_path) if not isinstance(config_path, Path) else config_path
        if not path.is_absolute():
            path = root / path
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}")
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"Config root must be an object in {path}")

    # .env is loaded before reading overrides so it can supply them
    load_env_from_path(data.get("env_file_path") or ".env", root)
    data.update(get_env_overrides(env))
    try:
        return ConsoleConfig.model_validate(data)
    except pydantic.ValidationError as e:
        raise ConfigError(f"Invalid console config: {e}") from e
