import os
from pathlib import Path

from dotenv import load_dotenv

# Environment variables that override values from the JSON config file.
ENV_OVERRIDES = {
    "NEBULA_API_BASE_URL": "api_base_url",
    "NEBULA_WS_URL": "ws_url",
    "NEBULA_AUTH_TOKEN": "auth_token",
    "NEBULA_REQUEST_TIMEOUT": "request_timeout",
}


def load_env_from_path(env_file_path: str | None, project_root: Path | None = None) -> None:
    if not env_file_path:
        return
    root = project_root or Path.cwd()
    path = root / env_file_path
    if path.exists():
        load_dotenv(path, override=False)


def get_env_overrides(env: dict[str, str] | None = None) -> dict[str, str]:
    """Config fields set through the environment, keyed by field name."""
    source = os.environ if env is None else env
    return {field: source[var] for var, field in ENV_OVERRIDES.items() if source.get(var)}
