"""Runtime settings read from PAL_* environment variables."""

import os
from dataclasses import dataclass
from pathlib import Path

DEFAULT_HOME = Path.home() / ".pal"


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    """Where PAL keeps its files and how the control service listens."""

    home: Path = DEFAULT_HOME
    keyring_enabled: bool = True
    host: str = "127.0.0.1"
    port: int = 7878
    api_token: str | None = None
    log_level: str = "INFO"

    @property
    def projects_path(self) -> Path:
        return self.home / "projects.json"

    @property
    def api_token_path(self) -> Path:
        return self.home / "api-token"

    @classmethod
    def from_env(cls) -> "Settings":
        home = os.environ.get("PAL_HOME")
        return cls(
            home=Path(home).expanduser() if home else DEFAULT_HOME,
            keyring_enabled=_env_bool("PAL_KEYRING_ENABLED", True),
            host=os.environ.get("PAL_HOST", "127.0.0.1"),
            port=int(os.environ.get("PAL_PORT", "7878")),
            api_token=os.environ.get("PAL_API_TOKEN") or None,
            log_level=os.environ.get("PAL_LOG_LEVEL", "INFO").upper(),
        )
