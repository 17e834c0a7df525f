from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

_TRUTHY = ("1", "true", "yes")


@dataclass(frozen=True, slots=True)
class ClientSettings:
    server_host: str = "127.0.0.1"
    server_port: int = 7350
    use_ssl: bool = False
    server_key: str = "defaultkey"
    redis_url: str = "redis://localhost:6379/0"
    device_id_key: str = "ttt:device_id"
    log_level: str = "INFO"

    @property
    def ws_url(self) -> str:
        scheme = "wss" if self.use_ssl else "ws"
        return f"{scheme}://{self.server_host}:{self.server_port}/ws"

    @classmethod
    def from_env(cls) -> "ClientSettings":
        defaults = cls()
        return cls(
            server_host=os.environ.get("TTT_SERVER_HOST", defaults.server_host),
            server_port=int(os.environ.get("TTT_SERVER_PORT", defaults.server_port)),
            use_ssl=os.environ.get("TTT_SERVER_SSL", "0").lower() in _TRUTHY,
            server_key=os.environ.get("TTT_SERVER_KEY", defaults.server_key),
            redis_url=os.environ.get("REDIS_URL", defaults.redis_url),
            device_id_key=os.environ.get("TTT_DEVICE_ID_KEY", defaults.device_id_key),
            log_level=os.environ.get("TTT_LOG_LEVEL", defaults.log_level).upper(),
        )


@lru_cache
def get_settings() -> ClientSettings:
    # A local .env never overrides variables already set in the environment.
    env_path = Path.cwd() / ".env"
    if env_path.exists():
        load_dotenv(dotenv_path=env_path, override=False)
    return ClientSettings.from_env()
