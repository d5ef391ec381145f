"""Runtime settings, read from the environment (and a local .env file)."""

from __future__ import annotations

import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field

DEV_JWT_SECRET = "dev-only-ticker-stream-secret-change-me"

# field name -> environment variable
_ENV_VARS = {
    "app_env": "APP_ENV",
    "host": "HOST",
    "port": "PORT",
    "jwt_secret": "JWT_SECRET",
    "token_ttl_seconds": "TOKEN_TTL_SECONDS",
    "cache_ttl_ms": "CACHE_TTL",
    "cache_sweep_interval": "CACHE_SWEEP_INTERVAL",
    "cors_origin": "CORS_ORIGIN",
    "tick_interval_ms": "TICK_INTERVAL_MS",
    "history_capacity": "HISTORY_CAPACITY",
    "max_history_points": "MAX_HISTORY_POINTS",
    "send_queue_size": "SEND_QUEUE_SIZE",
    "log_level": "LOG_LEVEL",
}


class Settings(BaseModel):
    app_env: str = "development"
    host: str = "0.0.0.0"
    port: int = Field(default=3001, gt=0, lt=65536)
    jwt_secret: str = Field(default=DEV_JWT_SECRET, min_length=1)
    token_ttl_seconds: int = Field(default=24 * 60 * 60, gt=0)
    cache_ttl_ms: int = Field(default=5 * 60 * 1000, gt=0)  # 5 minutes
    cache_sweep_interval: float = Field(default=60.0, gt=0)  # seconds
    cors_origin: str = "http://localhost:5173"
    tick_interval_ms: int = Field(default=3000, gt=0)
    history_capacity: int = Field(default=100, gt=0)
    max_history_points: int = Field(default=5000, gt=0)
    send_queue_size: int = Field(default=32, gt=0)
    log_level: str = "INFO"

    @property
    def tick_interval(self) -> float:
        """Tick interval in seconds."""
        return self.tick_interval_ms / 1000.0

    @classmethod
    def from_env(cls, load_dotenv_file: bool = True) -> Settings:
        """Build settings from environment variables; unset ones keep their defaults."""
        if load_dotenv_file:
            load_dotenv()
        values = {
            field_name: os.environ[env_var]
            for field_name, env_var in _ENV_VARS.items()
            if os.environ.get(env_var, "").strip()
        }
        return cls(**values)
