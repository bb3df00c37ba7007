"""Vault gateway configuration management.

Configuration sources (in priority order):
1. Environment variables (VAULT_ prefix)
2. Config file (config.yaml)
3. Defaults
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ServerConfig(BaseModel):
    """HTTP server configuration."""

    host: str = "0.0.0.0"
    port: int = 8000


class DatabaseConfig(BaseModel):
    """Database configuration."""

    # SQLite for development; switch to postgresql+asyncpg:// in production
    url: str = "sqlite+aiosqlite:///./vault.db"
    echo: bool = False


class SecurityConfig(BaseModel):
    """API key bootstrap configuration."""

    # Seeded into api_keys (hash only) on startup when set.
    # VAULT_API_KEY env var takes precedence.
    api_key: str | None = None


DEFAULT_JWT_SECRET = "INSECURE_DEV_SECRET_CHANGE_ME"


class IdentityConfig(BaseModel):
    """Bearer identity token verification.

    Tokens are issued by the identity collaborator; this service only
    verifies the signature and reads the ``sub`` claim.
    """

    jwt_secret: str = DEFAULT_JWT_SECRET
    algorithm: str = "HS256"
    # None = audience not checked
    audience: str | None = None

    @property
    def uses_default_secret(self) -> bool:
        return self.jwt_secret == DEFAULT_JWT_SECRET


class GatewayConfig(BaseModel):
    """Read-only resource gateway configuration."""

    route_prefix: str = "public-api"
    api_name: str = "Entity Vault API"
    default_limit: int = 100
    max_limit: int = 1000


class StepUpConfig(BaseModel):
    """Trusted device and one-time code lifetimes."""

    device_ttl_days: int = 30
    code_ttl_minutes: int = 10
    code_length: int = 6


class GCTaskConfig(BaseModel):
    """GC task-specific configuration."""

    enabled: bool = True


class GCConfig(BaseModel):
    """Background sweep of expired step-up records."""

    enabled: bool = True
    run_on_startup: bool = True
    interval_seconds: int = 300  # 5 minutes

    expired_device: GCTaskConfig = Field(default_factory=GCTaskConfig)
    expired_code: GCTaskConfig = Field(default_factory=GCTaskConfig)


class Settings(BaseSettings):
    """Vault gateway application settings."""

    model_config = SettingsConfigDict(
        env_prefix="VAULT_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    server: ServerConfig = Field(default_factory=ServerConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    security: SecurityConfig = Field(default_factory=SecurityConfig)
    identity: IdentityConfig = Field(default_factory=IdentityConfig)
    gateway: GatewayConfig = Field(default_factory=GatewayConfig)
    step_up: StepUpConfig = Field(default_factory=StepUpConfig)
    gc: GCConfig = Field(default_factory=GCConfig)


def _load_config_file() -> dict:
    """Load configuration from YAML file if exists.

    Looks for config file in order:
    1. VAULT_CONFIG_FILE environment variable
    2. ./config.yaml
    3. /etc/vault-gateway/config.yaml
    """
    import os

    config_paths = [
        os.environ.get("VAULT_CONFIG_FILE"),
        Path("config.yaml"),
        Path("/etc/vault-gateway/config.yaml"),
    ]

    for path in config_paths:
        if path is None:
            continue
        path = Path(path)
        if path.exists():
            with open(path) as f:
                return yaml.safe_load(f) or {}

    return {}


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Configuration is loaded from:
    1. YAML config file (if exists)
    2. Environment variables (override)
    3. Defaults
    """
    file_config = _load_config_file()
    return Settings(**file_config)
