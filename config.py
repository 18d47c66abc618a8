"""
config.py — application settings from environment variables.

Every variable uses the BALANCE_ prefix, e.g. ``BALANCE_PORT=9000``.
"""
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # App
    app_title: str = "Balance Scale API"
    app_version: str = "0.1.0"

    # Logging
    log_level: str = "INFO"

    # Server
    host: str = "127.0.0.1"
    port: int = 8000
    cors_origins: list[str] = ["*"]

    # Graph
    graph_points: int = 200

    model_config = SettingsConfigDict(env_prefix="BALANCE_", env_file=".env", extra="ignore")
