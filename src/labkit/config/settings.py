"""
Application settings using Pydantic.

Provides environment-based configuration loading with LABKIT_ prefix.
Paths are relative to the core directory passed on the command line.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="LABKIT_",
        extra="ignore",
    )

    # Experiments
    descriptor_filename: str = "config.yaml"

    # Core layout
    api_dir: str = "api"
    frontend_dir: str = "front-end"
    controllers_manifest: str = "api/src/controllers.json"
    module_list: str = "front-end/src/experiments.js"
    service_registry: str = "docker-compose.dev.yml"
    staging_dirname: str = "tempPackages"

    # External tools
    package_tool: str = "npm"
    container_tool: str = "docker"
    tool_timeout: float | None = None

    # Naming
    controller_prefix: str = "labkitcontroller"
    webpage_prefix: str = "labkitwebpage"
    worker_prefix: str = "labkitworker"

    # Label marking worker services created by labkit
    managed_label: str = "isLabkitWorker"

    # Logging
    log_level: str = "INFO"
    json_logs: bool = False


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
