"""Application settings."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Analysis limits and artifact locations, overridable via DEPLOYPLAN_* variables."""

    model_config = SettingsConfigDict(
        env_prefix="DEPLOYPLAN_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Per-file-type read ceilings (bytes)
    manifest_max_bytes: int = 512 * 1024
    workspace_config_max_bytes: int = 1024 * 1024
    ci_max_bytes: int = 256 * 1024

    # Scan caps
    import_scan_max_files: int = 20
    route_scan_max_files: int = 50

    # Per-app worker pool; None means one worker per CPU
    max_workers: int | None = None

    # Artifact settings
    output_dir: str = ".deployplan"
    plan_json_file: str = "plan.json"
    plan_markdown_file: str = "plan.md"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
