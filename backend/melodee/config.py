"""Application configuration from environment variables."""
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Pipeline settings loaded from environment."""

    # Catalog / staging database
    database_url: str = "postgresql://melodee:melodee@db:5432/melodee"

    # Storage areas
    staging_root: str = "/melodee/staging"        # Reviewable layout: CODE/Artist/Year - Album/
    production_root: str = "/melodee/storage"     # Promoted catalog tree
    quarantine_root: str = "/melodee/quarantine"  # Isolated failures: reason/date/file
    scan_output: str = "/tmp"                     # Where scan ledgers are written

    # Worker pools
    scan_workers: int = 4
    process_workers: int = 4
    process_rate_limit: int = 0  # file moves per second, 0 = unlimited

    # Ledger retention
    ledger_retention_days: int = 90

    # Directory codes
    directory_code_max_length: int = 8
    directory_code_min_length: int = 2
    directory_code_suffix_pattern: str = "-{n}"

    # Owning library for quarantine records
    library_id: int = 1

    # Logging
    log_level: str = "info"
    log_path: str = ""

    class Config:
        env_file = (".env", "../.env")  # Check both backend/ and parent dir
        extra = "ignore"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
