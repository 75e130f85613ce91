"""Configuration management using Pydantic BaseSettings."""
from pathlib import Path
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.match.rules import MatchingConfig


class Settings(BaseSettings):
    """Application settings with environment variable overrides."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True
    )

    # Data paths
    data_dir: Path = Field(default_factory=lambda: Path("./data"), alias="DATA_DIR")
    out_dir: Path = Field(default_factory=lambda: Path("./out"), alias="OUT_DIR")
    log_dir: Path = Field(default_factory=lambda: Path("./logs"), alias="LOG_DIR")

    # Database
    db_path: Path = Field(default_factory=lambda: Path("./data/dealership.duckdb"), alias="DB_PATH")
    db_retry_attempts: int = Field(default=3, ge=1, alias="DB_RETRY_ATTEMPTS")

    # Matching
    match_auto_assign_min: int = Field(default=80, ge=0, le=100, alias="MATCH_AUTO_ASSIGN_MIN")
    match_default_limit: int = Field(default=3, ge=1, alias="MATCH_DEFAULT_LIMIT")
    match_max_workers: int = Field(default=1, ge=1, alias="MATCH_MAX_WORKERS")
    match_parallel_min_candidates: int = Field(default=50, ge=1, alias="MATCH_PARALLEL_MIN_CANDIDATES")

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        # Ensure directories exist
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.out_dir.mkdir(parents=True, exist_ok=True)

    @property
    def duckdb_path(self) -> str:
        """Return DuckDB path as string."""
        return str(self.db_path)

    def matching_config(self) -> MatchingConfig:
        """Build the engine configuration, applying environment overrides."""
        return MatchingConfig(auto_assign_min=self.match_auto_assign_min)


# Global settings instance
settings = Settings()
