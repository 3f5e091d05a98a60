"""Shared configuration helpers and environment-backed settings."""

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR: Path = Path(__file__).resolve().parents[1]


class Settings(BaseSettings):
    """Typed application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=str(BASE_DIR / ".env"),
        case_sensitive=False,
        extra="ignore",
    )

    row_limit: int = Field(default=100, ge=0)
    max_row_limit: int = Field(default=1000, ge=0)
    max_depth: int = Field(default=200, ge=1, le=300)
    log_level: str = "WARNING"
    data_dir: str = str(BASE_DIR / "data")
    data_file: str | None = None

    @field_validator("data_file", mode="before")
    @classmethod
    def normalize_data_file(cls, value: str | None) -> str | None:
        if value is None:
            return None
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, value: str | None) -> str:
        return (value or "WARNING").strip().upper()


SETTINGS = Settings()

DATA_FILE_ENV: str | None = SETTINGS.data_file
DATA_DIR_ENV: str = SETTINGS.data_dir
SINGLE_FILE: Path | None = Path(DATA_FILE_ENV).resolve() if DATA_FILE_ENV else None
DATA_ROOT: Path = SINGLE_FILE.parent if SINGLE_FILE else Path(DATA_DIR_ENV).resolve()
LOG_LEVEL: str = SETTINGS.log_level

ALLOWED_EXTENSIONS: set[str] = {".jsonl", ".json", ".csv", ".tsv", ".parquet"}
DEFAULT_LIMIT: int = SETTINGS.row_limit
MAX_LIMIT: int = max(SETTINGS.max_row_limit, DEFAULT_LIMIT)
MAX_DEPTH: int = SETTINGS.max_depth
