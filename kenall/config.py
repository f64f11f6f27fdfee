"""
Configuration Settings

Environment-driven settings (prefix ``KENALL_``, optional ``.env`` file).
"""
from typing import List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict

from .rules import DEFAULT_INTERLEAVED_AREA_GROUPS, KEN_ALL_URL, SOURCE_ENCODING


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="KENALL_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Source
    source_url: str = KEN_ALL_URL
    source_encoding: str = SOURCE_ENCODING  # "auto" to detect
    download_timeout: float = 60.0
    work_dir: Optional[str] = None  # system temp dir when unset

    # Output
    output_path: str = "storage/tmp/ken_all_converted.csv"

    # Area groups whose postcodes interleave and share one dedup window
    interleaved_area_groups: List[List[str]] = [list(group) for group in DEFAULT_INTERLEAVED_AREA_GROUPS]

    # Logging
    log_level: str = "INFO"
    log_format: str = "console"

    environment: str = "development"


settings = Settings()
