# SPDX-License-Identifier: Apache-2.0
# Copyright (C) 2024-2026 The Birthmark Standard Foundation

"""Configuration management for SnapHash."""

import logging
from functools import lru_cache
from pathlib import Path
from typing import List, Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class Settings(BaseSettings):
    """Application settings loaded from environment variables (SNAPHASH_*)."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="SNAPHASH_",
        case_sensitive=False,
        extra="ignore",
    )

    # Storage
    data_dir: Path = Field(default=Path("./data"), description="Directory for stored records")
    storage_backend: Literal["file", "sqlite", "memory"] = Field(
        default="file", description="Where the record collection is persisted"
    )
    database_url: Optional[str] = Field(
        default=None, description="SQLAlchemy URL (default: SQLite file in data_dir)"
    )
    store_key: str = Field(default="snaphashqr_records", description="Logical key of the record document")

    # Previews
    preview_max_size: int = Field(default=150, gt=0, description="Longest preview side in pixels")
    preview_quality: int = Field(default=70, ge=1, le=95, description="Preview JPEG quality")

    # QR rendering
    qr_box_size: int = Field(default=8, gt=0, description="Pixels per QR module")
    qr_border: int = Field(default=2, ge=0, description="QR quiet zone in modules")

    # Front ends
    frontend: Literal["api", "cli"] = Field(default="cli", description="Front end started by default")
    host: str = Field(default="127.0.0.1", description="HTTP server host")
    port: int = Field(default=8080, description="HTTP server port")
    cors_origins: List[str] = Field(default=["*"], description="Allowed CORS origins")

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")

    @property
    def resolved_database_url(self) -> str:
        if self.database_url:
            return self.database_url
        return f"sqlite:///{self.data_dir / 'snaphash.db'}"


@lru_cache()
def get_settings() -> Settings:
    """Process-wide settings instance."""
    return Settings()


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging once for a front end."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )
