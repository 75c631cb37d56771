"""
Application settings using Pydantic.

Settings are loaded from environment variables with .env file support.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class StoreSettings(BaseSettings):
    """Store identity printed on every receipt."""

    model_config = SettingsConfigDict(
        env_prefix="TILL_STORE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    name: str = "YZY STORE"
    logo_path: Path | None = None
    address: list[str] = Field(default=["Eastern Slide, Tuding"])
    footer: list[str] = Field(default=[
        "CUSTOMER COPY - NOT AN OFFICIAL RECEIPT",
        "THANK YOU - GATANG KA MANEN!",
    ])


class PrinterSettings(BaseSettings):
    """Receipt printer and layout settings."""

    model_config = SettingsConfigDict(
        env_prefix="TILL_PRINTER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Delivery backend
    backend: Literal["auto", "win32", "cups", "mock"] = "auto"
    default_name: str | None = None

    # Layout (58mm paper, font A)
    line_width: int = Field(default=32, ge=24)
    description_width: int = Field(default=14, ge=4)
    feed_lines: int = Field(default=3, ge=0, le=255)
    logo_width: int = Field(default=144, ge=8, le=576)
    currency_symbol: str = ""
    date_format: str = "%B %d, %Y %H:%M"

    # Line-printer path
    command_timeout: float = 30.0
    lp_honor_printer_name: bool = False


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_prefix="TILL_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    debug: bool = False

    # Staged artifacts
    staging_dir: Path = Field(default_factory=Path.cwd)
    cleanup_delay: float = Field(default=5.0, ge=0.0)
    keep_failed_artifacts: bool = True

    # Nested settings
    store: StoreSettings = Field(default_factory=StoreSettings)
    printer: PrinterSettings = Field(default_factory=PrinterSettings)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
