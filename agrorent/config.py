# AgroRent - Farm Equipment Rental Marketplace Backend
# Copyright (C) 2025 AgroRent contributors
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

"""Configuration management for AgroRent."""

import logging
import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class AppConfig(BaseModel):
    """Application configuration."""

    name: str = "AgroRent"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8080
    base_url: str = "http://localhost:8080"
    cors_origins: list = ["http://localhost:5173"]


class DatabaseConfig(BaseModel):
    """Database configuration."""

    path: str = "data/agrorent.db"
    url: str = ""  # Full SQLAlchemy URL, overrides path when set


class SecurityConfig(BaseModel):
    """Security configuration."""

    auth_token_days: int = 30
    max_tokens_per_user: int = 10
    min_password_length: int = 6


class SearchConfig(BaseModel):
    """Equipment search configuration."""

    default_radius_km: float = 50.0
    max_radius_km: float = 500.0
    default_pricing_type: str = "DAILY"


class BookingConfig(BaseModel):
    """Booking constraints configuration."""

    max_notes_length: int = 2000
    max_review_length: int = 2000
    max_reason_length: int = 500


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    format: str = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


class CleanupConfig(BaseModel):
    """Cleanup settings configuration."""

    enabled: bool = True
    cron_schedule: str = "0 3 * * *"
    auth_token_retention_days: int = 7


class Settings(BaseModel):
    """Main settings container."""

    app: AppConfig = Field(default_factory=AppConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    security: SecurityConfig = Field(default_factory=SecurityConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)
    booking: BookingConfig = Field(default_factory=BookingConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    cleanup: CleanupConfig = Field(default_factory=CleanupConfig)


def load_config(config_path: Optional[str] = None) -> Settings:
    """Load configuration from YAML file.

    Args:
        config_path: Path to config file. If None, tries default locations.

    Returns:
        Settings object with loaded configuration.
    """
    default_paths = [
        Path("config/config.yaml"),
        Path("config.yaml"),
        Path("/etc/agrorent/config.yaml"),
    ]

    # Allow override via environment variable
    if config_path is None:
        config_path = os.environ.get("AGRORENT_CONFIG")

    config_file = None

    if config_path:
        config_file = Path(config_path)
        if not config_file.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
    else:
        for path in default_paths:
            if path.exists():
                config_file = path
                break

    if config_file is None:
        logger.info("No config file found, using defaults")
        return Settings()

    logger.info("Loading config from: %s", config_file)

    with open(config_file, "r") as f:
        config_data = yaml.safe_load(f) or {}

    return Settings(**config_data)


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = load_config()
    return _settings


def init_settings(config_path: Optional[str] = None) -> Settings:
    """Initialize settings from config file."""
    global _settings
    _settings = load_config(config_path)
    return _settings


def update_settings(new_settings: Settings) -> None:
    """Update the global settings instance."""
    global _settings
    _settings = new_settings
