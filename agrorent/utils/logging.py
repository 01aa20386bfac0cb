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

"""Logging configuration.

The level and line format come from the ``logging`` section of the settings
so deployments can raise verbosity without code changes.
"""

import logging.config
from typing import Optional

from agrorent.config import Settings, get_settings


def build_logging_config(settings: Settings) -> dict:
    """Build a ``dictConfig`` mapping from settings."""
    level = settings.logging.level.upper()
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {"format": settings.logging.format},
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "level": level,
            },
        },
        "loggers": {
            "agrorent": {"level": level, "handlers": ["console"], "propagate": False},
            "apscheduler": {"level": "WARNING", "handlers": ["console"], "propagate": False},
        },
        "root": {"level": "WARNING", "handlers": ["console"]},
    }


def configure_logging(settings: Optional[Settings] = None) -> None:
    """Configure the Python logging system from settings."""
    settings = settings or get_settings()
    logging.config.dictConfig(build_logging_config(settings))
