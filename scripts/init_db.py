#!/usr/bin/env python3
# AgroRent - Farm Equipment Rental Marketplace Backend
# Copyright (C) 2025 AgroRent contributors
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Database initialization script."""

import logging
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from agrorent.config import init_settings
from agrorent.database import init_database
from agrorent.utils.logging import configure_logging

logger = logging.getLogger("agrorent.scripts.init_db")


def main():
    """Initialize the database."""
    settings = init_settings(sys.argv[1] if len(sys.argv) > 1 else None)
    configure_logging(settings)

    logger.info("Initializing AgroRent database...")
    init_database()
    logger.info("Database initialization complete!")


if __name__ == "__main__":
    main()
