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

"""Scheduler service using APScheduler."""

import logging
import time
from datetime import timedelta
from typing import Any, Dict, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from sqlalchemy.orm import Session

from agrorent.config import get_settings
from agrorent.database import get_session_local
from agrorent.models.auth import AuthToken
from agrorent.utils.helpers import utcnow

logger = logging.getLogger(__name__)

# Global scheduler instance
scheduler: Optional[AsyncIOScheduler] = None


def get_scheduler() -> AsyncIOScheduler:
    """Get the global scheduler instance."""
    global scheduler
    if scheduler is None:
        scheduler = AsyncIOScheduler()
    return scheduler


def run_daily_cleanup(db: Session) -> Dict[str, Any]:
    """Delete auth tokens that expired or were revoked before the retention window."""
    settings = get_settings()
    results = {}

    token_cutoff = utcnow() - timedelta(days=settings.cleanup.auth_token_retention_days)

    # Delete old expired tokens
    results["expired_tokens_deleted"] = (
        db.query(AuthToken)
        .filter(AuthToken.expires_at < token_cutoff)
        .delete(synchronize_session=False)
    )

    # Delete old revoked tokens
    results["revoked_tokens_deleted"] = (
        db.query(AuthToken)
        .filter(
            AuthToken.is_revoked == True,  # noqa: E712
            AuthToken.created_at < token_cutoff,
        )
        .delete(synchronize_session=False)
    )

    db.commit()
    return results


async def _run_cleanup_job() -> None:
    """Run the cleanup job with its own database session."""
    SessionLocal = get_session_local()
    db = SessionLocal()
    start_time = time.time()
    try:
        results = run_daily_cleanup(db)
        logger.info(
            "Daily cleanup finished in %d ms: %s",
            int((time.time() - start_time) * 1000),
            results,
        )
    except Exception:
        db.rollback()
        logger.exception("Daily cleanup failed")
    finally:
        db.close()


def setup_scheduler() -> AsyncIOScheduler:
    """Set up the scheduler with cron jobs."""
    settings = get_settings()
    sched = get_scheduler()

    if settings.cleanup.enabled:
        sched.add_job(
            _run_cleanup_job,
            CronTrigger.from_crontab(settings.cleanup.cron_schedule, timezone="UTC"),
            id="daily_cleanup",
            replace_existing=True,
        )

    return sched


def start_scheduler() -> AsyncIOScheduler:
    """Start the scheduler."""
    sched = setup_scheduler()
    if not sched.running:
        sched.start()
    return sched


def stop_scheduler() -> None:
    """Stop the scheduler."""
    global scheduler
    if scheduler and scheduler.running:
        scheduler.shutdown()
    scheduler = None
