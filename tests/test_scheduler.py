from datetime import timedelta

from agrorent.models.auth import AuthToken
from agrorent.services import scheduler as sched
from agrorent.utils.helpers import utcnow


def _token(db, user, name, **kwargs):
    token = AuthToken(user_id=user.id, token=name, **kwargs)
    db.add(token)
    db.commit()
    return token


def test_cleanup_removes_old_tokens_only(db, make_user):
    user = make_user()
    now = utcnow()
    old = now - timedelta(days=30)
    _token(db, user, "expired-long-ago", expires_at=old, created_at=old - timedelta(days=30))
    _token(db, user, "expired-yesterday", expires_at=now - timedelta(days=1))
    _token(db, user, "revoked-long-ago", expires_at=now + timedelta(days=5), created_at=old,
           is_revoked=True)
    _token(db, user, "revoked-today", expires_at=now + timedelta(days=5), is_revoked=True)
    _token(db, user, "active", expires_at=now + timedelta(days=30))

    results = sched.run_daily_cleanup(db)

    assert results == {"expired_tokens_deleted": 1, "revoked_tokens_deleted": 1}
    remaining = {t.token for t in db.query(AuthToken).all()}
    assert remaining == {"expired-yesterday", "revoked-today", "active"}


def test_setup_registers_cleanup_job(settings):
    try:
        scheduler = sched.setup_scheduler()
        job = scheduler.get_job("daily_cleanup")
        assert job is not None
    finally:
        sched.stop_scheduler()


def test_cleanup_job_skipped_when_disabled(settings):
    settings.cleanup.enabled = False
    try:
        assert sched.setup_scheduler().get_job("daily_cleanup") is None
    finally:
        sched.stop_scheduler()
