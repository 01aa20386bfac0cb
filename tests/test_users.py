from datetime import timedelta

import pytest

from agrorent.exceptions import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    UnauthorizedError,
    ValidationError,
)
from agrorent.models.auth import AuthToken
from agrorent.services import users as svc
from agrorent.utils.helpers import utcnow


def test_register_and_lookup_by_phone(db):
    user = svc.register_user(db, "Ramesh", "98765 43210", "kisan123", latitude=18.5)
    assert user.phone == "9876543210"
    assert user.password_hash != "kisan123"
    # Half a location pair is not stored
    assert user.latitude is None
    assert svc.get_user_by_phone(db, "98765-43210").id == user.id


def test_unknown_phone(db):
    with pytest.raises(NotFoundError):
        svc.get_user_by_phone(db, "9999999999")


def test_register_validation(db):
    with pytest.raises(ValidationError):
        svc.register_user(db, "Ramesh", "12ab", "kisan123")
    with pytest.raises(ValidationError):
        svc.register_user(db, "Ramesh", "9876543210", "123")

    svc.register_user(db, "Ramesh", "9876543210", "kisan123")
    with pytest.raises(ConflictError):
        svc.register_user(db, "Suresh", "9876543210", "kisan456")


def test_login_issues_token(db):
    svc.register_user(db, "Ramesh", "9876543210", "kisan123")
    user, token = svc.login(db, "9876543210", "kisan123")
    assert token.user_id == user.id
    assert token.is_valid()
    assert user.last_login_at is not None

    with pytest.raises(AuthenticationError):
        svc.login(db, "9876543210", "wrong-password")


def test_inactive_user_cannot_login(db):
    user = svc.register_user(db, "Ramesh", "9876543210", "kisan123")
    user.is_active = False
    db.commit()
    with pytest.raises(UnauthorizedError):
        svc.authenticate(db, "9876543210", "kisan123")


def test_token_limit_revokes_oldest(db, settings):
    settings.security.max_tokens_per_user = 2
    user = svc.register_user(db, "Ramesh", "9876543210", "kisan123")
    first = svc.issue_auth_token(db, user)
    svc.issue_auth_token(db, user)
    svc.issue_auth_token(db, user)
    db.refresh(first)
    assert first.is_revoked
    active = db.query(AuthToken).filter(AuthToken.is_revoked == False).count()  # noqa: E712
    assert active == 2


def test_revoke_and_expiry(db):
    user = svc.register_user(db, "Ramesh", "9876543210", "kisan123")
    token = svc.issue_auth_token(db, user)
    svc.revoke_token(db, token.token)
    db.refresh(token)
    assert not token.is_valid()

    expired = svc.issue_auth_token(db, user)
    expired.expires_at = utcnow() - timedelta(minutes=1)
    assert not expired.is_valid()


def test_resolve_token(db):
    user = svc.register_user(db, "Ramesh", "9876543210", "kisan123")
    token = svc.issue_auth_token(db, user)
    assert svc.resolve_token(db, token.token).id == user.id
    db.refresh(token)
    assert token.last_used_at is not None

    with pytest.raises(AuthenticationError):
        svc.resolve_token(db, "unknown")

    user.is_active = False
    db.commit()
    with pytest.raises(UnauthorizedError):
        svc.resolve_token(db, token.token)

    svc.revoke_token(db, token.token)
    with pytest.raises(AuthenticationError):
        svc.resolve_token(db, token.token)
