from datetime import timedelta

from lending.config import settings
from lending.services.auth import AuthService, authenticate_admin, create_access_token, ensure_admin


def test_token_for_admin_is_logged_in(db):
    ensure_admin(db)
    token = create_access_token({"sub": settings.admin_username})

    auth = AuthService(db)

    assert auth.is_logged_in(token) is True
    assert auth.admin_for_token(token).username == settings.admin_username


def test_missing_or_bad_token_is_not_logged_in(db):
    ensure_admin(db)
    auth = AuthService(db)

    assert auth.is_logged_in(None) is False
    assert auth.is_logged_in("") is False
    assert auth.is_logged_in("not-a-jwt") is False


def test_expired_token_is_not_logged_in(db):
    ensure_admin(db)
    token = create_access_token({"sub": settings.admin_username}, expires_delta=timedelta(minutes=-5))

    assert AuthService(db).is_logged_in(token) is False


def test_token_for_unknown_admin_is_not_logged_in(db):
    ensure_admin(db)
    token = create_access_token({"sub": "ghost"})

    assert AuthService(db).is_logged_in(token) is False


def test_authenticate_admin_checks_password(db):
    ensure_admin(db)

    assert authenticate_admin(db, settings.admin_username, settings.admin_password) is not None
    assert authenticate_admin(db, settings.admin_username, "wrong") is None
