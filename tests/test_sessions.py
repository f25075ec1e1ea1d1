import uuid

import pytest
from sqlalchemy.exc import OperationalError

from services.errors import InternalError, NotFoundError, UnauthorizedError
from utils.tokens import TokenKind, verify_with


def test_create_session_stores_the_returned_refresh_token(services, make_user):
    user = make_user()
    pair = services.sessions.create_session(user.id)

    stored = services.users.find_by_id(user.id)
    assert stored.refresh_token == pair.refresh_token
    assert verify_with(services.settings, TokenKind.ACCESS, pair.access_token).subject_id == user.id
    assert verify_with(services.settings, TokenKind.REFRESH, pair.refresh_token).subject_id == user.id


def test_bearer_access_token_carries_scheme_prefix(services, make_user):
    pair = services.sessions.create_session(make_user().id)
    assert pair.bearer_access_token == f"Bearer {pair.access_token}"


def test_new_session_overwrites_previous_refresh_token(services, make_user):
    user = make_user()
    first = services.sessions.create_session(user.id)
    second = services.sessions.create_session(user.id)

    assert first.refresh_token != second.refresh_token
    assert services.users.find_by_id(user.id).refresh_token == second.refresh_token


def test_create_session_leaves_password_hash_untouched(services, make_user):
    user = make_user()
    before = user.password_hash
    services.sessions.create_session(user.id)
    assert services.users.find_by_id(user.id).password_hash == before


def test_create_session_for_missing_user(services):
    with pytest.raises(NotFoundError):
        services.sessions.create_session(str(uuid.uuid4()))


def test_end_session_clears_token_and_is_idempotent(services, make_user):
    user = make_user()
    services.sessions.create_session(user.id)

    services.sessions.end_session(user.id)
    assert services.users.find_by_id(user.id).refresh_token is None

    services.sessions.end_session(user.id)
    assert services.users.find_by_id(user.id).refresh_token is None


def test_current_user_projects_out_secrets(services, make_user):
    user = make_user()
    services.sessions.create_session(user.id)

    public = services.sessions.current_user(user.id)
    assert public["id"] == user.id
    assert public["username"] == "alice"
    assert public["fullName"] == "Alice"
    for secret in ("password_hash", "passwordHash", "refresh_token", "refreshToken", "password"):
        assert secret not in public


def test_current_user_missing(services):
    with pytest.raises(NotFoundError):
        services.sessions.current_user(str(uuid.uuid4()))


def test_store_failure_surfaces_as_internal_error(services, make_user, monkeypatch):
    user = make_user()

    def broken(*args, **kwargs):
        raise OperationalError("UPDATE users", {}, Exception("disk I/O error"))

    monkeypatch.setattr(services.users, "update_by_id", broken)
    with pytest.raises(InternalError) as exc:
        services.sessions.create_session(user.id)
    assert "disk" not in exc.value.message


def test_conditional_session_refuses_stale_expected_value(services, make_user):
    user = make_user()
    current = services.sessions.create_session(user.id)

    with pytest.raises(UnauthorizedError):
        services.sessions.create_session(user.id, expected_refresh_token="stale-token")
    assert services.users.find_by_id(user.id).refresh_token == current.refresh_token

    rotated = services.sessions.create_session(user.id, expected_refresh_token=current.refresh_token)
    assert services.users.find_by_id(user.id).refresh_token == rotated.refresh_token


def _unreachable_store(*args, **kwargs):
    raise OperationalError("SELECT users", {}, Exception("database is locked"))


def test_lookup_failure_in_create_session_is_internal_error(services, make_user, monkeypatch):
    user = make_user()
    monkeypatch.setattr(services.users, "find_by_id", _unreachable_store)
    with pytest.raises(InternalError) as exc:
        services.sessions.create_session(user.id)
    assert "locked" not in exc.value.message


def test_lookup_failure_in_current_user_is_internal_error(services, make_user, monkeypatch):
    user = make_user()
    monkeypatch.setattr(services.users, "find_by_id", _unreachable_store)
    with pytest.raises(InternalError) as exc:
        services.sessions.current_user(user.id)
    assert "locked" not in exc.value.message
