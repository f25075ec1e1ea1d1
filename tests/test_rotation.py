import uuid
from datetime import timedelta

import pytest

from services.errors import UnauthorizedError
from utils.tokens import TokenKind, issue_token, issue_with


def test_rotation_is_single_use(services, make_user):
    user = make_user()
    original = services.sessions.create_session(user.id)

    rotated = services.rotation.refresh(original.refresh_token)
    assert rotated.refresh_token != original.refresh_token
    assert rotated.access_token != original.access_token

    with pytest.raises(UnauthorizedError):
        services.rotation.refresh(original.refresh_token)

    again = services.rotation.refresh(rotated.refresh_token)
    assert services.users.find_by_id(user.id).refresh_token == again.refresh_token


def test_logout_revokes_unexpired_refresh_token(services, make_user):
    user = make_user()
    pair = services.sessions.create_session(user.id)
    services.sessions.end_session(user.id)

    with pytest.raises(UnauthorizedError):
        services.rotation.refresh(pair.refresh_token)


@pytest.mark.parametrize("presented", [None, ""])
def test_missing_token_rejected(services, presented):
    with pytest.raises(UnauthorizedError):
        services.rotation.refresh(presented)


def test_access_token_cannot_be_rotated(services, make_user):
    pair = services.sessions.create_session(make_user().id)
    with pytest.raises(UnauthorizedError):
        services.rotation.refresh(pair.access_token)


def test_failure_causes_are_indistinguishable(services, make_user):
    user = make_user()
    current = services.sessions.create_session(user.id)
    expired = issue_token(
        TokenKind.REFRESH, user.id, services.settings.refresh_secret, timedelta(seconds=-5),
        issuer=services.settings.issuer,
    )
    forged = issue_token(
        TokenKind.REFRESH, user.id, "attacker-secret-0123456789abcdef0123", timedelta(days=1),
    )
    revoked = issue_with(services.settings, TokenKind.REFRESH, user.id)
    unknown_subject = issue_with(services.settings, TokenKind.REFRESH, str(uuid.uuid4()))

    messages = set()
    for presented in (expired, forged, revoked, unknown_subject):
        with pytest.raises(UnauthorizedError) as exc:
            services.rotation.refresh(presented)
        messages.add(exc.value.message)
    assert len(messages) == 1

    # none of the failures disturbed the live session
    assert services.users.find_by_id(user.id).refresh_token == current.refresh_token


def test_concurrent_rotation_with_same_token_only_one_wins(services, make_user, monkeypatch):
    user = make_user()
    presented = services.sessions.create_session(user.id).refresh_token
    original_create = services.sessions.create_session
    winners = []

    def racing_create(subject_id, expected_refresh_token=None):
        # another request rotates the same token between our check and our write
        if not winners:
            winners.append(original_create(subject_id, expected_refresh_token=expected_refresh_token))
        return original_create(subject_id, expected_refresh_token=expected_refresh_token)

    monkeypatch.setattr(services.sessions, "create_session", racing_create)

    with pytest.raises(UnauthorizedError):
        services.rotation.refresh(presented)
    assert services.users.find_by_id(user.id).refresh_token == winners[0].refresh_token
