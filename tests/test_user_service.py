import pytest

from taskboard.domain.errors import DuplicateError, ValidationError
from taskboard.domain.events import ErrorOccurred, UserCreated, UserUpdated
from taskboard.domain.patches import user_patches


def test_create_user_publishes_event(user_service):
    events = []
    user_service.add_listener(events.append)

    user = user_service.create_user({"username": "alice", "email": "alice@example.com"})

    assert user.id is not None
    assert events == [UserCreated(user)]
    assert user_service.get_user_by_username("ALICE").id == user.id


def test_duplicate_username_publishes_error(user_service, alice):
    events = []
    user_service.add_listener(events.append)

    with pytest.raises(DuplicateError):
        user_service.create_user({"username": "alice", "email": "other@example.com"})

    assert isinstance(events[0], ErrorOccurred)
    assert events[0].operation == "create_user"


def test_create_user_requires_username_and_email(user_service):
    with pytest.raises(ValidationError):
        user_service.create_user({"username": "alice"})
    with pytest.raises(ValidationError):
        user_service.create_user({"username": "alice", "email": "a@example.com", "password": "x"})


def test_update_and_logout(user_service, alice, clock):
    events = []
    user_service.add_listener(events.append)

    updated = user_service.update_user(alice.id, user_patches({"display_name": "Alicja", "role": "moderator"}))
    later = clock.advance(minutes=1)
    logged_out = user_service.logout_user(alice.id)

    assert updated.display_name == "Alicja"
    assert updated.can_manage_users is True
    assert logged_out.last_active_at == later
    assert [type(e) for e in events] == [UserUpdated, UserUpdated]


def test_authenticate_and_stats(user_service, alice, bob):
    user = user_service.authenticate_user("bob")

    assert user.id == bob.id
    assert user.login_count == 1
    stats = user_service.get_user_stats()
    assert stats.total == 2
    assert stats.active == 2
    assert len(user_service.get_all_users()) == 2
