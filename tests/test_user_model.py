import pytest
from datetime import datetime, timedelta, timezone

from taskboard.domain.enums import UserRole
from taskboard.domain.errors import ValidationError
from taskboard.domain.user import User

NOW = datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


def make_user(**kwargs) -> User:
    data = {"username": "Alice", "email": "Alice@Example.com", "created_at": NOW}
    data.update(kwargs)
    return User(**data)


def test_username_and_email_are_normalized():
    user = make_user()
    assert user.username == "alice"
    assert user.email == "alice@example.com"
    assert user.display_name == "alice"


def test_invalid_email_is_rejected():
    with pytest.raises(ValidationError) as e:
        make_user(email="not-an-email")
    assert e.value.field == "email"


def test_full_name_feeds_display_name():
    user = make_user(first_name="Alice", last_name="Smith")
    assert user.full_name == "Alice Smith"
    assert user.display_name == "Alice Smith"


def test_roles_drive_permissions():
    assert make_user().is_admin is False
    assert make_user(role="moderator").can_manage_users is True
    assert make_user(role="moderator").is_admin is False
    assert make_user(role=UserRole.SUPER_ADMIN).is_admin is True

    with pytest.raises(ValidationError):
        make_user(role="root")


def test_changing_email_resets_verification():
    user = make_user(is_verified=True)
    user.update_email("new@example.com", NOW)
    assert user.is_verified is False
    assert user.email == "new@example.com"


def test_login_tracks_activity():
    user = make_user()
    later = NOW + timedelta(hours=1)

    user.login(later)
    user.login(later)

    assert user.login_count == 2
    assert user.last_login_at == later
    assert user.last_active_at == later


def test_is_new_user_window():
    user = make_user()
    assert user.is_new_user(NOW + timedelta(days=7)) is True
    assert user.is_new_user(NOW + timedelta(days=8)) is False


def test_touch_activity_leaves_updated_at():
    user = make_user()
    later = NOW + timedelta(minutes=5)

    user.touch_activity(later)

    assert user.last_active_at == later
    assert user.updated_at == NOW
