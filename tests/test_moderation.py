from datetime import datetime

import pytest

from app.core.errors import InvalidRequest
from app.models.moderation_action import ModerationAction
from app.services import moderation
from tests.conftest import ADMIN_ID, USER_ID


def test_ban_records_active_row(client, db_session, admin_headers) -> None:
    response = client.post(
        "/functions/admin-user-management",
        json={"action": "ban", "target_user_id": USER_ID, "reason": "spam"},
        headers=admin_headers,
    )

    assert response.status_code == 200
    assert response.json() == {"message": "User banned successfully"}
    row = db_session.query(ModerationAction).one()
    assert row.user_id == USER_ID
    assert row.admin_id == ADMIN_ID
    assert row.action_type == "ban"
    assert row.reason == "spam"
    assert row.is_active is True
    assert row.expires_at is None


def test_ban_is_not_deduplicated(db_session) -> None:
    moderation.record_action(db_session, ADMIN_ID, "ban", USER_ID)
    moderation.record_action(db_session, ADMIN_ID, "ban", USER_ID)

    assert db_session.query(ModerationAction).filter(ModerationAction.is_active.is_(True)).count() == 2


def test_unban_deactivates_all_active_bans(client, db_session, admin_headers) -> None:
    moderation.ban_user(db_session, ADMIN_ID, USER_ID)
    moderation.ban_user(db_session, ADMIN_ID, USER_ID)

    response = client.post(
        "/functions/admin-user-management",
        json={"action": "unban", "target_user_id": USER_ID},
        headers=admin_headers,
    )

    assert response.json() == {"message": "User unbanned successfully"}
    db_session.expire_all()
    assert all(not row.is_active for row in db_session.query(ModerationAction).all())


def test_unban_without_active_ban_still_succeeds(db_session) -> None:
    assert moderation.unban_user(db_session, ADMIN_ID, USER_ID) == 0
    assert moderation.record_action(db_session, ADMIN_ID, "unban", USER_ID) == "User unbanned successfully"


def test_invalid_action_is_rejected(client, admin_headers) -> None:
    response = client.post(
        "/functions/admin-user-management",
        json={"action": "suspend", "target_user_id": USER_ID},
        headers=admin_headers,
    )

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid action"}


def test_missing_target_is_rejected(db_session) -> None:
    with pytest.raises(InvalidRequest, match="target_user_id is required"):
        moderation.record_action(db_session, ADMIN_ID, "ban", "")


def test_non_admin_cannot_moderate(client, db_session, user_headers) -> None:
    response = client.post(
        "/functions/admin-user-management",
        json={"action": "ban", "target_user_id": USER_ID},
        headers=user_headers,
    )

    assert response.status_code == 400
    assert response.json() == {"error": "Not authorized"}
    assert db_session.query(ModerationAction).count() == 0


def test_action_history_is_newest_first(client, db_session, admin_headers) -> None:
    moderation.ban_user(db_session, ADMIN_ID, USER_ID, reason="first")
    moderation.ban_user(db_session, ADMIN_ID, USER_ID, reason="second")

    response = client.get(f"/functions/admin/users/{USER_ID}/actions", headers=admin_headers)

    assert response.status_code == 200
    reasons = [a["reason"] for a in response.json()]
    assert sorted(reasons) == ["first", "second"]
    created = [a["created_at"] for a in response.json()]
    assert created == sorted(created, reverse=True)


def test_ban_expiry_with_offset_is_stored_as_utc(client, db_session, admin_headers) -> None:
    client.post(
        "/functions/admin-user-management",
        json={"action": "ban", "target_user_id": USER_ID, "expires_at": "2030-01-01T05:00:00+05:00"},
        headers=admin_headers,
    )

    row = db_session.query(ModerationAction).one()
    assert row.expires_at == datetime(2030, 1, 1, 0, 0, 0)

    history = client.get(f"/functions/admin/users/{USER_ID}/actions", headers=admin_headers).json()
    assert history[0]["expires_at"] == "2030-01-01T00:00:00Z"
