"""
Ban / unban records.

"ban" always appends a new active row (no dedup). "unban" deactivates every
active ban row for the user; zero rows affected is still a success.
"""
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from app.core.errors import InvalidRequest
from app.models.moderation_action import ModerationAction, ModerationActionType
from app.utils.timestamps import to_naive_utc

logger = logging.getLogger(__name__)

BAN = "ban"
UNBAN = "unban"


def ban_user(
    db: Session,
    admin_id: str,
    user_id: str,
    reason: Optional[str] = None,
    expires_at: Optional[datetime] = None,
) -> ModerationAction:
    action = ModerationAction(
        user_id=user_id,
        admin_id=admin_id,
        action_type=ModerationActionType.BAN.value,
        reason=reason,
        expires_at=to_naive_utc(expires_at),
        is_active=True,
    )
    db.add(action)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(action)
    logger.info("[ADMIN] Admin %s banned user %s", admin_id, user_id)
    return action


def unban_user(db: Session, admin_id: str, user_id: str) -> int:
    """Deactivate all active bans for the user. Returns the number of rows updated."""
    result = db.execute(
        update(ModerationAction)
        .where(
            ModerationAction.user_id == user_id,
            ModerationAction.action_type == ModerationActionType.BAN.value,
            ModerationAction.is_active.is_(True),
        )
        .values(is_active=False)
        .execution_options(synchronize_session=False)
    )
    db.commit()
    logger.info("[ADMIN] Admin %s unbanned user %s (%s rows)", admin_id, user_id, result.rowcount)
    return result.rowcount


def record_action(
    db: Session,
    admin_id: str,
    action: str,
    user_id: str,
    reason: Optional[str] = None,
    expires_at: Optional[datetime] = None,
) -> str:
    """Apply a moderation action and return the message for the caller."""
    if not user_id:
        raise InvalidRequest("target_user_id is required")
    if action == BAN:
        ban_user(db, admin_id, user_id, reason=reason, expires_at=expires_at)
        return "User banned successfully"
    if action == UNBAN:
        unban_user(db, admin_id, user_id)
        return "User unbanned successfully"
    raise InvalidRequest("Invalid action")


def list_user_actions(db: Session, user_id: str) -> List[ModerationAction]:
    return (
        db.query(ModerationAction)
        .filter(ModerationAction.user_id == user_id)
        .order_by(ModerationAction.created_at.desc())
        .all()
    )
