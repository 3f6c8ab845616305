"""
Admin-only endpoints: impersonation links, moderation and the dashboard
listings. Every route requires a caller with an admin_roles row.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, status
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.dependencies.auth import get_identity_client, require_admin
from app.schemas.admin import (
    BotStatusUpdate,
    LoginAsUserRequest,
    LoginAsUserResponse,
    MessageResponse,
    ModerationActionResponse,
    ModerationRequest,
)
from app.services import admin_directory, impersonation, moderation
from app.services.identity_client import AuthUser, SupabaseIdentityClient
from app.utils.timestamps import to_iso

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/admin-login-as-user", response_model=LoginAsUserResponse)
def login_as_user(
    request: LoginAsUserRequest,
    origin: Optional[str] = Header(None),
    db: Session = Depends(get_db),
    admin: AuthUser = Depends(require_admin),
):
    """Create a 10-minute single-use link that signs the admin in as the target user."""
    login_url = impersonation.issue_login_token(db, admin.id, request.target_user_id, origin=origin)
    return {"login_url": login_url}


@router.post("/admin-user-management", response_model=MessageResponse)
def manage_user(
    request: ModerationRequest,
    db: Session = Depends(get_db),
    admin: AuthUser = Depends(require_admin),
):
    """Ban or unban a user."""
    message = moderation.record_action(
        db,
        admin.id,
        request.action,
        request.target_user_id,
        reason=request.reason,
        expires_at=request.expires_at,
    )
    return {"message": message}


@router.get("/admin/users/{user_id}/actions", response_model=list[ModerationActionResponse])
def get_user_actions(
    user_id: str,
    db: Session = Depends(get_db),
    admin: AuthUser = Depends(require_admin),
):
    actions = moderation.list_user_actions(db, user_id)
    return [{
        "id": action.id,
        "user_id": action.user_id,
        "admin_id": action.admin_id,
        "action_type": action.action_type,
        "reason": action.reason,
        "expires_at": to_iso(action.expires_at),
        "is_active": action.is_active,
        "created_at": to_iso(action.created_at),
    } for action in actions]


@router.get("/admin/users")
def list_users(
    db: Session = Depends(get_db),
    identity: SupabaseIdentityClient = Depends(get_identity_client),
    admin: AuthUser = Depends(require_admin),
):
    return admin_directory.list_users(db, identity)


@router.get("/admin/bots")
def list_bots(
    db: Session = Depends(get_db),
    identity: SupabaseIdentityClient = Depends(get_identity_client),
    admin: AuthUser = Depends(require_admin),
):
    return admin_directory.list_bots(db, identity)


@router.patch("/admin/bots/{bot_id}", response_model=MessageResponse)
def toggle_bot_status(
    bot_id: str,
    request: BotStatusUpdate,
    db: Session = Depends(get_db),
    admin: AuthUser = Depends(require_admin),
):
    admin_directory.set_bot_status(db, bot_id, request.is_active)
    return {"message": "Bot status updated successfully"}


@router.delete("/admin/bots/{bot_id}", response_model=MessageResponse, status_code=status.HTTP_200_OK)
def delete_bot(
    bot_id: str,
    db: Session = Depends(get_db),
    admin: AuthUser = Depends(require_admin),
):
    admin_directory.delete_bot(db, bot_id)
    return {"message": "Bot deleted successfully"}


@router.get("/admin/knowledge-bases")
def list_knowledge_bases(
    db: Session = Depends(get_db),
    identity: SupabaseIdentityClient = Depends(get_identity_client),
    admin: AuthUser = Depends(require_admin),
):
    return admin_directory.list_knowledge_bases(db, identity)


@router.delete("/admin/knowledge-bases/{kb_id}", response_model=MessageResponse)
def delete_knowledge_base(
    kb_id: str,
    db: Session = Depends(get_db),
    admin: AuthUser = Depends(require_admin),
):
    admin_directory.delete_knowledge_base(db, kb_id)
    return {"message": "Knowledge base deleted successfully"}
