from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from app.core.errors import Unauthenticated, Unauthorized
from app.db.session import get_db
from app.models.admin_role import AdminRole
from app.services.identity_client import AuthUser, SupabaseIdentityClient, build_identity_client


def get_identity_client() -> SupabaseIdentityClient:
    """FastAPI dependency providing the identity collaborator. Tests override it."""
    return build_identity_client()


def get_current_user(
    authorization: Optional[str] = Header(None),
    identity: SupabaseIdentityClient = Depends(get_identity_client),
) -> AuthUser:
    """
    Resolve the caller's bearer token to a Supabase user.
    This is the main dependency to use in route handlers.
    """
    if not authorization:
        raise Unauthenticated("No authorization header provided")

    token = authorization.replace("Bearer ", "").strip()
    return identity.get_user(token)


def get_current_user_with_email(user: AuthUser = Depends(get_current_user)) -> AuthUser:
    if not user.email:
        raise Unauthenticated("User not authenticated or email not available")
    return user


def is_admin(db: Session, user_id: str) -> bool:
    return db.query(AdminRole).filter(AdminRole.user_id == user_id).first() is not None


def require_admin(
    user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> AuthUser:
    """Caller must hold an admin_roles row."""
    if not is_admin(db, user.id):
        raise Unauthorized("Not authorized")
    return user
