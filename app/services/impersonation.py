"""
Admin "login as user" tokens.

An admin issues a single-use token for a target user; redeeming it signs the
browser in as that user. A token is redeemable only while used_at is NULL and
expires_at is in the future. Redemption claims the token with one conditional
UPDATE so two concurrent redemptions cannot both succeed.
"""
import logging
import uuid
from datetime import timedelta
from typing import Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from app.core import config
from app.core.errors import InvalidRequest, NotFound, TokenInvalid
from app.models.impersonation_token import ImpersonationToken
from app.services.identity_client import AuthSession, SupabaseIdentityClient
from app.utils.timestamps import utcnow

logger = logging.getLogger(__name__)


def build_login_url(origin: str, token: str) -> str:
    return f"{origin.rstrip('/')}/admin-login/{token}"


def issue_login_token(
    db: Session,
    admin_id: str,
    target_user_id: str,
    origin: Optional[str] = None,
) -> str:
    """Persist a new impersonation token and return the login URL embedding it."""
    if not target_user_id:
        raise InvalidRequest("target_user_id is required")
    token = str(uuid.uuid4())
    expires_at = utcnow() + timedelta(minutes=config.IMPERSONATION_TOKEN_TTL_MINUTES)

    db.add(ImpersonationToken(
        token=token,
        target_user_id=target_user_id,
        admin_id=admin_id,
        expires_at=expires_at,
    ))
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info("[ADMIN] Admin %s issued login token for user %s (expires %s)", admin_id, target_user_id, expires_at)
    return build_login_url(origin or config.FRONTEND_URL, token)


def claim_token(db: Session, token: str) -> bool:
    """Mark the token used if it is still unused and unexpired. Returns False if the claim lost."""
    now = utcnow()
    result = db.execute(
        update(ImpersonationToken)
        .where(
            ImpersonationToken.token == token,
            ImpersonationToken.used_at.is_(None),
            ImpersonationToken.expires_at > now,
        )
        .values(used_at=now)
        .execution_options(synchronize_session=False)
    )
    db.commit()
    return result.rowcount == 1


def redeem_login_token(
    db: Session,
    identity: SupabaseIdentityClient,
    token: str,
    redirect_to: Optional[str] = None,
) -> AuthSession:
    """
    Consume an impersonation token and sign in as its target user.

    Raises TokenInvalid when the token is unknown, used or expired, and
    NotFound when the target user no longer exists.
    """
    if not token:
        raise TokenInvalid("No login token provided")

    row = db.query(ImpersonationToken).filter(ImpersonationToken.token == token).first()
    if not row or row.used_at is not None or row.expires_at <= utcnow():
        raise TokenInvalid()

    target = identity.get_user_by_id(row.target_user_id)
    if not target or not target.email:
        raise NotFound("User not found")

    if not claim_token(db, token):
        raise TokenInvalid()

    link = identity.generate_magic_link(target.email, redirect_to=redirect_to)
    session = identity.verify_magic_link(link)
    logger.info("[ADMIN] Admin %s signed in as %s", row.admin_id, target.email)
    return session
