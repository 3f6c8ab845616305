"""
Redeeming admin login links.

GET /admin-login/{token} is what the emailed/copied link opens: it redirects
to the dashboard with the new session in the URL fragment, or back to the
home page with an error the frontend shows as a toast.
POST /functions/admin-login/{token} is the JSON variant for the SPA.
"""
import logging
from urllib.parse import urlencode

from fastapi import APIRouter, Depends
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from app.core import config
from app.core.errors import NotFound, ServiceError, TokenInvalid
from app.db.session import get_db
from app.dependencies.auth import get_identity_client
from app.schemas.admin import RedeemResponse
from app.services import impersonation
from app.services.identity_client import SupabaseIdentityClient

logger = logging.getLogger(__name__)

router = APIRouter()


def _dashboard_url() -> str:
    return f"{config.FRONTEND_URL}/dashboard"


def _error_title(error: ServiceError) -> str:
    if isinstance(error, TokenInvalid):
        return "Invalid or expired token"
    if isinstance(error, NotFound):
        return "User not found"
    return "Login failed"


@router.get("/admin-login/{token}")
def admin_login_redirect(
    token: str,
    db: Session = Depends(get_db),
    identity: SupabaseIdentityClient = Depends(get_identity_client),
):
    try:
        session = impersonation.redeem_login_token(db, identity, token, redirect_to=_dashboard_url())
    except ServiceError as e:
        logger.warning("[ADMIN] Admin login rejected: %s", e.message)
        query = urlencode({"error": _error_title(e), "error_description": e.message})
        return RedirectResponse(f"{config.FRONTEND_URL}/?{query}", status_code=302)

    fragment = urlencode({
        "access_token": session.access_token,
        "refresh_token": session.refresh_token,
        "type": "magiclink",
    })
    return RedirectResponse(f"{_dashboard_url()}#{fragment}", status_code=302)


@router.post("/functions/admin-login/{token}", response_model=RedeemResponse)
def admin_login(
    token: str,
    db: Session = Depends(get_db),
    identity: SupabaseIdentityClient = Depends(get_identity_client),
):
    session = impersonation.redeem_login_token(db, identity, token, redirect_to=_dashboard_url())
    return {
        "access_token": session.access_token,
        "refresh_token": session.refresh_token,
        "email": session.email,
        "redirect_to": _dashboard_url(),
    }
