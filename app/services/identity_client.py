"""
Supabase Auth client.

Resolves bearer tokens to users (local JWT verification, same as the rest of
the API) and wraps the GoTrue admin endpoints the backend needs: user lookup,
user listing, magic-link generation and verifying a magic link into a session.
"""
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import jwt  # PyJWT
import requests

from app.core import config
from app.core.errors import ConfigurationError, Unauthenticated, UpstreamFailure

logger = logging.getLogger(__name__)

# Cache for JWKS (Public Keys)
JWKS_CACHE = None
JWKS_CACHE_TIMESTAMP = None
JWKS_CACHE_TTL = 3600  # Cache for 1 hour

INVALID_TOKEN_VALUES = {"null", "undefined", "none", ""}


@dataclass
class AuthUser:
    id: str
    email: Optional[str]
    created_at: Optional[str] = None
    last_sign_in_at: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "AuthUser":
        return cls(
            id=payload.get("id") or payload.get("sub"),
            email=payload.get("email"),
            created_at=payload.get("created_at"),
            last_sign_in_at=payload.get("last_sign_in_at"),
        )


@dataclass
class MagicLink:
    email: str
    action_link: Optional[str]
    hashed_token: str


@dataclass
class AuthSession:
    access_token: str
    refresh_token: str
    email: Optional[str] = None


def get_jwks(supabase_url: str, force_refresh: bool = False):
    """
    Fetch JWKS from Supabase with caching.
    Only caches successful fetches so a failed fetch is retried on the next request.
    """
    global JWKS_CACHE, JWKS_CACHE_TIMESTAMP

    if JWKS_CACHE and not force_refresh and JWKS_CACHE_TIMESTAMP:
        if time.time() - JWKS_CACHE_TIMESTAMP < JWKS_CACHE_TTL:
            return JWKS_CACHE

    jwks_url = f"{supabase_url}/auth/v1/.well-known/jwks.json"
    try:
        r = requests.get(jwks_url, timeout=10)
        r.raise_for_status()
    except requests.exceptions.RequestException as e:
        logger.warning("[AUTH] JWKS fetch failed: %s", e)
        return None

    JWKS_CACHE = r.json()
    JWKS_CACHE_TIMESTAMP = time.time()
    logger.info("[AUTH] Fetched JWKS with %s keys", len(JWKS_CACHE.get("keys", [])))
    return JWKS_CACHE


class SupabaseIdentityClient:
    def __init__(
        self,
        supabase_url: str,
        service_role_key: str,
        jwt_secret: str = "",
        timeout: float = 30,
    ):
        self.supabase_url = supabase_url.rstrip("/")
        self.service_role_key = service_role_key
        self.jwt_secret = jwt_secret
        self.timeout = timeout

    # ----- token -> identity -----

    def get_user(self, token: str) -> AuthUser:
        """Verify a Supabase access token and return the user it belongs to."""
        if not token or token.lower() in INVALID_TOKEN_VALUES:
            raise Unauthenticated("Not authenticated")

        if len(token.split(".")) != 3:
            raise Unauthenticated("Invalid token format")

        try:
            algo = jwt.get_unverified_header(token).get("alg")
        except jwt.DecodeError as e:
            logger.info("[AUTH] Failed to decode token header: %s", e)
            raise Unauthenticated("Invalid token header")

        if algo == "HS256":
            if not self.jwt_secret:
                raise ConfigurationError("Server misconfiguration: SUPABASE_JWT_SECRET not set")
            key = self.jwt_secret
        elif algo in ("ES256", "RS256"):
            if not self.supabase_url:
                raise ConfigurationError("Server misconfiguration: SUPABASE_URL not set")
            if not get_jwks(self.supabase_url) and not JWKS_CACHE:
                raise UpstreamFailure("Authentication service temporarily unavailable")
            try:
                # PyJWT finds the right key from the JWKS
                jwks_client = jwt.PyJWKClient(f"{self.supabase_url}/auth/v1/.well-known/jwks.json")
                key = jwks_client.get_signing_key_from_jwt(token).key
            except jwt.PyJWKClientError as e:
                logger.info("[AUTH] Signing key lookup failed: %s", e)
                raise Unauthenticated("Invalid token signature")
        else:
            raise Unauthenticated(f"Unsupported token algorithm: {algo}")

        try:
            payload = jwt.decode(
                token,
                key,
                algorithms=[algo],
                audience="authenticated",
                options={"verify_aud": True},
            )
        except jwt.PyJWTError as e:
            logger.info("[AUTH] %s verification failed: %s", algo, e)
            raise Unauthenticated("Invalid token signature")

        user = AuthUser.from_payload(payload)
        if not user.id:
            raise Unauthenticated("Token missing user ID claim")
        return user

    # ----- admin API -----

    def _headers(self) -> Dict[str, str]:
        if not self.supabase_url or not self.service_role_key:
            raise ConfigurationError("Server misconfiguration: Supabase service credentials not set")
        return {
            "apikey": self.service_role_key,
            "Authorization": f"Bearer {self.service_role_key}",
            "Content-Type": "application/json",
        }

    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        url = f"{self.supabase_url}/auth/v1{path}"
        try:
            return requests.request(method, url, headers=self._headers(), timeout=self.timeout, **kwargs)
        except requests.exceptions.RequestException as e:
            logger.error("[AUTH] %s %s failed: %s", method, path, e)
            raise UpstreamFailure(f"Identity service request failed: {e}")

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return response.text or f"status {response.status_code}"
        return body.get("msg") or body.get("message") or body.get("error_description") or str(body)

    def get_user_by_id(self, user_id: str) -> Optional[AuthUser]:
        response = self._request("GET", f"/admin/users/{user_id}")
        if response.status_code == 404:
            return None
        if not response.ok:
            raise UpstreamFailure(self._error_message(response))
        return AuthUser.from_payload(response.json())

    def list_users(self, per_page: int = 1000) -> List[AuthUser]:
        response = self._request("GET", "/admin/users", params={"page": 1, "per_page": per_page})
        if not response.ok:
            raise UpstreamFailure(self._error_message(response))
        return [AuthUser.from_payload(u) for u in response.json().get("users", [])]

    def generate_magic_link(self, email: str, redirect_to: Optional[str] = None) -> MagicLink:
        body: Dict[str, Any] = {"type": "magiclink", "email": email}
        if redirect_to:
            body["redirect_to"] = redirect_to
        response = self._request("POST", "/admin/generate_link", json=body)
        if not response.ok:
            raise UpstreamFailure(self._error_message(response))
        data = response.json()
        # Older GoTrue versions nest the link under "properties"
        properties = data.get("properties") or data
        hashed_token = properties.get("hashed_token")
        if not hashed_token:
            raise UpstreamFailure("Failed to generate sign-in link")
        return MagicLink(email=email, action_link=properties.get("action_link"), hashed_token=hashed_token)

    def verify_magic_link(self, link: MagicLink) -> AuthSession:
        """Exchange a generated magic link for a session (completes sign-in)."""
        response = self._request("POST", "/verify", json={"type": "magiclink", "token_hash": link.hashed_token})
        if not response.ok:
            raise UpstreamFailure(self._error_message(response))
        data = response.json()
        access_token = data.get("access_token")
        refresh_token = data.get("refresh_token")
        if not access_token or not refresh_token:
            raise UpstreamFailure("Failed to extract tokens from magic link")
        return AuthSession(access_token=access_token, refresh_token=refresh_token, email=link.email)


def build_identity_client() -> SupabaseIdentityClient:
    return SupabaseIdentityClient(
        supabase_url=config.SUPABASE_URL,
        service_role_key=config.SUPABASE_SERVICE_ROLE_KEY,
        jwt_secret=config.SUPABASE_JWT_SECRET,
        timeout=config.HTTP_TIMEOUT_SECONDS,
    )
