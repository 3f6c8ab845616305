import time
from unittest.mock import MagicMock, patch

import jwt
import pytest

from app.core.errors import ConfigurationError, Unauthenticated, UpstreamFailure
from app.services.identity_client import MagicLink, SupabaseIdentityClient

SECRET = "super-secret-jwt-key-for-tests-only-32b"


def _client(**kwargs) -> SupabaseIdentityClient:
    options = {"supabase_url": "https://project.supabase.co", "service_role_key": "service-key", "jwt_secret": SECRET}
    options.update(kwargs)
    return SupabaseIdentityClient(**options)


def _token(**claims) -> str:
    payload = {"sub": "user-1", "email": "user@example.com", "aud": "authenticated", "exp": int(time.time()) + 60}
    payload.update(claims)
    return jwt.encode(payload, SECRET, algorithm="HS256")


def _response(status_code=200, json_data=None):
    response = MagicMock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    response.json.return_value = json_data or {}
    response.text = ""
    return response


def test_valid_hs256_token_resolves_user() -> None:
    user = _client().get_user(_token())

    assert user.id == "user-1"
    assert user.email == "user@example.com"


@pytest.mark.parametrize("token", ["", "null", "undefined", "not-a-jwt"])
def test_malformed_tokens_are_rejected(token) -> None:
    with pytest.raises(Unauthenticated):
        _client().get_user(token)


def test_expired_token_is_rejected() -> None:
    with pytest.raises(Unauthenticated, match="Invalid token signature"):
        _client().get_user(_token(exp=int(time.time()) - 10))


def test_wrong_audience_is_rejected() -> None:
    with pytest.raises(Unauthenticated):
        _client().get_user(_token(aud="anon"))


def test_missing_secret_is_configuration_error() -> None:
    with pytest.raises(ConfigurationError):
        _client(jwt_secret="").get_user(_token())


def test_get_user_by_id_returns_none_on_404() -> None:
    with patch("app.services.identity_client.requests.request", return_value=_response(404)):
        assert _client().get_user_by_id("missing") is None


def test_magic_link_round_trip_sends_service_headers() -> None:
    generated = _response(json_data={"properties": {"hashed_token": "abc", "action_link": "https://x"}})
    verified = _response(json_data={"access_token": "at", "refresh_token": "rt"})
    with patch("app.services.identity_client.requests.request", side_effect=[generated, verified]) as request:
        client = _client()
        link = client.generate_magic_link("user@example.com", redirect_to="https://app/dashboard")
        session = client.verify_magic_link(link)

    assert link == MagicLink(email="user@example.com", action_link="https://x", hashed_token="abc")
    assert session.access_token == "at"
    assert session.refresh_token == "rt"
    first_call = request.call_args_list[0]
    assert first_call.args == ("POST", "https://project.supabase.co/auth/v1/admin/generate_link")
    assert first_call.kwargs["headers"]["apikey"] == "service-key"
    assert first_call.kwargs["json"]["redirect_to"] == "https://app/dashboard"
    assert request.call_args_list[1].kwargs["json"] == {"type": "magiclink", "token_hash": "abc"}


def test_verify_without_tokens_is_upstream_failure() -> None:
    with patch("app.services.identity_client.requests.request", return_value=_response(json_data={})):
        with pytest.raises(UpstreamFailure):
            _client().verify_magic_link(MagicLink(email="a@b.c", action_link=None, hashed_token="h"))
