"""
Tests for identity token issuing, verification and the cookie that carries it.
"""

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from fastapi import Response
from jose import jwt

from estate_api.config import Settings
from estate_api.utils.auth import TokenService, hash_password, verify_password
from estate_api.utils.exceptions import InvalidTokenError


class TestPasswordHashing:

    def test_hash_is_salted(self):
        first = hash_password("pw123")
        second = hash_password("pw123")

        assert first != second
        assert verify_password("pw123", first)
        assert verify_password("pw123", second)

    def test_empty_password_rejected(self):
        with pytest.raises(ValueError):
            hash_password("")


class TestTokenService:
    """Test TokenService functionality."""

    def test_issue_verify_round_trip(self, token_service: TokenService):
        user_id = uuid.uuid4()

        token = token_service.issue(user_id)

        assert token_service.verify(token) == user_id

    def test_payload_expiry_follows_policy(self, token_service: TokenService):
        payload = token_service.decode(token_service.issue(uuid.uuid4()))

        lifetime = payload.expires_at - payload.issued_at
        assert abs(lifetime - timedelta(days=7)) < timedelta(seconds=2)

    def test_expired_token_rejected(self, token_service: TokenService):
        token = token_service.issue(uuid.uuid4(), expires_delta=timedelta(seconds=-10))

        with pytest.raises(InvalidTokenError, match="expired"):
            token_service.verify(token)

    def test_tampered_token_rejected(self, token_service: TokenService):
        token = token_service.issue(uuid.uuid4())
        header, payload, signature = token.split(".")
        tampered = ".".join([header, payload, signature[::-1]])

        with pytest.raises(InvalidTokenError):
            token_service.verify(tampered)

    def test_token_from_other_secret_rejected(self, token_service: TokenService, test_settings: Settings):
        other = TokenService(test_settings.model_copy(update={"jwt_secret_key": "another-secret-key-of-sufficient-size"}))
        token = other.issue(uuid.uuid4())

        with pytest.raises(InvalidTokenError):
            token_service.verify(token)

    def test_missing_subject_rejected(self, token_service: TokenService, test_settings: Settings):
        now = datetime.now(timezone.utc)
        token = jwt.encode(
            {"iat": now, "exp": now + timedelta(hours=1)},
            test_settings.jwt_secret_key,
            algorithm=test_settings.jwt_algorithm
        )

        with pytest.raises(InvalidTokenError):
            token_service.verify(token)

    def test_non_uuid_subject_rejected(self, token_service: TokenService, test_settings: Settings):
        now = datetime.now(timezone.utc)
        token = jwt.encode(
            {"sub": "not-a-uuid", "iat": now, "exp": now + timedelta(hours=1)},
            test_settings.jwt_secret_key,
            algorithm=test_settings.jwt_algorithm
        )

        with pytest.raises(InvalidTokenError):
            token_service.verify(token)

    @pytest.mark.parametrize("token", ["", "garbage", "a.b.c"])
    def test_malformed_tokens_rejected(self, token_service: TokenService, token: str):
        with pytest.raises(InvalidTokenError):
            token_service.verify(token)

    def test_attach_sets_http_only_cookie(self, token_service: TokenService):
        response = Response()

        token_service.attach(response, "token-value")

        cookie = response.headers["set-cookie"]
        assert cookie.startswith("access_token=token-value")
        assert "HttpOnly" in cookie
        assert "Max-Age=604800" in cookie
        assert "SameSite=lax" in cookie

    def test_revoke_clears_cookie(self, token_service: TokenService):
        response = Response()

        token_service.revoke(response)

        cookie = response.headers["set-cookie"]
        assert cookie.startswith("access_token=")
        assert "Max-Age=0" in cookie

    def test_revocation_is_stateless(self, token_service: TokenService):
        user_id = uuid.uuid4()
        token = token_service.issue(user_id)

        token_service.revoke(Response())

        # A copied token stays valid until it expires
        assert token_service.verify(token) == user_id
