"""Tests for JWT validation."""

from datetime import timedelta
from uuid import uuid4

import pytest
from jose import JWTError, jwt

from src.auth.security import create_access_token, decode_access_token
from src.config import get_settings


def claims(**overrides) -> dict:
    data = {"sub": str(uuid4()), "email": "editor@newsdesk.test", "role": "EDITOR"}
    data.update(overrides)
    return data


class TestAccessToken:
    def test_round_trip_keeps_claims(self) -> None:
        data = claims(name="Casey")
        payload = decode_access_token(create_access_token(data))

        assert payload["sub"] == data["sub"]
        assert payload["email"] == data["email"]
        assert payload["role"] == "EDITOR"
        assert payload["name"] == "Casey"
        assert payload["type"] == "access"
        assert "exp" in payload
        assert "iat" in payload

    def test_expired_token_rejected(self) -> None:
        token = create_access_token(claims(), expires_delta=timedelta(seconds=-1))
        with pytest.raises(JWTError):
            decode_access_token(token)

    def test_wrong_secret_rejected(self) -> None:
        settings = get_settings()
        token = jwt.encode(
            {**claims(), "type": "access"},
            "another-secret-that-is-long-enough-0000",
            algorithm=settings.auth_algorithm,
        )
        with pytest.raises(JWTError):
            decode_access_token(token)

    def test_refresh_type_rejected(self) -> None:
        settings = get_settings()
        token = jwt.encode(
            {**claims(), "type": "refresh"},
            settings.auth_secret_key,
            algorithm=settings.auth_algorithm,
        )
        with pytest.raises(JWTError, match="expected 'access'"):
            decode_access_token(token)

    @pytest.mark.parametrize("missing", ["sub", "email", "role"])
    def test_missing_claim_rejected(self, missing: str) -> None:
        data = claims()
        del data[missing]
        with pytest.raises(JWTError, match=missing):
            decode_access_token(create_access_token(data))
