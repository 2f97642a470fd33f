"""
Unit tests for password hashing and token handling.
"""

from datetime import timedelta

import pytest
from jose import jwt

from storefront.exceptions import BadRequestError, UnauthorizedError
from storefront.security import (
    ALGORITHM,
    TokenIssuer,
    get_password_hash,
    verify_password,
)


class TestPasswords:
    """Tests for bcrypt hashing helpers."""

    def test_hash_is_not_plaintext_and_verifies(self):
        hashed = get_password_hash("hunter22")

        assert hashed != "hunter22"
        assert hashed.startswith("$2b$10$")
        assert verify_password("hunter22", hashed)

    def test_wrong_password_fails(self):
        hashed = get_password_hash("hunter22")

        assert not verify_password("hunter23", hashed)

    def test_same_password_gets_fresh_salt(self):
        assert get_password_hash("hunter22") != get_password_hash("hunter22")

    def test_malformed_hash_never_matches(self):
        assert verify_password("hunter22", "not-a-bcrypt-hash") is False

    def test_password_over_72_bytes_rejected(self):
        with pytest.raises(BadRequestError):
            get_password_hash("x" * 73)


class TestTokenIssuer:
    """Tests for JWT signing and verification."""

    @pytest.fixture
    def issuer(self):
        return TokenIssuer(secret_key="unit-test-secret")

    def test_sign_and_verify(self, issuer):
        token = issuer.sign({"id": 7, "email": "ann@example.com"})

        payload = issuer.verify(token)

        assert payload["id"] == 7
        assert payload["email"] == "ann@example.com"
        assert payload["exp"] > payload["iat"]

    def test_token_uses_hs256(self, issuer):
        token = issuer.sign({"id": 7, "email": "ann@example.com"})

        assert jwt.get_unverified_header(token)["alg"] == ALGORITHM

    def test_expired_token_rejected(self, issuer):
        token = issuer.sign(
            {"id": 7, "email": "ann@example.com"},
            expires_delta=timedelta(seconds=-1),
        )

        with pytest.raises(UnauthorizedError, match="Token expired"):
            issuer.verify(token)

    def test_token_from_other_secret_rejected(self, issuer):
        other = TokenIssuer(secret_key="another-secret")
        token = other.sign({"id": 7, "email": "ann@example.com"})

        with pytest.raises(UnauthorizedError, match="Invalid token"):
            issuer.verify(token)

    def test_malformed_token_rejected(self, issuer):
        with pytest.raises(UnauthorizedError):
            issuer.verify("not.a.token")

    def test_token_without_identity_rejected(self, issuer):
        token = issuer.sign({"scope": "anything"})

        with pytest.raises(UnauthorizedError):
            issuer.verify(token)

    def test_unauthorized_error_carries_bearer_challenge(self, issuer):
        with pytest.raises(UnauthorizedError) as exc_info:
            issuer.verify("garbage")

        assert exc_info.value.status_code == 401
        assert exc_info.value.headers == {"WWW-Authenticate": "Bearer"}
