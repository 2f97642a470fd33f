"""
Unit tests for the access guard.
"""

from datetime import timedelta

import pytest
from starlette.requests import Request

from storefront.api.guards import (
    ADMIN_ONLY,
    AUTHENTICATED,
    PUBLIC,
    AccessGuard,
    RoutePolicy,
    ensure_self_or_admin,
    extract_bearer_token,
    optional_user,
)
from storefront.exceptions import ForbiddenError, UnauthorizedError
from storefront.storage.models import UserRole


def make_request(authorization=None) -> Request:
    headers = []
    if authorization is not None:
        headers.append((b"authorization", authorization.encode("latin-1")))
    return Request({"type": "http", "method": "GET", "path": "/", "headers": headers})


class TestRoutePolicy:
    """Tests for RoutePolicy values."""

    def test_roles_imply_authentication(self):
        policy = RoutePolicy(authenticated=False, roles=frozenset({"admin"}))

        assert policy.authenticated is True
        assert policy.roles == frozenset({"admin"})

    def test_enum_roles_normalized(self):
        assert ADMIN_ONLY.roles == frozenset({"admin"})

    def test_unknown_role_rejected(self):
        with pytest.raises(ValueError):
            RoutePolicy(roles=frozenset({"superuser"}))

    def test_public_policy(self):
        assert PUBLIC.authenticated is False
        assert PUBLIC.roles == frozenset()


class TestBearerExtraction:
    """Tests for extract_bearer_token."""

    def test_valid_header(self):
        assert extract_bearer_token("Bearer abc.def.ghi") == "abc.def.ghi"

    @pytest.mark.parametrize("header", [None, "", "Bearer", "Bearer   ", "Basic abc", "Token abc"])
    def test_missing_or_wrong_scheme(self, header):
        with pytest.raises(UnauthorizedError, match="No token provided"):
            extract_bearer_token(header)


class TestAccessGuard:
    """Tests for the guard state machine."""

    @pytest.fixture
    def ann(self, user_store):
        return user_store.register("ann@example.com", "s3cret!", first_name="Ann", last_name="Lee")

    @pytest.fixture
    def root(self, user_store):
        return user_store.register(
            "root@example.com", "s3cret!", role=UserRole.ADMIN,
            first_name="Root", last_name="Admin",
        )

    def run_guard(self, policy, request, token_issuer, user_store):
        return AccessGuard(policy)(request, token_issuer=token_issuer, user_store=user_store)

    def test_public_route_skips_checks(self, token_issuer, user_store):
        request = make_request()

        assert self.run_guard(PUBLIC, request, token_issuer, user_store) is None

    def test_no_token(self, token_issuer, user_store):
        with pytest.raises(UnauthorizedError, match="No token provided"):
            self.run_guard(AUTHENTICATED, make_request(), token_issuer, user_store)

    def test_invalid_token(self, token_issuer, user_store):
        with pytest.raises(UnauthorizedError, match="Invalid token"):
            self.run_guard(AUTHENTICATED, make_request("Bearer junk"), token_issuer, user_store)

    def test_expired_token(self, token_issuer, user_store, ann):
        token = token_issuer.sign({"id": ann.id, "email": ann.email}, expires_delta=timedelta(seconds=-5))

        with pytest.raises(UnauthorizedError, match="Token expired"):
            self.run_guard(AUTHENTICATED, make_request(f"Bearer {token}"), token_issuer, user_store)

    def test_deleted_user(self, token_issuer, user_store, ann):
        token = user_store.authenticate("ann@example.com", "s3cret!")
        user_store.remove(ann.id)

        with pytest.raises(UnauthorizedError, match="User not found"):
            self.run_guard(AUTHENTICATED, make_request(f"Bearer {token}"), token_issuer, user_store)

    def test_deactivated_user(self, token_issuer, user_store, ann):
        token = user_store.authenticate("ann@example.com", "s3cret!")
        user_store.update(ann.id, is_active=False)

        with pytest.raises(UnauthorizedError, match="Account is disabled"):
            self.run_guard(AUTHENTICATED, make_request(f"Bearer {token}"), token_issuer, user_store)

    def test_authenticated_user_attached_to_request(self, token_issuer, user_store, ann):
        token = user_store.authenticate("ann@example.com", "s3cret!")
        request = make_request(f"Bearer {token}")

        user = self.run_guard(AUTHENTICATED, request, token_issuer, user_store)

        assert user.id == ann.id
        assert request.state.user == user

    def test_user_forbidden_on_admin_route(self, token_issuer, user_store, ann):
        token = user_store.authenticate("ann@example.com", "s3cret!")

        with pytest.raises(ForbiddenError):
            self.run_guard(ADMIN_ONLY, make_request(f"Bearer {token}"), token_issuer, user_store)

    def test_admin_allowed_on_admin_route(self, token_issuer, user_store, root):
        token = user_store.authenticate("root@example.com", "s3cret!")

        user = self.run_guard(ADMIN_ONLY, make_request(f"Bearer {token}"), token_issuer, user_store)

        assert user.is_admin


class TestOwnership:
    """Tests for ensure_self_or_admin."""

    def test_self_allowed(self, user_store):
        ann = user_store.register("ann@example.com", "s3cret!", first_name="Ann", last_name="Lee")

        ensure_self_or_admin(ann, ann.id)

    def test_other_user_forbidden(self, user_store):
        ann = user_store.register("ann@example.com", "s3cret!", first_name="Ann", last_name="Lee")

        with pytest.raises(ForbiddenError):
            ensure_self_or_admin(ann, ann.id + 1)

    def test_admin_allowed_for_anyone(self, user_store):
        root = user_store.register(
            "root@example.com", "s3cret!", role=UserRole.ADMIN,
            first_name="Root", last_name="Admin",
        )

        ensure_self_or_admin(root, root.id + 42)


class TestOptionalUser:
    """Tests for optional_user, used where a token is allowed but not required."""

    def test_no_header_is_anonymous(self, token_issuer, user_store):
        request = make_request()

        assert optional_user(request, token_issuer=token_issuer, user_store=user_store) is None

    def test_header_identifies_caller(self, token_issuer, user_store):
        user = user_store.register("ann@example.com", "s3cret!", first_name="Ann", last_name="Lee")
        token = user_store.authenticate("ann@example.com", "s3cret!")
        request = make_request(f"Bearer {token}")

        assert optional_user(request, token_issuer=token_issuer, user_store=user_store).id == user.id
        assert request.state.user.id == user.id

    def test_bad_token_still_rejected(self, token_issuer, user_store):
        with pytest.raises(UnauthorizedError):
            optional_user(make_request("Bearer not-a-token"), token_issuer=token_issuer, user_store=user_store)
