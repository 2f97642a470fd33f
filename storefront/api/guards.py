"""
Access Guard

Per-route access policy for the API. A route declares a RoutePolicy and
depends on an AccessGuard built from it:

    @router.post("", dependencies=[Depends(AccessGuard(ADMIN_ONLY))])

    def handler(current_user: StoredUser = Depends(require_user)): ...

The guard walks NoToken -> Unverified -> Verified -> Identified and then
either authorizes or forbids.
"""

from dataclasses import dataclass, field
from typing import Optional

from fastapi import Depends, Request
from loguru import logger

from ..exceptions import ForbiddenError, NotFoundError, UnauthorizedError
from ..security import TokenIssuer
from ..storage.models import UserRole
from ..storage.user_store import StoredUser, UserStore
from .dependencies import get_token_issuer, get_user_store


@dataclass(frozen=True)
class RoutePolicy:
    """Who may call a route. A non-empty role set implies authentication."""

    authenticated: bool = False
    roles: frozenset = field(default_factory=frozenset)

    def __post_init__(self):
        object.__setattr__(self, "roles", frozenset(UserRole(r).value for r in self.roles))
        if self.roles:
            object.__setattr__(self, "authenticated", True)


PUBLIC = RoutePolicy()
AUTHENTICATED = RoutePolicy(authenticated=True)
ADMIN_ONLY = RoutePolicy(roles=frozenset({UserRole.ADMIN}))


def extract_bearer_token(authorization: Optional[str]) -> str:
    """Return the token from an 'Authorization: Bearer <token>' header."""
    if not authorization:
        raise UnauthorizedError("No token provided")

    scheme, _, token = authorization.partition(" ")
    token = token.strip()
    if scheme != "Bearer" or not token:
        raise UnauthorizedError("No token provided")

    return token


class AccessGuard:
    """
    FastAPI dependency enforcing a RoutePolicy.

    Returns the resolved user (None on public routes) and attaches it to
    request.state.user.
    """

    def __init__(self, policy: RoutePolicy = AUTHENTICATED):
        self.policy = policy

    def __call__(
        self,
        request: Request,
        token_issuer: TokenIssuer = Depends(get_token_issuer),
        user_store: UserStore = Depends(get_user_store),
    ) -> Optional[StoredUser]:
        if not self.policy.authenticated:
            return None

        user = self.identify(request.headers.get("Authorization"), token_issuer, user_store)
        self.authorize(user)
        request.state.user = user
        return user

    @staticmethod
    def identify(
        authorization: Optional[str],
        token_issuer: TokenIssuer,
        user_store: UserStore,
    ) -> StoredUser:
        """Resolve the active account behind a bearer header."""
        token = extract_bearer_token(authorization)
        payload = token_issuer.verify(token)

        try:
            user = user_store.get(int(payload["id"]))
        except (NotFoundError, TypeError, ValueError):
            logger.warning(f"Token for missing user {payload.get('id')}")
            raise UnauthorizedError("User not found")

        if not user.is_active:
            logger.warning(f"Token for deactivated user {user.id}")
            raise UnauthorizedError("Account is disabled")

        return user

    def authorize(self, user: StoredUser) -> None:
        """Role check; an empty role set lets every identified user through."""
        if self.policy.roles and user.role not in self.policy.roles:
            logger.warning(f"User {user.id} ({user.role}) denied, requires {sorted(self.policy.roles)}")
            raise ForbiddenError(
                "Insufficient permissions",
                detail=f"Requires role: {', '.join(sorted(self.policy.roles))}",
            )


require_user = AccessGuard(AUTHENTICATED)
require_admin = AccessGuard(ADMIN_ONLY)


def ensure_self_or_admin(current_user: StoredUser, user_id: int) -> None:
    """Allow acting on a user record only as that user or as an admin."""
    if current_user.id != user_id and not current_user.is_admin:
        raise ForbiddenError(
            "Insufficient permissions",
            detail="Only the account owner or an admin may modify this user",
        )


def optional_user(
    request: Request,
    token_issuer: TokenIssuer = Depends(get_token_issuer),
    user_store: UserStore = Depends(get_user_store),
) -> Optional[StoredUser]:
    """Identify the caller when a bearer header is sent, otherwise None."""
    authorization = request.headers.get("Authorization")
    if not authorization:
        return None

    user = AccessGuard.identify(authorization, token_issuer, user_store)
    request.state.user = user
    return user
