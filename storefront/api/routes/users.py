"""
User API Routes

Registration, login and account management.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Response, status
from loguru import logger

from ...exceptions import ForbiddenError
from ...storage.models import UserRole
from ...storage.user_store import StoredUser, UserStore
from ..dependencies import get_user_store
from ..guards import ensure_self_or_admin, optional_user, require_user
from ..schemas import (
    ErrorResponse,
    LoginRequest,
    TokenResponse,
    UserCreate,
    UserResponse,
    UserUpdate,
)


router = APIRouter(prefix="/users", tags=["users"])


@router.post(
    "",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid user data"},
        401: {"model": ErrorResponse, "description": "Invalid bearer token"},
        403: {"model": ErrorResponse, "description": "Elevated role without admin token"},
        409: {"model": ErrorResponse, "description": "Email already registered"},
    },
)
def register(
    user: UserCreate,
    current_user: Optional[StoredUser] = Depends(optional_user),
    store: UserStore = Depends(get_user_store),
):
    """
    Register a new account.

    Anyone may create a 'user' account. Any other role requires the request
    to carry an admin's bearer token.
    """
    if user.role != UserRole.USER and (current_user is None or not current_user.is_admin):
        raise ForbiddenError(
            "Insufficient permissions",
            detail=f"Only an admin may create '{user.role.value}' accounts",
        )

    return store.register(
        email=user.email,
        password=user.password,
        role=user.role,
        first_name=user.first_name,
        last_name=user.last_name,
        phone=user.phone,
        address=user.address,
    )


@router.post(
    "/login",
    response_model=TokenResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Invalid credentials"},
    },
)
def login(
    credentials: LoginRequest,
    store: UserStore = Depends(get_user_store),
):
    """Exchange email and password for a bearer token."""
    token = store.authenticate(credentials.email, credentials.password)
    return TokenResponse(token=token)


@router.get("", response_model=list[UserResponse])
def list_users(
    current_user: StoredUser = Depends(require_user),
    store: UserStore = Depends(get_user_store),
):
    logger.info(f"User {current_user.id} listing users")
    return store.list_all()


@router.get(
    "/{user_id}",
    response_model=UserResponse,
    responses={
        404: {"model": ErrorResponse, "description": "User not found"},
    },
)
def get_user(
    user_id: int,
    current_user: StoredUser = Depends(require_user),
    store: UserStore = Depends(get_user_store),
):
    return store.get(user_id)


@router.patch(
    "/{user_id}",
    response_model=UserResponse,
    responses={
        403: {"model": ErrorResponse, "description": "Not the owner or an admin"},
        404: {"model": ErrorResponse, "description": "User not found"},
        409: {"model": ErrorResponse, "description": "Email already registered"},
    },
)
def update_user(
    user_id: int,
    updates: UserUpdate,
    current_user: StoredUser = Depends(require_user),
    store: UserStore = Depends(get_user_store),
):
    """
    Update an account.

    Users may update themselves; admins may update anyone. Only admins may
    change role or active status.
    """
    ensure_self_or_admin(current_user, user_id)

    fields = updates.model_dump(exclude_unset=True)
    if not current_user.is_admin and ({"role", "is_active"} & fields.keys()):
        raise ForbiddenError(
            "Insufficient permissions",
            detail="Only an admin may change role or active status",
        )

    return store.update(user_id, **fields)


@router.delete(
    "/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={
        403: {"model": ErrorResponse, "description": "Not the owner or an admin"},
        404: {"model": ErrorResponse, "description": "User not found"},
    },
)
def delete_user(
    user_id: int,
    current_user: StoredUser = Depends(require_user),
    store: UserStore = Depends(get_user_store),
):
    ensure_self_or_admin(current_user, user_id)
    store.remove(user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
