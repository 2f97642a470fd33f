"""
Credential Store

Persists user accounts and handles the password side of authentication:
- Registration with bcrypt-hashed passwords
- Login (email + password -> signed bearer token)
- Lookups by id (raises) and by email (returns None)

The password hash is never copied into StoredUser, so nothing read
through this store can leak it.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from loguru import logger
from sqlalchemy.exc import IntegrityError

from ..exceptions import ConflictError, NotFoundError, UnauthorizedError
from ..security import (
    TokenIssuer,
    dummy_password_hash,
    get_password_hash,
    verify_password,
)
from .database import Database
from .models import UserModel, UserRole, utcnow

UPDATABLE_FIELDS = {
    "email",
    "first_name",
    "last_name",
    "phone",
    "address",
    "role",
    "is_active",
}


def normalize_email(email: str) -> str:
    """Emails are stored and matched trimmed and lowercased."""
    return email.strip().lower()


@dataclass
class StoredUser:
    """User data without credentials."""

    id: int
    email: str
    first_name: str
    last_name: str
    role: str = UserRole.USER.value
    phone: Optional[str] = None
    address: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, model: UserModel) -> "StoredUser":
        """Create from SQLAlchemy model."""
        return cls(
            id=model.id,
            email=model.email,
            first_name=model.first_name,
            last_name=model.last_name,
            role=model.role,
            phone=model.phone,
            address=model.address,
            is_active=bool(model.is_active),
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value


class UserStore:
    """
    Repository for user accounts.

    Usage:
        store = UserStore(database, TokenIssuer(secret_key="..."))
        user = store.register("ann@example.com", "s3cret!", first_name="Ann", last_name="Lee")
        token = store.authenticate("ann@example.com", "s3cret!")
    """

    def __init__(self, database: Database, token_issuer: TokenIssuer):
        self.database = database
        self.token_issuer = token_issuer

    def register(
        self,
        email: str,
        password: str,
        role: UserRole = UserRole.USER,
        **profile,
    ) -> StoredUser:
        """
        Create a new account.

        Args:
            email: Unique login email
            password: Raw password (hashed before storage)
            role: Account role
            **profile: first_name, last_name, phone, address

        Returns:
            Created StoredUser

        Raises:
            ConflictError: Email already registered
        """
        email = normalize_email(email)
        logger.info(f"Registering user: {email}")

        if self.get_by_email(email) is not None:
            logger.warning(f"Registration rejected, email exists: {email}")
            raise ConflictError("User with this email already exists")

        hashed_password = get_password_hash(password)

        with self.database.get_session() as session:
            user = UserModel(
                email=email,
                hashed_password=hashed_password,
                role=UserRole(role).value,
                **profile,
            )
            session.add(user)
            try:
                session.commit()
            except IntegrityError:
                # Lost a race with a concurrent registration
                session.rollback()
                raise ConflictError("User with this email already exists")
            session.refresh(user)

            return StoredUser.from_model(user)

    def authenticate(self, email: str, password: str) -> str:
        """
        Check credentials and issue a token.

        Returns:
            Signed bearer token embedding id and email

        Raises:
            UnauthorizedError: Unknown email or wrong password (same message),
                or a deactivated account
        """
        with self.database.get_session() as session:
            row = session.query(
                UserModel.id,
                UserModel.email,
                UserModel.hashed_password,
                UserModel.is_active,
            ).filter(
                UserModel.email == normalize_email(email),
            ).first()

        if row is None:
            verify_password(password, dummy_password_hash())
            logger.warning("Login failed")
            raise UnauthorizedError("Invalid credentials")

        user_id, user_email, hashed_password, is_active = row
        if not verify_password(password, hashed_password):
            logger.warning("Login failed")
            raise UnauthorizedError("Invalid credentials")

        if not is_active:
            logger.warning(f"Login refused for deactivated user {user_id}")
            raise UnauthorizedError("Account is disabled")

        logger.info(f"User {user_id} logged in")
        return self.token_issuer.sign({"id": user_id, "email": user_email})

    def get(self, user_id: int) -> StoredUser:
        """
        Get user by ID.

        Raises:
            NotFoundError: No such user
        """
        with self.database.get_session() as session:
            user = session.get(UserModel, user_id)
            if user is None:
                raise NotFoundError("User", user_id)
            return StoredUser.from_model(user)

    def get_by_email(self, email: str) -> Optional[StoredUser]:
        """Get user by email, or None."""
        with self.database.get_session() as session:
            user = session.query(UserModel).filter(
                UserModel.email == normalize_email(email),
            ).first()

            if user:
                return StoredUser.from_model(user)
            return None

    def list_all(self) -> list[StoredUser]:
        with self.database.get_session() as session:
            users = session.query(UserModel).order_by(UserModel.id.asc()).all()
            return [StoredUser.from_model(u) for u in users]

    def update(self, user_id: int, **updates) -> StoredUser:
        """
        Update user fields.

        A new email must not belong to another account; a new password is
        re-hashed.

        Raises:
            NotFoundError: No such user
            ConflictError: Email taken
        """
        logger.info(f"Updating user: {user_id}")

        with self.database.get_session() as session:
            user = session.get(UserModel, user_id)
            if user is None:
                raise NotFoundError("User", user_id)

            if updates.get("email"):
                updates["email"] = normalize_email(updates["email"])

            new_email = updates.get("email")
            if new_email and new_email != user.email:
                taken = session.query(UserModel.id).filter(
                    UserModel.email == new_email,
                ).first()
                if taken:
                    raise ConflictError("User with this email already exists")

            password = updates.pop("password", None)
            if password:
                user.hashed_password = get_password_hash(password)

            for key, value in updates.items():
                if key in UPDATABLE_FIELDS and value is not None:
                    if key == "role":
                        value = UserRole(value).value
                    setattr(user, key, value)

            user.updated_at = utcnow()
            try:
                session.commit()
            except IntegrityError:
                session.rollback()
                raise ConflictError("User with this email already exists")
            session.refresh(user)

            return StoredUser.from_model(user)

    def remove(self, user_id: int) -> None:
        """
        Delete a user.

        Raises:
            NotFoundError: No such user
        """
        with self.database.get_session() as session:
            user = session.get(UserModel, user_id)
            if user is None:
                raise NotFoundError("User", user_id)
            session.delete(user)
            session.commit()

        logger.info(f"Deleted user: {user_id}")
