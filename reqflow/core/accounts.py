"""User accounts: sign-up, login and token refresh."""

import re
from typing import Dict, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from reqflow.core.logger import get_logger
from reqflow.core.security import (
    REFRESH_TOKEN,
    create_access_token,
    create_refresh_token,
    decode_token,
    get_password_hash,
    verify_password,
)
from reqflow.core.workflow.errors import (
    InvalidCredentials,
    InvalidInput,
    NotFound,
    StoreUnavailable,
)
from reqflow.core.workflow.states import Role
from reqflow.db.models import User

logger = get_logger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class AccountService:
    """Registers users into the directory and issues their tokens."""

    def __init__(self, db: Session):
        self.db = db

    def sign_up(
        self,
        *,
        name: Optional[str],
        email: Optional[str],
        password: Optional[str],
        role: Optional[str],
        manager_id: Optional[int] = None,
    ) -> User:
        """
        Register a manager or an employee.

        Employees must name an existing manager. Managers never have one.

        Raises:
            InvalidInput: On missing or invalid fields, a duplicate email, or
                an unknown manager
        """
        missing = [
            field for field, value in (
                ("name", name), ("email", email), ("password", password), ("role", role)
            )
            if not value
        ]
        if missing:
            raise InvalidInput(f"Missing required fields: {', '.join(missing)}")

        try:
            user_role = Role(str(role).upper())
        except ValueError:
            raise InvalidInput("Invalid role") from None

        if user_role == Role.EMPLOYEE and not manager_id:
            raise InvalidInput("Manager must be selected for employees")

        if not EMAIL_PATTERN.match(email):
            raise InvalidInput("Invalid email format")

        if self.db.query(User).filter(User.email == email).first():
            raise InvalidInput("Email already registered")

        if user_role == Role.EMPLOYEE:
            manager = self.db.query(User).filter(
                User.id == manager_id, User.role == Role.MANAGER.value
            ).first()
            if manager is None:
                raise InvalidInput("Sign up failed, invalid manager_id")
        else:
            manager_id = None

        user = User(
            name=name,
            email=email,
            password_hash=get_password_hash(password),
            role=user_role.value,
            manager_id=manager_id,
        )
        try:
            self.db.add(user)
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise InvalidInput("Email already registered") from None
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Failed to register user %s: %s", email, e)
            raise StoreUnavailable("Sign up failed, please try again later") from e

        self.db.refresh(user)
        logger.info("User %s registered as %s", user.id, user.role)
        return user

    def authenticate(self, email: str, password: str) -> User:
        """
        Check an email/password pair.

        Raises:
            InvalidCredentials: If the user is unknown or the password is wrong
        """
        user = self.db.query(User).filter(User.email == email).first()
        if user is None or not verify_password(password, user.password_hash):
            logger.warning("Login failed for %s", email)
            raise InvalidCredentials("Incorrect email or password")

        logger.info("User %s logged in", user.id)
        return user

    @staticmethod
    def issue_tokens(user: User) -> Dict[str, str]:
        return {
            "access_token": create_access_token(user.id, user.role),
            "refresh_token": create_refresh_token(user.id),
        }

    def refresh(self, refresh_token: str) -> str:
        """
        Exchange a refresh token for a new access token.

        The role is re-read from the directory.

        Raises:
            InvalidCredentials: If the token is invalid or expired
            NotFound: If the user no longer exists
        """
        payload = decode_token(refresh_token, expected_type=REFRESH_TOKEN)
        if payload is None:
            raise InvalidCredentials("Invalid or expired refresh token")

        user = self.db.query(User).filter(User.id == int(payload["sub"])).first()
        if user is None:
            raise NotFound("User not found")

        return create_access_token(user.id, user.role)
