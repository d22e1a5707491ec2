"""
User Service - registration, login and admin user management

Author: TM3
Date: 2025-10-17
"""
import logging
from typing import Dict, List, Optional, Tuple

from app.core.auth import hash_password, verify_password, create_access_token
from app.core.exceptions import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from app.domain.user import User, UserRegister, UserCreate, UserUpdate, LoginRequest, PasswordChange
from app.repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)


class UserService:
    """Business logic for accounts and authentication"""

    def __init__(self, repo: Optional[UserRepository] = None):
        self.repo = repo or UserRepository()

    @staticmethod
    def _token_for(user: User) -> str:
        return create_access_token(user.id, user.email, user.role, user.name)

    def register(self, payload: UserRegister) -> Dict:
        if self.repo.email_exists(payload.email):
            raise ConflictError("Email already registered")

        user = self.repo.create(
            email=payload.email,
            password_hash=hash_password(payload.password),
            name=payload.name,
            phone=payload.phone,
            role="customer",
        )
        logger.info(f"Registered customer {user.id} ({user.email})")
        return {"user": user, "token": self._token_for(user)}

    def login(self, payload: LoginRequest) -> Dict:
        row = self.repo.find_credentials(payload.email)
        if not row or not verify_password(payload.password, row["password_hash"]):
            raise AuthenticationError("Invalid email or password")

        data = dict(row)
        data.pop("password_hash", None)
        user = User(**data)
        if not user.is_active:
            raise PermissionDeniedError("Account is disabled")

        self.repo.touch_last_login(user.id)
        logger.info(f"User {user.id} logged in")
        return {"user": user, "token": self._token_for(user)}

    def get_user(self, user_id: int) -> User:
        user = self.repo.find_by_id(user_id)
        if not user:
            raise NotFoundError("User", user_id)
        return user

    def change_password(self, user_id: int, payload: PasswordChange) -> None:
        row = self.repo.find_credentials_by_id(user_id)
        if not row:
            raise NotFoundError("User", user_id)
        if not verify_password(payload.current_password, row["password_hash"]):
            raise ValidationError("Current password is incorrect")

        self.repo.update_password(user_id, hash_password(payload.new_password))
        logger.info(f"User {user_id} changed password")

    # =========================================================================
    # Admin
    # =========================================================================

    def list_users(self, search: Optional[str], role: Optional[str],
                   limit: int, offset: int) -> Tuple[List[User], int]:
        return self.repo.find_all(search=search, role=role, limit=limit, offset=offset)

    def create_user(self, payload: UserCreate) -> User:
        if self.repo.email_exists(payload.email):
            raise ConflictError("Email already registered")
        user = self.repo.create(
            email=payload.email,
            password_hash=hash_password(payload.password),
            name=payload.name,
            phone=payload.phone,
            role=payload.role,
        )
        logger.info(f"Created {user.role} account {user.id}")
        return user

    def update_user(self, user_id: int, payload: UserUpdate) -> User:
        user = self.repo.update(user_id, payload.model_dump(exclude_unset=True))
        if not user:
            raise NotFoundError("User", user_id)
        return user

    def delete_user(self, user_id: int, current_user_id: int) -> None:
        if user_id == current_user_id:
            raise ValidationError("You cannot delete your own account")
        if not self.repo.delete(user_id):
            raise NotFoundError("User", user_id)
        logger.info(f"Deleted user {user_id}")

    def get_stats(self) -> Dict:
        return self.repo.get_stats()
