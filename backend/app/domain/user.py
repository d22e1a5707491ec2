"""
User Domain Models

Author: TM3
Date: 2025-10-17
"""
from pydantic import BaseModel, Field, EmailStr, field_validator
from typing import Optional, Literal
from datetime import datetime

from app.domain.base import PartialUpdate

Role = Literal["admin", "employee", "customer", "translator"]


class User(BaseModel):
    id: int
    email: str
    name: Optional[str] = None
    phone: Optional[str] = None
    role: Role = "customer"
    is_active: bool = True
    last_login_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> dict:
        return self.model_dump()


class UserRegister(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    name: Optional[str] = None
    phone: Optional[str] = None

    @field_validator("email")
    @classmethod
    def _lower_email(cls, value: str) -> str:
        return value.lower()


class UserCreate(UserRegister):
    role: Role = "customer"


class UserUpdate(PartialUpdate):
    NULLABLE = frozenset({"name", "phone"})

    name: Optional[str] = None
    phone: Optional[str] = None
    role: Optional[Role] = None
    is_active: Optional[bool] = None


class LoginRequest(BaseModel):
    email: EmailStr
    password: str

    @field_validator("email")
    @classmethod
    def _lower_email(cls, value: str) -> str:
        return value.lower()


class PasswordChange(BaseModel):
    current_password: str
    new_password: str = Field(..., min_length=6)
