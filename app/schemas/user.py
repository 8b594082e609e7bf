"""
사용자 Pydantic 스키마
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from ..models.user import UserRole


def _to_role(value):
    # USUARIO, PLANEJADOR, DEVELOP 등 기존 역할명 허용
    if value is None or isinstance(value, UserRole):
        return value
    return UserRole(value)


class UserCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    matricula: str = Field(..., min_length=1, max_length=50)
    role: UserRole = UserRole.USER
    avatar: Optional[str] = Field(None, max_length=500)

    @field_validator("role", mode="before")
    @classmethod
    def _role(cls, value):
        return _to_role(value)


class UserUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    email: Optional[EmailStr] = None
    matricula: Optional[str] = Field(None, min_length=1, max_length=50)
    role: Optional[UserRole] = None
    avatar: Optional[str] = Field(None, max_length=500)
    is_first_access: Optional[bool] = None

    @field_validator("role", mode="before")
    @classmethod
    def _role(cls, value):
        return _to_role(value)


class UserResponse(BaseModel):
    """응답 스키마 - 비밀번호 필드 제외"""
    id: int
    name: str
    email: str
    matricula: str
    role: UserRole
    avatar: Optional[str]
    is_first_access: bool
    created_at: Optional[datetime]

    model_config = {"from_attributes": True}
