"""
User 모델 - 사용자 및 권한(역할)
"""

import enum

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Enum, func

from ..core.database import Base


class UserRole(str, enum.Enum):
    """사용자 역할"""
    USER = "USER"
    PLANNER = "PLANNER"
    ADMIN = "ADMIN"
    DEVELOPER = "DEVELOPER"

    @classmethod
    def _missing_(cls, value):
        if not isinstance(value, str):
            return None
        legacy = {"USUARIO": "USER", "PLANEJADOR": "PLANNER", "DEVELOP": "DEVELOPER"}
        key = value.strip().upper()
        key = legacy.get(key, key)
        for member in cls:
            if member.value == key:
                return member
        return None


class User(Base):
    """사용자 (email은 소문자로 저장, 대소문자 무시 유니크)"""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    email = Column(String(300), nullable=False, unique=True)
    matricula = Column(String(50), nullable=False, unique=True)
    role = Column(Enum(UserRole), default=UserRole.USER, nullable=False)
    avatar = Column(String(500), nullable=True)
    is_first_access = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role={self.role})>"
