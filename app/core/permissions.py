"""
역할 기반 권한 검사
요청자는 X-User-Id 헤더로 식별 (인증 자체는 외부에서 처리)
"""

import enum
from typing import Optional

from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from .database import get_db
from ..models.user import User, UserRole


class Permission(str, enum.Enum):
    EDIT_MATERIAL = "EDIT_MATERIAL"
    CREATE_DELETE_MATERIAL = "CREATE_DELETE_MATERIAL"
    VIEW_EDIT_USERS = "VIEW_EDIT_USERS"
    ACCESS_SETTINGS = "ACCESS_SETTINGS"
    CREATE_ALARMS = "CREATE_ALARMS"


_ROLE_PERMISSIONS = {
    Permission.EDIT_MATERIAL: {UserRole.PLANNER, UserRole.ADMIN, UserRole.DEVELOPER},
    Permission.CREATE_DELETE_MATERIAL: {UserRole.PLANNER, UserRole.ADMIN, UserRole.DEVELOPER},
    Permission.VIEW_EDIT_USERS: {UserRole.ADMIN, UserRole.DEVELOPER},
    Permission.ACCESS_SETTINGS: {UserRole.DEVELOPER},
    Permission.CREATE_ALARMS: {UserRole.PLANNER, UserRole.ADMIN, UserRole.DEVELOPER},
}


def has_permission(user: Optional[User], permission: Permission) -> bool:
    if user is None:
        return False
    return user.role in _ROLE_PERMISSIONS.get(permission, set())


def require_permission(permission: Permission):
    """권한 검사 의존성 (요청 사용자 반환)"""

    def _dependency(
        x_user_id: Optional[int] = Header(default=None),
        db: Session = Depends(get_db),
    ) -> User:
        if x_user_id is None:
            raise HTTPException(status_code=403, detail="X-User-Id 헤더가 필요합니다.")
        user = db.query(User).filter(User.id == x_user_id).first()
        if not has_permission(user, permission):
            raise HTTPException(status_code=403, detail=f"권한이 없습니다: {permission.value}")
        return user

    return _dependency
