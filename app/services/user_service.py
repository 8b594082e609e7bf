"""
사용자 관리 서비스
"""

import logging

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..models.user import User, UserRole

logger = logging.getLogger(__name__)

# 최초 기동 시 시드되는 기본 사용자
DEFAULT_USERS = [
    {"name": "Admin", "email": "admin@sinobras.com.br", "matricula": "000001", "role": UserRole.ADMIN},
    {"name": "Planejador", "email": "planejador@sinobras.com.br", "matricula": "000003", "role": UserRole.PLANNER},
]


class UserNotFoundError(Exception):
    """사용자 없음"""


class DuplicateUserError(Exception):
    """이메일/사번 중복"""


def _normalize_email(email: str) -> str:
    return email.strip().lower()


def _ensure_unique(db: Session, email: str = None, matricula: str = None, exclude_id: int = None):
    if email is not None:
        query = db.query(User).filter(func.lower(User.email) == _normalize_email(email))
        if exclude_id is not None:
            query = query.filter(User.id != exclude_id)
        if query.first():
            raise DuplicateUserError(f"이미 사용 중인 이메일입니다: {email}")
    if matricula is not None:
        query = db.query(User).filter(User.matricula == matricula)
        if exclude_id is not None:
            query = query.filter(User.id != exclude_id)
        if query.first():
            raise DuplicateUserError(f"이미 사용 중인 사번입니다: {matricula}")


def list_users(db: Session) -> list[User]:
    return db.query(User).order_by(User.name).all()


def get_user(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise UserNotFoundError(f"사용자를 찾을 수 없습니다: {user_id}")
    return user


def get_user_by_email(db: Session, email: str):
    return db.query(User).filter(func.lower(User.email) == _normalize_email(email)).first()


def create_user(db: Session, data: dict) -> User:
    """사용자 등록 (이메일 대소문자 무시 중복 검사)"""
    data = dict(data)
    data["email"] = _normalize_email(data["email"])
    _ensure_unique(db, email=data["email"], matricula=data.get("matricula"))

    user = User(**data)
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info(f"사용자 등록: {user.email} ({user.role.value})")
    return user


def update_user(db: Session, user_id: int, updates: dict) -> User:
    """사용자 수정 (자기 자신 제외 중복 검사)"""
    user = get_user(db, user_id)
    updates = dict(updates)
    if updates.get("email") is not None:
        updates["email"] = _normalize_email(updates["email"])
    _ensure_unique(db, email=updates.get("email"), matricula=updates.get("matricula"), exclude_id=user.id)

    for key, value in updates.items():
        setattr(user, key, value)
    db.commit()
    db.refresh(user)
    return user


def delete_user(db: Session, user_id: int) -> None:
    user = get_user(db, user_id)
    db.delete(user)
    db.commit()
    logger.info(f"사용자 삭제: {user.email}")


def seed_users(db: Session) -> int:
    """기본 사용자 시드 (사용자가 하나도 없을 때만)"""
    if db.query(User).count() > 0:
        return 0
    for data in DEFAULT_USERS:
        db.add(User(**data))
    db.commit()
    logger.info(f"기본 사용자 {len(DEFAULT_USERS)}명 시드 완료")
    return len(DEFAULT_USERS)
