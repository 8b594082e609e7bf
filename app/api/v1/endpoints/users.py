"""
사용자 관리 API
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ....core.database import get_db
from ....core.permissions import Permission, require_permission
from ....schemas.user import UserCreate, UserUpdate, UserResponse
from ....services import user_service
from ....services.user_service import UserNotFoundError, DuplicateUserError

router = APIRouter(
    prefix="/users",
    tags=["users"],
    dependencies=[Depends(require_permission(Permission.VIEW_EDIT_USERS))],
)


@router.get("", response_model=list[UserResponse])
def list_users(db: Session = Depends(get_db)):
    """사용자 목록 조회"""
    return user_service.list_users(db)


@router.get("/{user_id}", response_model=UserResponse)
def get_user(user_id: int, db: Session = Depends(get_db)):
    try:
        return user_service.get_user(db, user_id)
    except UserNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("", response_model=UserResponse, status_code=201)
def create_user(data: UserCreate, db: Session = Depends(get_db)):
    """사용자 등록"""
    try:
        return user_service.create_user(db, data.model_dump())
    except DuplicateUserError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.put("/{user_id}", response_model=UserResponse)
def update_user(user_id: int, data: UserUpdate, db: Session = Depends(get_db)):
    """사용자 수정"""
    try:
        return user_service.update_user(db, user_id, data.model_dump(exclude_unset=True, exclude_none=True))
    except UserNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except DuplicateUserError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.delete("/{user_id}")
def delete_user(user_id: int, db: Session = Depends(get_db)):
    try:
        user_service.delete_user(db, user_id)
    except UserNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"success": True}
