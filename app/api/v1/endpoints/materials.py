"""
자재 API 엔드포인트
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ....core.database import get_db
from ....core.permissions import Permission, require_permission
from ....schemas.material import (
    MaterialCreate, MaterialUpdate, MaterialDelete,
    MaterialResponse, MaterialDetailResponse,
)
from ....services import material_service
from ....services.material_service import MaterialNotFoundError, DeletedMaterialError

router = APIRouter(prefix="/materials", tags=["materials"])

NULLABLE_FIELDS = ("notes", "comments", "ship_date", "shipment_date")


@router.get("", response_model=list[MaterialResponse])
def list_materials(db: Session = Depends(get_db)):
    """자재 목록 조회 (삭제 제외)"""
    return material_service.list_materials(db)


@router.get("/deleted", response_model=list[MaterialResponse])
def list_deleted_materials(db: Session = Depends(get_db)):
    """삭제된 자재 목록 조회"""
    return material_service.list_deleted_materials(db)


@router.get("/{material_id}", response_model=MaterialDetailResponse)
def get_material(material_id: int, db: Session = Depends(get_db)):
    """자재 상세 조회 (변경 이력 포함)"""
    try:
        return material_service.get_material(db, material_id)
    except MaterialNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post(
    "",
    response_model=MaterialDetailResponse,
    status_code=201,
    dependencies=[Depends(require_permission(Permission.CREATE_DELETE_MATERIAL))],
)
def create_material(data: MaterialCreate, db: Session = Depends(get_db)):
    """자재 등록"""
    return material_service.create_material(db, data.model_dump())


@router.put(
    "/{material_id}",
    response_model=MaterialDetailResponse,
    dependencies=[Depends(require_permission(Permission.EDIT_MATERIAL))],
)
def update_material(material_id: int, data: MaterialUpdate, db: Session = Depends(get_db)):
    """자재 수정 (변경 필드별 이력 기록)"""
    # notes, comments, 날짜 필드는 null로 해제 가능
    updates = {
        k: v for k, v in data.model_dump(exclude_unset=True).items()
        if v is not None or k in NULLABLE_FIELDS
    }
    updated_by = updates.pop("updated_by")
    try:
        return material_service.update_material(db, material_id, updates, updated_by)
    except MaterialNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except DeletedMaterialError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.delete(
    "/{material_id}",
    dependencies=[Depends(require_permission(Permission.CREATE_DELETE_MATERIAL))],
)
def delete_material(material_id: int, data: MaterialDelete, db: Session = Depends(get_db)):
    """자재 삭제 (사유 필수, 삭제 목록으로 이동)"""
    try:
        material_service.delete_material(db, material_id, data.reason, data.deleted_by)
    except MaterialNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except DeletedMaterialError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return {"success": True}
