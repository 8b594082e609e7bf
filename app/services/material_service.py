"""
자재 관리 서비스 - 등록/수정(변경 이력)/소프트 삭제
"""

import enum
import logging

from sqlalchemy.orm import Session, selectinload

from ..core.config import now_local
from ..models.material import Material, HistoryEntry

logger = logging.getLogger(__name__)

# 수정 가능한 업무 필드 (변경 시 이력 기록 대상)
UPDATABLE_FIELDS = (
    "invoice_number", "order_number", "equipment_details", "order_type", "material_type",
    "shipment_code", "sap_code", "company", "carrier", "ship_date", "shipment_date",
    "status", "notes", "comments",
)


class MaterialNotFoundError(Exception):
    """자재 없음"""


class DeletedMaterialError(Exception):
    """삭제된 자재는 변경 불가"""


def _stringify(value) -> str:
    if value is None:
        return ""
    if isinstance(value, enum.Enum):
        return str(value.value)
    return str(value)


def list_materials(db: Session) -> list[Material]:
    """활성(미삭제) 자재 목록"""
    return (
        db.query(Material)
        .filter(Material.deleted == False)  # noqa: E712
        .order_by(Material.created_at.desc(), Material.id.desc())
        .all()
    )


def list_deleted_materials(db: Session) -> list[Material]:
    """삭제된 자재 목록"""
    return (
        db.query(Material)
        .filter(Material.deleted == True)  # noqa: E712
        .order_by(Material.deleted_at.desc(), Material.id.desc())
        .all()
    )


def get_material(db: Session, material_id: int) -> Material:
    """자재 상세 (이력 포함)"""
    material = (
        db.query(Material)
        .options(selectinload(Material.history))
        .filter(Material.id == material_id)
        .first()
    )
    if not material:
        raise MaterialNotFoundError(f"자재를 찾을 수 없습니다: {material_id}")
    return material


def create_material(db: Session, data: dict) -> Material:
    """자재 등록"""
    material = Material(**data)
    if material.created_at is None:
        material.created_at = now_local()
    db.add(material)
    db.commit()
    db.refresh(material)
    logger.info(f"자재 등록: {material.id} ({material.order_number})")
    return material


def update_material(db: Session, material_id: int, updates: dict, updated_by: str) -> Material:
    """
    자재 수정
    변경된 필드마다 HistoryEntry 1건, 변경이 없으면 그대로 반환 (updated_at 유지)
    """
    material = get_material(db, material_id)
    if material.deleted:
        raise DeletedMaterialError(f"삭제된 자재는 수정할 수 없습니다: {material_id}")

    now = now_local()
    changed = []
    for field in UPDATABLE_FIELDS:
        if field not in updates:
            continue
        new_value = updates[field]
        old_value = getattr(material, field)
        if new_value == old_value:
            continue
        material.history.append(HistoryEntry(
            field=field,
            old_value=_stringify(old_value),
            new_value=_stringify(new_value),
            updated_by=updated_by,
            updated_at=now,
        ))
        setattr(material, field, new_value)
        changed.append(field)

    if not changed:
        return material

    material.updated_by = updated_by
    material.updated_at = now
    db.commit()
    db.refresh(material)
    logger.info(f"자재 수정: {material_id} ({', '.join(changed)}) by {updated_by}")
    return material


def delete_material(db: Session, material_id: int, reason: str, deleted_by: str) -> Material:
    """자재 소프트 삭제 (삭제 목록으로 이동)"""
    material = db.query(Material).filter(Material.id == material_id).first()
    if not material:
        raise MaterialNotFoundError(f"자재를 찾을 수 없습니다: {material_id}")
    if material.deleted:
        raise DeletedMaterialError(f"이미 삭제된 자재입니다: {material_id}")

    material.deleted = True
    material.deleted_by = deleted_by
    material.deleted_at = now_local()
    material.deletion_reason = reason
    db.commit()
    db.refresh(material)
    logger.info(f"자재 삭제: {material_id} by {deleted_by} (사유: {reason})")
    return material
