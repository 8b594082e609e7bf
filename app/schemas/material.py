"""
자재 Pydantic 스키마
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ..models.material import MaterialStatus, MaterialType


def _to_enum(enum_cls, value):
    # 기존 포르투갈어 값 허용 (enum _missing_ 별칭)
    if value is None or isinstance(value, enum_cls):
        return value
    return enum_cls(value)


class MaterialBase(BaseModel):
    invoice_number: str = Field(..., min_length=1, max_length=100)
    order_number: str = Field(..., min_length=1, max_length=100)
    equipment_details: str = Field(..., min_length=1, max_length=500)
    order_type: str = Field(default="", max_length=100)
    material_type: MaterialType
    shipment_code: str = Field(default="", max_length=100)
    sap_code: str = Field(default="", max_length=100)
    company: str = Field(default="", max_length=200)
    carrier: str = Field(default="", max_length=200)
    ship_date: Optional[str] = Field(None, max_length=30)
    shipment_date: Optional[str] = Field(None, max_length=30)
    status: MaterialStatus = MaterialStatus.PENDING
    notes: Optional[str] = None
    comments: Optional[str] = None

    @field_validator("material_type", mode="before")
    @classmethod
    def _material_type(cls, value):
        return _to_enum(MaterialType, value)

    @field_validator("status", mode="before")
    @classmethod
    def _status(cls, value):
        return _to_enum(MaterialStatus, value)


class MaterialCreate(MaterialBase):
    created_by: str = Field(..., min_length=1, max_length=300)


class MaterialUpdate(BaseModel):
    """부분 수정 (변경된 필드마다 이력 1건)"""
    invoice_number: Optional[str] = Field(None, min_length=1, max_length=100)
    order_number: Optional[str] = Field(None, min_length=1, max_length=100)
    equipment_details: Optional[str] = Field(None, min_length=1, max_length=500)
    order_type: Optional[str] = Field(None, max_length=100)
    material_type: Optional[MaterialType] = None
    shipment_code: Optional[str] = Field(None, max_length=100)
    sap_code: Optional[str] = Field(None, max_length=100)
    company: Optional[str] = Field(None, max_length=200)
    carrier: Optional[str] = Field(None, max_length=200)
    ship_date: Optional[str] = Field(None, max_length=30)
    shipment_date: Optional[str] = Field(None, max_length=30)
    status: Optional[MaterialStatus] = None
    notes: Optional[str] = None
    comments: Optional[str] = None
    updated_by: str = Field(..., min_length=1, max_length=300)

    @field_validator("material_type", mode="before")
    @classmethod
    def _material_type(cls, value):
        return _to_enum(MaterialType, value)

    @field_validator("status", mode="before")
    @classmethod
    def _status(cls, value):
        return _to_enum(MaterialStatus, value)


class MaterialDelete(BaseModel):
    reason: str = Field(..., min_length=1)
    deleted_by: str = Field(..., min_length=1, max_length=300)

    @field_validator("reason")
    @classmethod
    def _strip_reason(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("삭제 사유를 입력하세요.")
        return value


class HistoryEntryResponse(BaseModel):
    id: int
    field: str
    old_value: str
    new_value: str
    updated_by: str
    updated_at: datetime

    model_config = {"from_attributes": True}


class MaterialResponse(MaterialBase):
    id: int
    created_by: str
    created_at: Optional[datetime]
    updated_by: Optional[str]
    updated_at: Optional[datetime]
    deleted: bool
    deleted_by: Optional[str]
    deleted_at: Optional[datetime]
    deletion_reason: Optional[str]

    model_config = {"from_attributes": True}


class MaterialDetailResponse(MaterialResponse):
    history: list[HistoryEntryResponse] = []
