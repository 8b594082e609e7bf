"""
자재 (수리 발송 장비) 및 변경 이력 모델
"""

import enum
from datetime import datetime

from sqlalchemy import String, Text, Integer, Boolean, DateTime, Enum, ForeignKey, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..core.database import Base


class MaterialStatus(str, enum.Enum):
    """자재 상태"""
    PENDING = "PENDING"
    SENT = "SENT"
    DELIVERED = "DELIVERED"
    RETURNED = "RETURNED"
    COMPLETED = "COMPLETED"
    CANCELED = "CANCELED"

    @classmethod
    def _missing_(cls, value):
        return _lookup_alias(cls, value, _STATUS_ALIASES)


class MaterialType(str, enum.Enum):
    """자재 분류"""
    MOTOR_AC = "MOTOR_AC"
    MOTOR_DC = "MOTOR_DC"
    ENCODER = "ENCODER"
    DRIVER = "DRIVER"
    INVERTER = "INVERTER"
    MONITOR = "MONITOR"
    COMPUTER = "COMPUTER"
    OTHER = "OTHER"

    @classmethod
    def _missing_(cls, value):
        return _lookup_alias(cls, value, _TYPE_ALIASES)


# 기존(포르투갈어) 데이터 호환용 별칭
_STATUS_ALIASES = {
    "PENDENTE": "PENDING",
    "ENVIADO": "SENT",
    "ENTREGUE": "DELIVERED",
    "DEVOLVIDO": "RETURNED",
    "CONCLUÍDO": "COMPLETED",
    "CONCLUIDO": "COMPLETED",
    "CANCELADO": "CANCELED",
    "CANCELLED": "CANCELED",
}

_TYPE_ALIASES = {
    "MOTORES AC": "MOTOR_AC",
    "MOTORES DC": "MOTOR_DC",
    "INVERSOR": "INVERTER",
    "INVERSORES": "INVERTER",
    "MONITORES": "MONITOR",
    "COMPUTADOR": "COMPUTER",
    "COMPUTADORES": "COMPUTER",
    "OUTRO": "OTHER",
    "OUTROS": "OTHER",
}


def _lookup_alias(enum_cls, value, aliases: dict):
    if not isinstance(value, str):
        return None
    key = value.strip().upper()
    key = aliases.get(key, key)
    for member in enum_cls:
        if member.value == key:
            return member
    return None


class Material(Base):
    """자재 테이블 (deleted=True 이면 삭제 목록으로 이동, 이후 변경 불가)"""
    __tablename__ = "materials"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # 문서/오더 정보
    invoice_number: Mapped[str] = mapped_column(String(100), nullable=False)
    order_number: Mapped[str] = mapped_column(String(100), nullable=False)
    equipment_details: Mapped[str] = mapped_column(String(500), nullable=False)
    order_type: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    material_type: Mapped[MaterialType] = mapped_column(Enum(MaterialType), nullable=False)

    # 발송 정보
    shipment_code: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    sap_code: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    company: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    carrier: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    ship_date: Mapped[str | None] = mapped_column(String(30), nullable=True)
    shipment_date: Mapped[str | None] = mapped_column(String(30), nullable=True)

    status: Mapped[MaterialStatus] = mapped_column(
        Enum(MaterialStatus), default=MaterialStatus.PENDING, nullable=False
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    comments: Mapped[str | None] = mapped_column(Text, nullable=True)

    # 감사 필드
    created_by: Mapped[str] = mapped_column(String(300), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_by: Mapped[str | None] = mapped_column(String(300), nullable=True)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # 소프트 삭제
    deleted: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    deleted_by: Mapped[str | None] = mapped_column(String(300), nullable=True)
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    deletion_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    history: Mapped[list["HistoryEntry"]] = relationship(
        back_populates="material",
        order_by="HistoryEntry.id",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Material(id={self.id}, order={self.order_number}, status={self.status})>"


class HistoryEntry(Base):
    """자재 필드 변경 이력 (수정 시에만 생성, 불변)"""
    __tablename__ = "material_history"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    material_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("materials.id", ondelete="CASCADE"), nullable=False
    )
    field: Mapped[str] = mapped_column(String(100), nullable=False)
    old_value: Mapped[str] = mapped_column(Text, nullable=False, default="")
    new_value: Mapped[str] = mapped_column(Text, nullable=False, default="")
    updated_by: Mapped[str] = mapped_column(String(300), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    material: Mapped["Material"] = relationship(back_populates="history")

    def __repr__(self) -> str:
        return f"<HistoryEntry(material={self.material_id}, field={self.field})>"
