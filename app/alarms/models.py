"""
알람 엔진 데이터 구조
레코드 저장소에서 읽어온 시점 스냅샷 (엔진/평가기는 원본 ORM 객체를 변경하지 않음)
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from typing import Any, Optional

from ..models.alarm_rule import AlarmType, split_recipients
from ..models.material import MaterialStatus, MaterialType

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def ensure_aware(value: Optional[datetime], tz) -> Optional[datetime]:
    """naive datetime은 설정 타임존 기준으로 간주"""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=tz)


@dataclass(frozen=True)
class MaterialSnapshot:
    """자재 스냅샷 (이력 제외)"""
    id: int
    invoice_number: str = ""
    order_number: str = ""
    equipment_details: str = ""
    order_type: str = ""
    material_type: Optional[MaterialType] = None
    shipment_code: str = ""
    sap_code: str = ""
    company: str = ""
    carrier: str = ""
    ship_date: Optional[str] = None
    shipment_date: Optional[str] = None
    status: Optional[MaterialStatus] = None
    notes: Optional[str] = None
    comments: Optional[str] = None
    created_by: str = ""
    created_at: Optional[datetime] = None
    updated_by: Optional[str] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, material, tz=timezone.utc) -> "MaterialSnapshot":
        return cls(
            id=material.id,
            invoice_number=material.invoice_number,
            order_number=material.order_number,
            equipment_details=material.equipment_details,
            order_type=material.order_type,
            material_type=material.material_type,
            shipment_code=material.shipment_code,
            sap_code=material.sap_code,
            company=material.company,
            carrier=material.carrier,
            ship_date=material.ship_date,
            shipment_date=material.shipment_date,
            status=material.status,
            notes=material.notes,
            comments=material.comments,
            created_by=material.created_by,
            created_at=ensure_aware(material.created_at, tz),
            updated_by=material.updated_by,
            updated_at=ensure_aware(material.updated_at, tz),
        )

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class AlarmRuleSnapshot:
    """알람 규칙 스냅샷"""
    id: int
    name: str
    type: AlarmType
    condition: Optional[str] = None
    value: Optional[int] = None
    recipients: tuple[str, ...] = ()
    active: bool = True
    created_by: str = ""
    created_at: Optional[datetime] = None
    last_checked_at: Optional[datetime] = None

    def __post_init__(self):
        # 리스트/콤마 문자열 모두 허용
        object.__setattr__(self, "recipients", tuple(split_recipients(self.recipients)))
        if not isinstance(self.type, AlarmType):
            object.__setattr__(self, "type", AlarmType(self.type))

    @classmethod
    def from_model(cls, rule, tz=timezone.utc) -> "AlarmRuleSnapshot":
        return cls(
            id=rule.id,
            name=rule.name,
            type=rule.type,
            condition=rule.condition,
            value=rule.value,
            recipients=rule.recipients,
            active=rule.active,
            created_by=rule.created_by,
            created_at=ensure_aware(rule.created_at, tz),
            last_checked_at=ensure_aware(rule.last_checked_at, tz),
        )


@dataclass(frozen=True)
class AlarmPayload:
    """알림 메일 내용 (규칙명 + 요약)"""
    name: str
    details: str
    materials: tuple[MaterialSnapshot, ...] = ()


@dataclass
class RuleEvaluation:
    """단일 규칙 평가 결과"""
    rule: AlarmRuleSnapshot
    triggered: bool
    matched_materials: list[MaterialSnapshot] = field(default_factory=list)
    threshold: Optional[int] = None
    # NEW_ITEM 규칙만 사용 (다음 실행 기준 시각)
    watermark: Optional[datetime] = None
