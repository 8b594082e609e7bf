"""
알람 규칙 모델
"""

import enum
from datetime import datetime

from sqlalchemy import String, Text, Integer, Boolean, DateTime, Enum, func
from sqlalchemy.orm import Mapped, mapped_column

from ..core.database import Base


class AlarmType(str, enum.Enum):
    """알람 유형"""
    TIME_IN_STAGE = "TIME_IN_STAGE"      # 현재 상태 체류 기간 초과
    TIME_TOTAL = "TIME_TOTAL"            # 등록 후 총 경과 기간 초과
    NEW_ITEM = "NEW_ITEM"                # 직전 실행 이후 신규 자재
    MATERIAL_COUNT = "MATERIAL_COUNT"    # 조건 충족 자재 수 임계값 이상

    @classmethod
    def _missing_(cls, value):
        if not isinstance(value, str):
            return None
        legacy = {
            "TEMPO_ETAPA": "TIME_IN_STAGE",
            "TEMPO_TOTAL": "TIME_TOTAL",
            "NOVO_ITEM": "NEW_ITEM",
            "QUANTIDADE_MATERIAIS": "MATERIAL_COUNT",
        }
        key = value.strip().upper()
        key = legacy.get(key, key)
        for member in cls:
            if member.value == key:
                return member
        return None


def split_recipients(recipients) -> list[str]:
    """수신자 정규화 (리스트 또는 콤마 구분 문자열 → 공백 제거된 주소 목록)"""
    if not recipients:
        return []
    if isinstance(recipients, str):
        recipients = recipients.split(",")
    return [r.strip() for r in recipients if r and r.strip()]


class AlarmRule(Base):
    """알람 규칙 테이블 (삭제 시 하드 삭제)"""
    __tablename__ = "alarm_rules"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    type: Mapped[AlarmType] = mapped_column(Enum(AlarmType), nullable=False)
    condition: Mapped[str | None] = mapped_column(Text, nullable=True)
    value: Mapped[int | None] = mapped_column(Integer, nullable=True)

    # 수신자 (콤마 구분)
    recipients: Mapped[str] = mapped_column(Text, nullable=False, default="")

    active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_by: Mapped[str] = mapped_column(String(300), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    # NEW_ITEM 워터마크 (마지막 평가 시각)
    last_checked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    @property
    def recipient_list(self) -> list[str]:
        return split_recipients(self.recipients)

    def __repr__(self) -> str:
        return f"<AlarmRule(id={self.id}, name={self.name}, type={self.type})>"
