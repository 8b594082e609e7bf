"""
알람 규칙 / 스케줄러 Pydantic 스키마
"""

from datetime import datetime
from typing import Optional, Union

from pydantic import BaseModel, EmailStr, Field, field_validator

from ..models.alarm_rule import AlarmType, split_recipients


def _validate_recipients(value) -> list[str]:
    # 리스트 또는 콤마 구분 문자열 (하위 호환)
    recipients = split_recipients(value)
    for address in recipients:
        if "@" not in address:
            raise ValueError(f"잘못된 수신자 주소: {address}")
    return recipients


def _to_alarm_type(value):
    # TEMPO_ETAPA 등 기존 유형명 허용
    if value is None or isinstance(value, AlarmType):
        return value
    return AlarmType(value)


class AlarmRuleCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    type: AlarmType
    condition: Optional[str] = None
    value: Optional[int] = None
    recipients: Union[list[str], str] = Field(default_factory=list)
    active: bool = True
    created_by: str = Field(..., min_length=1, max_length=300)

    @field_validator("recipients", mode="before")
    @classmethod
    def _recipients(cls, value):
        return _validate_recipients(value)

    @field_validator("type", mode="before")
    @classmethod
    def _type(cls, value):
        return _to_alarm_type(value)


class AlarmRuleUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    type: Optional[AlarmType] = None
    condition: Optional[str] = None
    value: Optional[int] = None
    recipients: Optional[Union[list[str], str]] = None
    active: Optional[bool] = None

    @field_validator("recipients", mode="before")
    @classmethod
    def _recipients(cls, value):
        if value is None:
            return None
        return _validate_recipients(value)

    @field_validator("type", mode="before")
    @classmethod
    def _type(cls, value):
        return _to_alarm_type(value)


class AlarmRuleResponse(BaseModel):
    id: int
    name: str
    type: AlarmType
    condition: Optional[str]
    value: Optional[int]
    recipients: list[str]
    active: bool
    created_by: str
    created_at: Optional[datetime]
    last_checked_at: Optional[datetime]

    @field_validator("recipients", mode="before")
    @classmethod
    def _split(cls, value):
        return split_recipients(value)

    model_config = {"from_attributes": True}


class ConditionCheckRequest(BaseModel):
    condition: str


class SchedulerStartRequest(BaseModel):
    interval_minutes: Optional[int] = Field(None, ge=1, le=24 * 60)


class AlarmRunLogResponse(BaseModel):
    id: int
    processed: int
    triggered: int
    errors: int
    notifications_sent: int
    notifications_failed: int
    duration_seconds: float
    executed_at: Optional[datetime]

    model_config = {"from_attributes": True}


# ============================================================
# SMTP
# ============================================================

class SMTPConfigUpdate(BaseModel):
    server: str = Field(..., min_length=1, max_length=300)
    port: int = Field(..., ge=1, le=65535)
    from_email: EmailStr


class SMTPConfigResponse(BaseModel):
    server: str
    port: int
    from_email: str
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
