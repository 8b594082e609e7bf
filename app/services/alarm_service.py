"""
알람 규칙 관리 서비스
"""

import logging

from sqlalchemy.orm import Session

from ..core.config import now_local
from ..models.alarm_rule import AlarmRule, split_recipients
from ..models.alarm_run_log import AlarmRunLog

logger = logging.getLogger(__name__)


class AlarmRuleNotFoundError(Exception):
    """알람 규칙 없음"""


def _join_recipients(recipients) -> str:
    return ",".join(split_recipients(recipients))


def list_alarm_rules(db: Session) -> list[AlarmRule]:
    return db.query(AlarmRule).order_by(AlarmRule.id).all()


def get_alarm_rule(db: Session, rule_id: int) -> AlarmRule:
    rule = db.query(AlarmRule).filter(AlarmRule.id == rule_id).first()
    if not rule:
        raise AlarmRuleNotFoundError(f"알람 규칙을 찾을 수 없습니다: {rule_id}")
    return rule


def create_alarm_rule(db: Session, data: dict) -> AlarmRule:
    """알람 규칙 등록"""
    data = dict(data)
    data["recipients"] = _join_recipients(data.get("recipients"))
    rule = AlarmRule(**data)
    if rule.created_at is None:
        rule.created_at = now_local()
    db.add(rule)
    db.commit()
    db.refresh(rule)
    logger.info(f"알람 규칙 등록: {rule.name} ({rule.type.value})")
    return rule


def update_alarm_rule(db: Session, rule_id: int, updates: dict) -> AlarmRule:
    """알람 규칙 수정 (recipients는 지정 시 전체 교체)"""
    rule = get_alarm_rule(db, rule_id)
    for key, value in updates.items():
        if key == "recipients":
            if value is None:
                continue
            value = _join_recipients(value)
        setattr(rule, key, value)
    db.commit()
    db.refresh(rule)
    return rule


def toggle_alarm_rule(db: Session, rule_id: int) -> AlarmRule:
    rule = get_alarm_rule(db, rule_id)
    rule.active = not rule.active
    db.commit()
    db.refresh(rule)
    logger.info(f"알람 규칙 {'활성화' if rule.active else '비활성화'}: {rule.name}")
    return rule


def delete_alarm_rule(db: Session, rule_id: int) -> None:
    """알람 규칙 삭제 (하드 삭제)"""
    rule = get_alarm_rule(db, rule_id)
    db.delete(rule)
    db.commit()
    logger.info(f"알람 규칙 삭제: {rule.name}")


def list_run_logs(db: Session, limit: int = 20) -> list[AlarmRunLog]:
    return (
        db.query(AlarmRunLog)
        .order_by(AlarmRunLog.executed_at.desc(), AlarmRunLog.id.desc())
        .limit(limit)
        .all()
    )
