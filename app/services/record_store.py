"""
알람 엔진용 레코드 저장소
호출마다 세션을 새로 열고 시점 스냅샷(detached dataclass)을 반환
"""

import logging
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.database import SessionLocal
from ..models.alarm_rule import AlarmRule
from ..models.alarm_run_log import AlarmRunLog
from ..models.material import Material
from ..alarms.models import AlarmRuleSnapshot, MaterialSnapshot
from . import config_service
from .config_service import SMTPSettings

logger = logging.getLogger(__name__)


class SqlRecordStore:
    """SQLAlchemy 기반 레코드 저장소"""

    def __init__(self, session_factory: Callable[[], Session] = SessionLocal):
        self._session_factory = session_factory

    def list_active_alarm_rules(self) -> list[AlarmRuleSnapshot]:
        """활성 알람 규칙 목록"""
        db = self._session_factory()
        try:
            rules = (
                db.query(AlarmRule)
                .filter(AlarmRule.active == True)  # noqa: E712
                .order_by(AlarmRule.id)
                .all()
            )
            return [AlarmRuleSnapshot.from_model(r, settings.tzinfo) for r in rules]
        finally:
            db.close()

    def list_materials(self) -> list[MaterialSnapshot]:
        """삭제되지 않은 자재 목록"""
        db = self._session_factory()
        try:
            materials = (
                db.query(Material)
                .filter(Material.deleted == False)  # noqa: E712
                .order_by(Material.id)
                .all()
            )
            return [MaterialSnapshot.from_model(m, settings.tzinfo) for m in materials]
        finally:
            db.close()

    def get_smtp_config(self) -> Optional[SMTPSettings]:
        db = self._session_factory()
        try:
            return config_service.get_smtp_settings(db)
        finally:
            db.close()

    def save_watermark(self, rule_id: int, checked_at: datetime) -> None:
        """NEW_ITEM 규칙의 마지막 평가 시각 저장"""
        db = self._session_factory()
        try:
            rule = db.query(AlarmRule).filter(AlarmRule.id == rule_id).first()
            if rule is None:
                # 실행 중 삭제된 규칙
                logger.debug(f"워터마크 저장 생략 (규칙 없음): {rule_id}")
                return
            rule.last_checked_at = checked_at
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def record_run(self, result) -> None:
        """알람 평가 실행 이력 기록"""
        db = self._session_factory()
        try:
            db.add(AlarmRunLog(
                processed=result.processed,
                triggered=result.triggered,
                errors=result.errors,
                notifications_sent=result.notifications_sent,
                notifications_failed=result.notifications_failed,
                duration_seconds=round(result.duration_seconds, 2),
            ))
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()
