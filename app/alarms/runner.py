"""
알람 평가 실행기
활성 규칙 전체를 1회 평가(pass)하고 발동 규칙의 수신자별 알림 발송
"""

import time
import logging
import threading
from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Callable, Optional

from ..core.config import now_local
from ..models.alarm_rule import AlarmType
from .engine import AlarmRuleEngine, build_payload
from .models import AlarmRuleSnapshot

logger = logging.getLogger(__name__)


@dataclass
class PassResult:
    """pass 집계 결과 (발송 실패는 errors가 아닌 notifications_failed로 집계)"""
    processed: int = 0
    triggered: int = 0
    errors: int = 0
    notifications_sent: int = 0
    notifications_failed: int = 0
    duration_seconds: float = 0.0

    def as_dict(self) -> dict:
        return asdict(self)


class AlarmRunner:
    """알람 평가 pass 실행 (동일 인스턴스에서 pass 중첩 시 건너뜀)"""

    def __init__(
        self,
        store,
        notifier,
        engine: AlarmRuleEngine = None,
        clock: Callable[[], datetime] = now_local,
    ):
        self.store = store
        self.notifier = notifier
        self.engine = engine or AlarmRuleEngine(clock=clock)
        self._clock = clock
        self._lock = threading.Lock()
        self.last_result: Optional[PassResult] = None

    @property
    def is_busy(self) -> bool:
        return self._lock.locked()

    def run_pass(self) -> Optional[PassResult]:
        """활성 규칙 전체 평가 (이전 pass 실행 중이면 None)"""
        if not self._lock.acquire(blocking=False):
            logger.warning("이전 알람 평가가 아직 실행 중입니다. 이번 실행은 건너뜁니다.")
            return None
        try:
            result = self._run_pass()
            self.last_result = result
            return result
        finally:
            self._lock.release()

    def _run_pass(self) -> PassResult:
        logger.info("=== 알람 평가 시작 ===")
        start_time = time.time()
        now = self._clock()

        rules = self.store.list_active_alarm_rules()
        logger.info(f"활성 알람 {len(rules)}건 평가")

        # 자재 스냅샷은 처음 성공한 조회를 pass 내 모든 규칙이 공유
        # 조회 실패는 해당 규칙의 오류로 집계하고 다음 규칙에서 재시도
        materials = None

        result = PassResult()
        for rule in rules:
            result.processed += 1
            try:
                if materials is None:
                    materials = self.store.list_materials()
                if self._process_rule(rule, materials, now, result):
                    result.triggered += 1
            except Exception as e:
                result.errors += 1
                logger.error(f"알람 처리 오류 (rule={rule.id}, name={rule.name}): {e}", exc_info=True)

        result.duration_seconds = time.time() - start_time
        logger.info(
            f"=== 알람 평가 완료: 처리 {result.processed}건, 발동 {result.triggered}건, "
            f"오류 {result.errors}건, 발송 {result.notifications_sent}건 "
            f"(실패 {result.notifications_failed}건) ({result.duration_seconds:.1f}초) ==="
        )

        try:
            self.store.record_run(result)
        except Exception as e:
            logger.warning(f"알람 실행 이력 기록 실패: {e}")

        return result

    def _process_rule(self, rule: AlarmRuleSnapshot, materials, now: datetime, result: PassResult) -> bool:
        """규칙 1건 평가 + 알림 발송, 발동 여부 반환"""
        logger.debug(f"알람 처리: {rule.name} ({rule.id})")
        evaluation = self.engine.evaluate(rule, materials, now)

        # 알림 전에 워터마크 저장 (저장 실패 시 다음 pass에서 재평가)
        if rule.type == AlarmType.NEW_ITEM and evaluation.watermark is not None:
            self.store.save_watermark(rule.id, evaluation.watermark)

        if not evaluation.triggered:
            return False

        logger.info(f"알람 발동: {rule.name} (대상 자재 {len(evaluation.matched_materials)}건)")
        if not rule.recipients:
            logger.warning(f"알람 수신자 없음: {rule.name} ({rule.id})")

        payload = build_payload(evaluation)
        for recipient in rule.recipients:
            try:
                self.notifier.send_alarm_notification(recipient, payload)
                result.notifications_sent += 1
                logger.info(f"  알람 알림 발송: {recipient}")
            except Exception as e:
                result.notifications_failed += 1
                logger.error(f"  알람 알림 발송 실패: {recipient} - {e}")
        return True
