"""
알람 규칙 엔진
규칙 1건 + 자재 스냅샷 → 발동 여부와 대상 자재 결정 (메일 발송은 하지 않음)
"""

import logging
from datetime import datetime, timedelta
from typing import Callable, Optional, Sequence

from ..core.config import settings, now_local
from ..models.alarm_rule import AlarmType
from .condition import ConditionSyntaxError, evaluate, is_blank, parse_condition
from .models import EPOCH, AlarmPayload, AlarmRuleSnapshot, MaterialSnapshot, RuleEvaluation

logger = logging.getLogger(__name__)

# 메일 본문 요약에 나열할 최대 자재 수
MAX_LISTED_MATERIALS = 20


class UnsupportedAlarmTypeError(Exception):
    """처리기가 등록되지 않은 알람 유형"""


def parse_threshold(value, default: int) -> int:
    """규칙 value → 양의 정수 임계값 (없음/잘못된 값/0 이하는 기본값)"""
    if value is None or isinstance(value, bool):
        return default
    try:
        threshold = int(value)
    except (TypeError, ValueError):
        return default
    return threshold if threshold > 0 else default


class AlarmRuleEngine:
    """알람 유형별 발동 판정"""

    def __init__(
        self,
        default_stage_days: Optional[int] = None,
        default_count: Optional[int] = None,
        clock: Callable[[], datetime] = now_local,
    ):
        self.default_stage_days = default_stage_days or settings.default_time_in_stage_days
        self.default_count = default_count or settings.default_material_count
        self._clock = clock
        self._handlers = {
            AlarmType.TIME_IN_STAGE: self._time_in_stage,
            AlarmType.TIME_TOTAL: self._time_total,
            AlarmType.NEW_ITEM: self._new_item,
            AlarmType.MATERIAL_COUNT: self._material_count,
        }
        missing = set(AlarmType) - set(self._handlers)
        if missing:
            raise UnsupportedAlarmTypeError(f"처리기 없는 알람 유형: {sorted(m.value for m in missing)}")

    def evaluate(
        self,
        rule: AlarmRuleSnapshot,
        materials: Sequence[MaterialSnapshot],
        now: Optional[datetime] = None,
    ) -> RuleEvaluation:
        """규칙 평가 (rule.active 필터링은 호출자 책임)"""
        now = now or self._clock()
        handler = self._handlers.get(rule.type)
        if handler is None:
            raise UnsupportedAlarmTypeError(f"지원하지 않는 알람 유형: {rule.type}")
        return handler(rule, materials, now)

    # ------------------------------------------------------------
    # 유형별 처리
    # ------------------------------------------------------------

    def _time_in_stage(self, rule, materials, now) -> RuleEvaluation:
        threshold = parse_threshold(rule.value, self.default_stage_days)
        candidates = self._filter_by_condition(rule, materials)
        matched = [m for m in candidates if self._elapsed(now, m.updated_at) >= timedelta(days=threshold)]
        return RuleEvaluation(rule=rule, triggered=bool(matched), matched_materials=matched, threshold=threshold)

    def _time_total(self, rule, materials, now) -> RuleEvaluation:
        # 조건식 없이 등록 시점부터의 경과 기간만 판단
        threshold = parse_threshold(rule.value, self.default_stage_days)
        matched = [m for m in materials if self._elapsed(now, m.created_at) >= timedelta(days=threshold)]
        return RuleEvaluation(rule=rule, triggered=bool(matched), matched_materials=matched, threshold=threshold)

    def _new_item(self, rule, materials, now) -> RuleEvaluation:
        # 최초 평가는 규칙 생성 시점 이후 등록분만 대상
        watermark = rule.last_checked_at or rule.created_at or now
        matched = [
            m for m in materials
            if m.created_at is not None and watermark < m.created_at <= now
        ]
        return RuleEvaluation(rule=rule, triggered=bool(matched), matched_materials=matched, watermark=now)

    def _material_count(self, rule, materials, now) -> RuleEvaluation:
        threshold = parse_threshold(rule.value, self.default_count)
        matched = self._filter_by_condition(rule, materials)
        return RuleEvaluation(
            rule=rule,
            triggered=len(matched) >= threshold,
            matched_materials=matched,
            threshold=threshold,
        )

    # ------------------------------------------------------------

    def _filter_by_condition(self, rule, materials) -> list[MaterialSnapshot]:
        if is_blank(rule.condition):
            return list(materials)
        try:
            parse_condition(rule.condition.strip())
        except ConditionSyntaxError as e:
            # 문법 오류는 모든 자재에 대해 불일치 (자재별 경고 대신 1회 로그)
            logger.warning(f"알람 조건식 오류 (rule={rule.id}, condition={rule.condition!r}): {e}")
            return []
        return [m for m in materials if evaluate(m, rule.condition)]

    @staticmethod
    def _elapsed(now: datetime, anchor: Optional[datetime]) -> timedelta:
        return now - (anchor or EPOCH)


def build_payload(evaluation: RuleEvaluation) -> AlarmPayload:
    """발동 결과 → 알림 내용 (규칙명 + 대상 자재 요약)"""
    rule = evaluation.rule
    matched = evaluation.matched_materials
    count = len(matched)

    if rule.type == AlarmType.NEW_ITEM:
        summary = f"신규 자재 {count}건이 등록되었습니다."
    elif rule.type == AlarmType.MATERIAL_COUNT:
        summary = f"{count}건의 자재가 알람 조건을 충족합니다 (임계값 {evaluation.threshold}건)."
    else:
        summary = f"{count}건의 자재가 {evaluation.threshold}일 이상 경과하여 확인이 필요합니다."

    listed = [m.equipment_details or m.order_number or str(m.id) for m in matched[:MAX_LISTED_MATERIALS]]
    details = summary
    if listed:
        details += " 자재: " + ", ".join(listed)
        if count > MAX_LISTED_MATERIALS:
            details += f" 외 {count - MAX_LISTED_MATERIALS}건"

    return AlarmPayload(name=rule.name, details=details, materials=tuple(matched))
