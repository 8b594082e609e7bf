from datetime import datetime, timedelta, timezone

import pytest

from app.alarms.engine import MAX_LISTED_MATERIALS, AlarmRuleEngine, build_payload, parse_threshold
from app.alarms.models import AlarmRuleSnapshot, MaterialSnapshot
from app.models.alarm_rule import AlarmType
from app.models.material import MaterialStatus

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


def _ago(days: float) -> datetime:
    return NOW - timedelta(days=days)


def _material(material_id: int, **overrides) -> MaterialSnapshot:
    fields = {
        "id": material_id,
        "order_number": f"OS-{material_id}",
        "equipment_details": f"Equipment {material_id}",
        "status": MaterialStatus.PENDING,
        "created_at": _ago(30),
        "updated_at": None,
    }
    fields.update(overrides)
    return MaterialSnapshot(**fields)


def _rule(alarm_type, **overrides) -> AlarmRuleSnapshot:
    fields = {
        "id": 1,
        "name": "rule",
        "type": alarm_type,
        "recipients": "ops@example.com",
        "created_at": _ago(60),
    }
    fields.update(overrides)
    return AlarmRuleSnapshot(**fields)


@pytest.fixture
def engine() -> AlarmRuleEngine:
    return AlarmRuleEngine(default_stage_days=7, default_count=1, clock=lambda: NOW)


@pytest.mark.parametrize(
    ("value", "expected"),
    [(None, 7), (0, 7), (-3, 7), ("abc", 7), (True, 7), ("5", 5), (3, 3)],
)
def test_parse_threshold_falls_back_to_default(value, expected) -> None:
    assert parse_threshold(value, 7) == expected


def test_time_in_stage_triggers_only_stale_materials(engine) -> None:
    stale = _material(1, updated_at=_ago(10))
    fresh = _material(2, updated_at=_ago(2))
    result = engine.evaluate(_rule(AlarmType.TIME_IN_STAGE, condition="status == PENDING", value=7), [stale, fresh])
    assert result.triggered is True
    assert [m.id for m in result.matched_materials] == [1]
    assert result.threshold == 7


def test_time_in_stage_without_update_is_treated_as_stale(engine) -> None:
    never_updated = _material(1, updated_at=None, created_at=_ago(1))
    result = engine.evaluate(_rule(AlarmType.TIME_IN_STAGE, value=7), [never_updated])
    assert result.triggered is True


def test_time_in_stage_respects_condition(engine) -> None:
    sent = _material(1, status=MaterialStatus.SENT, updated_at=_ago(10))
    result = engine.evaluate(_rule(AlarmType.TIME_IN_STAGE, condition="status == PENDING", value=7), [sent])
    assert result.triggered is False
    assert result.matched_materials == []


def test_time_in_stage_uses_default_threshold_for_invalid_value(engine) -> None:
    material = _material(1, updated_at=_ago(6))
    result = engine.evaluate(_rule(AlarmType.TIME_IN_STAGE, value=0), [material])
    assert result.threshold == 7
    assert result.triggered is False


def test_time_total_is_anchored_on_creation_and_ignores_condition(engine) -> None:
    old = _material(1, created_at=_ago(20), updated_at=_ago(1), status=MaterialStatus.SENT)
    recent = _material(2, created_at=_ago(3))
    result = engine.evaluate(_rule(AlarmType.TIME_TOTAL, condition="status == PENDING", value=15), [old, recent])
    assert [m.id for m in result.matched_materials] == [1]
    assert result.triggered is True


def test_new_item_first_run_uses_rule_creation_as_watermark(engine) -> None:
    rule = _rule(AlarmType.NEW_ITEM, created_at=_ago(5), last_checked_at=None)
    before_rule = _material(1, created_at=_ago(6))
    after_rule = _material(2, created_at=_ago(1))
    result = engine.evaluate(rule, [before_rule, after_rule])
    assert [m.id for m in result.matched_materials] == [2]
    assert result.watermark == NOW


def test_new_item_only_reports_materials_after_watermark(engine) -> None:
    rule = _rule(AlarmType.NEW_ITEM, last_checked_at=_ago(1))
    seen = _material(1, created_at=_ago(2))
    at_watermark = _material(2, created_at=_ago(1))
    new = _material(3, created_at=_ago(0.5))
    result = engine.evaluate(rule, [seen, at_watermark, new])
    assert [m.id for m in result.matched_materials] == [3]
    assert result.triggered is True


def test_new_item_without_new_materials_still_advances_watermark(engine) -> None:
    rule = _rule(AlarmType.NEW_ITEM, last_checked_at=_ago(1))
    result = engine.evaluate(rule, [_material(1, created_at=_ago(2))])
    assert result.triggered is False
    assert result.watermark == NOW


def test_material_count_threshold(engine) -> None:
    materials = [_material(i) for i in range(1, 4)]
    at_threshold = engine.evaluate(_rule(AlarmType.MATERIAL_COUNT, condition="status == PENDING", value=3), materials)
    above_threshold = engine.evaluate(_rule(AlarmType.MATERIAL_COUNT, condition="status == PENDING", value=4), materials)
    assert at_threshold.triggered is True
    assert above_threshold.triggered is False
    assert len(above_threshold.matched_materials) == 3


def test_material_count_defaults_to_one(engine) -> None:
    result = engine.evaluate(_rule(AlarmType.MATERIAL_COUNT, value=None), [_material(1)])
    assert result.threshold == 1
    assert result.triggered is True


def test_malformed_condition_matches_nothing(engine) -> None:
    result = engine.evaluate(_rule(AlarmType.MATERIAL_COUNT, condition="status = = PENDING"), [_material(1)])
    assert result.triggered is False
    assert result.matched_materials == []


def test_failing_material_does_not_hide_other_matches(engine) -> None:
    never_updated = _material(1, updated_at=None)
    stale = _material(2, updated_at=_ago(10))
    rule = _rule(AlarmType.MATERIAL_COUNT, condition="updated_at < '2026-03-09T00:00:00+00:00'", value=1)
    result = engine.evaluate(rule, [never_updated, stale])
    assert [m.id for m in result.matched_materials] == [2]
    assert result.triggered is True


def test_legacy_alarm_type_names_are_accepted() -> None:
    assert _rule("TEMPO_ETAPA").type == AlarmType.TIME_IN_STAGE
    assert _rule("QUANTIDADE_MATERIAIS").type == AlarmType.MATERIAL_COUNT


def test_engine_does_not_mutate_inputs(engine) -> None:
    materials = [_material(1, updated_at=_ago(10))]
    rule = _rule(AlarmType.TIME_IN_STAGE, value=7)
    engine.evaluate(rule, materials)
    assert len(materials) == 1
    assert rule.last_checked_at is None


def test_build_payload_summarizes_and_truncates() -> None:
    materials = [_material(i) for i in range(1, MAX_LISTED_MATERIALS + 3)]
    evaluation = AlarmRuleEngine(default_count=1, clock=lambda: NOW).evaluate(
        _rule(AlarmType.MATERIAL_COUNT, name="Pending backlog"), materials
    )
    payload = build_payload(evaluation)
    assert payload.name == "Pending backlog"
    assert "Equipment 1" in payload.details
    assert f"Equipment {MAX_LISTED_MATERIALS + 1}" not in payload.details
    assert "외 2건" in payload.details
    assert len(payload.materials) == MAX_LISTED_MATERIALS + 2
