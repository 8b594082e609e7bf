from datetime import datetime, timezone

from app.alarms.models import AlarmRuleSnapshot, MaterialSnapshot
from app.alarms.runner import PassResult
from app.models.alarm_rule import AlarmRule, AlarmType
from app.models.alarm_run_log import AlarmRunLog
from app.models.material import Material, MaterialType
from app.services.record_store import SqlRecordStore


def _seed(db):
    db.add_all([
        AlarmRule(name="active", type=AlarmType.NEW_ITEM, recipients="a@example.com", created_by="x"),
        AlarmRule(name="inactive", type=AlarmType.NEW_ITEM, recipients="", active=False, created_by="x"),
        Material(invoice_number="1", order_number="OS-1", equipment_details="kept",
                 material_type=MaterialType.ENCODER, created_by="x"),
        Material(invoice_number="2", order_number="OS-2", equipment_details="gone",
                 material_type=MaterialType.ENCODER, created_by="x", deleted=True),
    ])
    db.commit()


def test_store_returns_snapshots_of_active_records(db, session_factory) -> None:
    _seed(db)
    store = SqlRecordStore(session_factory)

    rules = store.list_active_alarm_rules()
    materials = store.list_materials()

    assert [r.name for r in rules] == ["active"]
    assert isinstance(rules[0], AlarmRuleSnapshot)
    assert rules[0].recipients == ("a@example.com",)
    assert [m.equipment_details for m in materials] == ["kept"]
    assert isinstance(materials[0], MaterialSnapshot)
    assert materials[0].created_at.tzinfo is not None


def test_save_watermark_persists_on_rule(db, session_factory) -> None:
    _seed(db)
    store = SqlRecordStore(session_factory)
    rule_id = store.list_active_alarm_rules()[0].id
    checked_at = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)

    store.save_watermark(rule_id, checked_at)
    store.save_watermark(9999, checked_at)

    assert store.list_active_alarm_rules()[0].last_checked_at is not None


def test_record_run_writes_log_row(db, session_factory) -> None:
    store = SqlRecordStore(session_factory)
    store.record_run(PassResult(processed=3, triggered=1, notifications_sent=2, duration_seconds=0.123))
    row = db.query(AlarmRunLog).one()
    assert (row.processed, row.triggered, row.notifications_sent) == (3, 1, 2)


def test_get_smtp_config_reads_current_row(db, session_factory) -> None:
    from app.services import config_service

    store = SqlRecordStore(session_factory)
    config_service.update_smtp_config(db, "mail.example.com", 25, "lamisys@example.com")
    first = store.get_smtp_config()
    config_service.update_smtp_config(db, "relay.example.com", 25, "lamisys@example.com")
    second = store.get_smtp_config()

    assert first.server == "mail.example.com"
    assert second.server == "relay.example.com"
