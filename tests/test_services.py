import pytest

from app.models.alarm_rule import AlarmType
from app.models.material import MaterialStatus, MaterialType
from app.models.user import User, UserRole
from app.services import alarm_service, config_service, material_service, user_service
from app.services.material_service import DeletedMaterialError, MaterialNotFoundError
from app.services.user_service import DuplicateUserError


def _create_material(db, **overrides):
    data = {
        "invoice_number": "NF-100",
        "order_number": "OS-1",
        "equipment_details": "Servo motor",
        "material_type": MaterialType.MOTOR_AC,
        "status": MaterialStatus.PENDING,
        "created_by": "planner@example.com",
    }
    data.update(overrides)
    return material_service.create_material(db, data)


def test_create_material_has_no_history(db) -> None:
    material = _create_material(db)
    assert material.id is not None
    assert material.created_at is not None
    assert material.history == []
    assert material.deleted is False


def test_update_records_one_history_entry_per_changed_field(db) -> None:
    material = _create_material(db)
    updated = material_service.update_material(
        db,
        material.id,
        {"status": MaterialStatus.SENT, "carrier": "Jadlog", "order_number": "OS-1"},
        "admin@example.com",
    )
    entries = {entry.field: entry for entry in updated.history}
    assert set(entries) == {"status", "carrier"}
    assert (entries["status"].old_value, entries["status"].new_value) == ("PENDING", "SENT")
    assert (entries["carrier"].old_value, entries["carrier"].new_value) == ("", "Jadlog")
    assert updated.updated_by == "admin@example.com"
    assert updated.updated_at is not None


def test_update_without_changes_keeps_material_untouched(db) -> None:
    material = _create_material(db)
    updated = material_service.update_material(db, material.id, {"status": MaterialStatus.PENDING}, "x@example.com")
    assert updated.history == []
    assert updated.updated_at is None


def test_deleted_material_is_frozen(db) -> None:
    material = _create_material(db)
    material_service.delete_material(db, material.id, "duplicate entry", "admin@example.com")

    assert material_service.list_materials(db) == []
    deleted = material_service.list_deleted_materials(db)
    assert [m.deletion_reason for m in deleted] == ["duplicate entry"]

    with pytest.raises(DeletedMaterialError):
        material_service.update_material(db, material.id, {"carrier": "X"}, "admin@example.com")
    with pytest.raises(DeletedMaterialError):
        material_service.delete_material(db, material.id, "again", "admin@example.com")


def test_missing_material_raises(db) -> None:
    with pytest.raises(MaterialNotFoundError):
        material_service.get_material(db, 999)


def test_user_email_is_unique_case_insensitively(db) -> None:
    user_service.create_user(db, {"name": "Ana", "email": "Ana@Example.com", "matricula": "100"})
    with pytest.raises(DuplicateUserError):
        user_service.create_user(db, {"name": "Ana 2", "email": "ana@example.com", "matricula": "101"})
    assert user_service.get_user_by_email(db, "ANA@example.com").email == "ana@example.com"


def test_user_table_has_no_credential_columns() -> None:
    columns = User.__table__.columns.keys()
    assert "password_hash" not in columns
    assert "recovery_password_hash" not in columns


def test_user_update_allows_own_email(db) -> None:
    user = user_service.create_user(db, {"name": "Ana", "email": "ana@example.com", "matricula": "100"})
    updated = user_service.update_user(db, user.id, {"email": "ANA@example.com", "role": UserRole.PLANNER})
    assert updated.role == UserRole.PLANNER


def test_seed_users_only_when_empty(db) -> None:
    assert user_service.seed_users(db) == len(user_service.DEFAULT_USERS)
    assert user_service.seed_users(db) == 0


@pytest.mark.parametrize(
    "recipients",
    [["a@example.com", " b@example.com "], "a@example.com, b@example.com"],
)
def test_alarm_rule_recipients_accept_list_or_string(db, recipients) -> None:
    rule = alarm_service.create_alarm_rule(db, {
        "name": "Backlog",
        "type": AlarmType.MATERIAL_COUNT,
        "value": 5,
        "recipients": recipients,
        "created_by": "planner@example.com",
    })
    assert rule.recipient_list == ["a@example.com", "b@example.com"]
    assert rule.active is True
    assert rule.last_checked_at is None


def test_alarm_rule_toggle_and_update(db) -> None:
    rule = alarm_service.create_alarm_rule(db, {
        "name": "Backlog",
        "type": AlarmType.MATERIAL_COUNT,
        "recipients": ["a@example.com"],
        "created_by": "planner@example.com",
    })
    assert alarm_service.toggle_alarm_rule(db, rule.id).active is False
    updated = alarm_service.update_alarm_rule(db, rule.id, {"condition": "status == SENT"})
    assert updated.condition == "status == SENT"
    assert updated.recipient_list == ["a@example.com"]


def test_smtp_config_seed_is_idempotent_and_update_replaces(db) -> None:
    assert config_service.seed_smtp_config(db) is True
    assert config_service.seed_smtp_config(db) is False

    config_service.update_smtp_config(db, "mail.example.com", 587, "noreply@example.com")
    smtp = config_service.get_smtp_settings(db)
    assert (smtp.server, smtp.port, smtp.from_email) == ("mail.example.com", 587, "noreply@example.com")
