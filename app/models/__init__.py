from .material import Material, HistoryEntry, MaterialStatus, MaterialType
from .user import User, UserRole
from .alarm_rule import AlarmRule, AlarmType
from .smtp_config import SMTPConfig
from .alarm_run_log import AlarmRunLog

__all__ = [
    "Material", "HistoryEntry", "MaterialStatus", "MaterialType",
    "User", "UserRole", "AlarmRule", "AlarmType", "SMTPConfig", "AlarmRunLog",
]
