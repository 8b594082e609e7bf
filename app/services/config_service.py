"""
설정 관리 서비스 - SMTP 설정 (DB-first, .env fallback)
"""

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Session

from ..core.config import settings
from ..models.smtp_config import SMTPConfig, SMTP_CONFIG_ID

logger = logging.getLogger(__name__)

# 최초 기동 시 시드되는 기본 SMTP 설정
DEFAULT_SMTP_SERVER = "10.6.250.1"
DEFAULT_SMTP_PORT = 25
DEFAULT_SMTP_FROM = "LamiSys@sinobras.com.br"


@dataclass(frozen=True)
class SMTPSettings:
    """메일 발송에 필요한 SMTP 설정 (DB 행 + .env 인증정보)"""
    server: str
    port: int
    from_email: str
    username: str = ""
    password: str = ""
    use_tls: bool = False

    @property
    def is_complete(self) -> bool:
        return bool(self.server and self.port and self.from_email)


def get_smtp_row(db: Session) -> Optional[SMTPConfig]:
    return db.query(SMTPConfig).filter(SMTPConfig.id == SMTP_CONFIG_ID).first()


def get_smtp_settings(db: Session) -> Optional[SMTPSettings]:
    """SMTP 설정 조회 (DB → .env fallback), 둘 다 없으면 None"""
    row = get_smtp_row(db)
    if row:
        return SMTPSettings(
            server=row.server,
            port=row.port,
            from_email=row.from_email,
            username=settings.smtp_username,
            password=settings.smtp_password,
            use_tls=settings.smtp_use_tls,
        )

    if settings.smtp_configured:
        return SMTPSettings(
            server=settings.smtp_server,
            port=settings.smtp_port,
            from_email=settings.smtp_from_email,
            username=settings.smtp_username,
            password=settings.smtp_password,
            use_tls=settings.smtp_use_tls,
        )
    return None


def update_smtp_config(db: Session, server: str, port: int, from_email: str) -> SMTPConfig:
    """SMTP 설정 전체 교체 (없으면 생성)"""
    row = get_smtp_row(db)
    if row:
        row.server = server
        row.port = port
        row.from_email = from_email
    else:
        row = SMTPConfig(id=SMTP_CONFIG_ID, server=server, port=port, from_email=from_email)
        db.add(row)
    db.commit()
    db.refresh(row)
    logger.info(f"SMTP 설정 저장: {server}:{port}")
    return row


def seed_smtp_config(db: Session) -> bool:
    """기본 SMTP 설정 시드 (멱등 - 이미 있으면 건너뜀)"""
    if get_smtp_row(db):
        return False
    db.add(SMTPConfig(
        id=SMTP_CONFIG_ID,
        server=settings.smtp_server or DEFAULT_SMTP_SERVER,
        port=settings.smtp_port or DEFAULT_SMTP_PORT,
        from_email=settings.smtp_from_email or DEFAULT_SMTP_FROM,
    ))
    db.commit()
    logger.info("기본 SMTP 설정 시드 완료")
    return True
