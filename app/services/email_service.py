"""
SMTP 이메일 발송 서비스 + 알람 알림 발송
"""

import logging
import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from email.header import Header
from dataclasses import dataclass
from typing import Callable, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from ..core.config import settings, now_local
from ..core.database import SessionLocal
from ..alarms.models import AlarmPayload
from . import config_service
from .config_service import SMTPSettings

logger = logging.getLogger(__name__)

# Jinja2 템플릿 환경
_template_dir = settings.BASE_DIR / "app" / "templates"
_jinja_env = Environment(
    loader=FileSystemLoader(str(_template_dir)),
    autoescape=select_autoescape(["html"]),
)


class NotificationError(Exception):
    """알림 발송 실패"""


@dataclass
class SendResult:
    """발송 결과"""
    recipient: str
    success: bool
    error_message: Optional[str] = None


def load_smtp_settings() -> Optional[SMTPSettings]:
    """DB → .env 순서로 SMTP 설정 조회"""
    db = SessionLocal()
    try:
        return config_service.get_smtp_settings(db)
    finally:
        db.close()


class EmailService:
    """SMTP 이메일 발송 서비스 (발송 시마다 최신 설정 조회)"""

    SMTP_TIMEOUT = 30

    def __init__(self, config_provider: Callable[[], Optional[SMTPSettings]] = None):
        self._config_provider = config_provider or load_smtp_settings

    def get_config(self) -> Optional[SMTPSettings]:
        return self._config_provider()

    @property
    def is_configured(self) -> bool:
        """SMTP 설정 완료 여부"""
        config = self.get_config()
        return bool(config and config.is_complete)

    def _open(self, config: SMTPSettings) -> smtplib.SMTP:
        if config.port == 465:
            return smtplib.SMTP_SSL(config.server, config.port, timeout=self.SMTP_TIMEOUT)
        return smtplib.SMTP(config.server, config.port, timeout=self.SMTP_TIMEOUT)

    def send(
        self,
        recipient: str,
        subject: str,
        html_content: str,
        sender_name: str = "LamiSys"
    ) -> SendResult:
        """이메일 발송"""
        config = self.get_config()
        if not config or not config.is_complete:
            return SendResult(
                recipient=recipient,
                success=False,
                error_message="SMTP 설정이 완료되지 않았습니다."
            )

        try:
            message = MIMEMultipart("alternative")
            message["Subject"] = Header(subject, "utf-8")
            message["From"] = f"{sender_name} <{config.from_email}>"
            message["To"] = recipient
            message.attach(MIMEText(html_content, "html", "utf-8"))

            with self._open(config) as server:
                if config.use_tls and config.port != 465:
                    server.starttls()
                if config.username:
                    server.login(config.username, config.password)
                server.sendmail(config.from_email, recipient, message.as_string())

            logger.info(f"이메일 발송 성공: {recipient}")
            return SendResult(recipient=recipient, success=True)

        except smtplib.SMTPAuthenticationError:
            error_msg = "SMTP 인증 실패. 계정 정보를 확인하세요."
            logger.error(f"이메일 발송 실패: {error_msg}")
            return SendResult(recipient=recipient, success=False, error_message=error_msg)

        except smtplib.SMTPRecipientsRefused:
            error_msg = f"수신자 거부: {recipient}"
            logger.error(f"이메일 발송 실패: {error_msg}")
            return SendResult(recipient=recipient, success=False, error_message=error_msg)

        except (smtplib.SMTPException, OSError) as e:
            error_msg = str(e)
            logger.error(f"이메일 발송 실패: {error_msg}")
            return SendResult(recipient=recipient, success=False, error_message=error_msg)


class AlarmNotifier:
    """알람 발동 알림 메일 (수신자 1명 단위)"""

    SUBJECT_TEMPLATE = "[LamiSys] 알람: {name}"
    TEMPLATE_NAME = "alarm_notification.html"

    def __init__(self, email_service: EmailService = None):
        self.email_service = email_service or EmailService()

    def render(self, payload: AlarmPayload) -> str:
        template = _jinja_env.get_template(self.TEMPLATE_NAME)
        return template.render(
            name=payload.name,
            details=payload.details or "지정되지 않음",
            materials=payload.materials,
            generated_at=now_local().strftime("%Y-%m-%d %H:%M"),
        )

    def send_alarm_notification(self, recipient: str, payload: AlarmPayload) -> None:
        """알람 알림 발송 (실패 시 NotificationError)"""
        result = self.email_service.send(
            recipient=recipient,
            subject=self.SUBJECT_TEMPLATE.format(name=payload.name),
            html_content=self.render(payload),
        )
        if not result.success:
            raise NotificationError(result.error_message or "알 수 없는 발송 오류")
