"""
알람 알림 메일 발송 테스트 스크립트
사용: python -m scripts.send_test_alarm 수신자@example.com
"""

import sys
import os
import logging

# 프로젝트 루트를 PYTHONPATH에 추가
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv
load_dotenv()

logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")
logger = logging.getLogger(__name__)


def main():
    from app.alarms.models import AlarmPayload
    from app.services.email_service import AlarmNotifier, EmailService, NotificationError

    if len(sys.argv) < 2:
        logger.error("수신자 주소를 지정하세요: python -m scripts.send_test_alarm 수신자@example.com")
        sys.exit(1)
    recipient = sys.argv[1]

    logger.info("=== LamiSys 알람 메일 발송 테스트 ===")
    service = EmailService()
    config = service.get_config()
    if not config or not config.is_complete:
        logger.error("SMTP 설정이 완료되지 않았습니다. 설정 화면 또는 .env의 SMTP_SERVER/SMTP_FROM_EMAIL을 확인하세요.")
        sys.exit(1)

    logger.info(f"SMTP: {config.server}:{config.port} (발신자: {config.from_email})")
    logger.info(f"수신자: {recipient}")

    payload = AlarmPayload(name="테스트 알람", details="LamiSys 알람 메일 발송 테스트입니다.")
    try:
        AlarmNotifier(service).send_alarm_notification(recipient, payload)
    except NotificationError as e:
        logger.error(f"테스트 메일 발송 실패: {e}")
        sys.exit(1)

    logger.info(f"테스트 메일 발송 성공! → {recipient}")


if __name__ == "__main__":
    main()
