"""
알람 평가 1회 수동 실행 (스케줄러 없이)
사용: python -m scripts.run_alarm_pass [--dry-run]
  --dry-run: 메일 발송 대신 발동 결과만 로그 출력
"""

import sys
import os
import logging

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv
load_dotenv()

logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")
logger = logging.getLogger(__name__)


class LoggingNotifier:
    """발송 없이 알림 내용만 출력"""

    def send_alarm_notification(self, recipient, payload):
        logger.info(f"[dry-run] {recipient} ← {payload.name}: {payload.details}")


def main():
    from app.alarms.runner import AlarmRunner
    from app.services.record_store import SqlRecordStore
    from app.services.email_service import AlarmNotifier

    dry_run = "--dry-run" in sys.argv[1:]
    notifier = LoggingNotifier() if dry_run else AlarmNotifier()
    runner = AlarmRunner(store=SqlRecordStore(), notifier=notifier)

    result = runner.run_pass()
    logger.info(f"결과: {result.as_dict()}")
    if result.errors:
        sys.exit(1)


if __name__ == "__main__":
    main()
