"""
APScheduler 기반 알람 스케줄러
앱 시작 시 생성하여 app.state에 주입 (모듈 전역 상태 없음)
"""

import logging
from datetime import datetime

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger
from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_EXECUTED, EVENT_JOB_MAX_INSTANCES
from apscheduler.jobstores.base import JobLookupError

from .config import settings

logger = logging.getLogger(__name__)

ALARM_JOB_ID = "alarm_evaluation"
ALARM_JOB_NAME = "알람 규칙 평가"


def _job_listener(event):
    """스케줄러 작업 실행 이벤트 리스너"""
    job_id = event.job_id
    if event.code == EVENT_JOB_MAX_INSTANCES:
        logger.warning(f"이전 실행이 끝나지 않아 건너뜀: {job_id}")
    elif event.exception:
        logger.error(f"스케줄 작업 실패: {job_id} - {event.exception}")
    else:
        logger.debug(f"스케줄 작업 완료: {job_id}")


class AlarmScheduler:
    """
    알람 평가 주기 실행기

    상태: STOPPED ↔ RUNNING (작업 등록 여부)
    - start(): 기존 작업 제거 → 즉시 1회 실행(백그라운드) → interval 마다 반복
    - stop(): 이후 실행만 중단, 진행 중인 pass는 끝까지 실행
    - 이전 pass가 끝나지 않았으면 해당 tick은 건너뜀 (max_instances=1)
    """

    def __init__(self, runner, scheduler: BackgroundScheduler = None):
        self.runner = runner
        self.interval_minutes: int | None = None
        self._scheduler = scheduler or BackgroundScheduler(
            timezone=settings.timezone,
            job_defaults={
                "coalesce": True,
                "max_instances": 1,
                "misfire_grace_time": 300,
            },
        )
        self._scheduler.add_listener(
            _job_listener, EVENT_JOB_EXECUTED | EVENT_JOB_ERROR | EVENT_JOB_MAX_INSTANCES
        )

    @property
    def is_running(self) -> bool:
        return self._scheduler.running and self._scheduler.get_job(ALARM_JOB_ID) is not None

    def start(self, interval_minutes: int = None) -> bool:
        """알람 스케줄러 시작 (실행 중이면 재시작)"""
        interval = settings.alarm_interval_minutes if interval_minutes is None else interval_minutes
        if interval <= 0:
            raise ValueError(f"실행 주기는 1분 이상이어야 합니다: {interval}")

        self.stop()
        if not self._scheduler.running:
            self._scheduler.start()

        self._scheduler.add_job(
            self.runner.run_pass,
            IntervalTrigger(minutes=interval),
            id=ALARM_JOB_ID,
            name=ALARM_JOB_NAME,
            replace_existing=True,
            # 첫 pass는 즉시 (호출자를 블로킹하지 않음)
            next_run_time=datetime.now(self._scheduler.timezone),
        )
        self.interval_minutes = interval
        logger.info(f"알람 스케줄러 시작: {interval}분 주기")
        return True

    def stop(self) -> bool:
        """알람 스케줄러 중지 (이미 중지 상태면 False)"""
        if not self._scheduler.running:
            return False
        try:
            self._scheduler.remove_job(ALARM_JOB_ID)
        except JobLookupError:
            return False
        logger.info("알람 스케줄러 중지")
        return True

    def status(self) -> dict:
        """스케줄러 상태 조회 (진단용)"""
        job = self._scheduler.get_job(ALARM_JOB_ID) if self._scheduler.running else None
        last = self.runner.last_result
        return {
            "running": job is not None,
            "interval_minutes": self.interval_minutes if job else None,
            "next_run_time": str(job.next_run_time) if job and job.next_run_time else None,
            "pass_in_progress": self.runner.is_busy,
            "last_result": last.as_dict() if last else None,
        }

    def shutdown(self):
        """스케줄러 종료 (진행 중인 pass는 기다리지 않음)"""
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)
            logger.info("스케줄러 종료 완료")


def build_alarm_scheduler() -> AlarmScheduler:
    """기본 구성 (DB 레코드 저장소 + SMTP 알림) 알람 스케줄러 생성"""
    from ..alarms.runner import AlarmRunner
    from ..services.record_store import SqlRecordStore
    from ..services.email_service import AlarmNotifier, EmailService

    store = SqlRecordStore()
    # 발송 시마다 저장소에서 최신 SMTP 설정 조회
    notifier = AlarmNotifier(EmailService(config_provider=store.get_smtp_config))
    runner = AlarmRunner(store=store, notifier=notifier)
    return AlarmScheduler(runner)


def start_alarm_scheduler(alarm_scheduler: AlarmScheduler, interval_minutes: int = None) -> bool:
    return alarm_scheduler.start(interval_minutes)


def stop_alarm_scheduler(alarm_scheduler: AlarmScheduler) -> bool:
    return alarm_scheduler.stop()
