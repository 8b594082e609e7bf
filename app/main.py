"""
LamiSys - 수리 발송 자재 추적 + 알람
FastAPI 메인 애플리케이션
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from alembic.config import Config as AlembicConfig
from alembic import command as alembic_command

from .core.config import settings, APP_VERSION
from .core.database import SessionLocal
from .core.logging_config import setup_logging
from .core.scheduler import build_alarm_scheduler, start_alarm_scheduler, stop_alarm_scheduler
from .services.config_service import seed_smtp_config
from .services.user_service import seed_users
from .api.v1.endpoints import health, materials, users, alarms, config

# 로깅 설정 (파일 + 콘솔)
setup_logging()
logger = logging.getLogger(__name__)


def run_migrations():
    """Alembic 마이그레이션 실행 (head까지)"""
    alembic_cfg = AlembicConfig(str(settings.BASE_DIR / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(settings.BASE_DIR / "alembic"))
    # configparser 보간 회피
    alembic_cfg.set_main_option("sqlalchemy.url", settings.database_url.replace("%", "%%"))
    alembic_command.upgrade(alembic_cfg, "head")


def seed_defaults():
    """기본 SMTP 설정 / 기본 사용자 시드 (멱등)"""
    db = SessionLocal()
    try:
        seed_smtp_config(db)
        seed_users(db)
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """앱 시작/종료 시 실행"""
    logger.info("LamiSys 시작 (port: %d)", settings.api_port)

    try:
        run_migrations()
        logger.info("DB 마이그레이션 완료")
    except Exception as e:
        logger.error(f"DB 마이그레이션 실패: {e}", exc_info=True)
        raise

    seed_defaults()

    # 알람 스케줄러 (시작 시 즉시 1회 평가 후 주기 실행)
    app.state.alarm_scheduler = build_alarm_scheduler()
    if settings.alarm_scheduler_enabled:
        start_alarm_scheduler(app.state.alarm_scheduler, settings.alarm_interval_minutes)
    else:
        logger.info("알람 스케줄러 비활성화 (ALARM_SCHEDULER_ENABLED=false)")

    yield

    stop_alarm_scheduler(app.state.alarm_scheduler)
    app.state.alarm_scheduler.shutdown()
    logger.info("LamiSys 종료")


app = FastAPI(
    title="LamiSys",
    description="수리 발송 자재 추적 - 자재/이력 관리 및 조건 기반 이메일 알람",
    version=APP_VERSION,
    lifespan=lifespan,
)

# 라우터 등록
app.include_router(health.router, prefix="/api/v1")
app.include_router(materials.router, prefix="/api/v1")
app.include_router(users.router, prefix="/api/v1")
app.include_router(alarms.router, prefix="/api/v1")
app.include_router(config.router, prefix="/api/v1")


@app.get("/")
def root():
    return {
        "service": "LamiSys",
        "version": APP_VERSION,
        "docs": "/docs",
    }
