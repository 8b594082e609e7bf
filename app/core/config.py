"""
LamiSys 설정 관리 모듈
"""

from datetime import datetime
from pathlib import Path
from functools import lru_cache
from zoneinfo import ZoneInfo

from pydantic_settings import BaseSettings
from pydantic import Field


APP_VERSION = "1.0.0"


class Settings(BaseSettings):
    """애플리케이션 설정"""

    # 프로젝트 경로
    BASE_DIR: Path = Path(__file__).parent.parent.parent

    # 데이터베이스
    database_url: str = Field(
        default="sqlite:///./lamisys.db",
        env="DATABASE_URL"
    )

    # SMTP (DB에 smtp_config가 없을 때 fallback)
    smtp_server: str = Field(default="", env="SMTP_SERVER")
    smtp_port: int = Field(default=25, env="SMTP_PORT")
    smtp_from_email: str = Field(default="", env="SMTP_FROM_EMAIL")
    smtp_username: str = Field(default="", env="SMTP_USERNAME")
    smtp_password: str = Field(default="", env="SMTP_PASSWORD")
    smtp_use_tls: bool = Field(default=False, env="SMTP_USE_TLS")

    # 알람 스케줄러
    alarm_scheduler_enabled: bool = Field(default=True, env="ALARM_SCHEDULER_ENABLED")
    alarm_interval_minutes: int = Field(default=60, env="ALARM_INTERVAL_MINUTES")

    # 알람 기본 임계값
    default_time_in_stage_days: int = Field(default=7, env="DEFAULT_TIME_IN_STAGE_DAYS")
    default_material_count: int = Field(default=1, env="DEFAULT_MATERIAL_COUNT")

    # 타임존
    timezone: str = Field(default="America/Sao_Paulo", env="TIMEZONE")

    # 로깅
    log_level: str = Field(default="INFO", env="LOG_LEVEL")

    # API
    api_port: int = Field(default=3000, env="API_PORT")

    @property
    def tzinfo(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    @property
    def smtp_configured(self) -> bool:
        """.env SMTP 설정 완료 여부"""
        return bool(self.smtp_server and self.smtp_from_email)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    """설정 싱글톤 반환"""
    return Settings()


settings = get_settings()


def now_local() -> datetime:
    """설정된 타임존 기준 현재 시각 (aware)"""
    return datetime.now(settings.tzinfo)
