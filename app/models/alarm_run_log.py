"""
알람 평가 실행(pass) 이력 모델
"""

from datetime import datetime

from sqlalchemy import Integer, Float, DateTime, func
from sqlalchemy.orm import Mapped, mapped_column

from ..core.database import Base


class AlarmRunLog(Base):
    """알람 평가 실행 이력 테이블 (pass 당 1행)"""
    __tablename__ = "alarm_run_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # 집계 결과
    processed: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    triggered: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    errors: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    notifications_sent: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    notifications_failed: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    duration_seconds: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)

    executed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    def __repr__(self) -> str:
        return (
            f"<AlarmRunLog(id={self.id}, processed={self.processed}, "
            f"triggered={self.triggered}, errors={self.errors})>"
        )
