"""
SMTPConfig 모델 - 메일 발송 서버 설정 (단일 행)
"""

from sqlalchemy import Column, Integer, String, DateTime, func

from ..core.database import Base

SMTP_CONFIG_ID = 1


class SMTPConfig(Base):
    """SMTP 설정 (id=1 단일 행, 이력 없음)"""
    __tablename__ = "smtp_config"

    id = Column(Integer, primary_key=True, default=SMTP_CONFIG_ID)
    server = Column(String(300), nullable=False)
    port = Column(Integer, nullable=False, default=25)
    from_email = Column(String(300), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<SMTPConfig(server='{self.server}', port={self.port})>"
