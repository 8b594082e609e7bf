"""
설정 관리 API - SMTP 설정
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ....core.database import get_db
from ....core.permissions import Permission, require_permission
from ....schemas.alarm import SMTPConfigUpdate, SMTPConfigResponse
from ....services import config_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/config", tags=["설정 관리"])


@router.get("/smtp", response_model=SMTPConfigResponse)
def get_smtp_config(db: Session = Depends(get_db)):
    """SMTP 설정 조회 (DB → .env fallback, 미설정 시 빈 값)"""
    row = config_service.get_smtp_row(db)
    if row:
        return row
    smtp = config_service.get_smtp_settings(db)
    if smtp:
        return SMTPConfigResponse(server=smtp.server, port=smtp.port, from_email=smtp.from_email)
    return SMTPConfigResponse(server="", port=25, from_email="")


@router.put(
    "/smtp",
    response_model=SMTPConfigResponse,
    dependencies=[Depends(require_permission(Permission.ACCESS_SETTINGS))],
)
def update_smtp_config(data: SMTPConfigUpdate, db: Session = Depends(get_db)):
    """SMTP 설정 저장 (전체 교체)"""
    return config_service.update_smtp_config(db, data.server, data.port, str(data.from_email))
