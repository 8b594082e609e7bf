"""
헬스체크 및 모니터링 엔드포인트
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session
from sqlalchemy import func

from ....core.config import APP_VERSION, now_local
from ....core.database import get_db
from ....models.material import Material, MaterialStatus
from ....models.alarm_rule import AlarmRule

router = APIRouter()


@router.get("/status")
def status():
    """서버 온라인 여부"""
    return {"status": "online"}


@router.get("/health")
def health_check(request: Request, db: Session = Depends(get_db)):
    """서비스 상태 확인"""
    material_count = db.query(func.count(Material.id)).filter(
        Material.deleted == False  # noqa: E712
    ).scalar()
    deleted_count = db.query(func.count(Material.id)).filter(
        Material.deleted == True  # noqa: E712
    ).scalar()
    active_alarms = db.query(func.count(AlarmRule.id)).filter(
        AlarmRule.active == True  # noqa: E712
    ).scalar()

    alarm_scheduler = getattr(request.app.state, "alarm_scheduler", None)

    return {
        "status": "ok",
        "service": "LamiSys",
        "version": APP_VERSION,
        "timestamp": now_local().isoformat(),
        "database": {
            "materials": material_count,
            "deleted_materials": deleted_count,
            "active_alarms": active_alarms,
        },
        "scheduler": alarm_scheduler.status() if alarm_scheduler else {"running": False},
    }


@router.get("/stats")
def get_stats(db: Session = Depends(get_db)):
    """상태별 자재 통계"""
    rows = (
        db.query(Material.status, func.count(Material.id))
        .filter(Material.deleted == False)  # noqa: E712
        .group_by(Material.status)
        .all()
    )
    counts = {status.value: 0 for status in MaterialStatus}
    for status_value, count in rows:
        counts[status_value.value] = count
    return {"materials": {**counts, "total": sum(counts.values())}}
