"""
알람 규칙 CRUD + 알람 스케줄러 제어 API
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from ....core.database import get_db
from ....core.permissions import Permission, require_permission
from ....core.scheduler import AlarmScheduler
from ....alarms.condition import ConditionSyntaxError, parse_condition
from ....schemas.alarm import (
    AlarmRuleCreate, AlarmRuleUpdate, AlarmRuleResponse, AlarmRunLogResponse,
    ConditionCheckRequest, SchedulerStartRequest,
)
from ....services import alarm_service
from ....services.alarm_service import AlarmRuleNotFoundError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/alarms", tags=["alarms"])

_can_manage_alarms = Depends(require_permission(Permission.CREATE_ALARMS))


def get_alarm_scheduler(request: Request) -> AlarmScheduler:
    """앱 시작 시 주입된 알람 스케줄러"""
    alarm_scheduler = getattr(request.app.state, "alarm_scheduler", None)
    if alarm_scheduler is None:
        raise HTTPException(status_code=503, detail="알람 스케줄러가 초기화되지 않았습니다.")
    return alarm_scheduler


def _check_condition(condition):
    if condition is None or not condition.strip():
        return
    try:
        parse_condition(condition.strip())
    except ConditionSyntaxError as e:
        raise HTTPException(status_code=400, detail=f"조건식 오류: {e}")


# ============================================================
# 스케줄러 / 실행
# ============================================================

@router.get("/scheduler")
def scheduler_status(alarm_scheduler: AlarmScheduler = Depends(get_alarm_scheduler)):
    """알람 스케줄러 상태 조회"""
    return alarm_scheduler.status()


@router.post("/scheduler/start", dependencies=[_can_manage_alarms])
def start_scheduler(
    data: SchedulerStartRequest,
    alarm_scheduler: AlarmScheduler = Depends(get_alarm_scheduler),
):
    """알람 스케줄러 시작 (실행 중이면 재시작)"""
    started = alarm_scheduler.start(data.interval_minutes)
    return {"success": started, **alarm_scheduler.status()}


@router.post("/scheduler/stop", dependencies=[_can_manage_alarms])
def stop_scheduler(alarm_scheduler: AlarmScheduler = Depends(get_alarm_scheduler)):
    """알람 스케줄러 중지"""
    stopped = alarm_scheduler.stop()
    return {"success": stopped, **alarm_scheduler.status()}


@router.post("/run", dependencies=[_can_manage_alarms])
def run_alarms_now(alarm_scheduler: AlarmScheduler = Depends(get_alarm_scheduler)):
    """알람 평가 1회 수동 실행"""
    result = alarm_scheduler.runner.run_pass()
    if result is None:
        raise HTTPException(status_code=409, detail="알람 평가가 이미 실행 중입니다.")
    return result.as_dict()


@router.get("/runs", response_model=list[AlarmRunLogResponse])
def list_runs(limit: int = Query(default=20, le=100), db: Session = Depends(get_db)):
    """알람 평가 실행 이력"""
    return alarm_service.list_run_logs(db, limit)


@router.post("/validate-condition")
def validate_condition(data: ConditionCheckRequest):
    """조건식 문법 검사"""
    _check_condition(data.condition)
    return {"valid": True}


# ============================================================
# 알람 규칙
# ============================================================

@router.get("", response_model=list[AlarmRuleResponse])
def list_alarm_rules(db: Session = Depends(get_db)):
    """알람 규칙 목록 조회"""
    return alarm_service.list_alarm_rules(db)


@router.get("/{rule_id}", response_model=AlarmRuleResponse)
def get_alarm_rule(rule_id: int, db: Session = Depends(get_db)):
    try:
        return alarm_service.get_alarm_rule(db, rule_id)
    except AlarmRuleNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("", response_model=AlarmRuleResponse, status_code=201, dependencies=[_can_manage_alarms])
def create_alarm_rule(data: AlarmRuleCreate, db: Session = Depends(get_db)):
    """알람 규칙 등록"""
    _check_condition(data.condition)
    return alarm_service.create_alarm_rule(db, data.model_dump())


@router.put("/{rule_id}", response_model=AlarmRuleResponse, dependencies=[_can_manage_alarms])
def update_alarm_rule(rule_id: int, data: AlarmRuleUpdate, db: Session = Depends(get_db)):
    """알람 규칙 수정"""
    # condition, value 는 null로 해제 가능
    updates = {
        k: v for k, v in data.model_dump(exclude_unset=True).items()
        if v is not None or k in ("condition", "value")
    }
    _check_condition(updates.get("condition"))
    try:
        return alarm_service.update_alarm_rule(db, rule_id, updates)
    except AlarmRuleNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.post("/{rule_id}/toggle", response_model=AlarmRuleResponse, dependencies=[_can_manage_alarms])
def toggle_alarm_rule(rule_id: int, db: Session = Depends(get_db)):
    """알람 규칙 활성/비활성 전환"""
    try:
        return alarm_service.toggle_alarm_rule(db, rule_id)
    except AlarmRuleNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))


@router.delete("/{rule_id}", dependencies=[_can_manage_alarms])
def delete_alarm_rule(rule_id: int, db: Session = Depends(get_db)):
    """알람 규칙 삭제"""
    try:
        alarm_service.delete_alarm_rule(db, rule_id)
    except AlarmRuleNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"success": True}
