# app/routers/timer.py
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.config import settings
from app.deps import get_db, get_current_user, get_clock
from app.schemas.timer import TimerConfigIn, AdvanceIn, TimerOut, TimerStatsOut
from app.services.timer_service import TimerConfig, TimerService, describe

router = APIRouter(prefix="/api/study-sessions/{question_set_id}/timer", tags=["timer"])


def get_timer_service(
    db: Session = Depends(get_db),
    now=Depends(get_clock),
) -> TimerService:
    return TimerService(
        db,
        now=now,
        default_work_duration=settings.timer_work_duration,
        default_rest_duration=settings.timer_rest_duration,
        auto_advance_debounce=settings.auto_advance_debounce_seconds,
    )


def _timer_out(service: TimerService, timer) -> dict:
    if timer is None:
        return {"timer": None}

    view = describe(timer, service.now())
    return {
        "timer": {
            "id": timer.id,
            "current_phase": timer.current_phase,
            "previous_phase": timer.previous_phase,
            "phase_started_at": timer.phase_started_at,
            "cycles_completed": timer.cycles_completed,
            "total_work_time": timer.total_work_time,
            "total_rest_time": timer.total_rest_time,
            "work_duration": timer.work_duration,
            "rest_duration": timer.rest_duration,
            "is_infinite": timer.is_infinite,
            "elapsed_in_phase": view.elapsed_in_phase,
            "remaining_in_phase": view.remaining_in_phase,
            "should_advance": view.should_advance,
            "display": view.display,
        }
    }

def _to_config(payload: Optional[TimerConfigIn]) -> TimerConfig:
    if payload is None:
        return TimerConfig()
    return TimerConfig(
        work_duration=payload.work_duration,
        rest_duration=payload.rest_duration,
        is_infinite=payload.is_infinite,
    )


# 시작 / 재개
@router.post("/start", response_model=TimerOut)
def start_timer(
    question_set_id: int,
    payload: Optional[TimerConfigIn] = None,
    user=Depends(get_current_user),
    service: TimerService = Depends(get_timer_service),
):
    timer = service.start(user["id"], question_set_id, _to_config(payload))
    return _timer_out(service, timer)

# 일시정지
@router.post("/pause", response_model=TimerOut)
def pause_timer(
    question_set_id: int,
    user=Depends(get_current_user),
    service: TimerService = Depends(get_timer_service),
):
    return _timer_out(service, service.pause(user["id"], question_set_id))

# 다음 phase 로 (수동 / 폴링 자동)
@router.post("/advance", response_model=TimerOut)
def advance_timer(
    question_set_id: int,
    payload: Optional[AdvanceIn] = None,
    user=Depends(get_current_user),
    service: TimerService = Depends(get_timer_service),
):
    automatic = payload.automatic if payload else False
    return _timer_out(service, service.advance(user["id"], question_set_id, automatic=automatic))

# 종료
@router.post("/stop", response_model=TimerOut)
def stop_timer(
    question_set_id: int,
    user=Depends(get_current_user),
    service: TimerService = Depends(get_timer_service),
):
    return _timer_out(service, service.stop(user["id"], question_set_id))

# 폴링용 현재 상태 (타이머 없으면 timer: null)
@router.get("/state", response_model=TimerOut)
def get_timer_state(
    question_set_id: int,
    user=Depends(get_current_user),
    service: TimerService = Depends(get_timer_service),
):
    return _timer_out(service, service.get_state(user["id"], question_set_id))

# 설정 변경
@router.put("/config", response_model=TimerOut)
def update_timer_config(
    question_set_id: int,
    payload: TimerConfigIn,
    user=Depends(get_current_user),
    service: TimerService = Depends(get_timer_service),
):
    timer = service.update_config(user["id"], question_set_id, _to_config(payload))
    return _timer_out(service, timer)

# 통계 (누적 시간 + 이벤트 로그)
@router.get("/stats", response_model=TimerStatsOut)
def get_timer_stats(
    question_set_id: int,
    user=Depends(get_current_user),
    service: TimerService = Depends(get_timer_service),
):
    stats = service.get_stats(user["id"], question_set_id)
    return {
        "total_work_time": stats.total_work_time,
        "total_rest_time": stats.total_rest_time,
        "total_time": stats.total_time,
        "cycles_completed": stats.cycles_completed,
        "work_percentage": stats.work_percentage,
        "current_phase": stats.current_phase,
        "events": stats.events,
    }
