from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import Optional, List

# -- Request --

# 타이머 설정 (초). 생략한 값은 유지 / 새 타이머면 기본값
class TimerConfigIn(BaseModel):
    work_duration: Optional[int] = Field(None, gt=0, description="집중 시간(초)")
    rest_duration: Optional[int] = Field(None, gt=0, description="휴식 시간(초)")
    is_infinite: Optional[bool] = Field(None, description="자동 전환 끄기")

class AdvanceIn(BaseModel):
    automatic: bool = Field(False, description="폴링이 만료를 감지해서 보낸 요청이면 true")


# -- Response --

class TimerStateOut(BaseModel):
    id: int
    current_phase: str
    previous_phase: Optional[str] = None
    phase_started_at: Optional[datetime] = None
    cycles_completed: int
    total_work_time: int
    total_rest_time: int
    work_duration: int
    rest_duration: int
    is_infinite: bool
    elapsed_in_phase: int
    remaining_in_phase: int
    should_advance: bool
    display: str

class TimerOut(BaseModel):
    timer: Optional[TimerStateOut] = None

class TimerEventOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    event_type: str
    from_phase: Optional[str] = None
    to_phase: Optional[str] = None
    duration: int
    timestamp: datetime

class TimerStatsOut(BaseModel):
    total_work_time: int
    total_rest_time: int
    total_time: int
    cycles_completed: int
    work_percentage: int
    current_phase: str
    events: List[TimerEventOut]
