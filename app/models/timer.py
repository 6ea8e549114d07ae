# app/models/timer.py
# 뽀모도로 타이머 상태 + 이벤트 로그
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Index
from app.db.session import Base, BigId


class TimerSession(Base):
    __tablename__ = "timer_sessions"

    id = Column(BigId, primary_key=True, index=True)
    study_session_id = Column(BigId, ForeignKey("study_sessions.id"), nullable=False, index=True)
    user_id = Column(String(64), nullable=False)

    # 설정 (초)
    work_duration = Column(Integer, nullable=False, default=1500)
    rest_duration = Column(Integer, nullable=False, default=300)
    is_infinite = Column(Boolean, nullable=False, default=False)

    # 상태
    current_phase = Column(String(20), nullable=False, default="work")  # work|rest|paused|completed
    previous_phase = Column(String(20), nullable=True)     # paused 동안만 값이 있음
    phase_started_at = Column(DateTime, nullable=True)     # paused/completed 이면 None
    elapsed_time_in_phase = Column(Integer, nullable=False, default=0)
    # 현재 phase 에서 이미 누적(total_*)에 더한 초. resume 후 다시 pause 할 때 중복 합산 방지
    banked_in_phase = Column(Integer, nullable=False, default=0)

    # 누적 (초)
    total_work_time = Column(Integer, nullable=False, default=0)
    total_rest_time = Column(Integer, nullable=False, default=0)
    cycles_completed = Column(Integer, nullable=False, default=0)

    started_at = Column(DateTime, nullable=False)
    completed_at = Column(DateTime, nullable=True)


class TimerEvent(Base):
    __tablename__ = "timer_events"

    id = Column(BigId, primary_key=True, index=True)
    timer_session_id = Column(BigId, ForeignKey("timer_sessions.id"), nullable=False)
    event_type = Column(String(20), nullable=False)  # start|pause|resume|phase_change|cycle_complete|stop
    from_phase = Column(String(20), nullable=True)
    to_phase = Column(String(20), nullable=True)
    duration = Column(Integer, nullable=False, default=0)  # 떠나는 phase 에서 보낸 시간
    timestamp = Column(DateTime, nullable=False)

    __table_args__ = (
        Index("ix_timer_events_timer_session_id_timestamp", "timer_session_id", "timestamp"),
    )
