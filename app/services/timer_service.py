"""
뽀모도로 타이머 상태 머신
- work -> rest -> work ... (rest -> work 마다 cycles_completed + 1)
- pause 시 현재 phase 경과 시간을 저장해 두었다가 resume 때
  phase_started_at = now - 경과시간 으로 되돌린다 (가상 시작 시각)
- 백그라운드 스레드 없음. 자동 전환은 클라이언트 폴링이 advance(automatic=True) 로 요청
- 모든 시간은 정수 초
- 상태를 바꾸는 연산은 타이머 행을 잠그고(FOR UPDATE) DB 값으로 다시 읽은 뒤 판단한다
  (두 탭이 같은 만료를 보고 동시에 advance 해도 한 번만 전환)
"""
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from sqlalchemy.orm import Session

from app.models.study_session import StudySession
from app.models.timer import TimerEvent, TimerSession
from app.services import store
from app.services.clock import Clock, elapsed_seconds, seconds_before, utcnow
from app.services.errors import InvalidTimerTransition, NoActiveSession, NoActiveTimer

logger = logging.getLogger(__name__)

WORK = "work"
REST = "rest"
PAUSED = "paused"
COMPLETED = "completed"

RUNNING_PHASES = (WORK, REST)


@dataclass
class TimerConfig:
    work_duration: Optional[int] = None
    rest_duration: Optional[int] = None
    is_infinite: Optional[bool] = None


@dataclass
class TimerView:
    timer: TimerSession
    elapsed_in_phase: int
    remaining_in_phase: int
    should_advance: bool
    display: str


@dataclass
class TimerStats:
    total_work_time: int
    total_rest_time: int
    total_time: int
    cycles_completed: int
    work_percentage: int
    current_phase: str
    events: List[TimerEvent] = field(default_factory=list)


def format_display(seconds: int) -> str:
    hours, rest = divmod(max(0, seconds), 3600)
    minutes, secs = divmod(rest, 60)
    if hours > 0:
        return f"{hours:02d}:{minutes:02d}:{secs:02d}"
    return f"{minutes:02d}:{secs:02d}"


def phase_duration(timer: TimerSession, phase: Optional[str]) -> int:
    if phase == WORK:
        return timer.work_duration
    if phase == REST:
        return timer.rest_duration
    return 0


def describe(timer: TimerSession, now) -> TimerView:
    """화면 표시용 경과/남은 시간. 일시정지 중에는 저장된 경과 시간 기준."""
    if timer.current_phase in RUNNING_PHASES:
        phase = timer.current_phase
        elapsed = elapsed_seconds(timer.phase_started_at, now)
    elif timer.current_phase == PAUSED:
        phase = timer.previous_phase or WORK
        elapsed = timer.elapsed_time_in_phase or 0
    else:
        phase = None
        elapsed = 0

    remaining = max(0, phase_duration(timer, phase) - elapsed) if phase else 0
    should_advance = (
        timer.current_phase in RUNNING_PHASES and not timer.is_infinite and remaining == 0
    )
    display = format_display(elapsed if timer.is_infinite else remaining)

    return TimerView(
        timer=timer,
        elapsed_in_phase=elapsed,
        remaining_in_phase=remaining,
        should_advance=should_advance,
        display=display,
    )


class TimerService:
    """학습 세션에 붙는 타이머. commit 은 호출한 쪽(get_db)이 한다."""

    def __init__(
        self,
        db: Session,
        now: Clock = utcnow,
        default_work_duration: int = 1500,
        default_rest_duration: int = 300,
        auto_advance_debounce: int = 3,
    ):
        self.db = db
        self.now = now
        self.default_work_duration = default_work_duration
        self.default_rest_duration = default_rest_duration
        self.auto_advance_debounce = auto_advance_debounce

    # ---- 조회 ----

    def _require_study_session(self, user_id: str, question_set_id: int) -> StudySession:
        session = store.find_open_session(self.db, user_id, question_set_id)
        if session is None:
            raise NoActiveSession("No active study session found")
        return session

    def _require_open_timer(self, user_id: str, question_set_id: int, lock: bool = False) -> TimerSession:
        session = self._require_study_session(user_id, question_set_id)
        timer = store.find_open_timer(self.db, session.id, for_update=lock)
        if timer is None:
            raise NoActiveTimer("No active timer session found")
        return timer

    def get_state(self, user_id: str, question_set_id: int) -> Optional[TimerSession]:
        """폴링용. 타이머가 아직 없으면 None."""
        session = self._require_study_session(user_id, question_set_id)
        return store.find_open_timer(self.db, session.id)

    def get_stats(self, user_id: str, question_set_id: int) -> TimerStats:
        timer = self._require_open_timer(user_id, question_set_id)
        total = timer.total_work_time + timer.total_rest_time
        return TimerStats(
            total_work_time=timer.total_work_time,
            total_rest_time=timer.total_rest_time,
            total_time=total,
            cycles_completed=timer.cycles_completed,
            work_percentage=(timer.total_work_time * 100 // total) if total > 0 else 0,
            current_phase=timer.current_phase,
            events=store.list_timer_events(self.db, timer.id),
        )

    # ---- 상태 전이 ----

    def start(self, user_id: str, question_set_id: int, config: Optional[TimerConfig] = None) -> TimerSession:
        """
        - 타이머 없음: work 로 새로 시작
        - paused: 이전 phase 로 재개 (경과 시간 유지)
        - 이미 동작 중: 설정만 반영, 시계는 그대로
        """
        config = config or TimerConfig()
        session = self._require_study_session(user_id, question_set_id)
        timer = store.find_open_timer(self.db, session.id, for_update=True)
        now = self.now()

        if timer is None:
            timer = store.create_timer(
                self.db,
                TimerSession(
                    study_session_id=session.id,
                    user_id=user_id,
                    work_duration=config.work_duration or self.default_work_duration,
                    rest_duration=config.rest_duration or self.default_rest_duration,
                    is_infinite=bool(config.is_infinite),
                    current_phase=WORK,
                    previous_phase=None,
                    phase_started_at=now,
                    elapsed_time_in_phase=0,
                    banked_in_phase=0,
                    total_work_time=0,
                    total_rest_time=0,
                    cycles_completed=0,
                    started_at=now,
                ),
            )
            self._log_event(timer, "start", None, WORK, 0, now)
            logger.info("[TIMER] created timer=%s study_session=%s", timer.id, session.id)
            return timer

        if timer.current_phase == PAUSED:
            resumed_phase = timer.previous_phase or WORK
            elapsed = timer.elapsed_time_in_phase or 0

            timer.current_phase = resumed_phase
            timer.phase_started_at = seconds_before(now, elapsed)
            timer.previous_phase = None
            timer.elapsed_time_in_phase = 0
            store.update_timer(self.db, timer)

            self._log_event(timer, "resume", PAUSED, resumed_phase, 0, now)
            logger.info("[TIMER] resumed timer=%s phase=%s elapsed=%ds", timer.id, resumed_phase, elapsed)
            return timer

        self._apply_config(timer, config, now)
        return store.update_timer(self.db, timer)

    def pause(self, user_id: str, question_set_id: int) -> TimerSession:
        timer = self._require_open_timer(user_id, question_set_id, lock=True)
        if timer.current_phase == PAUSED:
            # 중복 요청 (탭 두 개 등) 은 그대로 돌려준다
            return timer

        now = self.now()
        leaving = timer.current_phase
        spent = self._bank_time(timer, now)

        timer.current_phase = PAUSED
        timer.previous_phase = leaving
        timer.elapsed_time_in_phase = spent
        timer.phase_started_at = None
        store.update_timer(self.db, timer)

        self._log_event(timer, "pause", leaving, PAUSED, spent, now)
        logger.info("[TIMER] paused timer=%s phase=%s spent=%ds", timer.id, leaving, spent)
        return timer

    def advance(self, user_id: str, question_set_id: int, automatic: bool = False) -> TimerSession:
        """
        work -> rest, rest -> work.

        Args:
            automatic: 클라이언트 폴링이 만료를 감지해서 보낸 요청.
                무한 모드, 아직 만료 전, phase 시작 직후(debounce) 이면 아무것도 하지 않는다.

        Raises:
            NoActiveTimer, InvalidTimerTransition (paused)
        """
        timer = self._require_open_timer(user_id, question_set_id, lock=True)
        if timer.current_phase not in RUNNING_PHASES:
            raise InvalidTimerTransition(
                f"cannot advance from '{timer.current_phase}', resume the timer first"
            )

        now = self.now()
        if automatic and not self._auto_advance_due(timer, now):
            return timer

        leaving = timer.current_phase
        spent = self._bank_time(timer, now)

        if leaving == WORK:
            next_phase = REST
        else:
            next_phase = WORK
            timer.cycles_completed += 1
            self._log_event(timer, "cycle_complete", REST, WORK, 0, now)

        timer.current_phase = next_phase
        timer.phase_started_at = now
        timer.banked_in_phase = 0
        store.update_timer(self.db, timer)

        self._log_event(timer, "phase_change", leaving, next_phase, spent, now)
        logger.info(
            "[TIMER] advanced timer=%s %s->%s spent=%ds cycles=%d automatic=%s",
            timer.id, leaving, next_phase, spent, timer.cycles_completed, automatic,
        )
        return timer

    def stop(self, user_id: str, question_set_id: int) -> TimerSession:
        timer = self._require_open_timer(user_id, question_set_id, lock=True)
        now = self.now()

        leaving = timer.current_phase
        spent = self._bank_time(timer, now)

        timer.current_phase = COMPLETED
        timer.previous_phase = None
        timer.elapsed_time_in_phase = 0
        timer.phase_started_at = None
        timer.completed_at = now
        timer.banked_in_phase = 0
        store.update_timer(self.db, timer)

        self._log_event(timer, "stop", leaving, COMPLETED, spent, now)
        logger.info(
            "[TIMER] stopped timer=%s work=%ds rest=%ds cycles=%d",
            timer.id, timer.total_work_time, timer.total_rest_time, timer.cycles_completed,
        )
        return timer

    def update_config(self, user_id: str, question_set_id: int, config: TimerConfig) -> TimerSession:
        timer = self._require_open_timer(user_id, question_set_id, lock=True)
        self._apply_config(timer, config, self.now())
        return store.update_timer(self.db, timer)

    # ---- 내부 ----

    def _apply_config(self, timer: TimerSession, config: TimerConfig, now) -> None:
        mode_changing = config.is_infinite is not None and config.is_infinite != timer.is_infinite

        if config.work_duration is not None:
            timer.work_duration = config.work_duration
        if config.rest_duration is not None:
            timer.rest_duration = config.rest_duration
        if config.is_infinite is not None:
            timer.is_infinite = config.is_infinite

        # 무한 <-> 시간제 전환 시 바로 만료되지 않도록 phase 시작 시각을 다시 잡는다
        if mode_changing and timer.current_phase in RUNNING_PHASES:
            self._bank_time(timer, now)
            timer.banked_in_phase = 0
            timer.phase_started_at = now
            logger.info("[TIMER] infinite=%s, phase clock reset timer=%s", timer.is_infinite, timer.id)

        logger.info(
            "[TIMER] config timer=%s infinite=%s work=%s rest=%s",
            timer.id, timer.is_infinite, timer.work_duration, timer.rest_duration,
        )

    def _bank_time(self, timer: TimerSession, now) -> int:
        """
        현재 phase 경과 시간 중 아직 누적되지 않은 부분을 work/rest 누적에 더한다.
        반환값은 phase 전체 경과 시간 (resume 전 구간 포함).
        """
        in_phase = elapsed_seconds(timer.phase_started_at, now)
        delta = max(0, in_phase - (timer.banked_in_phase or 0))
        if timer.current_phase == WORK:
            timer.total_work_time += delta
        elif timer.current_phase == REST:
            timer.total_rest_time += delta
        timer.banked_in_phase = in_phase
        return in_phase

    def _auto_advance_due(self, timer: TimerSession, now) -> bool:
        elapsed = elapsed_seconds(timer.phase_started_at, now)
        if timer.is_infinite:
            logger.warning("[TIMER] auto-advance ignored, infinite mode timer=%s", timer.id)
            return False
        if elapsed < self.auto_advance_debounce:
            logger.warning("[TIMER] duplicate auto-advance ignored timer=%s elapsed=%ds", timer.id, elapsed)
            return False
        if elapsed < phase_duration(timer, timer.current_phase):
            logger.warning("[TIMER] auto-advance before expiry ignored timer=%s elapsed=%ds", timer.id, elapsed)
            return False
        return True

    def _log_event(self, timer: TimerSession, event_type: str, from_phase, to_phase, duration: int, now) -> None:
        store.append_timer_event(self.db, timer.id, event_type, from_phase, to_phase, duration, now)
