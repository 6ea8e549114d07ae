"""
학습 세션 비즈니스 로직
- 세션 시작/이어하기/재시작/완료/초기화
- 다음 문제 선택 (진행도 계산 + 가중치 선택)
- 답변 기록, 문제 직접 선택, 확률 리포트
"""
import logging
import random
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Session

from app.models.study_session import StudySession
from app.services import store
from app.services.clock import Clock, utcnow
from app.services.errors import (
    InvalidMode,
    InvalidRating,
    NoActiveSession,
    NotSelectable,
    QuestionNotFound,
    QuestionSetNotFound,
)
from app.services.progress import (
    MAX_RATING,
    SessionProgress,
    build_history,
    calculate_progress,
)
from app.services.selector import (
    FRONT_TO_END,
    MODES,
    ProbabilityReport,
    hypothetical_report,
    probability_report,
    select_next_question,
)

logger = logging.getLogger(__name__)


@dataclass
class StartResult:
    session: StudySession
    is_resumed: bool


@dataclass
class NextQuestion:
    question: Optional[object]
    question_number: Optional[int]
    previous_score: Optional[int]
    session_complete: bool
    progress: SessionProgress


@dataclass
class SessionStatus:
    has_active_session: bool
    session_complete: bool
    progress: Optional[SessionProgress]


def validate_mode(mode: str) -> str:
    if mode not in MODES:
        raise InvalidMode(f"mode must be one of: {', '.join(MODES)}")
    return mode


def validate_rating(rating: int) -> int:
    if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= MAX_RATING:
        raise InvalidRating(f"rating must be an integer between 1 and {MAX_RATING}")
    return rating


class StudySessionService:
    """학습 세션 관련 비즈니스 로직. commit 은 호출한 쪽(get_db)이 한다."""

    def __init__(self, db: Session, now: Clock = utcnow, rng: Optional[random.Random] = None):
        self.db = db
        self.now = now
        self.rng = rng or random.Random()

    # ---- 세션 생명주기 ----

    def start_or_resume(self, user_id: str, question_set_id: int, mode: str) -> StartResult:
        """
        진행 중 세션이 있으면 그대로 돌려주고(멱등), 없으면 새로 만든다.

        Raises:
            InvalidMode, QuestionSetNotFound
        """
        validate_mode(mode)
        if store.get_question_set(self.db, question_set_id) is None:
            raise QuestionSetNotFound(f"question set {question_set_id} does not exist")

        existing = store.find_open_session(self.db, user_id, question_set_id)
        if existing is not None:
            answers = store.list_answers(self.db, existing.id)
            return StartResult(session=existing, is_resumed=bool(answers))

        session = store.create_session(self.db, user_id, question_set_id, mode, self.now())
        logger.info(
            "[STUDY] session created id=%s user=%s set=%s mode=%s",
            session.id, user_id, question_set_id, mode,
        )
        return StartResult(session=session, is_resumed=False)

    def complete_session(self, user_id: str, question_set_id: int) -> int:
        count = store.mark_completed(self.db, user_id, question_set_id, self.now())
        logger.info("[STUDY] completed %d open session(s) user=%s set=%s", count, user_id, question_set_id)
        return count

    def restart_session(self, user_id: str, question_set_id: int, mode: str) -> StartResult:
        validate_mode(mode)
        self.complete_session(user_id, question_set_id)
        return self.start_or_resume(user_id, question_set_id, mode)

    def reset_session(self, user_id: str, question_set_id: int, mode: Optional[str] = None) -> StartResult:
        """
        (user, set) 의 세션(완료 포함) + 답변 + 타이머/이벤트를 모두 지우고 새 세션을 만든다.
        한 트랜잭션 안에서 실행되어야 하며 중간에 실패하면 get_db 가 전부 롤백한다.
        """
        mode = validate_mode(mode or FRONT_TO_END)
        if store.get_question_set(self.db, question_set_id) is None:
            raise QuestionSetNotFound(f"question set {question_set_id} does not exist")

        session_ids = [s.id for s in store.list_sessions(self.db, user_id, question_set_id)]
        if session_ids:
            timers = store.delete_timers_for_sessions(self.db, session_ids)
            answers = store.delete_answers_for_sessions(self.db, session_ids)
            store.delete_sessions(self.db, session_ids)
            self.db.flush()
            logger.info(
                "[STUDY] reset user=%s set=%s sessions=%d answers=%d timers=%d",
                user_id, question_set_id, len(session_ids), answers, timers,
            )
        else:
            logger.info("[STUDY] reset user=%s set=%s: no sessions to delete", user_id, question_set_id)

        return self.start_or_resume(user_id, question_set_id, mode)

    # ---- 문제 선택 ----

    def _require_open_session(self, user_id: str, question_set_id: int) -> StudySession:
        session = store.find_open_session(self.db, user_id, question_set_id)
        if session is None:
            raise NoActiveSession("No active study session found")
        return session

    def _load(self, user_id: str, question_set_id: int):
        session = self._require_open_session(user_id, question_set_id)
        questions = store.list_questions(self.db, question_set_id)
        history = build_history(store.list_answers(self.db, session.id))
        return session, questions, history

    def get_next_question(self, user_id: str, question_set_id: int) -> NextQuestion:
        session, questions, history = self._load(user_id, question_set_id)
        progress = calculate_progress(questions, history)

        if progress.is_complete:
            return NextQuestion(None, None, None, True, progress)

        question = select_next_question(questions, history, session.mode, self.rng)
        if question is None:
            # 진행도와 선택기가 어긋나는 경우는 완료로 취급
            return NextQuestion(None, None, None, True, progress)

        return NextQuestion(
            question=question,
            question_number=questions.index(question) + 1,
            previous_score=history.rating_of(question.id),
            session_complete=False,
            progress=progress,
        )

    def get_status(self, user_id: str, question_set_id: int) -> SessionStatus:
        """진행 중 세션이 없으면 에러 대신 has_active_session=False."""
        try:
            _, questions, history = self._load(user_id, question_set_id)
        except NoActiveSession:
            return SessionStatus(has_active_session=False, session_complete=False, progress=None)
        progress = calculate_progress(questions, history)
        return SessionStatus(
            has_active_session=not progress.is_complete,
            session_complete=progress.is_complete,
            progress=progress,
        )

    def submit_answer(self, user_id: str, question_set_id: int, question_id: int, rating: int):
        """답변 기록만 한다. 다음 문제는 호출 쪽에서 다시 조회."""
        validate_rating(rating)
        session = self._require_open_session(user_id, question_set_id)
        if not any(q.id == question_id for q in store.list_questions(self.db, question_set_id)):
            raise QuestionNotFound(f"question {question_id} is not in set {question_set_id}")

        answer = store.append_answer(self.db, session.id, question_id, rating, self.now())
        logger.info(
            "[STUDY] answer session=%s question=%s rating=%s", session.id, question_id, rating
        )
        return answer

    def select_question(self, user_id: str, question_set_id: int, question_id: int) -> NextQuestion:
        session, questions, history = self._load(user_id, question_set_id)

        report = probability_report(questions, history, session.mode)
        row = report.find(question_id)
        if row is None:
            raise QuestionNotFound(f"question {question_id} is not in set {question_set_id}")
        if not row.is_selectable:
            raise NotSelectable("Question is not currently selectable due to recency penalty")

        return NextQuestion(
            question=row.question,
            question_number=row.question_number,
            previous_score=row.last_rating,
            session_complete=False,
            progress=calculate_progress(questions, history),
        )

    # ---- 확률 리포트 ----

    def get_probabilities(self, user_id: str, question_set_id: int) -> ProbabilityReport:
        session, questions, history = self._load(user_id, question_set_id)
        return probability_report(questions, history, session.mode)

    def get_hypothetical_probabilities(
        self, user_id: str, question_set_id: int, question_id: int, rating: int
    ) -> ProbabilityReport:
        validate_rating(rating)
        session, questions, history = self._load(user_id, question_set_id)
        if not any(q.id == question_id for q in questions):
            raise QuestionNotFound(f"question {question_id} is not in set {question_set_id}")
        return hypothetical_report(questions, history, session.mode, question_id, rating)
