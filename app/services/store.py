# app/services/store.py
# 학습 엔진이 쓰는 DB 접근 함수 모음.
# flush 까지만 하고 commit 은 요청 단위로 get_db() 가 한 번에 처리한다.
from datetime import datetime
from typing import List, Optional, Sequence

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models.question import Question, QuestionSet
from app.models.study_session import SessionAnswer, StudySession
from app.models.timer import TimerEvent, TimerSession


# --question table--

# 문제집 조회
def get_question_set(db: Session, question_set_id: int) -> Optional[QuestionSet]:
    return db.get(QuestionSet, question_set_id)

# 문제집의 문제 목록 (생성 순서)
def list_questions(db: Session, question_set_id: int) -> List[Question]:
    return (
        db.query(Question)
        .filter(Question.question_set_id == question_set_id)
        .order_by(Question.created_at.asc(), Question.id.asc())
        .all()
    )


# --session_answers table--

# 세션의 답변 목록 (answered_at, 입력 순)
def list_answers(db: Session, session_id: int) -> List[SessionAnswer]:
    return (
        db.query(SessionAnswer)
        .filter(SessionAnswer.session_id == session_id)
        .order_by(SessionAnswer.answered_at.asc(), SessionAnswer.id.asc())
        .all()
    )

# 답변 추가 (append-only)
def append_answer(
    db: Session, session_id: int, question_id: int, rating: int, answered_at: datetime
) -> SessionAnswer:
    answer = SessionAnswer(
        session_id=session_id,
        question_id=question_id,
        user_rating=rating,
        answered_at=answered_at,
    )
    db.add(answer)
    db.flush()
    return answer

# 세션들의 답변 전체 삭제
def delete_answers_for_sessions(db: Session, session_ids: Sequence[int]) -> int:
    if not session_ids:
        return 0
    return (
        db.query(SessionAnswer)
        .filter(SessionAnswer.session_id.in_(session_ids))
        .delete(synchronize_session="fetch")
    )


# --study_sessions table--

# 진행 중 세션 조회 (user, set 당 최대 1개)
def find_open_session(db: Session, user_id: str, question_set_id: int) -> Optional[StudySession]:
    return (
        db.query(StudySession)
        .filter(
            StudySession.user_id == user_id,
            StudySession.question_set_id == question_set_id,
            StudySession.completed_at.is_(None),
        )
        .order_by(StudySession.started_at.desc())
        .first()
    )

# (user, set) 의 모든 세션 (완료 포함)
def list_sessions(db: Session, user_id: str, question_set_id: int) -> List[StudySession]:
    return (
        db.query(StudySession)
        .filter(
            StudySession.user_id == user_id,
            StudySession.question_set_id == question_set_id,
        )
        .all()
    )

# 세션 생성
# 동시에 두 요청이 만들면 unique index 에 걸리므로 savepoint 롤백 후 먼저 만든 쪽을 돌려준다
def create_session(
    db: Session, user_id: str, question_set_id: int, mode: str, started_at: datetime
) -> StudySession:
    session = StudySession(
        user_id=user_id,
        question_set_id=question_set_id,
        mode=mode,
        started_at=started_at,
    )
    try:
        with db.begin_nested():
            db.add(session)
    except IntegrityError:
        existing = find_open_session(db, user_id, question_set_id)
        if existing is None:
            raise
        return existing
    return session

# 진행 중 세션 전부 완료 처리
def mark_completed(db: Session, user_id: str, question_set_id: int, completed_at: datetime) -> int:
    count = (
        db.query(StudySession)
        .filter(
            StudySession.user_id == user_id,
            StudySession.question_set_id == question_set_id,
            StudySession.completed_at.is_(None),
        )
        .update({StudySession.completed_at: completed_at}, synchronize_session="fetch")
    )
    db.flush()
    return count

# 세션 삭제
def delete_sessions(db: Session, session_ids: Sequence[int]) -> int:
    if not session_ids:
        return 0
    return (
        db.query(StudySession)
        .filter(StudySession.id.in_(session_ids))
        .delete(synchronize_session="fetch")
    )


# --timer_sessions / timer_events table--

# 진행 중 타이머 조회
# for_update: 상태를 바꾸는 요청용. 행 잠금(SELECT ... FOR UPDATE) + 세션에 이미 있던 객체도 DB 값으로 다시 채운다
def find_open_timer(db: Session, study_session_id: int, for_update: bool = False) -> Optional[TimerSession]:
    query = (
        db.query(TimerSession)
        .filter(
            TimerSession.study_session_id == study_session_id,
            TimerSession.completed_at.is_(None),
        )
        .order_by(TimerSession.started_at.desc())
    )
    if for_update:
        query = query.populate_existing().with_for_update()
    return query.first()

# 타이머 생성
def create_timer(db: Session, timer: TimerSession) -> TimerSession:
    db.add(timer)
    db.flush()
    return timer

# 타이머 저장 (ORM 객체 변경분 flush)
def update_timer(db: Session, timer: TimerSession) -> TimerSession:
    db.add(timer)
    db.flush()
    return timer

# 타이머 이벤트 기록
def append_timer_event(
    db: Session,
    timer_session_id: int,
    event_type: str,
    from_phase: Optional[str],
    to_phase: Optional[str],
    duration: int,
    timestamp: datetime,
) -> TimerEvent:
    event = TimerEvent(
        timer_session_id=timer_session_id,
        event_type=event_type,
        from_phase=from_phase,
        to_phase=to_phase,
        duration=duration,
        timestamp=timestamp,
    )
    db.add(event)
    db.flush()
    return event

# 타이머 이벤트 조회 (최신순)
def list_timer_events(db: Session, timer_session_id: int) -> List[TimerEvent]:
    return (
        db.query(TimerEvent)
        .filter(TimerEvent.timer_session_id == timer_session_id)
        .order_by(TimerEvent.timestamp.desc(), TimerEvent.id.desc())
        .all()
    )

# 세션들에 딸린 타이머 + 이벤트 전체 삭제
def delete_timers_for_sessions(db: Session, study_session_ids: Sequence[int]) -> int:
    if not study_session_ids:
        return 0
    timer_ids = [
        row.id
        for row in db.query(TimerSession.id)
        .filter(TimerSession.study_session_id.in_(study_session_ids))
        .all()
    ]
    if timer_ids:
        (
            db.query(TimerEvent)
            .filter(TimerEvent.timer_session_id.in_(timer_ids))
            .delete(synchronize_session="fetch")
        )
    return (
        db.query(TimerSession)
        .filter(TimerSession.study_session_id.in_(study_session_ids))
        .delete(synchronize_session="fetch")
    )
