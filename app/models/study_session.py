# app/models/study_session.py
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Index
from app.db.session import Base, BigId


class StudySession(Base):
    __tablename__ = "study_sessions"

    id = Column(BigId, primary_key=True, index=True)
    user_id = Column(String(64), nullable=False, index=True)  # 토큰의 sub
    question_set_id = Column(BigId, ForeignKey("question_sets.id"), nullable=False)
    mode = Column(String(20), nullable=False, default="front-to-end")  # front-to-end|shuffle
    started_at = Column(DateTime, nullable=False)
    completed_at = Column(DateTime, nullable=True)

    __table_args__ = (
        # (user, set) 당 진행 중 세션은 최대 1개
        Index(
            "uq_study_sessions_open",
            "user_id",
            "question_set_id",
            unique=True,
            postgresql_where=completed_at.is_(None),
            sqlite_where=completed_at.is_(None),
        ),
    )


class SessionAnswer(Base):
    """append-only. 수정하지 않고 최신 answered_at 만 유효하다."""
    __tablename__ = "session_answers"

    id = Column(BigId, primary_key=True, index=True)
    session_id = Column(BigId, ForeignKey("study_sessions.id"), nullable=False, index=True)
    question_id = Column(BigId, ForeignKey("questions.id"), nullable=False)
    user_rating = Column(Integer, nullable=False)  # 1~5
    answered_at = Column(DateTime, nullable=False)

    __table_args__ = (
        Index("ix_session_answers_session_id_answered_at", "session_id", "answered_at"),
    )
