# app/models/question.py
# 문제집/문제 모델. CRUD 는 외부 모듈 담당이고 학습 엔진은 읽기만 한다.
from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Index, func
from sqlalchemy.orm import relationship
from app.db.session import Base, BigId


class QuestionSet(Base):
    __tablename__ = "question_sets"

    id = Column(BigId, primary_key=True, index=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)

    created_at = Column(DateTime, nullable=False, server_default=func.now())

    # 관계
    questions = relationship(
        "Question",
        back_populates="question_set",
        cascade="all, delete-orphan",
    )


class Question(Base):
    __tablename__ = "questions"

    id = Column(BigId, primary_key=True, index=True)
    question_set_id = Column(BigId, ForeignKey("question_sets.id"), nullable=False)

    question_text = Column(Text, nullable=False)
    answer_text = Column(Text, nullable=False)

    # 앞에서부터(front-to-end) 순서의 기준
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=True, onupdate=func.now())

    __table_args__ = (
        Index("ix_questions_set_id_created_at", "question_set_id", "created_at"),
    )

    question_set = relationship("QuestionSet", back_populates="questions")
