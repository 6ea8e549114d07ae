from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import Optional, List

# -- Request --

# 세션 시작/이어하기
class StartSessionRequest(BaseModel):
    question_set_id: int = Field(..., description="문제집 ID")
    mode: str = Field("front-to-end", description="front-to-end | shuffle")

# 재시작/초기화 (mode 생략 시 기본값)
class SessionModeRequest(BaseModel):
    mode: Optional[str] = Field(None, description="front-to-end | shuffle")

# 답변 제출 - 평점 범위 검증은 서비스에서 (invalid_rating)
class SubmitAnswerRequest(BaseModel):
    question_id: int
    confidence_rating: int = Field(..., description="1(모름) ~ 5(완벽)")

# 문제 직접 선택
class SelectQuestionRequest(BaseModel):
    question_id: int

# "이 점수를 주면?" 미리보기
class HypotheticalProbabilitiesRequest(BaseModel):
    question_id: int
    hypothetical_rating: int


# -- Response --

class QuestionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    question_set_id: int
    question_text: str
    answer_text: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

class ProgressOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    total_questions: int
    answered_questions: int
    mastered_questions: int
    current_points: int
    max_points: int

class StudySessionOut(BaseModel):
    id: int
    question_set_id: int
    mode: str
    started_at: datetime
    is_resumed: bool

class NextQuestionOut(BaseModel):
    question: Optional[QuestionOut] = None
    question_number: Optional[int] = None
    previous_score: Optional[int] = None
    session_complete: bool
    progress: ProgressOut

class SessionStatusOut(BaseModel):
    has_active_session: bool
    session_complete: bool
    progress: Optional[ProgressOut] = None

class SubmitAnswerOut(BaseModel):
    success: bool = True
    answer_id: int

class CompleteSessionOut(BaseModel):
    success: bool = True
    completed_sessions: int

class LastAttemptOut(BaseModel):
    user_rating: int

class QuestionProbabilityOut(BaseModel):
    id: int
    question_text: str
    question_number: int
    last_attempt: Optional[LastAttemptOut] = None
    weight: float
    selection_probability: float
    is_selectable: bool

class QuestionProbabilitiesOut(BaseModel):
    questions: List[QuestionProbabilityOut]
    total_weight: float
    current_question_id: Optional[int] = None
