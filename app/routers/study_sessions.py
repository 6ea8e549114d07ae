# app/routers/study_sessions.py
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.config import settings
from app.deps import get_db, get_current_user, get_clock, get_rng
from app.schemas.study_session import (
    StartSessionRequest,
    SessionModeRequest,
    SubmitAnswerRequest,
    SelectQuestionRequest,
    HypotheticalProbabilitiesRequest,
    StudySessionOut,
    NextQuestionOut,
    SessionStatusOut,
    SubmitAnswerOut,
    CompleteSessionOut,
    QuestionProbabilitiesOut,
)
from app.services.study_session_service import StudySessionService

router = APIRouter(prefix="/api/study-sessions", tags=["study-sessions"])


def get_service(
    db: Session = Depends(get_db),
    now=Depends(get_clock),
    rng=Depends(get_rng),
) -> StudySessionService:
    return StudySessionService(db, now=now, rng=rng)


# ---------- Helpers ----------
def _session_out(result) -> dict:
    s = result.session
    return {
        "id": s.id,
        "question_set_id": s.question_set_id,
        "mode": s.mode,
        "started_at": s.started_at,
        "is_resumed": result.is_resumed,
    }

def _next_question_out(result) -> dict:
    return {
        "question": result.question,
        "question_number": result.question_number,
        "previous_score": result.previous_score,
        "session_complete": result.session_complete,
        "progress": result.progress,
    }

def _probabilities_out(report) -> dict:
    return {
        "questions": [
            {
                "id": row.question.id,
                "question_text": row.question.question_text,
                "question_number": row.question_number,
                "last_attempt": (
                    {"user_rating": row.last_rating} if row.last_rating is not None else None
                ),
                "weight": row.weight,
                "selection_probability": row.selection_probability,
                "is_selectable": row.is_selectable,
            }
            for row in report.questions
        ],
        "total_weight": report.total_weight,
        "current_question_id": report.current_question_id,
    }


# ---------- Endpoints ----------

# 세션 시작 (진행 중 세션이 있으면 이어하기)
@router.post("/start", response_model=StudySessionOut)
def start_session(
    payload: StartSessionRequest,
    user=Depends(get_current_user),
    service: StudySessionService = Depends(get_service),
):
    result = service.start_or_resume(user["id"], payload.question_set_id, payload.mode)
    return _session_out(result)

# 세션 상태 (진행 중 세션이 없어도 200)
@router.get("/{question_set_id}/status", response_model=SessionStatusOut)
def get_session_status(
    question_set_id: int,
    user=Depends(get_current_user),
    service: StudySessionService = Depends(get_service),
):
    status = service.get_status(user["id"], question_set_id)
    return {
        "has_active_session": status.has_active_session,
        "session_complete": status.session_complete,
        "progress": status.progress,
    }

# 다음 문제
@router.get("/{question_set_id}/next-question", response_model=NextQuestionOut)
def get_next_question(
    question_set_id: int,
    user=Depends(get_current_user),
    service: StudySessionService = Depends(get_service),
):
    return _next_question_out(service.get_next_question(user["id"], question_set_id))

# 답변 제출 (다음 문제는 next-question 으로 다시 조회)
@router.post("/{question_set_id}/submit-answer", response_model=SubmitAnswerOut)
def submit_answer(
    question_set_id: int,
    payload: SubmitAnswerRequest,
    user=Depends(get_current_user),
    service: StudySessionService = Depends(get_service),
):
    answer = service.submit_answer(
        user["id"], question_set_id, payload.question_id, payload.confidence_rating
    )
    return {"success": True, "answer_id": answer.id}

# 세션 완료
@router.post("/{question_set_id}/complete", response_model=CompleteSessionOut)
def complete_session(
    question_set_id: int,
    user=Depends(get_current_user),
    service: StudySessionService = Depends(get_service),
):
    count = service.complete_session(user["id"], question_set_id)
    return {"success": True, "completed_sessions": count}

# 재시작 (기존 세션 완료 + 새 세션)
@router.post("/{question_set_id}/restart", response_model=StudySessionOut)
def restart_session(
    question_set_id: int,
    payload: Optional[SessionModeRequest] = None,
    user=Depends(get_current_user),
    service: StudySessionService = Depends(get_service),
):
    mode = (payload.mode if payload else None) or settings.default_study_mode
    return _session_out(service.restart_session(user["id"], question_set_id, mode))

# 초기화 (세션/답변/타이머 전부 삭제 후 새 세션)
@router.post("/{question_set_id}/reset", response_model=StudySessionOut)
def reset_session(
    question_set_id: int,
    payload: Optional[SessionModeRequest] = None,
    user=Depends(get_current_user),
    service: StudySessionService = Depends(get_service),
):
    mode = (payload.mode if payload else None) or settings.default_study_mode
    return _session_out(service.reset_session(user["id"], question_set_id, mode))

# 사이드바: 문제별 선택 확률
@router.get("/{question_set_id}/questions-probabilities", response_model=QuestionProbabilitiesOut)
def get_questions_probabilities(
    question_set_id: int,
    user=Depends(get_current_user),
    service: StudySessionService = Depends(get_service),
):
    return _probabilities_out(service.get_probabilities(user["id"], question_set_id))

# 문제 직접 선택
@router.post("/{question_set_id}/select-question", response_model=NextQuestionOut)
def select_question(
    question_set_id: int,
    payload: SelectQuestionRequest,
    user=Depends(get_current_user),
    service: StudySessionService = Depends(get_service),
):
    return _next_question_out(
        service.select_question(user["id"], question_set_id, payload.question_id)
    )

# 평점 미리보기 (저장하지 않음)
@router.post("/{question_set_id}/hypothetical-probabilities", response_model=QuestionProbabilitiesOut)
def get_hypothetical_probabilities(
    question_set_id: int,
    payload: HypotheticalProbabilitiesRequest,
    user=Depends(get_current_user),
    service: StudySessionService = Depends(get_service),
):
    report = service.get_hypothetical_probabilities(
        user["id"], question_set_id, payload.question_id, payload.hypothetical_rating
    )
    return _probabilities_out(report)
