"""
학습 엔진 도메인 에러.
- 모두 사용자가 고칠 수 있는 입력/상태 에러이며 main.py 의 핸들러가
  {"detail": {"message": code, "detail": ...}} 형태로 내려준다.
"""


class StudyEngineError(Exception):
    code = "study_engine_error"
    status_code = 400

    def __init__(self, detail: str | None = None):
        super().__init__(detail or self.code)
        self.detail = detail or self.code


class NoActiveSession(StudyEngineError):
    code = "no_active_session"
    status_code = 404


class NoActiveTimer(StudyEngineError):
    code = "no_active_timer"
    status_code = 404


class QuestionSetNotFound(StudyEngineError):
    code = "question_set_not_found"
    status_code = 404


class QuestionNotFound(StudyEngineError):
    code = "question_not_found"
    status_code = 404


class NotSelectable(StudyEngineError):
    code = "not_selectable"
    status_code = 409


class InvalidRating(StudyEngineError):
    code = "invalid_rating"
    status_code = 400


class InvalidMode(StudyEngineError):
    code = "invalid_mode"
    status_code = 400


class InvalidTimerTransition(StudyEngineError):
    code = "invalid_timer_transition"
    status_code = 409
