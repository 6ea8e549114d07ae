"""
답변 기록 -> 최신 평점 / 진행도 계산 (순수 함수, DB 접근 없음)
- 같은 문제에 답변이 여러 개면 answered_at 기준 마지막 것만 유효
- 시각이 같으면 나중에 들어온 답변이 이긴다
"""
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

MAX_RATING = 5


@dataclass(frozen=True)
class AnswerHistory:
    # question_id -> 최신 평점
    latest: Dict[int, int] = field(default_factory=dict)
    # 마지막으로 답한 시점 기준 문제 순서 (중복 제거, 가장 최근 위치만 남김)
    sequence: Tuple[int, ...] = ()

    def rating_of(self, question_id: int) -> Optional[int]:
        return self.latest.get(question_id)

    def steps_back(self, question_id: int) -> Optional[int]:
        """방금 답한 문제가 1. 한 번도 답하지 않았으면 None."""
        try:
            index = self.sequence.index(question_id)
        except ValueError:
            return None
        return len(self.sequence) - index

    @property
    def last_question_id(self) -> Optional[int]:
        return self.sequence[-1] if self.sequence else None

    def with_answer(self, question_id: int, rating: int) -> "AnswerHistory":
        """저장하지 않은 가상의 답변 하나를 반영한 새 기록 (원본은 그대로)."""
        latest = dict(self.latest)
        latest[question_id] = rating
        sequence = tuple(q for q in self.sequence if q != question_id) + (question_id,)
        return AnswerHistory(latest=latest, sequence=sequence)


def build_history(answers: Iterable) -> AnswerHistory:
    """answers: question_id / user_rating / answered_at 속성을 가진 객체들 (순서 무관)."""
    # sorted 는 안정 정렬이라 같은 시각이면 입력 순서가 유지된다
    ordered = sorted(answers, key=lambda a: a.answered_at)

    latest: Dict[int, int] = {}
    last_position: Dict[int, int] = {}
    for position, answer in enumerate(ordered):
        latest[answer.question_id] = answer.user_rating
        last_position[answer.question_id] = position

    sequence = tuple(sorted(last_position, key=last_position.__getitem__))
    return AnswerHistory(latest=latest, sequence=sequence)


@dataclass(frozen=True)
class SessionProgress:
    total_questions: int
    answered_questions: int
    mastered_questions: int
    current_points: int
    max_points: int

    @property
    def is_complete(self) -> bool:
        # 문제가 0개면 바로 완료
        return self.mastered_questions == self.total_questions


def calculate_progress(questions: Sequence, history: AnswerHistory) -> SessionProgress:
    question_ids = {q.id for q in questions}
    # 문제집에서 빠진 문제의 옛 답변은 집계하지 않는다
    ratings: List[int] = [r for qid, r in history.latest.items() if qid in question_ids]

    total = len(questions)
    return SessionProgress(
        total_questions=total,
        answered_questions=len(ratings),
        mastered_questions=sum(1 for r in ratings if r == MAX_RATING),
        current_points=sum(ratings),
        max_points=total * MAX_RATING,
    )
