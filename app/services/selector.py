"""
가중치 기반 다음 문제 선택
- 평점이 낮을수록 / 처음 보는 문제일수록 자주 나온다
- 최근에 답한 문제는 recency penalty 로 가중치를 깎는다 (바로 직전 문제는 0)
- 사이드바용 확률 리포트, "이 점수를 주면?" 미리보기도 같은 계산을 쓴다
"""
import logging
import random
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from app.services.progress import AnswerHistory, MAX_RATING

logger = logging.getLogger(__name__)

FRONT_TO_END = "front-to-end"
SHUFFLE = "shuffle"
MODES = (FRONT_TO_END, SHUFFLE)

NEW_QUESTION_WEIGHT = 80.0
RATING_WEIGHTS = {
    1: 200.0,  # 전혀 모름
    2: 120.0,  # 애매함
    3: 60.0,   # 보통
    4: 30.0,   # 자신 있음
}

# steps_back -> 배수. 6 이상은 1.0
RECENCY_MULTIPLIERS = {
    1: 0.0,
    2: 0.5,
    3: 0.7,
    4: 0.85,
    5: 0.95,
}


def is_eligible(history: AnswerHistory, question_id: int) -> bool:
    rating = history.rating_of(question_id)
    return rating is None or rating < MAX_RATING


def candidate_questions(questions: Sequence, history: AnswerHistory, mode: str) -> List:
    """모드별 후보. 순서는 가중치 누적 순서로 그대로 쓰인다."""
    eligible = [q for q in questions if is_eligible(history, q.id)]

    if mode != FRONT_TO_END:
        return eligible

    # 앞에서부터: 아직 안 본 문제는 가장 앞의 하나만 후보에 넣는다
    first_unseen = next((q for q in eligible if history.rating_of(q.id) is None), None)
    if first_unseen is None:
        return eligible
    return [first_unseen] + [q for q in eligible if history.rating_of(q.id) is not None]


def base_weight(rating: Optional[int]) -> float:
    if rating is None:
        return NEW_QUESTION_WEIGHT
    return RATING_WEIGHTS[rating]


def recency_multiplier(steps_back: Optional[int]) -> float:
    if steps_back is None:
        return 1.0
    return RECENCY_MULTIPLIERS.get(steps_back, 1.0)


def question_weight(history: AnswerHistory, question_id: int) -> float:
    return base_weight(history.rating_of(question_id)) * recency_multiplier(
        history.steps_back(question_id)
    )


def weighted_choice(candidates: Sequence, weights: Sequence[float], rng: random.Random):
    if not candidates:
        return None

    total_weight = sum(weights)
    if total_weight <= 0:
        # 직전에 답한 문제만 남은 경우 등. 실패하지 않고 첫 후보를 돌려준다
        return candidates[0]

    draw = rng.random() * total_weight
    cumulative = 0.0
    for candidate, weight in zip(candidates, weights):
        cumulative += weight
        if draw < cumulative:
            return candidate

    # 부동소수 오차로 끝까지 못 찾은 경우 가중치가 있는 마지막 후보
    for candidate, weight in zip(reversed(candidates), reversed(weights)):
        if weight > 0:
            return candidate
    return candidates[0]


def select_next_question(
    questions: Sequence, history: AnswerHistory, mode: str, rng: random.Random
):
    """다음 문제. 풀 문제가 없으면 None (= 세션 완료)."""
    candidates = candidate_questions(questions, history, mode)
    if not candidates:
        return None

    weights = [question_weight(history, q.id) for q in candidates]
    logger.debug(
        "[STUDY] candidates=%s weights=%s",
        [q.id for q in candidates],
        weights,
    )
    return weighted_choice(candidates, weights, rng)


@dataclass
class QuestionProbability:
    question: object
    question_number: int
    last_rating: Optional[int]
    weight: float
    selection_probability: float
    is_selectable: bool


@dataclass
class ProbabilityReport:
    questions: List[QuestionProbability]
    total_weight: float
    current_question_id: Optional[int]

    def find(self, question_id: int) -> Optional[QuestionProbability]:
        return next((row for row in self.questions if row.question.id == question_id), None)


def probability_report(
    questions: Sequence,
    history: AnswerHistory,
    mode: str,
    current_question_id: Optional[int] = None,
) -> ProbabilityReport:
    """
    모든 문제의 가중치/선택 확률 (읽기 전용).
    - 후보가 아닌 문제(마스터, front-to-end 의 뒤쪽 미풀이 문제)는 weight 0
    - 마스터한 문제는 알고리즘이 고르지 않아도 사용자가 직접 고를 수 있다
    """
    candidate_ids = {q.id for q in candidate_questions(questions, history, mode)}

    weights: Dict[int, float] = {
        q.id: question_weight(history, q.id) if q.id in candidate_ids else 0.0
        for q in questions
    }
    total_weight = sum(weights.values())

    rows = []
    for number, q in enumerate(questions, start=1):
        rating = history.rating_of(q.id)
        weight = weights[q.id]
        rows.append(
            QuestionProbability(
                question=q,
                question_number=number,
                last_rating=rating,
                weight=weight,
                selection_probability=(weight / total_weight * 100) if total_weight > 0 else 0.0,
                is_selectable=weight > 0 or rating == MAX_RATING,
            )
        )

    if current_question_id is None:
        current_question_id = history.last_question_id

    return ProbabilityReport(
        questions=rows,
        total_weight=total_weight,
        current_question_id=current_question_id,
    )


def hypothetical_report(
    questions: Sequence,
    history: AnswerHistory,
    mode: str,
    question_id: int,
    rating: int,
) -> ProbabilityReport:
    """question_id 에 rating 을 줬다고 가정한 리포트. 저장된 기록은 건드리지 않는다."""
    return probability_report(
        questions,
        history.with_answer(question_id, rating),
        mode,
        current_question_id=question_id,
    )
