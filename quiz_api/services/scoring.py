"""
Проверка ответов и подсчет монет.

Правила проверки применяются по очереди, и каждое следующее применимое
правило перезаписывает результат предыдущего. Для image/video/audio
применимы все три правила, поэтому решает последнее из них, для которого
у вопроса заполнены данные. Это поведение совместимо с уже сохраненными
результатами и менять его на выбор одного правила по типу нельзя.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Sequence

from bson import ObjectId

from quiz_api.core.exceptions import InvalidInputError, NotFoundError
from quiz_api.logging import get_logger, LogSection, LogSubsection
from quiz_api.models.answer_model import ScoredAnswer
from quiz_api.models.question_model import OPTION_RULE_TYPES, INPUT_RULE_TYPES, BLANK_RULE_TYPES
from quiz_api.schemas.answer_schemas import AnswerItem
from quiz_api.services import directories

logger = get_logger(__name__)

SCORING_PROJECTION = {"type": 1, "options": 1, "correctAnswers": 1, "blanks": 1, "coins": 1}


@dataclass
class ScoringResult:
    scored_answers: List[ScoredAnswer] = field(default_factory=list)
    correct_count: int = 0
    total_coins: int = 0


def evaluate_answer(question: dict, user_answers: Sequence[str]) -> bool:
    question_type = question.get("type")
    options = question.get("options") or []
    correct_answers = question.get("correctAnswers") or []
    blanks = question.get("blanks") or []

    is_correct = False

    if question_type in OPTION_RULE_TYPES and options:
        correct_texts = {opt.get("text") for opt in options if opt.get("isCorrect")}
        is_correct = any(answer in correct_texts for answer in user_answers)

    if question_type in INPUT_RULE_TYPES and correct_answers:
        is_correct = any(answer in correct_answers for answer in user_answers)

    if question_type in BLANK_RULE_TYPES and blanks:
        # Ответ с индексом i сравнивается только с первым правильным ответом пропуска i
        is_correct = any(
            _first_blank_answer(blank) == answer
            for answer, blank in zip(user_answers, blanks)
        )

    return is_correct


def _first_blank_answer(blank: dict):
    accepted = blank.get("correctAnswers") or []
    return accepted[0] if accepted else None


def score_resolved(items: Sequence[AnswerItem], questions: Dict[str, dict]) -> ScoringResult:
    """Чистая функция: оценивает ответы по уже загруженным вопросам, порядок ответов сохраняется"""
    result = ScoringResult()
    submitted_at = datetime.now(timezone.utc)

    for item in items:
        question = questions.get(item.question_id.lower())
        if question is None:
            raise InvalidInputError(f"Question not found for ID: {item.question_id}")

        is_correct = evaluate_answer(question, item.user_answers)
        if is_correct:
            result.correct_count += 1
            result.total_coins += question.get("coins") or 0

        result.scored_answers.append(ScoredAnswer(
            question_id=item.question_id,
            user_answers=list(item.user_answers),
            is_correct=is_correct,
            timestamp=item.timestamp or submitted_at,
        ))

    return result


async def load_questions_for_scoring(db, items: Sequence[AnswerItem]) -> Dict[str, dict]:
    """Проверяет все ссылки на вопросы до подсчета: одна ошибка отменяет весь набор"""
    question_ids = [item.question_id for item in items]
    if not all(ObjectId.is_valid(qid) for qid in question_ids):
        raise InvalidInputError("One or more question IDs are invalid")

    questions = await directories.find_questions_by_ids(
        db, [ObjectId(qid) for qid in question_ids], SCORING_PROJECTION
    )
    if len(questions) != len(question_ids):
        logger.warning(
            section=LogSection.ANSWER,
            subsection=LogSubsection.ANSWER.VALIDATION,
            message=f"Найдено {len(questions)} вопросов из {len(question_ids)} переданных"
        )
        raise InvalidInputError("One or more questions not found")

    return {str(question["_id"]): question for question in questions}


async def score_answers(db, user_id: str, items: Sequence[AnswerItem]) -> ScoringResult:
    if not ObjectId.is_valid(user_id):
        raise InvalidInputError("Invalid userId format")

    user = await directories.find_user(db, ObjectId(user_id), {"_id": 1})
    if not user:
        raise NotFoundError("User not found")

    if not items:
        raise InvalidInputError("answers cannot be empty")

    questions = await load_questions_for_scoring(db, items)
    result = score_resolved(items, questions)

    logger.info(
        section=LogSection.ANSWER,
        subsection=LogSubsection.ANSWER.SCORING,
        message=f"Оценены ответы пользователя {user_id}: {result.correct_count} из {len(items)} верно, {result.total_coins} монет",
        user_id=user_id
    )
    return result
