"""
История ответов пользователя: все попытки, объединенные с данными вопросов
и их категорий/уровней/тем, плюс общие счетчики.

Порядок записей повторяет порядок обнаружения: сначала попытки в порядке
хранения, внутри попытки вопросы в порядке ответов. Категория, уровень
или тема попадает в список при первой встрече своего id.
"""
from typing import Dict, List, Optional

from bson import ObjectId

from quiz_api.core.config import settings
from quiz_api.core.exceptions import InternalError, InvalidInputError, NotFoundError, QuizApiError
from quiz_api.logging import get_logger, LogSection, LogSubsection
from quiz_api.models.question_model import QUESTION_HISTORY_PROJECTION
from quiz_api.services import directories
from quiz_api.utils.formatting import serialize_object_ids

logger = get_logger(__name__)


class TaxonomyIndex:
    """Уникальные категории/уровни/темы в порядке первой встречи"""

    def __init__(self, with_image: bool = False):
        self.with_image = with_image
        self._items: Dict[str, dict] = {}

    def add(self, doc: Optional[dict]):
        if not doc or "title" not in doc:
            return
        doc_id = str(doc["_id"])
        if doc_id in self._items:
            return
        item = {"id": doc_id, "title": doc["title"]}
        if self.with_image:
            item["image"] = doc.get("image") or ""
        self._items[doc_id] = item

    def values(self) -> List[dict]:
        return list(self._items.values())


def _question_entry(question: dict, scored: dict) -> dict:
    return {
        "id": str(question["_id"]),
        "type": question.get("type"),
        "coins": question.get("coins") or 0,
        "media": serialize_object_ids(question.get("media")),
        "blanks": serialize_object_ids(question.get("blanks") or []),
        "options": serialize_object_ids(question.get("options") or []),
        "question": serialize_object_ids(question.get("question")),
        "isCorrect": scored.get("isCorrect", False),
        "userAnswers": scored.get("userAnswers") or [],
        "correctAnswers": question.get("correctAnswers") or [],
    }


async def _load_questions(db, attempts: List[dict]) -> Dict[str, dict]:
    question_ids = [
        scored.get("questionId")
        for attempt in attempts
        for scored in attempt.get("answers") or []
        if scored.get("questionId") is not None
    ]
    questions = await directories.find_questions_by_ids(db, question_ids, QUESTION_HISTORY_PROJECTION)
    return {str(question["_id"]): question for question in questions}


async def _load_taxonomy(db, questions: Dict[str, dict]):
    values = list(questions.values())
    categories = await directories.find_by_ids(
        db, "categories", (q.get("category") for q in values), directories.CATEGORY_PROJECTION
    )
    levels = await directories.find_by_ids(
        db, "levels", (q.get("level") for q in values), directories.TITLE_PROJECTION
    )
    topics = await directories.find_by_ids(
        db, "topics", (q.get("topic") for q in values), directories.TITLE_PROJECTION
    )
    return categories, levels, topics


def fold_history(
    attempts: List[dict],
    questions: Dict[str, dict],
    categories: Dict[str, dict],
    levels: Dict[str, dict],
    topics: Dict[str, dict],
    skip_dangling: bool = True,
) -> dict:
    """Сворачивает попытки и загруженные справочники в итоговую структуру истории"""
    category_index = TaxonomyIndex(with_image=True)
    level_index = TaxonomyIndex()
    topic_index = TaxonomyIndex()

    correct = 0
    in_correct = 0
    earned_coins = 0
    answers = []

    for attempt in attempts:
        total_coins = 0
        earn_coins = 0
        attempt_questions = []

        for scored in attempt.get("answers") or []:
            question_id = scored.get("questionId")
            question = questions.get(str(question_id))
            if question is None:
                if not skip_dangling:
                    raise NotFoundError(f"Question not found for ID: {question_id}")
                continue

            coins = question.get("coins") or 0
            total_coins += coins

            if scored.get("isCorrect"):
                earn_coins += coins
                earned_coins += coins
                correct += 1
            else:
                in_correct += 1

            attempt_questions.append(_question_entry(question, scored))

            category_index.add(categories.get(str(question.get("category"))))
            level_index.add(levels.get(str(question.get("level"))))
            topic_index.add(topics.get(str(question.get("topic"))))

        answers.append({
            "id": str(attempt["_id"]),
            "quizId": attempt.get("quizId"),
            "finishedDate": attempt.get("createdAt"),
            "earnCoins": earn_coins,
            "totalCoins": total_coins,
            "questions": attempt_questions,
        })

    return {
        "categories": category_index.values(),
        "levels": level_index.values(),
        "topics": topic_index.values(),
        "correct": correct,
        "inCorrect": in_correct,
        "earnedCoins": earned_coins,
        "answers": answers,
    }


async def build_user_history(db, user_id: str, skip_dangling: Optional[bool] = None) -> dict:
    if not ObjectId.is_valid(user_id):
        raise InvalidInputError("Invalid user ID")

    if skip_dangling is None:
        skip_dangling = settings.HISTORY_SKIP_DANGLING_QUESTIONS

    try:
        attempts = await db.answers.find(
            {"userId": ObjectId(user_id)},
            {"quizId": 1, "answers": 1, "createdAt": 1}
        ).sort("_id", 1).to_list(None)

        questions = await _load_questions(db, attempts)
        categories, levels, topics = await _load_taxonomy(db, questions)

        history = fold_history(attempts, questions, categories, levels, topics, skip_dangling)
    except QuizApiError:
        raise
    except Exception as e:
        logger.error(
            section=LogSection.HISTORY,
            subsection=LogSubsection.HISTORY.ERROR,
            message=f"Ошибка при сборке истории ответов пользователя {user_id}: {str(e)}",
            user_id=user_id
        )
        raise InternalError("Failed to fetch answers with questions") from e

    logger.info(
        section=LogSection.HISTORY,
        subsection=LogSubsection.HISTORY.BUILD,
        message=f"История пользователя {user_id}: {len(history['answers'])} попыток, {history['correct']} верных, {history['inCorrect']} неверных",
        user_id=user_id
    )
    return history
