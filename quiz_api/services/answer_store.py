"""
Хранилище попыток: каждая отправка ответов создает новый документ в answers
и больше не изменяется.
"""
from typing import Iterable, Sequence

from bson import ObjectId

from quiz_api.core.exceptions import InvalidInputError, NotFoundError
from quiz_api.logging import get_logger, LogSection, LogSubsection
from quiz_api.models.answer_model import AnswerRecord
from quiz_api.schemas.answer_schemas import AnswerItem
from quiz_api.services.scoring import ScoringResult, score_answers
from quiz_api.utils.id_generator import generate_quiz_id

logger = get_logger(__name__)


async def submit_answers(db, user_id: str, scoring: ScoringResult) -> str:
    # quizId не проверяется на уникальность среди сохраненных попыток
    record = AnswerRecord(
        user_id=user_id,
        quiz_id=generate_quiz_id(),
        total_coins=scoring.total_coins,
        answers=scoring.scored_answers,
    )
    result = await db.answers.insert_one(record.to_document())

    logger.info(
        section=LogSection.ANSWER,
        subsection=LogSubsection.ANSWER.PERSIST,
        message=f"Сохранена попытка {record.quiz_id} пользователя {user_id} ({len(record.answers)} ответов)",
        user_id=user_id,
        extra_data={"answer_id": str(result.inserted_id), "quiz_id": record.quiz_id}
    )
    return str(result.inserted_id)


async def create_answers(db, user_id: str, items: Sequence[AnswerItem]) -> dict:
    """Оценивает и сохраняет набор ответов целиком; при ошибке проверки ничего не пишется"""
    scoring = await score_answers(db, user_id, items)
    await submit_answers(db, user_id, scoring)

    return {
        "total": len(items),
        "correctAnswers": scoring.correct_count,
        "totalCoins": scoring.total_coins,
    }


async def delete_many_answers(db, ids: Iterable[str]) -> int:
    object_ids = [ObjectId(i) for i in ids if isinstance(i, str) and ObjectId.is_valid(i)]
    if not object_ids:
        raise InvalidInputError("No valid IDs provided")

    result = await db.answers.delete_many({"_id": {"$in": object_ids}})
    if result.deleted_count == 0:
        raise NotFoundError("No answer documents deleted")

    logger.info(
        section=LogSection.ANSWER,
        subsection=LogSubsection.ANSWER.DELETE,
        message=f"Удалено попыток: {result.deleted_count} из {len(object_ids)} запрошенных"
    )
    return result.deleted_count


async def has_answered(db, user_id: str, question_id: str) -> bool:
    if not ObjectId.is_valid(user_id) or not ObjectId.is_valid(question_id):
        raise InvalidInputError("Invalid IDs")

    exists = await db.answers.find_one(
        {"userId": ObjectId(user_id), "answers.questionId": ObjectId(question_id)},
        {"_id": 1}
    )
    return exists is not None
