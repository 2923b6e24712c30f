from fastapi import APIRouter, Depends, Request

from quiz_api.core.response import success
from quiz_api.core.security import get_current_actor, require_admin, require_self_or_admin
from quiz_api.db.database import get_database
from quiz_api.logging import get_logger, LogSection, LogSubsection
from quiz_api.rate_limit import rate_limit_ip, rate_limit_user
from quiz_api.schemas.answer_schemas import CreateAnswersRequest, DeleteAnswersRequest
from quiz_api.services.answer_store import create_answers, delete_many_answers, has_answered
from quiz_api.services.history import build_user_history

router = APIRouter()
logger = get_logger(__name__)


@router.post("/create")
@rate_limit_user("answers_create", max_requests=30, window_seconds=60)
async def create_answers_route(
    payload: CreateAnswersRequest,
    request: Request,
    actor: dict = Depends(get_current_actor),
    db=Depends(get_database)
):
    """Оценить и сохранить ответы одной попытки"""
    require_self_or_admin(actor, payload.user_id)

    logger.info(
        section=LogSection.ANSWER,
        subsection=LogSubsection.ANSWER.SUBMIT,
        message=f"Пользователь {actor['id']} отправил {len(payload.answers)} ответов для {payload.user_id}",
        user_id=actor["id"]
    )

    result = await create_answers(db, payload.user_id, payload.answers)
    return success(data=result, message="Answers successfully saved", status_code=201)


@router.delete("/delete-multiple")
@rate_limit_user("answers_delete_multiple", max_requests=10, window_seconds=60)
async def delete_multiple_answers_route(
    payload: DeleteAnswersRequest,
    request: Request,
    actor: dict = Depends(get_current_actor),
    db=Depends(get_database)
):
    require_admin(actor)

    deleted_count = await delete_many_answers(db, payload.ids)
    return success(
        data={"deletedCount": deleted_count},
        message=f"{deleted_count} answer document(s) deleted successfully"
    )


@router.get("/history/{user_id}")
@rate_limit_ip("answers_history", max_requests=60, window_seconds=30)
async def get_history_route(
    user_id: str,
    request: Request,
    actor: dict = Depends(get_current_actor),
    db=Depends(get_database)
):
    """История всех попыток пользователя со сводкой по категориям, уровням и темам"""
    require_self_or_admin(actor, user_id)

    history = await build_user_history(db, user_id)
    return success(data=history, message="История ответов получена")


@router.get("/check/{user_id}/{question_id}")
@rate_limit_ip("answers_check", max_requests=120, window_seconds=30)
async def check_answered_route(
    user_id: str,
    question_id: str,
    request: Request,
    actor: dict = Depends(get_current_actor),
    db=Depends(get_database)
):
    require_self_or_admin(actor, user_id)

    answered = await has_answered(db, user_id, question_id)

    logger.debug(
        section=LogSection.ANSWER,
        subsection=LogSubsection.ANSWER.CHECK,
        message=f"Проверка ответа пользователя {user_id} на вопрос {question_id}: {answered}",
        user_id=actor["id"]
    )
    return success(data={"answered": answered})
