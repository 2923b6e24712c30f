from fastapi import APIRouter, Depends, Request

from quiz_api.core.response import success
from quiz_api.core.security import get_current_actor
from quiz_api.db.database import get_database
from quiz_api.rate_limit import rate_limit_ip
from quiz_api.services.cabinet import build_cabinet

router = APIRouter()


@router.get("/{user_id}")
@rate_limit_ip("cabinet", max_requests=60, window_seconds=30)
async def get_cabinet_route(
    user_id: str,
    request: Request,
    actor: dict = Depends(get_current_actor),
    db=Depends(get_database)
):
    """Личный кабинет: профиль, подписки и итоги по ответам"""
    cabinet = await build_cabinet(db, user_id)
    return success(data=cabinet, message="Данные кабинета получены")
