import jwt
from bson import ObjectId
from fastapi import HTTPException, Request, status

from quiz_api.core.config import settings
from quiz_api.logging import get_logger, LogSection, LogSubsection

logger = get_logger(__name__)


def _extract_token(request: Request):
    """Токен берем из заголовка Authorization: Bearer, затем из cookie"""
    auth_header = request.headers.get("Authorization")
    if auth_header:
        scheme, _, token = auth_header.partition(" ")
        if scheme.lower() == "bearer" and token:
            return token.strip()
        return None
    return request.cookies.get("access_token")


async def get_current_actor(request: Request) -> dict:
    """
    Проверяет JWT и возвращает информацию о вызывающем.

    Токены выпускает сервис авторизации: в `sub` (или `userId`) лежит ObjectId
    пользователя, в `roles` (или `role`) его роли.
    """
    client_host = request.client.host if request.client else "unknown"

    token = _extract_token(request)
    if not token:
        logger.warning(
            section=LogSection.AUTH,
            subsection=LogSubsection.AUTH.TOKEN_MISSING,
            message=f"Отсутствует токен при запросе {request.url.path} с IP {client_host}"
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"message": "Authorization header missing", "hint": "Передайте Bearer токен"}
        )

    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except jwt.ExpiredSignatureError:
        logger.warning(
            section=LogSection.AUTH,
            subsection=LogSubsection.AUTH.TOKEN_EXPIRED,
            message=f"Попытка использования просроченного токена с IP {client_host}"
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"message": "Token has expired", "hint": "Выполните вход заново"}
        )
    except jwt.PyJWTError:
        logger.warning(
            section=LogSection.AUTH,
            subsection=LogSubsection.AUTH.TOKEN_INVALID,
            message=f"Ошибка валидации JWT токена с IP {client_host}"
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"message": "Invalid token"}
        )

    user_id = payload.get("sub") or payload.get("userId")
    if not user_id or not ObjectId.is_valid(str(user_id)):
        logger.warning(
            section=LogSection.AUTH,
            subsection=LogSubsection.AUTH.TOKEN_INVALID,
            message=f"Недействительный user_id в токене: {user_id} с IP {client_host}"
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"message": "Invalid token", "hint": "В токене нет корректного идентификатора пользователя"}
        )

    roles = payload.get("roles")
    if roles is None:
        roles = [payload["role"]] if payload.get("role") else []
    elif isinstance(roles, str):
        roles = [roles]

    # Для рейт лимитера по пользователю
    request.state.user_id = str(user_id)

    logger.debug(
        section=LogSection.AUTH,
        subsection=LogSubsection.AUTH.USER_VALIDATED,
        message=f"Пользователь {user_id} с ролями {roles} аутентифицирован с IP {client_host}"
    )

    return {
        "id": str(user_id),
        "roles": list(roles),
        "is_admin": "admin" in roles
    }


def require_self_or_admin(actor: dict, user_id: str):
    # ObjectId в hex допускает оба регистра
    if actor["is_admin"] or actor["id"].lower() == str(user_id).lower():
        return
    logger.warning(
        section=LogSection.SECURITY,
        subsection=LogSubsection.SECURITY.ACCESS_DENIED,
        message=f"Пользователь {actor['id']} пытался получить доступ к данным пользователя {user_id}"
    )
    raise HTTPException(status_code=403, detail="Access to another user's answers is forbidden")


def require_admin(actor: dict):
    if actor["is_admin"]:
        return
    logger.warning(
        section=LogSection.SECURITY,
        subsection=LogSubsection.SECURITY.ACCESS_DENIED,
        message=f"Пользователь {actor['id']} без роли admin пытался выполнить административное действие"
    )
    raise HTTPException(status_code=403, detail="Admin role required")
