"""
Декораторы для применения рейт лимитов к отдельным маршрутам
"""

import functools
from enum import Enum
from typing import Callable, Optional

from fastapi import Request, HTTPException
from starlette.status import HTTP_429_TOO_MANY_REQUESTS

from quiz_api.core.config import settings
from .rate_limiter import get_rate_limiter
from .utils import get_client_ip, get_user_id_from_request


class RateLimitType(Enum):
    """По чему считаем запросы"""
    IP = "ip"
    USER = "user"


def _resolve_identifier(request: Request, rate_limit_type: RateLimitType) -> Optional[str]:
    if rate_limit_type == RateLimitType.USER:
        user_id = get_user_id_from_request(request)
        if user_id:
            return f"user_{user_id}"
    # IP и фоллбек для пользовательского лимита без user_id
    ip = get_client_ip(request)
    return f"ip_{ip}" if ip else None


def rate_limit(
    route: str,
    max_requests: int,
    window_seconds: int,
    rate_limit_type: RateLimitType = RateLimitType.IP
) -> Callable:
    """
    Декоратор для применения рейт лимита к маршруту

    Args:
        route: Название маршрута (часть ключа в Redis)
        max_requests: Максимальное количество запросов в окне
        window_seconds: Окно времени в секундах
        rate_limit_type: Считать по IP или по пользователю
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            if not settings.RATE_LIMIT_ENABLED:
                return await func(*args, **kwargs)

            request = next((a for a in args if isinstance(a, Request)), None) \
                or kwargs.get("request")
            if not isinstance(request, Request):
                return await func(*args, **kwargs)

            identifier = _resolve_identifier(request, rate_limit_type)
            if not identifier:
                return await func(*args, **kwargs)

            result = await get_rate_limiter().check_rate_limit(
                route=route,
                identifier=identifier,
                max_requests=max_requests,
                window_seconds=window_seconds,
                user_id=get_user_id_from_request(request)
            )

            headers = {
                "X-RateLimit-Limit": str(result.max_requests),
                "X-RateLimit-Remaining": str(max(0, result.max_requests - result.current_requests)),
                "X-RateLimit-Reset": str(result.reset_time),
                "X-RateLimit-Type": rate_limit_type.value
            }

            if not result.allowed:
                headers["Retry-After"] = str(result.retry_after)
                raise HTTPException(
                    status_code=HTTP_429_TOO_MANY_REQUESTS,
                    detail={
                        "message": f"Too many requests: {result.max_requests} allowed per {result.window_seconds} seconds",
                        "retry_after": result.retry_after
                    },
                    headers=headers
                )

            response = await func(*args, **kwargs)
            if hasattr(response, "headers"):
                response.headers.update(headers)
            return response

        return wrapper
    return decorator


def rate_limit_ip(route: str, max_requests: int, window_seconds: int) -> Callable:
    """Рейт лимит только по IP"""
    return rate_limit(route, max_requests, window_seconds, RateLimitType.IP)


def rate_limit_user(route: str, max_requests: int, window_seconds: int) -> Callable:
    """Рейт лимит по user_id (с фоллбеком на IP)"""
    return rate_limit(route, max_requests, window_seconds, RateLimitType.USER)
