"""
Рейт лимиты через Redis (фиксированное окно, атомарно через Lua)
"""

import time
from typing import Optional
from dataclasses import dataclass

import redis.asyncio as redis
from redis.asyncio import Redis

from quiz_api.core.config import settings
from quiz_api.logging import get_logger, LogSection, LogSubsection

logger = get_logger(__name__)


@dataclass
class RateLimitResult:
    """Результат проверки рейт лимита"""
    allowed: bool
    current_requests: int
    max_requests: int
    reset_time: int
    retry_after: int
    window_seconds: int


class RateLimiter:
    """Проверка и учет запросов в Redis"""

    # KEYS[1] - ключ счетчика, ARGV[1] - окно в секундах, ARGV[2] - лимит
    LUA_SCRIPT = """
        local key = KEYS[1]
        local window = tonumber(ARGV[1])
        local limit = tonumber(ARGV[2])

        local current = redis.call('GET', key)
        if current == false then
            current = 0
        else
            current = tonumber(current)
        end

        local ttl = redis.call('TTL', key)
        if ttl == -1 then
            redis.call('EXPIRE', key, window)
            ttl = window
        elseif ttl == -2 then
            current = 0
            ttl = window
        end

        if current >= limit then
            return {current, limit, ttl, 0}
        end

        current = current + 1
        redis.call('INCR', key)
        redis.call('EXPIRE', key, window)
        return {current, limit, ttl, 1}
    """

    def __init__(
        self,
        redis_host: str = "localhost",
        redis_port: int = 6379,
        redis_password: Optional[str] = None,
        redis_db: int = 0,
        key_prefix: str = "quiz_api_rate_limit",
        fail_open: bool = True
    ):
        """
        Args:
            redis_host: Хост Redis
            redis_port: Порт Redis
            redis_password: Пароль Redis
            redis_db: Номер БД Redis
            key_prefix: Префикс ключей
            fail_open: Разрешать запросы при недоступности Redis
        """
        self.redis_host = redis_host
        self.redis_port = redis_port
        self.redis_password = redis_password
        self.redis_db = redis_db
        self.key_prefix = key_prefix
        self.fail_open = fail_open

        self.redis: Optional[Redis] = None
        self.script_sha: Optional[str] = None

    async def _get_redis_connection(self) -> Optional[Redis]:
        """Получить соединение с Redis, None если Redis недоступен"""
        if self.redis is None:
            try:
                self.redis = redis.Redis(
                    host=self.redis_host,
                    port=self.redis_port,
                    password=self.redis_password,
                    db=self.redis_db,
                    decode_responses=True,
                    socket_timeout=1.0,
                    socket_connect_timeout=1.0,
                    retry_on_timeout=True,
                    health_check_interval=10
                )
                await self.redis.ping()
                self.script_sha = await self.redis.script_load(self.LUA_SCRIPT)

                logger.info(
                    section=LogSection.REDIS,
                    subsection=LogSubsection.REDIS.CONNECTION,
                    message=f"Рейт лимитер подключен к Redis {self.redis_host}:{self.redis_port}/{self.redis_db}"
                )
            except Exception as e:
                logger.error(
                    section=LogSection.REDIS,
                    subsection=LogSubsection.REDIS.ERROR,
                    message=f"Ошибка подключения к Redis {self.redis_host}:{self.redis_port}: {str(e)}"
                )
                if self.redis:
                    await self.redis.aclose()
                    self.redis = None
                return None

        return self.redis

    def _get_key(self, route: str, identifier: str) -> str:
        return f"{self.key_prefix}:{route}:{identifier}"

    def _fallback_result(self, max_requests: int, window_seconds: int) -> RateLimitResult:
        """Результат на случай недоступного Redis: fail-open или fail-safe"""
        reset_time = int(time.time()) + window_seconds
        if self.fail_open:
            return RateLimitResult(
                allowed=True,
                current_requests=0,
                max_requests=max_requests,
                reset_time=reset_time,
                retry_after=0,
                window_seconds=window_seconds
            )
        return RateLimitResult(
            allowed=False,
            current_requests=max_requests,
            max_requests=max_requests,
            reset_time=reset_time,
            retry_after=window_seconds,
            window_seconds=window_seconds
        )

    async def check_rate_limit(
        self,
        route: str,
        identifier: str,
        max_requests: int,
        window_seconds: int,
        user_id: Optional[str] = None
    ) -> RateLimitResult:
        """
        Проверить и обновить рейт лимит

        Args:
            route: Название маршрута
            identifier: Идентификатор (IP или user_id)
            max_requests: Максимальное количество запросов
            window_seconds: Окно времени в секундах
            user_id: ID пользователя (для логов)
        """
        redis_conn = await self._get_redis_connection()
        if redis_conn is None:
            logger.warning(
                section=LogSection.SECURITY,
                subsection=LogSubsection.SECURITY.RATE_LIMIT_FAIL_OPEN,
                message=f"Redis недоступен, маршрут {route}, идентификатор {identifier}, fail_open={self.fail_open}"
            )
            return self._fallback_result(max_requests, window_seconds)

        try:
            key = self._get_key(route, identifier)
            current_time = int(time.time())

            result = await redis_conn.evalsha(
                self.script_sha,
                1,
                key,
                window_seconds,
                max_requests
            )

            current = int(result[0])
            limit = int(result[1])
            ttl = int(result[2])
            allowed = bool(result[3])

            if not allowed:
                logger.warning(
                    section=LogSection.SECURITY,
                    subsection=LogSubsection.SECURITY.RATE_LIMIT_EXCEEDED,
                    message=f"Превышен лимит для {identifier} на маршруте {route}: {current}/{limit}",
                    user_id=user_id
                )

            return RateLimitResult(
                allowed=allowed,
                current_requests=current,
                max_requests=limit,
                reset_time=current_time + ttl,
                retry_after=ttl if not allowed else 0,
                window_seconds=window_seconds
            )

        except Exception as e:
            logger.error(
                section=LogSection.REDIS,
                subsection=LogSubsection.REDIS.ERROR,
                message=f"Ошибка при проверке рейт лимита {route}/{identifier}: {str(e)}"
            )
            return self._fallback_result(max_requests, window_seconds)

    async def close(self):
        """Закрыть соединение с Redis"""
        if self.redis:
            await self.redis.aclose()
            self.redis = None


# Глобальный экземпляр RateLimiter
_rate_limiter: Optional[RateLimiter] = None


def get_rate_limiter() -> RateLimiter:
    global _rate_limiter
    if _rate_limiter is None:
        _rate_limiter = RateLimiter(
            redis_host=settings.REDIS_HOST,
            redis_port=settings.REDIS_PORT,
            redis_password=settings.REDIS_PASSWORD,
            redis_db=settings.REDIS_DB,
            fail_open=settings.RATE_LIMIT_FAIL_OPEN
        )
    return _rate_limiter


async def close_rate_limiter():
    global _rate_limiter
    if _rate_limiter:
        await _rate_limiter.close()
        _rate_limiter = None
