"""
Рейт лимиты для Quiz API

Ограничение запросов через Redis с fail-open при его недоступности.
"""

from .decorators import (
    rate_limit,
    rate_limit_user,
    rate_limit_ip,
    RateLimitType
)
from .rate_limiter import RateLimiter, get_rate_limiter, close_rate_limiter

__all__ = [
    "rate_limit",
    "rate_limit_user",
    "rate_limit_ip",
    "RateLimitType",
    "RateLimiter",
    "get_rate_limiter",
    "close_rate_limiter"
]
