import os
import json
import uuid
from enum import Enum
from typing import Dict, Any, Optional
from datetime import datetime

import pytz


class LogLevel(Enum):
    """Уровни серьезности логов"""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogSection(Enum):
    """Основные разделы системы"""
    AUTH = "auth"
    ANSWER = "answer"
    HISTORY = "history"
    CABINET = "cabinet"
    SECURITY = "security"
    DATABASE = "database"
    SYSTEM = "system"
    API = "api"
    REDIS = "redis"


class LogSubsection:
    """Подразделы для каждого раздела"""

    class AUTH:
        TOKEN_MISSING = "token_missing"
        TOKEN_INVALID = "token_invalid"
        TOKEN_EXPIRED = "token_expired"
        ACCESS_DENIED = "access_denied"
        USER_VALIDATED = "user_validated"

    class ANSWER:
        SUBMIT = "submit"
        VALIDATION = "validation"
        SCORING = "scoring"
        PERSIST = "persist"
        DELETE = "delete"
        CHECK = "check"
        ERROR = "error"

    class HISTORY:
        BUILD = "build"
        DANGLING_REFERENCE = "dangling_reference"
        ERROR = "error"

    class CABINET:
        BUILD = "build"
        ERROR = "error"

    class SECURITY:
        RATE_LIMIT = "rate_limit"
        RATE_LIMIT_WARNING = "rate_limit_warning"
        RATE_LIMIT_EXCEEDED = "rate_limit_exceeded"
        RATE_LIMIT_FAIL_OPEN = "rate_limit_fail_open"
        ACCESS_DENIED = "access_denied"
        VALIDATION = "validation"

    class DATABASE:
        QUERY = "query"
        ERROR = "error"
        INDEXES_CREATE = "indexes_create"
        INDEXES_SUCCESS = "indexes_success"
        INDEXES_ERROR = "indexes_error"

    class SYSTEM:
        INITIALIZATION = "initialization"
        ERROR = "error"
        STARTUP = "startup"
        SHUTDOWN = "shutdown"

    class API:
        REQUEST = "request"
        ERROR = "error"
        VALIDATION = "validation"

    class REDIS:
        CONNECTION = "connection"
        ERROR = "error"
        SCRIPT_LOAD = "script_load"


class StructuredLogEntry:
    """Модель структурированного лог-сообщения"""

    def __init__(
        self,
        level: LogLevel,
        section: LogSection,
        subsection: str,
        message: str,
        extra_data: Optional[Dict[str, Any]] = None,
        user_id: Optional[str] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None
    ):
        # Часовой пояс берем из окружения, по умолчанию UTC
        timezone = pytz.timezone(os.getenv("LOG_TIMEZONE", "UTC"))

        self.timestamp = datetime.now(timezone).strftime('%Y-%m-%d %H:%M:%S %Z')
        self.log_id = str(uuid.uuid4())[:8]  # Короткий уникальный ID
        self.level = level.value
        self.section = section.value
        self.subsection = subsection
        self.message = message
        self.extra_data = extra_data or {}
        self.user_id = user_id
        self.ip_address = ip_address
        self.user_agent = user_agent

    def to_dict(self) -> Dict[str, Any]:
        """Преобразование в словарь для логирования"""
        log_dict = {
            "timestamp": self.timestamp,
            "log_id": self.log_id,
            "level": self.level,
            "section": self.section,
            "subsection": self.subsection,
            "message": self.message
        }

        # Опциональные поля добавляем только если они заданы
        if self.user_id:
            log_dict["user_id"] = self.user_id
        if self.ip_address:
            log_dict["ip_address"] = self.ip_address
        if self.user_agent:
            log_dict["user_agent"] = self.user_agent
        if self.extra_data:
            log_dict["extra_data"] = self.extra_data

        return log_dict

    def to_json_string(self) -> str:
        """Преобразование в JSON строку"""
        return json.dumps(self.to_dict(), ensure_ascii=False, default=str)
