import os
import asyncio
import inspect
import logging
from typing import Optional, Dict, Any
from logging.handlers import RotatingFileHandler

from .log_models import StructuredLogEntry, LogLevel, LogSection
from .rabbitmq_handler import get_rabbitmq_publisher, rabbitmq_logging_enabled, close_rabbitmq_publisher


class StructuredFormatter(logging.Formatter):
    """Форматтер, который превращает любую запись в структурированный JSON"""

    def format(self, record):
        if hasattr(record, 'structured_data'):
            return record.structured_data.to_json_string()

        # Записи сторонних библиотек оборачиваем в базовую структуру
        entry = StructuredLogEntry(
            level=LogLevel(record.levelname),
            section=LogSection.SYSTEM,
            subsection="general",
            message=record.getMessage(),
            extra_data={"module": record.name}
        )
        return entry.to_json_string()


class StructuredLogger:
    """Обертка над logging.Logger для структурированных логов"""

    def __init__(self, logger_name: str):
        self.logger = logging.getLogger(logger_name)
        self._rabbitmq_tasks = set()

    def _get_caller_info(self) -> Dict[str, Any]:
        """
        Определяет файл, функцию и строку, откуда был вызван лог.

        Стек: [0] _get_caller_info, [1] _log, [2] info/warning/..., [3] вызывающий код
        """
        try:
            frame = inspect.currentframe()
            caller_frame = frame.f_back.f_back.f_back
            if caller_frame:
                filename = caller_frame.f_code.co_filename
                return {
                    "source_file": filename.split('/')[-1].split('\\')[-1],
                    "source_function": caller_frame.f_code.co_name,
                    "source_line": caller_frame.f_lineno
                }
        except Exception:
            pass
        return {
            "source_file": "unknown",
            "source_function": "unknown",
            "source_line": 0
        }

    def _log(
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
        caller_info = self._get_caller_info()

        entry = StructuredLogEntry(
            level=level,
            section=section,
            subsection=subsection,
            message=message,
            extra_data={**(extra_data or {}), **caller_info},
            user_id=user_id,
            ip_address=ip_address,
            user_agent=user_agent
        )

        log_record = self.logger.makeRecord(
            name=self.logger.name,
            level=getattr(logging, level.value),
            fn="",
            lno=0,
            msg=message,
            args=(),
            exc_info=None
        )
        log_record.structured_data = entry

        if self.logger.isEnabledFor(log_record.levelno):
            self.logger.handle(log_record)

        # WARNING и выше дополнительно уходят в RabbitMQ
        if level in (LogLevel.WARNING, LogLevel.ERROR, LogLevel.CRITICAL) and rabbitmq_logging_enabled():
            self._schedule_rabbitmq_send(entry)

    def _schedule_rabbitmq_send(self, entry: StructuredLogEntry):
        """Планирует отправку лога в RabbitMQ, если есть активный event loop"""
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            return

        task = asyncio.create_task(self._send_to_rabbitmq(entry))
        self._rabbitmq_tasks.add(task)
        task.add_done_callback(self._rabbitmq_tasks.discard)

    async def _send_to_rabbitmq(self, entry: StructuredLogEntry):
        try:
            publisher = get_rabbitmq_publisher()
            await publisher.publish_log(entry)
        except Exception as e:
            print(f"Error sending log to RabbitMQ: {e}")

    def debug(self, section: LogSection, subsection: str, message: str, **kwargs):
        self._log(LogLevel.DEBUG, section, subsection, message, **kwargs)

    def info(self, section: LogSection, subsection: str, message: str, **kwargs):
        self._log(LogLevel.INFO, section, subsection, message, **kwargs)

    def warning(self, section: LogSection, subsection: str, message: str, **kwargs):
        self._log(LogLevel.WARNING, section, subsection, message, **kwargs)

    def error(self, section: LogSection, subsection: str, message: str, **kwargs):
        self._log(LogLevel.ERROR, section, subsection, message, **kwargs)

    def critical(self, section: LogSection, subsection: str, message: str, **kwargs):
        self._log(LogLevel.CRITICAL, section, subsection, message, **kwargs)


def setup_application_logging():
    """
    Настройка централизованного логирования приложения

    Особенности:
    - Структурированные JSON логи
    - Уникальный ID для каждого лога
    - Разделы и подразделы из log_models
    - Ротация файлов логов
    - Настройка через переменные окружения
    - Отправка логов WARNING и выше в RabbitMQ (RABBITMQ_LOGGING=true)
    """
    log_level = os.getenv("LOG_LEVEL", "INFO").upper()
    log_file = os.getenv("LOG_FILE", "logs/application.log")
    console_logging = os.getenv("CONSOLE_LOGGING", "true").lower() == "true"
    max_bytes = int(os.getenv("LOG_MAX_BYTES", "10485760"))  # 10 MB
    backup_count = int(os.getenv("LOG_BACKUP_COUNT", "20"))

    log_dir = os.path.dirname(log_file)
    if log_dir and not os.path.exists(log_dir):
        os.makedirs(log_dir)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    formatter = StructuredFormatter()

    # ===== КОНСОЛЬ =====
    console_handler = None
    if console_logging:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        console_handler.setLevel(log_level)
        root_logger.addHandler(console_handler)

    # ===== ФАЙЛ С РОТАЦИЕЙ =====
    file_handler = RotatingFileHandler(
        filename=log_file,
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8"
    )
    file_handler.setFormatter(formatter)
    file_handler.setLevel(log_level)
    root_logger.addHandler(file_handler)

    # ===== UVICORN =====
    uvicorn_logger = logging.getLogger("uvicorn")
    uvicorn_logger.handlers = []
    uvicorn_logger.addHandler(console_handler or file_handler)
    uvicorn_logger.setLevel(log_level)
    uvicorn_logger.propagate = False

    init_logger = get_structured_logger("system.init")
    init_logger.info(
        section=LogSection.SYSTEM,
        subsection="startup",
        message="Система структурированного логирования успешно инициализирована",
        extra_data={
            "log_level": log_level,
            "log_file": log_file,
            "console_logging": console_logging,
            "rabbitmq_enabled": rabbitmq_logging_enabled(),
            "max_file_size_mb": max_bytes / 1024 / 1024,
            "backup_files": backup_count
        }
    )


def get_structured_logger(name: str) -> StructuredLogger:
    """
    Получить структурированный логгер для модуля

    Args:
        name: Имя модуля/компонента (например: "answers.scoring")
    """
    return StructuredLogger(name)


async def close_all_rabbitmq_connections():
    """Закрывает соединения с RabbitMQ при остановке приложения"""
    await close_rabbitmq_publisher()
