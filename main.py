# main.py

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.status import (
    HTTP_401_UNAUTHORIZED,
    HTTP_403_FORBIDDEN,
    HTTP_404_NOT_FOUND,
    HTTP_405_METHOD_NOT_ALLOWED,
    HTTP_422_UNPROCESSABLE_ENTITY,
    HTTP_429_TOO_MANY_REQUESTS,
    HTTP_500_INTERNAL_SERVER_ERROR,
)

from quiz_api.logging import setup_application_logging, get_logger, LogSection, LogSubsection, close_all_rabbitmq_connections
from quiz_api.core.config import settings
from quiz_api.core.exceptions import QuizApiError
from quiz_api.core.response import error, success
from quiz_api.routers import answer_router, cabinet_router
from quiz_api.db.database import db, create_database_indexes
from quiz_api.rate_limit import get_rate_limiter, close_rate_limiter

# Инициализация структурированной системы логирования
setup_application_logging()
logger = get_logger("main")

app = FastAPI(
    title="Quiz Answers API",
    description="Прием ответов на квизы, история ответов и личный кабинет",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE"],
    allow_headers=[
        "Content-Type",
        "Authorization",
        "X-Requested-With",
        "Accept"
    ],
)

# Подключаем роутеры
app.include_router(answer_router.router, prefix="/answers", tags=["Answers"])
app.include_router(cabinet_router.router, prefix="/cabinet", tags=["Cabinet"])

HTTP_ERROR_CODES = {
    HTTP_401_UNAUTHORIZED: "UNAUTHORIZED",
    HTTP_403_FORBIDDEN: "FORBIDDEN",
    HTTP_404_NOT_FOUND: "NOT_FOUND",
    HTTP_405_METHOD_NOT_ALLOWED: "METHOD_NOT_ALLOWED",
    HTTP_429_TOO_MANY_REQUESTS: "RATE_LIMITED",
}


@app.get("/health")
async def health():
    return success(data={"status": "ok"}, message="Сервис работает")


@app.exception_handler(QuizApiError)
async def quiz_api_exception_handler(request: Request, exc: QuizApiError):
    log = logger.error if exc.status_code >= HTTP_500_INTERNAL_SERVER_ERROR else logger.warning
    log(
        section=LogSection.API,
        subsection=LogSubsection.API.ERROR,
        message=f"{exc.error_code} для пути {request.url.path} (метод: {request.method}) - {exc.message}"
    )
    return error(
        code=exc.status_code,
        message=exc.message,
        details={"path": request.url.path},
        error_code=exc.error_code
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    path = request.url.path
    code = exc.status_code
    error_code = HTTP_ERROR_CODES.get(code, "HTTP_ERROR")

    logger.warning(
        section=LogSection.API,
        subsection=LogSubsection.API.ERROR,
        message=f"HTTP исключение {code} для пути {path} (метод: {request.method}) - {exc.detail}"
    )

    if isinstance(exc.detail, str):
        response = error(code=code, message=exc.detail, details={"path": path}, error_code=error_code)
    elif isinstance(exc.detail, dict):
        details = exc.detail.copy()
        details.setdefault("path", path)
        response = error(
            code=code,
            message=details.get("message", "Ошибка запроса"),
            details=details,
            error_code=error_code
        )
    else:
        response = error(code=code, message="Ошибка запроса", details={"path": path}, error_code=error_code)

    # Заголовки рейт лимитера (Retry-After и X-RateLimit-*)
    if exc.headers:
        response.headers.update(exc.headers)
    return response


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    error_list = []
    for err in exc.errors():
        field = err.get("loc", ["неизвестное поле"])[-1]
        message = err.get("msg", "Некорректное значение")
        # Удаляем префикс "Value error, " если он присутствует
        prefix = "Value error, "
        if message.startswith(prefix):
            message = message[len(prefix):]
        error_list.append({"field": field, "message": message})

    logger.warning(
        section=LogSection.API,
        subsection=LogSubsection.API.VALIDATION,
        message=f"Ошибка валидации запроса для пути {request.url.path} (метод: {request.method})"
    )

    formatted_error_details = "; ".join(
        [f"Поле «{item['field']}»: {item['message']}" for item in error_list]
    )
    return error(
        code=HTTP_422_UNPROCESSABLE_ENTITY,
        message=formatted_error_details,
        details="Ошибка валидации данных",
        error_code="INVALID_INPUT"
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.critical(
        section=LogSection.API,
        subsection=LogSubsection.API.ERROR,
        message=f"Необработанное исключение для пути {request.url.path} (метод: {request.method}): {type(exc).__name__}: {str(exc)}"
    )
    return error(
        code=HTTP_500_INTERNAL_SERVER_ERROR,
        message="Внутренняя ошибка сервера",
        details={"path": request.url.path},
        error_code="INTERNAL_ERROR"
    )


@app.on_event("startup")
async def startup_event():
    """Запускается при старте приложения"""
    logger.info(
        section=LogSection.SYSTEM,
        subsection=LogSubsection.SYSTEM.STARTUP,
        message="Запуск приложения"
    )

    # Создаем индексы базы данных
    try:
        await create_database_indexes(db)
    except Exception as e:
        logger.error(
            section=LogSection.SYSTEM,
            subsection=LogSubsection.SYSTEM.STARTUP,
            message=f"Ошибка при создании индексов базы данных: {str(e)}"
        )

    if settings.RATE_LIMIT_ENABLED:
        redis = await get_rate_limiter()._get_redis_connection()
        if redis:
            logger.info(
                section=LogSection.SYSTEM,
                subsection=LogSubsection.SYSTEM.STARTUP,
                message="Rate limiter успешно подключен к Redis"
            )
        else:
            logger.error(
                section=LogSection.SYSTEM,
                subsection=LogSubsection.SYSTEM.STARTUP,
                message="Не удалось подключиться к Redis для rate limiter"
            )


@app.on_event("shutdown")
async def shutdown_event():
    logger.info(
        section=LogSection.SYSTEM,
        subsection=LogSubsection.SYSTEM.SHUTDOWN,
        message="Завершение работы приложения"
    )

    await close_rate_limiter()

    try:
        await close_all_rabbitmq_connections()
    except Exception as e:
        logger.error(
            section=LogSection.SYSTEM,
            subsection=LogSubsection.SYSTEM.SHUTDOWN,
            message=f"Ошибка закрытия RabbitMQ соединений: {str(e)}"
        )
