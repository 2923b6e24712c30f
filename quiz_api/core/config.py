# quiz_api/core/config.py

from typing import List, Optional

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

# Подтягиваем переменные окружения из .env, если файл есть
load_dotenv()


class Settings(BaseSettings):
    # MongoDB
    MONGO_URI: str
    MONGO_DB_NAME: str

    # JWT (токены выпускает сервис авторизации, здесь только проверяем)
    SECRET_KEY: str
    ALGORITHM: str = "HS256"

    # Профиль
    DEFAULT_USER_IMAGE: str = ""

    # Ответы и история
    HISTORY_SKIP_DANGLING_QUESTIONS: bool = True

    CORS_ORIGINS: List[str] = ["http://localhost:3000"]

    # Рейт лимиты (Redis)
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_FAIL_OPEN: bool = True
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_PASSWORD: Optional[str] = None
    REDIS_DB: int = 0

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


# Единый экземпляр настроек для всего проекта
settings = Settings()
