from motor.motor_asyncio import AsyncIOMotorClient

from quiz_api.core.config import settings

# Клиент подключается лениво, при первом запросе
client = AsyncIOMotorClient(settings.MONGO_URI)

db = client[settings.MONGO_DB_NAME]


# dependency для FastAPI
async def get_database():
    return db


from .indexes import create_database_indexes  # noqa: E402
