"""
Инициализация индексов MongoDB для коллекций, которые читает и пишет сервис
"""
from pymongo import IndexModel

from quiz_api.logging import get_logger, LogSection, LogSubsection

logger = get_logger("database_indexes")


async def create_database_indexes(db):
    logger.info(
        section=LogSection.DATABASE,
        subsection=LogSubsection.DATABASE.INDEXES_CREATE,
        message="Начинаем создание индексов базы данных"
    )

    try:
        # answers: одна запись на попытку, выборки по владельцу и по quizId
        await db.answers.create_indexes([
            IndexModel([("userId", 1)], name="answers_by_user"),
            IndexModel([("quizId", 1)], name="answers_by_quiz_id"),
            IndexModel([("answers.questionId", 1)], name="answers_by_question"),
        ])
        logger.info(section=LogSection.DATABASE,
                    subsection=LogSubsection.DATABASE.INDEXES_SUCCESS,
                    message="Индексы для коллекции answers созданы")

        # -------------------------
        # follows (подсчет подписчиков и подписок)
        await db.follows.create_indexes([
            IndexModel([("follower", 1)], name="follows_by_follower"),
            IndexModel([("following", 1)], name="follows_by_following"),
        ])
        logger.info(section=LogSection.DATABASE,
                    subsection=LogSubsection.DATABASE.INDEXES_SUCCESS,
                    message="Индексы для коллекции follows созданы")

        # -------------------------
        # questions (ссылки на таксономию)
        await db.questions.create_indexes([
            IndexModel([("category", 1)], name="questions_by_category"),
            IndexModel([("level", 1)], name="questions_by_level"),
            IndexModel([("topic", 1)], name="questions_by_topic"),
            IndexModel([("type", 1)], name="questions_by_type"),
        ])
        logger.info(section=LogSection.DATABASE,
                    subsection=LogSubsection.DATABASE.INDEXES_SUCCESS,
                    message="Индексы для коллекции questions созданы")

    except Exception as e:
        logger.error(
            section=LogSection.DATABASE,
            subsection=LogSubsection.DATABASE.INDEXES_ERROR,
            message=f"Ошибка при создании индексов: {str(e)}"
        )
        raise
