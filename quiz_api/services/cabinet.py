# quiz_api/services/cabinet.py
from bson import ObjectId

from quiz_api.core.config import settings
from quiz_api.core.exceptions import InvalidInputError, NotFoundError
from quiz_api.logging import get_logger, LogSection, LogSubsection
from quiz_api.services import directories
from quiz_api.services.history import build_user_history
from quiz_api.utils.formatting import round_count

logger = get_logger(__name__)


def format_profile(user: dict) -> dict:
    return {
        "id": str(user["_id"]),
        "firstname": user.get("firstname"),
        "lastname": user.get("lastname"),
        "username": user.get("username"),
        "email": user.get("email"),
        "bio": user.get("bio"),
        "image": user.get("image") or settings.DEFAULT_USER_IMAGE,
    }


async def build_cabinet(db, user_id: str) -> dict:
    """
    Профиль пользователя для личного кабинета: данные пользователя,
    подписки, история ответов и итог "верно X из Y, монет N из M".
    """
    if not ObjectId.is_valid(user_id):
        raise InvalidInputError("Invalid user ID")

    user = await directories.find_user(db, ObjectId(user_id), directories.USER_PROFILE_PROJECTION)
    if not user:
        raise NotFoundError("User not found")

    follow = await directories.get_follow_stats(db, ObjectId(user_id))
    history = await build_user_history(db, user_id)
    totals = await directories.get_question_totals(db)

    logger.info(
        section=LogSection.CABINET,
        subsection=LogSubsection.CABINET.BUILD,
        message=f"Собран кабинет пользователя {user_id}",
        user_id=user_id
    )

    return {
        "user": {
            **format_profile(user),
            "follower": round_count(follow["followerTotal"]),
            "following": round_count(follow["followingTotal"]),
        },
        "results": {
            "total": totals["total"],
            "correct": history["correct"],
            "inCorrect": history["inCorrect"],
            "earnedCoins": history["earnedCoins"],
            "totalCoins": totals["totalCoins"],
        },
        "levels": history["levels"],
        "topics": history["topics"],
        "answers": history["answers"],
        "follower": follow["follower"],
        "following": follow["following"],
        "categories": history["categories"],
    }
