"""
Чтение справочников, которыми владеют другие сервисы платформы:
пользователи, вопросы, категории/уровни/темы и подписки.
Здесь только чтение, в эти коллекции сервис не пишет.
"""
from typing import Dict, Iterable, List, Optional

from bson import ObjectId

USER_PROFILE_PROJECTION = {"firstname": 1, "lastname": 1, "username": 1, "email": 1, "bio": 1, "image": 1}
USER_SUMMARY_PROJECTION = {"firstname": 1, "lastname": 1, "username": 1, "image": 1}

CATEGORY_PROJECTION = {"title": 1, "image": 1}
TITLE_PROJECTION = {"title": 1}


async def find_user(db, user_id: ObjectId, projection: Optional[dict] = None) -> Optional[dict]:
    return await db.users.find_one({"_id": user_id}, projection)


async def find_questions_by_ids(db, question_ids: Iterable[ObjectId], projection: Optional[dict] = None) -> List[dict]:
    ids = list(dict.fromkeys(question_ids))
    if not ids:
        return []
    return await db.questions.find({"_id": {"$in": ids}}, projection).to_list(None)


async def find_by_ids(db, collection: str, ids: Iterable[ObjectId], projection: Optional[dict] = None) -> Dict[str, dict]:
    """Документы коллекции по набору id в виде словаря {str(id): документ}"""
    unique_ids = [i for i in dict.fromkeys(ids) if i is not None]
    if not unique_ids:
        return {}
    docs = await db[collection].find({"_id": {"$in": unique_ids}}, projection).to_list(None)
    return {str(doc["_id"]): doc for doc in docs}


def format_user_summary(user: dict) -> dict:
    return {
        "id": str(user["_id"]),
        "firstname": user.get("firstname"),
        "lastname": user.get("lastname"),
        "username": user.get("username"),
        "image": user.get("image"),
    }


async def get_follow_stats(db, user_id: ObjectId) -> dict:
    """Количество подписчиков/подписок и краткие профили обеих сторон"""
    follower_total = await db.follows.count_documents({"following": user_id})
    following_total = await db.follows.count_documents({"follower": user_id})

    follower_ids = [
        doc["follower"]
        async for doc in db.follows.find({"following": user_id}, {"follower": 1})
    ]
    following_ids = [
        doc["following"]
        async for doc in db.follows.find({"follower": user_id}, {"following": 1})
    ]

    followers = await db.users.find({"_id": {"$in": follower_ids}}, USER_SUMMARY_PROJECTION).to_list(None) if follower_ids else []
    following = await db.users.find({"_id": {"$in": following_ids}}, USER_SUMMARY_PROJECTION).to_list(None) if following_ids else []

    return {
        "followerTotal": follower_total,
        "followingTotal": following_total,
        "follower": [format_user_summary(user) for user in followers],
        "following": [format_user_summary(user) for user in following],
    }


async def get_question_totals(db) -> dict:
    """Общее число вопросов и сумма монет по всем вопросам"""
    total = 0
    total_coins = 0
    async for question in db.questions.find({}, {"coins": 1}):
        total += 1
        total_coins += question.get("coins") or 0
    return {"total": total, "totalCoins": total_coins}
