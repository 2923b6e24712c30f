# quiz_api/models/answer_model.py
from datetime import datetime, timezone
from typing import List

from bson import ObjectId
from pydantic import BaseModel, Field


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ScoredAnswer(BaseModel):
    question_id: str               # ID вопроса
    user_answers: List[str]        # ответы пользователя как есть
    is_correct: bool               # вычисляется один раз при отправке
    timestamp: datetime = Field(default_factory=utc_now)

    def to_document(self) -> dict:
        return {
            "questionId": ObjectId(self.question_id),
            "userAnswers": list(self.user_answers),
            "isCorrect": self.is_correct,
            "timestamp": self.timestamp,
        }


class AnswerRecord(BaseModel):
    """Одна попытка прохождения квиза (документ коллекции answers)"""
    user_id: str
    quiz_id: str = Field(..., min_length=8, max_length=8, pattern=r"^[A-Z0-9]{8}$")
    total_coins: int = 0
    answers: List[ScoredAnswer]
    created_at: datetime = Field(default_factory=utc_now)

    def to_document(self) -> dict:
        return {
            "userId": ObjectId(self.user_id),
            "quizId": self.quiz_id,
            "totalCoins": self.total_coins,
            "answers": [answer.to_document() for answer in self.answers],
            "createdAt": self.created_at,
            "updatedAt": self.created_at,
        }
