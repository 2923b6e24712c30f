from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class AnswerItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    question_id: str = Field(..., alias="questionId")
    user_answers: List[str] = Field(..., alias="userAnswers")
    timestamp: Optional[datetime] = None

    @field_validator("question_id")
    @classmethod
    def validate_question_id(cls, value):
        if not value or not value.strip():
            raise ValueError("questionId is required")
        return value.strip()

    @field_validator("user_answers")
    @classmethod
    def validate_user_answers(cls, value):
        if not value:
            raise ValueError("userAnswers cannot be empty")
        return value


class CreateAnswersRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(..., alias="userId")
    answers: List[AnswerItem]

    @field_validator("user_id")
    @classmethod
    def validate_user_id(cls, value):
        if not value or not value.strip():
            raise ValueError("userId is required")
        return value.strip()


class DeleteAnswersRequest(BaseModel):
    ids: List[str] = []
