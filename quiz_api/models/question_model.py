# quiz_api/models/question_model.py
from enum import Enum


class QuestionType(str, Enum):
    MULTIPLE_CHOICE = "multiple-choice"
    INPUT = "input"
    FILL_IN_THE_BLANK = "fill-in-the-blank"
    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"


# Медиа-вопросы проверяются всеми тремя правилами подряд
MEDIA_TYPES = {QuestionType.IMAGE.value, QuestionType.VIDEO.value, QuestionType.AUDIO.value}

# Какие типы проверяются по options / correctAnswers / blanks
OPTION_RULE_TYPES = {QuestionType.MULTIPLE_CHOICE.value} | MEDIA_TYPES
INPUT_RULE_TYPES = {QuestionType.INPUT.value} | MEDIA_TYPES
BLANK_RULE_TYPES = {QuestionType.FILL_IN_THE_BLANK.value} | MEDIA_TYPES

# Поля вопроса, которые отдаются в истории ответов
QUESTION_HISTORY_PROJECTION = {
    "question": 1,
    "type": 1,
    "coins": 1,
    "correctAnswers": 1,
    "blanks": 1,
    "options": 1,
    "media": 1,
    "category": 1,
    "level": 1,
    "topic": 1,
}
