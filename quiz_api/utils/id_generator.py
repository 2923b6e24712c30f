import random
import string

QUIZ_ID_ALPHABET = string.ascii_uppercase + string.digits
QUIZ_ID_LENGTH = 8


def generate_quiz_id(length: int = QUIZ_ID_LENGTH) -> str:
    """
    Generates a user-friendly identifier for a quiz attempt.
    Format: 8 characters, uppercase letters and digits (e.g. "AB12CD34").
    Uniqueness is not checked against stored attempts.
    """
    return ''.join(random.choice(QUIZ_ID_ALPHABET) for _ in range(length))
