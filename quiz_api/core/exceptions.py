"""Доменные исключения сервиса ответов.

Сервисы бросают их, а обработчик в main.py превращает в стандартный
ответ об ошибке (см. core/response.py).
"""


class QuizApiError(Exception):
    """Базовое исключение сервиса"""
    status_code = 500
    error_code = "INTERNAL_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInputError(QuizApiError):
    """Некорректный идентификатор, пустые поля или ссылка на несуществующую сущность во входных данных"""
    status_code = 400
    error_code = "INVALID_INPUT"


class NotFoundError(QuizApiError):
    """Запрос по корректному идентификатору ничего не нашел"""
    status_code = 404
    error_code = "NOT_FOUND"


class InternalError(QuizApiError):
    """Непредвиденная ошибка хранилища или объединения данных"""
    status_code = 500
    error_code = "INTERNAL_ERROR"
