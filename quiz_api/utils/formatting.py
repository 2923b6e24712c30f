# quiz_api/utils/formatting.py
from decimal import Decimal, ROUND_HALF_UP

from bson import ObjectId

_COUNT_UNITS = (
    (1_000_000_000, "B"),
    (1_000_000, "M"),
    (1_000, "K"),
)


def round_count(num: int) -> str:
    """Округляет счетчик до человекочитаемого вида: 1250 -> "1.3K", 2000000 -> "2.0M" """
    for threshold, suffix in _COUNT_UNITS:
        if num >= threshold:
            value = (Decimal(num) / Decimal(threshold)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
            return f"{value}{suffix}"
    return str(num)


def serialize_object_ids(obj):
    """Рекурсивно заменяет ObjectId строками (вложенные _id у options/blanks)"""
    if isinstance(obj, ObjectId):
        return str(obj)
    elif isinstance(obj, dict):
        return {k: serialize_object_ids(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [serialize_object_ids(item) for item in obj]
    return obj
