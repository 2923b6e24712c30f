# quiz_api/core/response.py

import uuid
from datetime import datetime, timezone

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def make_meta(pagination=None):
    return {
        "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        "trace_id": str(uuid.uuid4()),
        "pagination": pagination
    }


def success(data=None, message="Операция выполнена успешно", pagination=None, status_code=200):
    return JSONResponse(
        status_code=status_code,
        content={
            "status": "ok",
            "message": message,
            "data": jsonable_encoder(data),
            "meta": make_meta(pagination)
        }
    )


def error(code=400, message="Ошибка", details=None, error_code=None):
    return JSONResponse(
        status_code=code,
        content={
            "status": "error",
            "code": code,
            "error_code": error_code,
            "message": message,
            "details": jsonable_encoder(details),
            "meta": make_meta()
        }
    )
