"""
Response envelope and error taxonomy

Every response body has the shape {status, msg, data}. Handlers return
`success(...)` and raise one of the ApiError subclasses for expected
failures; main.py renders those (and anything unexpected) as the failure
envelope.
"""

from typing import Any, Optional

from fastapi import HTTPException
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

SUCCESS = "SUCCESS"
FAILED = "FAILED"


def envelope(status: str, msg: str, data: Any = None) -> dict:
    return {"status": status, "msg": msg, "data": data}


def success(msg: str, data: Any = None, status_code: int = 200, **extra: Any) -> JSONResponse:
    body = envelope(SUCCESS, msg, data)
    body.update(extra)
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body))


def failure(status_code: int, msg: str, data: Any = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=jsonable_encoder(envelope(FAILED, msg, data)))


class ApiError(HTTPException):
    status_code = 500
    default_msg = "Server Error"

    def __init__(self, msg: Optional[str] = None, data: Any = None):
        self.msg = msg or self.default_msg
        self.data = data
        super().__init__(status_code=self.status_code, detail=self.msg)


class Unauthenticated(ApiError):
    status_code = 401
    default_msg = "Unauthorized, invalid token"


class Forbidden(ApiError):
    status_code = 403
    default_msg = "You are not allowed to perform this action"


class NotFound(ApiError):
    status_code = 404
    default_msg = "Not Found"


# Uniqueness violations have always been reported with 404.
class Conflict(ApiError):
    status_code = 404
    default_msg = "Already Exists"


class ValidationFailed(ApiError):
    status_code = 400
    default_msg = "Validation Failed"


class Internal(ApiError):
    status_code = 500
    default_msg = "Server Error"
