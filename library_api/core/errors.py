from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from library_api.core.config import logger


class APIError(Exception):
    def __init__(self, status_code: int, message: str, error: Optional[Any] = None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.error = error


def error_response(status_code: int, message: str, error: Optional[Any] = None) -> JSONResponse:
    content = {"success": False, "message": message}
    if error is not None:
        content["error"] = jsonable_encoder(error)
    return JSONResponse(status_code=status_code, content=content)


async def api_error_handler(request: Request, exc: APIError):
    return error_response(exc.status_code, exc.message, exc.error)


async def validation_error_handler(request: Request, exc: RequestValidationError):
    return error_response(400, "Validation failed",
                          {"name": "ValidationError", "issues": exc.errors()})


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404:
        return error_response(404, "The requested URL is not valid")
    return error_response(exc.status_code, str(exc.detail))


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return error_response(500, str(exc) or "Something went wrong",
                          {"name": type(exc).__name__})


def register_error_handlers(app: FastAPI):
    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
