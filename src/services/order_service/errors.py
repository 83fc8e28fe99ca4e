# src/services/order_service/errors.py
"""
Отображение ошибок домена в HTTP-ответы и middleware корреляции запросов.
"""

from __future__ import annotations

import uuid
from http import HTTPStatus

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.common.constants import REQUEST_ID_HEADER, TypeMsg
from src.common.logger import bind_request_id, log_error, log_info, reset_request_id
from src.core.orders.exceptions import (
    DependencyFailure,
    InvalidOrderRequest,
    OrderError,
    OrderNotFound,
    OrderPersistenceFailed,
)
from src.shared.models.common import ErrorResponse

UNEXPECTED_KIND = "Unexpected"

ERROR_STATUS_MAP: dict[type[OrderError], int] = {
    InvalidOrderRequest: status.HTTP_400_BAD_REQUEST,
    OrderNotFound: status.HTTP_404_NOT_FOUND,
    DependencyFailure: status.HTTP_502_BAD_GATEWAY,
    OrderPersistenceFailed: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def status_for(exc: OrderError) -> int:
    """Возвращает HTTP-статус для вида ошибки."""
    for error_type, status_code in ERROR_STATUS_MAP.items():
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def _error_response(status_code: int, kind: str, message: str) -> JSONResponse:
    body = ErrorResponse(error=kind, message=message)
    return JSONResponse(status_code=status_code, content=body.model_dump())


def _describe_validation_error(exc: RequestValidationError) -> str:
    """Собирает короткое описание первой ошибки валидации тела запроса."""
    errors = exc.errors()
    if not errors:
        return "malformed request body"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    if first.get("type") == "json_invalid":
        return "malformed JSON body"
    return f"{location}: {first.get('msg')}" if location else str(first.get("msg"))


async def order_error_handler(request: Request, exc: OrderError) -> JSONResponse:
    """Ошибки домена: 4xx логируются как WARNING, 5xx как ERROR."""
    status_code = status_for(exc)
    context = {"kind": exc.kind, "path": request.url.path, "status": status_code}

    if status_code >= 500:
        cause = exc.__cause__
        await log_error(
            f"{request.method} {request.url.path} -> {status_code} {exc.kind}: {exc.message}"
            + (f" (причина: {cause!r})" if cause else ""),
            extra=context,
        )
    else:
        await log_info(
            f"{request.method} {request.url.path} -> {status_code} {exc.kind}: {exc.message}",
            type_msg=TypeMsg.WARNING,
            extra=context,
        )

    return _error_response(status_code, exc.kind, exc.message)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Тело запроса не удалось декодировать: 400 InvalidOrderRequest."""
    message = _describe_validation_error(exc)
    await log_info(
        f"{request.method} {request.url.path} -> 400 {InvalidOrderRequest.kind}: {message}",
        type_msg=TypeMsg.WARNING,
        extra={"kind": InvalidOrderRequest.kind, "path": request.url.path},
    )
    return _error_response(status.HTTP_400_BAD_REQUEST, InvalidOrderRequest.kind, message)


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Ошибки маршрутизации (404 неизвестный путь, 405 метод) в общем формате."""
    kind = HTTPStatus(exc.status_code).phrase.replace(" ", "")
    await log_info(
        f"{request.method} {request.url.path} -> {exc.status_code} {kind}",
        type_msg=TypeMsg.WARNING,
        extra={"kind": kind, "path": request.url.path},
    )
    response = _error_response(exc.status_code, kind, str(exc.detail))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Любая неклассифицированная ошибка: 500 со стектрейсом в логе."""
    await log_error(
        f"{request.method} {request.url.path} -> 500 {UNEXPECTED_KIND}: {exc!r}",
        extra={"kind": UNEXPECTED_KIND, "path": request.url.path},
        exc_info=exc,
    )
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        UNEXPECTED_KIND,
        "internal server error",
    )


async def request_id_middleware(request: Request, call_next):
    """
    Привязывает X-Request-ID к контексту логирования и возвращает его в ответе.
    Неклассифицированные ошибки превращаются в 500 здесь, пока ID ещё привязан.
    """
    request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
    token = bind_request_id(request_id)
    try:
        response = await call_next(request)
    except Exception as exc:
        response = await unexpected_error_handler(request, exc)
    finally:
        reset_request_id(token)
    response.headers[REQUEST_ID_HEADER] = request_id
    return response


def register_error_handlers(app: FastAPI) -> None:
    """Подключает обработчики ошибок и middleware корреляции."""
    app.add_exception_handler(OrderError, order_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.middleware("http")(request_id_middleware)
