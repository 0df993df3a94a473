"""
Обработчики ошибок (Exception Handlers) для API.

Зачем нужны exception handlers?
1. Единый формат ошибок для всего API
2. Перехват ошибок Pydantic (422) и преобразование в наш формат
3. Ошибки сервисов (PermissionError, ConflictError, StorageError) → HTTP коды
4. Скрытие внутренних деталей от клиента

Как это работает:
1. Где-то в коде возникает исключение (Exception)
2. FastAPI ищет подходящий handler для этого типа исключения
3. Handler преобразует исключение в HTTP ответ
"""

import logging

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..services.exceptions import ConflictError as VersionConflict
from ..storage import ObjectNotFoundError, StorageError
from .schemas import ErrorBody, ErrorDetail, ErrorResponse

logger = logging.getLogger(__name__)


# =============================================================================
# CUSTOM EXCEPTIONS (Наши собственные исключения)
# =============================================================================


class APIError(Exception):
    """
    Базовый класс для всех API ошибок.

    Использование:
        raise APIError(
            code="NOT_FOUND",
            message="Project not found",
            status_code=404
        )
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 400,
        details: list[dict] | None = None,
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(message)


class ForbiddenError(APIError):
    """Нет прав на действие (403)."""

    def __init__(self, message: str):
        super().__init__(code="FORBIDDEN", message=message, status_code=status.HTTP_403_FORBIDDEN)


class ConflictError(APIError):
    """
    Запись изменилась с момента чтения (409).

    details содержит ожидаемую и текущую версию.
    """

    def __init__(self, resource: str, resource_id: int, expected: int, actual: int):
        super().__init__(
            code="CONFLICT",
            message=(
                f"{resource} {resource_id} was modified by someone else "
                f"(expected version {expected}, current {actual})"
            ),
            status_code=status.HTTP_409_CONFLICT,
            details=[
                {"field": "version", "message": f"current version is {actual}"},
            ],
        )


def http_error(exc: ValueError) -> HTTPException:
    """
    ValueError из сервиса → HTTPException.

    "not found" в сообщении → 404, остальное → 400.
    """
    message = str(exc)
    if "not found" in message.lower():
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=message)
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message)


# =============================================================================
# EXCEPTION HANDLERS (Обработчики исключений)
# =============================================================================


def _error_response(
    status_code: int, code: str, message: str, details: list[ErrorDetail] | None = None
) -> JSONResponse:
    error_response = ErrorResponse(error=ErrorBody(code=code, message=message, details=details))
    return JSONResponse(status_code=status_code, content=error_response.model_dump())


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    """Преобразует APIError в единый формат ErrorResponse."""
    logger.warning(f"API Error: {exc.code} - {exc.message}")

    details = None
    if exc.details:
        details = [ErrorDetail(field=d["field"], message=d["message"]) for d in exc.details]

    return _error_response(exc.status_code, exc.code, exc.message, details)


async def permission_error_handler(request: Request, exc: PermissionError) -> JSONResponse:
    """PermissionError из сервисов → 403."""
    logger.warning(f"Forbidden: {request.method} {request.url.path} - {exc}")
    return await api_error_handler(request, ForbiddenError(str(exc)))


async def version_conflict_handler(request: Request, exc: VersionConflict) -> JSONResponse:
    """Устаревшая версия задачи → 409."""
    return await api_error_handler(
        request, ConflictError(exc.resource, exc.resource_id, exc.expected, exc.actual)
    )


async def storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
    """Объекта нет → 404, остальные ошибки хранилища → 400."""
    logger.warning(f"Storage Error: {exc}")
    if isinstance(exc, ObjectNotFoundError):
        return _error_response(status.HTTP_404_NOT_FOUND, "NOT_FOUND", str(exc))
    return _error_response(status.HTTP_400_BAD_REQUEST, "STORAGE_ERROR", str(exc))


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Обработчик для ошибок валидации Pydantic (422).

    Pydantic возвращает ошибки в своём формате:
    {
        "detail": [
            {"type": "string_too_short", "loc": ["body", "name"], "msg": "..."}
        ]
    }

    Мы преобразуем это в наш формат:
    {
        "error": {
            "code": "VALIDATION_ERROR",
            "message": "Ошибка валидации входных данных",
            "details": [{"field": "name", "message": "..."}]
        }
    }
    """
    logger.warning(f"Validation Error: {exc.errors()}")

    details = []
    for error in exc.errors():
        # loc - путь к полю, например ["body", "name"] или ["query", "limit"]
        field_path = error.get("loc", [])
        field_name = field_path[-1] if field_path else "unknown"

        if len(field_path) > 1 and field_path[0] == "body":
            field_name = ".".join(str(p) for p in field_path[1:])

        details.append(
            ErrorDetail(field=str(field_name), message=error.get("msg", "Ошибка валидации"))
        )

    return _error_response(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "VALIDATION_ERROR",
        "Ошибка валидации входных данных",
        details,
    )


async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Обработчик для всех остальных ошибок (500).

    Детали внутренних ошибок клиенту не показываем.
    """
    logger.error(f"Internal Error: {type(exc).__name__}: {exc}", exc_info=True)
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR, "INTERNAL_ERROR", "Внутренняя ошибка сервера"
    )


# =============================================================================
# РЕГИСТРАЦИЯ HANDLERS
# =============================================================================


def register_error_handlers(app):
    """
    Регистрирует все error handlers в приложении FastAPI.

    Вызывается из main.py:
        from projecthub.api.errors import register_error_handlers
        register_error_handlers(app)
    """
    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(PermissionError, permission_error_handler)
    app.add_exception_handler(VersionConflict, version_conflict_handler)
    app.add_exception_handler(StorageError, storage_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    # Все остальные ошибки
    # ВАЖНО: Раскомментируйте только если хотите скрыть все stack traces
    # app.add_exception_handler(Exception, generic_error_handler)

    logger.info("Error handlers registered")
