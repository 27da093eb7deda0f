"""
Преобразование исключений в HTTP ответы.
"""

import logging
from typing import Any, Dict, Optional, Tuple

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from core.exceptions import (
    CertificateError, ValidationError, DuplicateCertificateError,
    UnsupportedMediaTypeError, PayloadTooLargeError, InvalidFilenameError,
    CertificateNotFoundError, PdfFileNotFoundError, AllCertificatesExpiredError,
    AuthError, InvalidCredentialsError, InvalidTokenError,
    DatabaseError, StorageError
)

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Внутренняя ошибка сервера"

# Порядок важен: подклассы проверяются раньше базовых классов
ERROR_STATUS_MAP = (
    (AllCertificatesExpiredError, status.HTTP_404_NOT_FOUND, "ALL_EXPIRED"),
    (PdfFileNotFoundError, status.HTTP_404_NOT_FOUND, "FILE_NOT_FOUND"),
    (CertificateNotFoundError, status.HTTP_404_NOT_FOUND, "NOT_FOUND"),
    (UnsupportedMediaTypeError, status.HTTP_400_BAD_REQUEST, "UNSUPPORTED_MEDIA_TYPE"),
    (PayloadTooLargeError, status.HTTP_400_BAD_REQUEST, "PAYLOAD_TOO_LARGE"),
    (InvalidFilenameError, status.HTTP_400_BAD_REQUEST, "INVALID_FILENAME"),
    (ValidationError, status.HTTP_400_BAD_REQUEST, "VALIDATION_ERROR"),
    (DuplicateCertificateError, status.HTTP_400_BAD_REQUEST, "DUPLICATE"),
    (InvalidCredentialsError, status.HTTP_401_UNAUTHORIZED, "INVALID_CREDENTIALS"),
    (InvalidTokenError, status.HTTP_401_UNAUTHORIZED, "INVALID_TOKEN"),
    (AuthError, status.HTTP_401_UNAUTHORIZED, "UNAUTHORIZED"),
    (DatabaseError, status.HTTP_500_INTERNAL_SERVER_ERROR, "DATABASE_ERROR"),
    (StorageError, status.HTTP_500_INTERNAL_SERVER_ERROR, "STORAGE_ERROR"),
)


def create_error_response(
    status_code: int,
    message: str,
    error_code: Optional[str] = None,
    extra_data: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """Единый формат тела ответа с ошибкой."""
    response = {
        "success": False,
        "message": message,
        "error": {
            "code": error_code or f"ERR_{status_code}",
            "message": message
        }
    }

    if extra_data:
        response["error"]["details"] = extra_data

    return response


def resolve_error(exc: CertificateError) -> Tuple[int, str]:
    """Код ответа и код ошибки для исключения."""
    for error_class, status_code, error_code in ERROR_STATUS_MAP:
        if isinstance(exc, error_class):
            return status_code, error_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR, "INTERNAL_ERROR"


async def certificate_error_handler(request: Request, exc: CertificateError) -> JSONResponse:
    status_code, error_code = resolve_error(exc)

    if status_code >= 500:
        # Подробности только в логах
        logger.error(f"{request.method} {request.url.path}: {exc}")
        message = INTERNAL_ERROR_MESSAGE
    else:
        logger.warning(f"{request.method} {request.url.path}: {exc}")
        message = str(exc)

    return JSONResponse(
        status_code=status_code,
        content=create_error_response(status_code, message, error_code)
    )


async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = [".".join(str(part) for part in error.get("loc", ())) for error in exc.errors()]
    message = f"Некорректный запрос: {', '.join(fields)}" if fields else "Некорректный запрос"
    logger.warning(f"{request.method} {request.url.path}: {message}")

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=create_error_response(status.HTTP_400_BAD_REQUEST, message, "VALIDATION_ERROR")
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Неожиданная ошибка {request.method} {request.url.path}: {exc}")

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=create_error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR_MESSAGE, "INTERNAL_ERROR"
        )
    )


def register_error_handlers(app: FastAPI):
    """Подключает обработчики ошибок к приложению."""
    app.add_exception_handler(CertificateError, certificate_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
