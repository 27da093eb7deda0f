"""
Зависимости FastAPI: доступ к сервисам и разбор тела запроса.
"""

import json
from typing import Optional, Tuple

from fastapi import Request
from starlette.datastructures import UploadFile

from config.settings import Settings
from core.auth import AuthService
from core.exceptions import InvalidTokenError, ValidationError
from core.models import CertificateForm, PdfUpload, UserClaims
from core.service import CertificateService

PDF_FIELD = "pdfFile"
FORM_CONTENT_TYPES = ("multipart/form-data", "application/x-www-form-urlencoded")


def get_settings(request: Request) -> Settings:
    return request.app.state.services.settings


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.services.auth_service


def get_certificate_service(request: Request) -> CertificateService:
    return request.app.state.services.certificate_service


def get_current_claims(request: Request) -> Optional[UserClaims]:
    """Данные токена, сохраненные middleware."""
    return getattr(request.state, "user", None)


def require_claims(request: Request) -> UserClaims:
    """
    Данные токена для маршрутов, которым нужен вошедший администратор.

    Raises:
        InvalidTokenError: Middleware не пропустил токен для этого пути
    """
    claims = get_current_claims(request)
    if claims is None:
        raise InvalidTokenError("Требуется вход администратора")
    return claims


async def read_certificate_payload(request: Request) -> Tuple[CertificateForm, Optional[PdfUpload]]:
    """
    Читает поля сертификата из multipart формы или JSON.

    Returns:
        Tuple[CertificateForm, Optional[PdfUpload]]: Проверенные поля и файл, если он загружен

    Raises:
        ValidationError: Тело не разобрано, поля отсутствуют или лишние
    """
    content_type = request.headers.get("content-type", "").split(";", 1)[0].strip().lower()

    if content_type in FORM_CONTENT_TYPES:
        form = await request.form()
        fields = {key: value for key, value in form.multi_items() if key != PDF_FIELD}
        upload = await _read_upload(form.get(PDF_FIELD), request.app.state.services.settings.max_upload_size)
        return CertificateForm.from_payload(fields), upload

    if content_type == "application/json":
        try:
            body = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            raise ValidationError("Некорректный JSON")

        if not isinstance(body, dict):
            raise ValidationError("Ожидается JSON объект")
        return CertificateForm.from_payload(body), None

    raise ValidationError("Ожидается multipart/form-data или application/json")


async def _read_upload(value, max_size: int) -> Optional[PdfUpload]:
    """Файл из формы. Пустое поле без имени файла означает, что файл не выбран."""
    if value is None or value == "":
        return None

    if not isinstance(value, UploadFile):
        raise ValidationError(f"Поле {PDF_FIELD} должно содержать файл")

    # Читаем на байт больше лимита, чтобы распознать превышение
    content = await value.read(max_size + 1)
    await value.close()

    if not value.filename and not content:
        return None

    return PdfUpload(
        filename=value.filename or "",
        content_type=value.content_type or "",
        content=content
    )
