"""
Публичная проверка сертификатов и скачивание PDF.
"""

import logging

from fastapi import APIRouter, Depends, Query
from fastapi.responses import FileResponse

from core.service import CertificateService
from core.validators import PDF_CONTENT_TYPE
from ..dependencies import get_certificate_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/certificates", tags=["public"])


@router.get("/search", summary="Поиск сертификатов по DNI")
def search_certificates(
    dni: str = Query("", description="Номер документа владельца"),
    service: CertificateService = Depends(get_certificate_service)
):
    """Возвращает действующие сертификаты владельца, новые первыми."""
    certificates = service.search_by_dni(dni)
    return {"certificates": [cert.to_dict() for cert in certificates]}


# path: имена с разделителями должны дойти до проверки, а не до 404 маршрутизации
@router.get("/download/{filename:path}", summary="Скачивание PDF")
def download_certificate(
    filename: str,
    service: CertificateService = Depends(get_certificate_service)
):
    file_path = service.open_pdf(filename)
    logger.info(f"Скачивание {file_path.name}")

    return FileResponse(
        file_path,
        media_type=PDF_CONTENT_TYPE,
        filename=file_path.name,
        headers={"Cache-Control": "no-cache"}
    )
