"""
Административное управление сертификатами. Доступ проверяется AdminGateMiddleware.
"""

import logging
from typing import Optional, Tuple

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse

from core.models import CertificateForm, PdfUpload, UserClaims
from core.service import CertificateService
from ..dependencies import get_certificate_service, get_current_claims, read_certificate_payload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin/certificates", tags=["admin"])


def _performed_by(claims: Optional[UserClaims]) -> Optional[str]:
    return claims.identifier if claims else None


@router.get("", summary="Список сертификатов")
def list_certificates(
    include_inactive: bool = Query(False, alias="includeInactive", description="Показывать удаленные"),
    service: CertificateService = Depends(get_certificate_service)
):
    certificates = service.list_certificates(include_inactive=include_inactive)
    logger.info(f"Список сертификатов: {len(certificates)}")
    return {"certificates": [cert.to_dict() for cert in certificates]}


@router.get("/{certificate_id}", summary="Сертификат по ID")
def get_certificate(
    certificate_id: str,
    service: CertificateService = Depends(get_certificate_service)
):
    certificate = service.get_certificate(certificate_id)
    return {"certificate": certificate.to_dict()}


@router.post("", summary="Создание сертификата", status_code=status.HTTP_201_CREATED)
def create_certificate(
    payload: Tuple[CertificateForm, Optional[PdfUpload]] = Depends(read_certificate_payload),
    service: CertificateService = Depends(get_certificate_service),
    claims: Optional[UserClaims] = Depends(get_current_claims)
):
    """
    Создает сертификат из multipart формы (с необязательным pdfFile) или JSON.
    """
    form, upload = payload
    certificate = service.create_certificate(form, upload, performed_by=_performed_by(claims))

    return JSONResponse(
        status_code=status.HTTP_201_CREATED,
        content={
            "message": "Сертификат успешно создан",
            "certificate": certificate.to_dict()
        }
    )


@router.put("/{certificate_id}", summary="Изменение сертификата")
def update_certificate(
    certificate_id: str,
    payload: Tuple[CertificateForm, Optional[PdfUpload]] = Depends(read_certificate_payload),
    service: CertificateService = Depends(get_certificate_service),
    claims: Optional[UserClaims] = Depends(get_current_claims)
):
    form, upload = payload
    certificate = service.update_certificate(
        certificate_id, form, upload, performed_by=_performed_by(claims)
    )

    return {
        "message": "Сертификат успешно обновлен",
        "certificate": certificate.to_dict()
    }


@router.delete("/{certificate_id}", summary="Удаление сертификата")
def delete_certificate(
    certificate_id: str,
    service: CertificateService = Depends(get_certificate_service),
    claims: Optional[UserClaims] = Depends(get_current_claims)
):
    service.delete_certificate(certificate_id, performed_by=_performed_by(claims))
    return {"message": "Сертификат успешно удален"}
