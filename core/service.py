"""
Основная бизнес-логика для работы с сертификатами.
"""

import logging
from pathlib import Path
from typing import Iterable, List, Optional

from config.settings import Settings
from .auth import AuthService
from .database import (
    DatabaseManager, CertificateRepository, AdminUserRepository,
    Certificate as DBCertificate
)
from .exceptions import (
    CertificateError, CertificateNotFoundError, AllCertificatesExpiredError,
    DuplicateCertificateError
)
from .generator import PdfFilenameGenerator
from .models import Certificate, CertificateForm, PdfUpload
from .storage import FileStorage
from .validators import DataValidator

# Настройка логирования
logger = logging.getLogger(__name__)

DUPLICATE_MESSAGE = "Активный сертификат для этого DNI и курса уже существует"


class CertificateService:
    """Сервис для работы с сертификатами."""

    def __init__(self, certificate_repo: CertificateRepository, file_storage: FileStorage,
                 settings: Settings, filename_generator: Optional[PdfFilenameGenerator] = None):
        """
        Инициализация сервиса.

        Args:
            certificate_repo: Репозиторий сертификатов
            file_storage: Хранилище PDF файлов
            settings: Настройки приложения
            filename_generator: Генератор имен PDF файлов
        """
        self.certificate_repo = certificate_repo
        self.file_storage = file_storage
        self.settings = settings
        self.filename_generator = filename_generator or PdfFilenameGenerator()
        self.validator = DataValidator(settings.max_upload_size)

    def list_certificates(self, include_inactive: bool = False) -> List[Certificate]:
        """
        Список сертификатов для администратора, новые первыми.

        Args:
            include_inactive: Включать удаленные сертификаты
        """
        db_certificates = self.certificate_repo.list_certificates(include_inactive=include_inactive)
        return [self._convert_db_to_pydantic(db_cert) for db_cert in db_certificates]

    def get_certificate(self, certificate_id: str) -> Certificate:
        """
        Получает активный сертификат по ID.

        Raises:
            CertificateNotFoundError: Сертификат не найден или удален
        """
        db_certificate = self.certificate_repo.get_certificate(certificate_id)
        if db_certificate is None:
            raise CertificateNotFoundError("Сертификат не найден")
        return self._convert_db_to_pydantic(db_certificate)

    def search_by_dni(self, dni: str) -> List[Certificate]:
        """
        Публичный поиск действующих сертификатов по DNI.

        Args:
            dni: Номер документа владельца

        Returns:
            List[Certificate]: Активные сертификаты с неистекшим сроком, новые первыми

        Raises:
            ValidationError: DNI не указан
            CertificateNotFoundError: Активных сертификатов нет
            AllCertificatesExpiredError: Срок действия всех активных сертификатов истек
        """
        dni = self.validator.validate_dni(dni)
        logger.info(f"Поиск сертификатов по DNI {dni}")

        db_certificates = self.certificate_repo.get_certificates_by_dni(dni, active_only=True)
        if not db_certificates:
            raise CertificateNotFoundError("Сертификаты для указанного DNI не найдены")

        certificates = [self._convert_db_to_pydantic(db_cert) for db_cert in db_certificates]
        valid = [cert for cert in certificates if not cert.is_expired]

        if not valid:
            logger.info(f"Все сертификаты DNI {dni} истекли")
            raise AllCertificatesExpiredError("Нет действующих сертификатов для указанного DNI")

        return valid

    def create_certificate(self, form: CertificateForm, upload: Optional[PdfUpload] = None,
                           performed_by: Optional[str] = None) -> Certificate:
        """
        Создает новый сертификат.

        Args:
            form: Данные формы
            upload: PDF файл, если загружен
            performed_by: Идентификатор администратора для логов

        Returns:
            Certificate: Созданный сертификат

        Raises:
            ValidationError: При ошибке валидации полей или файла
            DuplicateCertificateError: Активный сертификат для DNI и курса уже есть
            StorageError: Не удалось сохранить PDF
            DatabaseError: При ошибке БД
        """
        record = form.to_record()
        self._validate_upload(upload)

        logger.info(
            f"Создание сертификата для DNI {record['dni']}, курс {record['course']}"
            f" ({performed_by or 'unknown'})"
        )

        if self.certificate_repo.find_active_duplicate(record["dni"], record["course"]):
            logger.warning(f"Дубликат сертификата: {record['dni']} / {record['course']}")
            raise DuplicateCertificateError(DUPLICATE_MESSAGE)

        written = []
        attach_pdf = self._pdf_writer(record, upload, written) if upload is not None else None

        try:
            db_certificate = self.certificate_repo.create_certificate(record, attach_pdf=attach_pdf)
        except Exception:
            # Запись не зафиксирована, файл больше никому не нужен
            self._discard_files(written)
            raise

        certificate = self._convert_db_to_pydantic(db_certificate)
        logger.info(f"Сертификат {certificate.id} успешно создан")
        return certificate

    def update_certificate(self, certificate_id: str, form: CertificateForm,
                           upload: Optional[PdfUpload] = None,
                           performed_by: Optional[str] = None) -> Certificate:
        """
        Обновляет активный сертификат.

        Новый PDF заменяет ссылку, старый файл удаляется без прерывания запроса.

        Raises:
            CertificateNotFoundError: Сертификат не найден или удален
            ValidationError: При ошибке валидации
            DuplicateCertificateError: Пара DNI + курс занята другим сертификатом
        """
        record = form.to_record()
        self._validate_upload(upload)

        logger.info(f"Обновление сертификата {certificate_id} ({performed_by or 'unknown'})")

        if self.certificate_repo.get_certificate(certificate_id) is None:
            raise CertificateNotFoundError("Сертификат не найден")

        if self.certificate_repo.find_active_duplicate(
                record["dni"], record["course"], exclude_id=certificate_id):
            logger.warning(f"Дубликат сертификата при обновлении: {record['dni']} / {record['course']}")
            raise DuplicateCertificateError(DUPLICATE_MESSAGE)

        written = []
        attach_pdf = self._pdf_writer(record, upload, written) if upload is not None else None

        try:
            db_certificate, replaced_pdf_url = self.certificate_repo.update_certificate(
                certificate_id, record, attach_pdf=attach_pdf
            )
        except Exception:
            self._discard_files(written)
            raise

        if replaced_pdf_url:
            self._discard_files([replaced_pdf_url])

        logger.info(f"Сертификат {certificate_id} успешно обновлен")
        return self._convert_db_to_pydantic(db_certificate)

    def delete_certificate(self, certificate_id: str, performed_by: Optional[str] = None) -> None:
        """
        Удаляет сертификат (мягкое удаление) и его PDF.

        Raises:
            CertificateNotFoundError: Сертификат не найден или уже удален
        """
        logger.info(f"Удаление сертификата {certificate_id} ({performed_by or 'unknown'})")

        pdf_url = self.certificate_repo.deactivate_certificate(certificate_id)
        if pdf_url:
            self._discard_files([pdf_url])

        logger.info(f"Сертификат {certificate_id} деактивирован")

    def open_pdf(self, filename: str) -> Path:
        """
        Путь к PDF для скачивания.

        Raises:
            InvalidFilenameError: Недопустимое имя файла
            PdfFileNotFoundError: Файл отсутствует
        """
        self.validator.filename_validator.ensure_valid(filename)
        return self.file_storage.resolve_pdf(filename)

    def _validate_upload(self, upload: Optional[PdfUpload]):
        if upload is not None:
            self.validator.pdf_validator.validate(upload.content_type, upload.size)

    def _pdf_writer(self, record: dict, upload: PdfUpload, written: list):
        """Возвращает функцию записи PDF, запоминающую сохраненные ссылки."""
        def attach_pdf() -> str:
            filename = self.filename_generator.generate(record["dni"], record["course"])
            reference = self.file_storage.save_pdf(filename, upload.content)
            written.append(reference)
            return reference
        return attach_pdf

    def _discard_files(self, references: Iterable[str]):
        """Удаляет файлы без прерывания запроса, ошибки только логируются."""
        for reference in references:
            try:
                self.file_storage.delete_pdf(reference)
            except (CertificateError, OSError) as e:
                logger.warning(f"Не удалось удалить файл {reference}: {e}")

    def _convert_db_to_pydantic(self, db_certificate: DBCertificate) -> Certificate:
        """
        Конвертирует объект БД в Pydantic модель.

        Args:
            db_certificate: Объект сертификата из БД

        Returns:
            Certificate: Pydantic модель сертификата
        """
        is_active = db_certificate.is_active
        if is_active is None:
            is_active = True

        return Certificate(
            id=str(db_certificate.id),
            dni=db_certificate.dni,
            full_name=db_certificate.full_name,
            course=db_certificate.course,
            company=db_certificate.company,
            issue_date=db_certificate.issue_date,
            expiry_date=db_certificate.expiry_date,
            pdf_url=db_certificate.pdf_url,
            is_active=is_active,
            created_at=db_certificate.created_at,
            updated_at=db_certificate.updated_at
        )


class Services:
    """Набор сервисов приложения, собранный из одного объекта настроек."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.db_manager = DatabaseManager(settings.sqlalchemy_url)
        self.file_storage = FileStorage(settings.certificates_path, settings.download_url_prefix)
        self.auth_service = AuthService(settings, AdminUserRepository(self.db_manager))
        self.certificate_service = CertificateService(
            CertificateRepository(self.db_manager), self.file_storage, settings
        )


def build_services(settings: Settings) -> Services:
    """Создает сервисы для API сервера и CLI."""
    return Services(settings)
