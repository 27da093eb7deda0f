"""
Модуль валидации входных данных для сертификатов.
"""

import re
from datetime import date, datetime
from typing import Tuple
from .exceptions import (
    ValidationError, PeriodValidationError, UnsupportedMediaTypeError,
    PayloadTooLargeError, InvalidFilenameError
)

PDF_CONTENT_TYPE = "application/pdf"


class PeriodValidator:
    """Валидатор дат выдачи и окончания сертификата."""

    def parse_date(self, value: str, field_name: str) -> date:
        """
        Парсинг даты из формы.

        Принимает YYYY-MM-DD (значение input type=date) и ISO datetime.

        Args:
            value: Строка даты
            field_name: Имя поля для сообщения об ошибке

        Returns:
            date: Разобранная дата

        Raises:
            PeriodValidationError: При некорректном формате
        """
        value = (value or "").strip()
        try:
            return date.fromisoformat(value)
        except ValueError:
            pass

        try:
            # Допускаем суффикс Z из JavaScript toISOString()
            return datetime.fromisoformat(value.replace("Z", "+00:00")).date()
        except ValueError:
            raise PeriodValidationError(f"Некорректная дата в поле {field_name}: {value}")

    def validate(self, issue_date: date, expiry_date: date) -> Tuple[bool, str]:
        """
        Валидация периода действия.

        Args:
            issue_date: Дата выдачи
            expiry_date: Дата окончания действия

        Returns:
            Tuple[bool, str]: (валиден ли период, сообщение об ошибке)
        """
        if expiry_date < issue_date:
            return False, "Дата окончания не может быть раньше даты выдачи"

        return True, ""

    def parse_period(self, issue_date: str, expiry_date: str) -> Tuple[date, date]:
        """Разбирает обе даты и проверяет их порядок."""
        issued = self.parse_date(issue_date, "issueDate")
        expires = self.parse_date(expiry_date, "expiryDate")

        is_valid, error = self.validate(issued, expires)
        if not is_valid:
            raise PeriodValidationError(error)

        return issued, expires


class PdfFileValidator:
    """Валидатор загружаемых PDF файлов."""

    def __init__(self, max_size: int):
        self.max_size = max_size

    def validate(self, content_type: str, size: int) -> None:
        """
        Проверка типа и размера файла.

        Тип сравнивается точно: application/pdf без параметров и в нижнем регистре.

        Raises:
            UnsupportedMediaTypeError: Тип файла не PDF
            PayloadTooLargeError: Файл больше лимита
            ValidationError: Пустой файл
        """
        if (content_type or "").strip() != PDF_CONTENT_TYPE:
            raise UnsupportedMediaTypeError("Допускаются только PDF файлы")

        if size > self.max_size:
            limit_mb = self.max_size / (1024 * 1024)
            raise PayloadTooLargeError(f"Размер файла превышает {limit_mb:g} МБ")

        if size == 0:
            raise ValidationError("Загруженный файл пуст")


class FilenameValidator:
    """Валидатор и нормализатор имен PDF файлов."""

    def __init__(self):
        # Все, что не латинская буква или цифра, заменяется на '_'
        self.unsafe_pattern = re.compile(r'[^A-Za-z0-9]')

    def sanitize(self, value: str) -> str:
        """Делает строку безопасной для использования в имени файла."""
        return self.unsafe_pattern.sub('_', value)

    def validate(self, filename: str) -> bool:
        """
        Проверка имени файла, пришедшего извне.

        Args:
            filename: Имя файла

        Returns:
            bool: True если имя допустимо, False иначе
        """
        if not filename or '..' in filename:
            return False

        if '/' in filename or '\\' in filename or '\x00' in filename:
            return False

        return filename.endswith('.pdf') and len(filename) > len('.pdf')

    def ensure_valid(self, filename: str) -> str:
        """Возвращает имя файла или выбрасывает InvalidFilenameError."""
        if not self.validate(filename):
            raise InvalidFilenameError("Недопустимое имя файла")
        return filename


class DataValidator:
    """Общий валидатор для всех типов данных."""

    def __init__(self, max_upload_size: int):
        self.period_validator = PeriodValidator()
        self.pdf_validator = PdfFileValidator(max_upload_size)
        self.filename_validator = FilenameValidator()

    def validate_dni(self, dni: str) -> str:
        """Нормализует DNI для поиска."""
        dni = (dni or "").strip()
        if not dni:
            raise ValidationError("DNI обязателен")
        return dni

