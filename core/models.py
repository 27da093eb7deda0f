"""
Pydantic модели для валидации и сериализации данных сертификатов.
"""

from datetime import datetime, date
from typing import Any, Dict, Optional
from pydantic import BaseModel, Field, validator
from pydantic import ValidationError as PydanticValidationError
from .exceptions import ValidationError
from .validators import PeriodValidator

CERTIFICATE_FIELDS = ("dni", "fullName", "course", "company", "issueDate", "expiryDate")


class CertificateForm(BaseModel):
    """Данные формы создания/редактирования сертификата."""
    dni: str = Field(..., min_length=1, description="Номер документа владельца")
    full_name: str = Field(..., alias="fullName", min_length=1, description="ФИО владельца")
    course: str = Field(..., min_length=1, description="Название курса")
    company: str = Field(..., min_length=1, description="Компания")
    issue_date: str = Field(..., alias="issueDate", min_length=1, description="Дата выдачи")
    expiry_date: str = Field(..., alias="expiryDate", min_length=1, description="Дата окончания")

    @validator('*', pre=True)
    def coerce_to_string(cls, v):
        """Значения формы приводятся к строке без пробелов по краям."""
        if v is None:
            return v
        return str(v).strip()

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "CertificateForm":
        """
        Создает форму из словаря с ключами в camelCase.

        Args:
            payload: Поля формы или JSON тела запроса

        Returns:
            CertificateForm: Проверенная форма

        Raises:
            ValidationError: Отсутствуют обязательные поля или есть лишние
        """
        try:
            return cls(**payload)
        except PydanticValidationError as e:
            raise ValidationError(cls._describe_errors(e))
        except TypeError:
            raise ValidationError("Некорректные данные формы")

    @staticmethod
    def _describe_errors(error: PydanticValidationError) -> str:
        """Превращает ошибки pydantic в сообщение для пользователя."""
        missing = []
        unknown = []
        for item in error.errors():
            field = str(item["loc"][0]) if item.get("loc") else "?"
            if item.get("type") == "extra_forbidden":
                unknown.append(field)
            else:
                missing.append(field)

        if missing:
            return f"Все поля обязательны: {', '.join(missing)}"
        return f"Неизвестные поля: {', '.join(unknown)}"

    def to_record(self) -> Dict[str, Any]:
        """Возвращает данные для сохранения в БД с разобранными датами."""
        issue_date, expiry_date = PeriodValidator().parse_period(self.issue_date, self.expiry_date)
        return {
            "dni": self.dni,
            "full_name": self.full_name,
            "course": self.course,
            "company": self.company,
            "issue_date": issue_date,
            "expiry_date": expiry_date,
        }

    class Config:
        """Конфигурация модели."""
        populate_by_name = True
        extra = "forbid"
        json_schema_extra = {
            "example": {
                "dni": "12345678",
                "fullName": "Juan Pérez",
                "course": "Safety-101",
                "company": "ACME S.A.",
                "issueDate": "2024-01-15",
                "expiryDate": "2025-01-15"
            }
        }


class PdfUpload(BaseModel):
    """Загруженный PDF файл."""
    filename: str = Field(default="", description="Исходное имя файла")
    content_type: str = Field(default="", description="Заявленный MIME тип")
    content: bytes = Field(default=b"", description="Содержимое файла")

    @property
    def size(self) -> int:
        """Размер файла в байтах."""
        return len(self.content)


class Certificate(BaseModel):
    """Модель сертификата."""
    id: str
    dni: str = Field(..., description="Номер документа владельца")
    full_name: str = Field(..., description="ФИО владельца")
    course: str = Field(..., description="Название курса")
    company: str = Field(..., description="Компания")
    issue_date: date = Field(..., description="Дата выдачи")
    expiry_date: date = Field(..., description="Дата окончания действия")
    pdf_url: Optional[str] = Field(None, description="Ссылка на скачивание PDF")
    is_active: bool = Field(default=True, description="Активен ли сертификат")
    created_at: datetime = Field(default_factory=datetime.now, description="Дата создания")
    updated_at: Optional[datetime] = Field(None, description="Дата изменения")

    @property
    def is_expired(self) -> bool:
        """Проверяет, истек ли срок действия сертификата."""
        return date.today() > self.expiry_date

    @property
    def days_left(self) -> int:
        """Возвращает количество дней до истечения срока действия."""
        if self.is_expired:
            return 0
        return (self.expiry_date - date.today()).days

    @property
    def status(self) -> str:
        """Статус сертификата: inactive, expired или active."""
        if not self.is_active:
            return "inactive"
        if self.is_expired:
            return "expired"
        return "active"

    def to_dict(self) -> dict:
        """Конвертирует объект в словарь для JSON ответа."""
        return {
            "id": self.id,
            "dni": self.dni,
            "fullName": self.full_name,
            "course": self.course,
            "company": self.company,
            "issueDate": self.issue_date.isoformat(),
            "expiryDate": self.expiry_date.isoformat(),
            "pdfUrl": self.pdf_url,
            "isActive": self.is_active,
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
            "status": self.status,
            "isExpired": self.is_expired,
            "daysLeft": self.days_left
        }

    class Config:
        """Конфигурация модели."""
        from_attributes = True


class AdminUser(BaseModel):
    """Администратор без хеша пароля."""
    id: str
    email: str
    username: Optional[str] = None
    role: str = "admin"

    def to_dict(self) -> dict:
        """Публичное представление пользователя."""
        return {
            "id": self.id,
            "email": self.email,
            "username": self.username,
            "role": self.role
        }

    class Config:
        """Конфигурация модели."""
        from_attributes = True


class UserClaims(BaseModel):
    """Данные, извлеченные из проверенного токена."""
    user_id: str
    identifier: str
    role: str = "admin"
    expires_at: datetime


class LoginRequest(BaseModel):
    """Тело запроса входа. Идентификатор может прийти как email или username."""
    identifier: Optional[str] = None
    email: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None

    @property
    def resolved_identifier(self) -> str:
        """Первый непустой идентификатор."""
        for value in (self.identifier, self.email, self.username):
            if value and value.strip():
                return value.strip()
        return ""
