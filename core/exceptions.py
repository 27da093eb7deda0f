"""
Кастомные исключения для реестра сертификатов.
"""


class CertificateError(Exception):
    """Базовое исключение для всех ошибок сертификатов."""
    pass


class ValidationError(CertificateError):
    """Ошибка валидации входных данных."""
    pass


class PeriodValidationError(ValidationError):
    """Ошибка валидации дат выдачи и окончания."""
    pass


class UnsupportedMediaTypeError(ValidationError):
    """Загруженный файл не является PDF."""
    pass


class PayloadTooLargeError(ValidationError):
    """Загруженный файл превышает допустимый размер."""
    pass


class InvalidFilenameError(ValidationError):
    """Недопустимое имя файла (выход за пределы каталога, не PDF)."""
    pass


class CertificateNotFoundError(CertificateError):
    """Сертификат не найден."""
    pass


class PdfFileNotFoundError(CertificateNotFoundError):
    """PDF файл отсутствует в хранилище."""
    pass


class AllCertificatesExpiredError(CertificateNotFoundError):
    """Сертификаты найдены, но срок действия всех истек."""
    pass


class DuplicateCertificateError(CertificateError):
    """Активный сертификат для этого DNI и курса уже существует."""
    pass


class AuthError(CertificateError):
    """Базовая ошибка аутентификации."""
    pass


class InvalidCredentialsError(AuthError):
    """Неверный логин или пароль."""
    pass


class InvalidTokenError(AuthError):
    """Токен отсутствует, просрочен или подделан."""
    pass


class DatabaseError(CertificateError):
    """Ошибка работы с базой данных."""
    pass


class StorageError(CertificateError):
    """Ошибка работы с файловым хранилищем."""
    pass
