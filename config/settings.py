"""
Настройки приложения, загружаемые из переменных окружения.
"""

import os
from pathlib import Path
from typing import List, Optional
from pydantic import Field, validator
from pydantic_settings import BaseSettings

MEBIBYTE = 1024 * 1024


class Settings(BaseSettings):
    """Настройки приложения."""

    # Настройки аутентификации
    jwt_secret: str = Field(..., description="Секрет для подписи JWT токенов")
    jwt_algorithm: str = Field(default="HS256", description="Алгоритм подписи JWT")
    token_ttl_hours: int = Field(default=24, ge=1, description="Время жизни токена в часах")
    auth_cookie_name: str = Field(default="auth-token", description="Имя cookie с токеном")
    cookie_secure: bool = Field(default=False, description="Передавать cookie только по HTTPS")

    # Настройки базы данных
    database_url: Optional[str] = Field(default=None, description="Полный URL БД (перекрывает DB_*)")
    db_host: str = Field(default="localhost", description="Хост базы данных")
    db_port: int = Field(default=5432, description="Порт базы данных")
    db_name: str = Field(default="certificates_db", description="Имя базы данных")
    db_user: str = Field(default="certificates_user", description="Пользователь базы данных")
    db_password: str = Field(default="", description="Пароль базы данных")

    # Настройки хранилища
    certificates_path: Path = Field(
        default=Path("./certificates"),
        description="Путь к директории PDF сертификатов"
    )
    max_upload_size: int = Field(default=10 * MEBIBYTE, ge=1, description="Максимальный размер PDF в байтах")
    download_url_prefix: str = Field(
        default="/api/certificates/download",
        description="Префикс ссылок на скачивание PDF"
    )

    # Настройки доступа
    admin_path_prefixes: List[str] = Field(
        default=["/admin", "/api/admin"],
        description="Префиксы путей, требующих авторизации администратора"
    )
    public_entry_path: str = Field(default="/", description="Публичная точка входа для редиректа")
    cors_origins: List[str] = Field(default=["http://localhost:3000"], description="Разрешенные CORS источники")

    # Настройки логирования
    log_level: str = Field(default="INFO", description="Уровень логирования")
    log_file: Path = Field(
        default=Path("./logs/api.log"),
        description="Путь к файлу логов"
    )

    # Настройки приложения
    debug: bool = Field(default=False, description="Режим отладки")

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        # Создаем директории сразу при инициализации
        self.create_directories()

    @property
    def sqlalchemy_url(self) -> str:
        """Возвращает URL подключения к базе данных."""
        if self.database_url:
            return self.database_url
        return f"postgresql://{self.db_user}:{self.db_password}@{self.db_host}:{self.db_port}/{self.db_name}"

    @property
    def token_ttl_seconds(self) -> int:
        """Время жизни токена и cookie в секундах."""
        return self.token_ttl_hours * 3600

    @validator('jwt_secret')
    def validate_jwt_secret(cls, v):
        """Секрет обязателен: подстановки значения по умолчанию нет."""
        if not v or not v.strip():
            raise ValueError("JWT_SECRET не задан")
        return v

    @validator('log_level')
    def validate_log_level(cls, v):
        """Валидация уровня логирования."""
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Некорректный уровень логирования: {v}")
        return level

    @validator('admin_path_prefixes')
    def validate_prefixes(cls, v):
        """Префиксы должны начинаться с '/' и не заканчиваться им."""
        prefixes = []
        for prefix in v:
            prefix = prefix.strip()
            if not prefix.startswith("/"):
                raise ValueError(f"Префикс должен начинаться с '/': {prefix}")
            prefixes.append(prefix.rstrip("/") or "/")
        return prefixes

    @validator('certificates_path', 'log_file')
    def validate_paths(cls, v):
        """Валидация путей к файлам и директориям."""
        if isinstance(v, str):
            v = Path(v)
        return v

    def create_directories(self):
        """Создает необходимые директории."""
        self.certificates_path.mkdir(parents=True, exist_ok=True)
        self.log_file.parent.mkdir(parents=True, exist_ok=True)

    class Config:
        """Конфигурация настроек."""
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        extra = "ignore"  # Игнорировать дополнительные поля из .env


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Возвращает объект настроек, создавая его при первом обращении."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def create_env_example(path: str = ".env.example") -> Path:
    """Создает пример файла .env."""
    env_example_content = """# Подпись токенов (обязательно)
JWT_SECRET=change_me_to_a_long_random_string
TOKEN_TTL_HOURS=24
COOKIE_SECURE=false

# Настройки базы данных PostgreSQL
DB_HOST=localhost
DB_PORT=5432
DB_NAME=certificates_db
DB_USER=certificates_user
DB_PASSWORD=your_password_here
# DATABASE_URL=sqlite:///./certificates.db

# Настройки хранилища файлов
CERTIFICATES_PATH=./certificates

# Настройки логирования
LOG_LEVEL=INFO
LOG_FILE=./logs/api.log

# Общие настройки
DEBUG=false
"""

    target = Path(path)
    with open(target, "w", encoding="utf-8") as f:
        f.write(env_example_content)

    print(f"Создан файл {target} с примером конфигурации")
    return target


def validate_settings(settings: Optional[Settings] = None) -> bool:
    """Проверяет корректность настроек."""
    try:
        settings = settings or get_settings()

        print("Проверка настроек:")
        print(f"  ✓ Секрет JWT: {'*' * 10}")
        print(f"  ✓ Время жизни токена: {settings.token_ttl_hours} ч")
        print(f"  ✓ База данных: {settings.sqlalchemy_url.rsplit('@', 1)[-1]}")
        print(f"  ✓ Директория сертификатов: {settings.certificates_path}")
        print(f"  ✓ Максимальный размер PDF: {settings.max_upload_size // MEBIBYTE} МБ")

        if not os.access(settings.certificates_path, os.W_OK):
            print(f"  ✗ Нет прав записи в {settings.certificates_path}")
            return False

        return True

    except Exception as e:
        print(f"Ошибка в настройках: {e}")
        return False
