"""
Аутентификация администраторов: проверка паролей и JWT токены.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

from jose import jwt, JWTError
from passlib.context import CryptContext

from config.settings import Settings
from .database import AdminUserRepository, AdminUser as DBAdminUser
from .exceptions import InvalidCredentialsError, ValidationError
from .models import AdminUser, UserClaims

logger = logging.getLogger(__name__)

# Хеширование паролей через bcrypt
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

INVALID_CREDENTIALS_MESSAGE = "Неверные учетные данные"


class AuthService:
    """Сервис аутентификации администраторов."""

    def __init__(self, settings: Settings, user_repo: AdminUserRepository):
        self.settings = settings
        self.user_repo = user_repo

    def hash_password(self, password: str) -> str:
        return pwd_context.hash(password)

    def verify_password(self, plain_password: str, password_hash: str) -> bool:
        """Сравнивает пароль с bcrypt хешем. Поврежденный хеш считается несовпадением."""
        try:
            return pwd_context.verify(plain_password, password_hash)
        except ValueError:
            logger.warning("Некорректный формат хеша пароля")
            return False

    def authenticate(self, identifier: str, password: str) -> Tuple[str, AdminUser]:
        """
        Проверяет учетные данные и выпускает токен.

        Args:
            identifier: Email или username
            password: Пароль

        Returns:
            Tuple[str, AdminUser]: Токен и данные пользователя

        Raises:
            ValidationError: Не указан идентификатор или пароль
            InvalidCredentialsError: Пользователь не найден или пароль не совпал
        """
        identifier = (identifier or "").strip()
        if not identifier or not password:
            raise ValidationError("Email и пароль обязательны")

        db_user = self.user_repo.get_by_identifier(identifier)
        if db_user is None or not self.verify_password(password, db_user.password_hash):
            logger.warning(f"Неудачная попытка входа: {identifier}")
            raise InvalidCredentialsError(INVALID_CREDENTIALS_MESSAGE)

        user = self._convert_db_to_pydantic(db_user)
        token = self.create_access_token(user)

        logger.info(f"Администратор {user.email} вошел в систему")
        return token, user

    def create_access_token(self, user: AdminUser, now: Optional[datetime] = None) -> str:
        """
        Создает подписанный JWT для пользователя.

        Args:
            user: Пользователь
            now: Момент выпуска (для тестов)

        Returns:
            str: Токен
        """
        issued_at = now or datetime.now(timezone.utc)
        expires_at = issued_at + timedelta(hours=self.settings.token_ttl_hours)

        claims = {
            "sub": user.id,
            "userId": user.id,
            "identifier": user.email,
            "role": user.role,
            "iat": int(issued_at.timestamp()),
            "exp": int(expires_at.timestamp()),
        }
        return jwt.encode(claims, self.settings.jwt_secret, algorithm=self.settings.jwt_algorithm)

    def verify(self, token: Optional[str]) -> Optional[UserClaims]:
        """
        Проверяет подпись и срок действия токена.

        Returns:
            Optional[UserClaims]: Данные токена или None, если токен недействителен
        """
        if not token:
            return None

        try:
            payload = jwt.decode(
                token,
                self.settings.jwt_secret,
                algorithms=[self.settings.jwt_algorithm]
            )
        except JWTError as e:
            logger.debug(f"Отклонен токен: {e}")
            return None

        user_id = payload.get("userId") or payload.get("sub")
        identifier = payload.get("identifier")
        expires = payload.get("exp")
        if not user_id or not identifier or expires is None:
            return None

        return UserClaims(
            user_id=str(user_id),
            identifier=str(identifier),
            role=payload.get("role") or "admin",
            expires_at=datetime.fromtimestamp(expires, tz=timezone.utc)
        )

    def create_admin(self, email: str, password: str,
                     username: Optional[str] = None, role: str = "admin") -> AdminUser:
        """
        Создает администратора с хешированным паролем.

        Raises:
            ValidationError: Пустой email или пароль
            DatabaseError: Пользователь уже существует
        """
        email = (email or "").strip()
        if not email or not password:
            raise ValidationError("Email и пароль обязательны")

        username = username.strip() if username else None
        db_user = self.user_repo.create_user(
            email=email,
            password_hash=self.hash_password(password),
            username=username or None,
            role=role
        )

        logger.info(f"Создан администратор {email}")
        return self._convert_db_to_pydantic(db_user)

    def _convert_db_to_pydantic(self, db_user: DBAdminUser) -> AdminUser:
        return AdminUser(
            id=str(db_user.id),
            email=db_user.email,
            username=db_user.username,
            role=db_user.role or "admin"
        )
