"""
Модели SQLAlchemy и репозитории для работы с базой данных.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Callable, List, Optional, Tuple
from sqlalchemy import (
    create_engine, Column, String, DateTime, Date,
    Boolean, Index, or_, text
)
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from .exceptions import DatabaseError, DuplicateCertificateError, CertificateNotFoundError

logger = logging.getLogger(__name__)

# Базовый класс для моделей
Base = declarative_base()


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Certificate(Base):
    """Модель сертификата."""

    __tablename__ = "certificates"

    # Основные поля
    id = Column(String(36), primary_key=True, default=_new_id)
    dni = Column(String(32), nullable=False, index=True)
    full_name = Column(String(255), nullable=False)
    course = Column(String(255), nullable=False)
    company = Column(String(255), nullable=False)
    issue_date = Column(Date, nullable=False)
    expiry_date = Column(Date, nullable=False, index=True)
    pdf_url = Column(String(512), nullable=True)

    # Метаданные
    is_active = Column(Boolean, default=True, server_default=text('true'), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)

    # Один активный сертификат на пару DNI + курс
    __table_args__ = (
        Index(
            'uq_certificate_active_dni_course', 'dni', 'course',
            unique=True,
            postgresql_where=text('is_active'),
            sqlite_where=text('is_active = 1'),
        ),
        Index('idx_certificate_active_dni', 'dni', 'is_active'),
        Index('idx_certificate_created_at', 'created_at'),
    )

    def __repr__(self):
        return f"<Certificate(id={self.id}, dni={self.dni}, course={self.course})>"


class AdminUser(Base):
    """Модель администратора."""

    __tablename__ = "admin_users"

    id = Column(String(36), primary_key=True, default=_new_id)
    email = Column(String(255), unique=True, nullable=False, index=True)
    username = Column(String(150), unique=True, nullable=True, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(50), nullable=False, default="admin", server_default="admin")
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    def __repr__(self):
        return f"<AdminUser(id={self.id}, email={self.email})>"


class DatabaseManager:
    """Менеджер для работы с базой данных."""

    def __init__(self, database_url: str):
        """
        Инициализация менеджера БД.

        Args:
            database_url: URL подключения к БД
        """
        engine_options = {"pool_pre_ping": True, "echo": False}
        if database_url.startswith("sqlite"):
            # Обработчики FastAPI выполняются в пуле потоков
            engine_options["connect_args"] = {"check_same_thread": False}
        else:
            engine_options["pool_recycle"] = 3600

        self.engine = create_engine(database_url, **engine_options)
        self.SessionLocal = sessionmaker(
            autocommit=False, autoflush=False, expire_on_commit=False, bind=self.engine
        )

    def create_tables(self):
        """Создает все таблицы в базе данных."""
        Base.metadata.create_all(bind=self.engine)
        logger.info("Таблицы базы данных созданы")

    def get_session(self) -> Session:
        """Возвращает новую сессию для работы с БД."""
        return self.SessionLocal()

    def health_check(self) -> bool:
        """Проверяет подключение к базе данных."""
        try:
            with self.get_session() as session:
                session.execute(text("SELECT 1"))
                return True
        except SQLAlchemyError as e:
            logger.error(f"Ошибка подключения к БД: {e}")
            return False

    def dispose(self):
        """Закрывает пул соединений."""
        self.engine.dispose()


class CertificateRepository:
    """Репозиторий для работы с сертификатами."""

    def __init__(self, db_manager: DatabaseManager):
        self.db_manager = db_manager

    def create_certificate(self, certificate_data: dict,
                           attach_pdf: Optional[Callable[[], str]] = None) -> Certificate:
        """
        Создает новый сертификат.

        Запись сначала проверяется ограничениями БД (flush), затем
        вызывается attach_pdf, и только после этого транзакция фиксируется.

        Args:
            certificate_data: Данные сертификата
            attach_pdf: Сохраняет PDF и возвращает ссылку на него

        Returns:
            Certificate: Созданный сертификат

        Raises:
            DuplicateCertificateError: Активный сертификат для DNI и курса уже есть
            DatabaseError: При ошибке БД
        """
        with self.db_manager.get_session() as session:
            try:
                certificate = Certificate(is_active=True, **certificate_data)
                session.add(certificate)
                session.flush()

                if attach_pdf is not None:
                    certificate.pdf_url = attach_pdf()

                session.commit()
                return certificate
            except IntegrityError as e:
                session.rollback()
                raise DuplicateCertificateError(
                    "Активный сертификат для этого DNI и курса уже существует"
                ) from e
            except SQLAlchemyError as e:
                session.rollback()
                raise DatabaseError(f"Ошибка сохранения сертификата: {e}") from e
            except Exception:
                session.rollback()
                raise

    def get_certificate(self, certificate_id: str, active_only: bool = True) -> Optional[Certificate]:
        """
        Получает сертификат по ID.

        Args:
            certificate_id: ID сертификата
            active_only: Игнорировать деактивированные

        Returns:
            Optional[Certificate]: Сертификат или None
        """
        with self.db_manager.get_session() as session:
            query = session.query(Certificate).filter(Certificate.id == certificate_id)

            if active_only:
                query = query.filter(Certificate.is_active == True)

            return query.first()

    def list_certificates(self, include_inactive: bool = False) -> List[Certificate]:
        """Возвращает все сертификаты, новые первыми."""
        with self.db_manager.get_session() as session:
            query = session.query(Certificate)

            if not include_inactive:
                query = query.filter(Certificate.is_active == True)

            return query.order_by(Certificate.created_at.desc()).all()

    def get_certificates_by_dni(self, dni: str, active_only: bool = True) -> List[Certificate]:
        """
        Получает сертификаты по DNI.

        Args:
            dni: Номер документа владельца
            active_only: Только активные сертификаты

        Returns:
            List[Certificate]: Список сертификатов
        """
        with self.db_manager.get_session() as session:
            query = session.query(Certificate).filter(Certificate.dni == dni)

            if active_only:
                query = query.filter(Certificate.is_active == True)

            return query.order_by(Certificate.created_at.desc()).all()

    def find_active_duplicate(self, dni: str, course: str,
                              exclude_id: Optional[str] = None) -> Optional[Certificate]:
        """Ищет активный сертификат с той же парой DNI + курс."""
        with self.db_manager.get_session() as session:
            query = session.query(Certificate).filter(
                Certificate.dni == dni,
                Certificate.course == course,
                Certificate.is_active == True
            )

            if exclude_id:
                query = query.filter(Certificate.id != exclude_id)

            return query.first()

    def update_certificate(self, certificate_id: str, certificate_data: dict,
                           attach_pdf: Optional[Callable[[], str]] = None) -> Tuple[Certificate, Optional[str]]:
        """
        Обновляет активный сертификат.

        Args:
            certificate_id: ID сертификата
            certificate_data: Новые значения полей
            attach_pdf: Сохраняет новый PDF и возвращает ссылку на него

        Returns:
            Tuple[Certificate, Optional[str]]: Сертификат и ссылка на замененный PDF

        Raises:
            CertificateNotFoundError: Активный сертификат не найден
            DuplicateCertificateError: Пара DNI + курс занята другим сертификатом
        """
        with self.db_manager.get_session() as session:
            try:
                certificate = session.query(Certificate).filter(
                    Certificate.id == certificate_id,
                    Certificate.is_active == True
                ).first()

                if certificate is None:
                    raise CertificateNotFoundError("Сертификат не найден")

                for field, value in certificate_data.items():
                    setattr(certificate, field, value)
                session.flush()

                replaced_pdf_url = None
                if attach_pdf is not None:
                    replaced_pdf_url = certificate.pdf_url
                    certificate.pdf_url = attach_pdf()

                session.commit()
                return certificate, replaced_pdf_url
            except IntegrityError as e:
                session.rollback()
                raise DuplicateCertificateError(
                    "Активный сертификат для этого DNI и курса уже существует"
                ) from e
            except SQLAlchemyError as e:
                session.rollback()
                raise DatabaseError(f"Ошибка обновления сертификата: {e}") from e
            except Exception:
                session.rollback()
                raise

    def deactivate_certificate(self, certificate_id: str) -> Optional[str]:
        """
        Деактивирует сертификат (мягкое удаление).

        Args:
            certificate_id: ID сертификата

        Returns:
            Optional[str]: Ссылка на PDF, который больше не нужен

        Raises:
            CertificateNotFoundError: Активный сертификат не найден
        """
        with self.db_manager.get_session() as session:
            try:
                certificate = session.query(Certificate).filter(
                    Certificate.id == certificate_id,
                    Certificate.is_active == True
                ).first()

                if certificate is None:
                    raise CertificateNotFoundError("Сертификат не найден")

                pdf_url = certificate.pdf_url
                certificate.is_active = False
                certificate.pdf_url = None
                session.commit()
                return pdf_url
            except SQLAlchemyError as e:
                session.rollback()
                raise DatabaseError(f"Ошибка деактивации сертификата: {e}") from e


class AdminUserRepository:
    """Репозиторий администраторов."""

    def __init__(self, db_manager: DatabaseManager):
        self.db_manager = db_manager

    def get_by_identifier(self, identifier: str) -> Optional[AdminUser]:
        """Ищет администратора по email или username."""
        with self.db_manager.get_session() as session:
            return session.query(AdminUser).filter(
                or_(AdminUser.email == identifier, AdminUser.username == identifier)
            ).first()

    def create_user(self, email: str, password_hash: str,
                    username: Optional[str] = None, role: str = "admin") -> AdminUser:
        """
        Создает администратора.

        Raises:
            DatabaseError: Email или username уже заняты
        """
        with self.db_manager.get_session() as session:
            try:
                user = AdminUser(email=email, username=username, password_hash=password_hash, role=role)
                session.add(user)
                session.commit()
                return user
            except IntegrityError as e:
                session.rollback()
                raise DatabaseError(f"Администратор {email} уже существует") from e
