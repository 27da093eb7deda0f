"""
Основной модуль бизнес-логики реестра сертификатов.
"""

from .service import CertificateService, Services, build_services
from .auth import AuthService
from .models import Certificate, CertificateForm, PdfUpload, AdminUser, UserClaims
from .generator import PdfFilenameGenerator
from .validators import DataValidator
from .database import DatabaseManager, CertificateRepository, AdminUserRepository
from .storage import FileStorage

__version__ = "1.0.0"

__all__ = [
    'CertificateService',
    'Services',
    'build_services',
    'AuthService',
    'Certificate',
    'CertificateForm',
    'PdfUpload',
    'AdminUser',
    'UserClaims',
    'PdfFilenameGenerator',
    'DataValidator',
    'DatabaseManager',
    'CertificateRepository',
    'AdminUserRepository',
    'FileStorage'
]
