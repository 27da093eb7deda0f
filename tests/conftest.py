"""
Общие фикстуры для тестов
"""
import itertools
import pytest
from datetime import date, timedelta

from fastapi.testclient import TestClient

from api_server import create_app
from config.settings import Settings
from core.generator import PdfFilenameGenerator
from core.service import build_services

ADMIN_EMAIL = "admin@example.com"
ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "s3cret-passw0rd"

PDF_BYTES = b"%PDF-1.4\n1 0 obj\n<< /Type /Catalog >>\nendobj\ntrailer\n<< /Root 1 0 R >>\n%%EOF\n"


def sequential_clock(start: int = 1700000000):
    """Часы, идущие на секунду вперед при каждом обращении"""
    counter = itertools.count(start)
    return lambda: float(next(counter))


@pytest.fixture
def settings(tmp_path, monkeypatch):
    """Настройки с временной SQLite базой и директориями"""
    monkeypatch.delenv("DATABASE_URL", raising=False)
    return Settings(
        _env_file=None,
        jwt_secret="test-secret-key",
        database_url=f"sqlite:///{tmp_path / 'test.db'}",
        certificates_path=tmp_path / "certificates",
        log_file=tmp_path / "logs" / "api.log",
    )


@pytest.fixture
def services(settings):
    """Сервисы приложения поверх временной базы"""
    services = build_services(settings)
    services.db_manager.create_tables()
    services.certificate_service.filename_generator = PdfFilenameGenerator(clock=sequential_clock())
    yield services
    services.db_manager.dispose()


@pytest.fixture
def app(settings):
    """FastAPI приложение"""
    app = create_app(settings)
    app.state.services.certificate_service.filename_generator = PdfFilenameGenerator(
        clock=sequential_clock()
    )
    return app


@pytest.fixture
def client(app):
    """Тестовый клиент без следования редиректам"""
    with TestClient(app, follow_redirects=False) as test_client:
        yield test_client


@pytest.fixture
def admin_user(app, client):
    """Администратор в базе приложения"""
    return app.state.services.auth_service.create_admin(
        ADMIN_EMAIL, ADMIN_PASSWORD, username=ADMIN_USERNAME
    )


@pytest.fixture
def admin_client(client, admin_user):
    """Клиент с cookie после входа"""
    response = client.post("/api/auth/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert response.status_code == 200
    return client


@pytest.fixture
def certificates_dir(settings):
    return settings.certificates_path


@pytest.fixture
def certificate_data():
    """Поля действующего сертификата"""
    today = date.today()
    return {
        "dni": "12345678",
        "fullName": "Juan Pérez",
        "course": "Safety-101",
        "company": "ACME S.A.",
        "issueDate": (today - timedelta(days=30)).isoformat(),
        "expiryDate": (today + timedelta(days=335)).isoformat(),
    }


@pytest.fixture
def expired_certificate_data(certificate_data):
    """Поля сертификата с истекшим сроком"""
    data = dict(certificate_data)
    data.update({"course": "Fire-Drill", "issueDate": "2020-01-01", "expiryDate": "2020-12-31"})
    return data
