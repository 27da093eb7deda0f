"""
FastAPI сервер реестра сертификатов
"""
import logging
from datetime import datetime
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config.settings import Settings, get_settings
from core.models import UserClaims
from core.service import build_services
from web.dependencies import require_claims
from web.errors import register_error_handlers
from web.handlers import auth_router, admin_router, public_router
from web.middleware import AdminGateMiddleware


def setup_logging(settings: Settings):
    """Настройка логирования в файл и консоль"""
    settings.log_file.parent.mkdir(parents=True, exist_ok=True)

    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(settings.log_file, encoding='utf-8'),
            logging.StreamHandler()
        ]
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Управление жизненным циклом приложения"""
    # Запуск
    logging.info("Запуск API сервера...")

    app.state.services.db_manager.create_tables()
    logging.info("Подключение к БД установлено")

    yield

    # Завершение
    logging.info("Остановка API сервера...")
    app.state.services.db_manager.dispose()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Создание FastAPI приложения"""
    settings = settings or get_settings()
    setup_logging(settings)

    # Создание приложения
    app = FastAPI(
        title="Certificate Registry API",
        description="API для выдачи и проверки сертификатов",
        version="1.0.0",
        debug=settings.debug,
        lifespan=lifespan
    )

    services = build_services(settings)
    app.state.services = services

    # Проверка доступа к административным путям
    app.add_middleware(
        AdminGateMiddleware,
        auth_service=services.auth_service,
        prefixes=settings.admin_path_prefixes,
        cookie_name=settings.auth_cookie_name,
        redirect_to=settings.public_entry_path
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)

    app.include_router(auth_router)
    app.include_router(admin_router)
    app.include_router(public_router)

    @app.get("/", tags=["public"])
    async def index():
        """Публичная точка входа"""
        return {
            "name": "Certificate Registry API",
            "search": "/api/certificates/search?dni=",
            "login": "/api/auth/login"
        }

    @app.get("/admin", tags=["admin"])
    async def admin_home(claims: UserClaims = Depends(require_claims)):
        """Стартовая страница администратора (только с действующим токеном)"""
        return {
            "user": {
                "id": claims.user_id,
                "identifier": claims.identifier,
                "role": claims.role
            },
            "expiresAt": claims.expires_at.isoformat()
        }

    # Проверка здоровья с проверкой БД и хранилища
    @app.get("/health", tags=["monitoring"])
    def health_check():
        """Проверка здоровья API, БД и файлового хранилища"""
        health_status = {
            "status": "checking",
            "timestamp": datetime.now().isoformat(),
            "components": {}
        }

        # Проверка API
        health_status["components"]["api"] = {
            "status": "healthy",
            "message": "API is running"
        }

        # Проверка БД
        if services.db_manager.health_check():
            health_status["components"]["database"] = {
                "status": "healthy",
                "message": "Database connection is active"
            }
        else:
            health_status["components"]["database"] = {
                "status": "unhealthy",
                "message": "Database is unreachable"
            }

        # Проверка файлового хранилища
        storage_stats = services.file_storage.get_storage_stats()
        if storage_stats["exists"] and storage_stats["writable"]:
            health_status["components"]["file_storage"] = {
                "status": "healthy",
                "message": f"Certificates directory: {storage_stats['path']}",
                "files": storage_stats["files"]
            }
        else:
            health_status["components"]["file_storage"] = {
                "status": "unhealthy",
                "message": "Certificates directory is missing or read-only"
            }

        # Общий статус
        all_healthy = all(
            comp.get("status") == "healthy"
            for comp in health_status["components"].values()
        )

        health_status["status"] = "healthy" if all_healthy else "unhealthy"

        return JSONResponse(content=health_status, status_code=200 if all_healthy else 503)

    logging.getLogger(__name__).info("Приложение создано")
    return app


if __name__ == "__main__":
    import uvicorn

    server_settings = get_settings()
    uvicorn.run(
        "api_server:create_app",
        factory=True,
        host="0.0.0.0",
        port=8000,
        reload=server_settings.debug
    )
