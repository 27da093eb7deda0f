"""
Middleware для проверки доступа к административным путям.
"""

import logging
from typing import Iterable

from fastapi import Request
from fastapi.responses import RedirectResponse
from starlette.middleware.base import BaseHTTPMiddleware

from core.auth import AuthService

logger = logging.getLogger(__name__)


class AdminGateMiddleware(BaseHTTPMiddleware):
    """Пропускает к административным путям только запросы с действующим токеном в cookie."""

    def __init__(self, app, auth_service: AuthService, prefixes: Iterable[str],
                 cookie_name: str = "auth-token", redirect_to: str = "/"):
        """
        Инициализация middleware.

        Args:
            app: ASGI приложение
            auth_service: Сервис проверки токенов
            prefixes: Префиксы защищенных путей
            cookie_name: Имя cookie с токеном
            redirect_to: Куда отправлять неавторизованные запросы
        """
        super().__init__(app)
        self.auth_service = auth_service
        self.prefixes = tuple(prefix.rstrip("/") or "/" for prefix in prefixes)
        self.cookie_name = cookie_name
        self.redirect_to = redirect_to

    def is_protected(self, path: str) -> bool:
        """Путь совпадает с префиксом или лежит под ним."""
        for prefix in self.prefixes:
            if path == prefix or path.startswith(prefix + "/"):
                return True
        return False

    async def dispatch(self, request: Request, call_next):
        if not self.is_protected(request.url.path):
            return await call_next(request)

        token = request.cookies.get(self.cookie_name)
        claims = self.auth_service.verify(token)

        if claims is None:
            logger.info(f"Доступ к {request.url.path} без действующего токена, редирект на {self.redirect_to}")
            return RedirectResponse(self.redirect_to, status_code=303)

        request.state.user = claims
        return await call_next(request)
