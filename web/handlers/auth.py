"""
Вход и выход администратора.
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from config.settings import Settings
from core.auth import AuthService
from core.models import LoginRequest
from ..dependencies import get_auth_service, get_settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/login", summary="Вход администратора")
def login(
    data: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
    settings: Settings = Depends(get_settings)
):
    """
    Проверяет учетные данные и устанавливает HTTP-only cookie с токеном.

    Идентификатор принимается в поле identifier, email или username.
    """
    token, user = auth_service.authenticate(data.resolved_identifier, data.password or "")

    response = JSONResponse({
        "message": "Вход выполнен",
        "token": token,
        "user": user.to_dict()
    })
    response.set_cookie(
        key=settings.auth_cookie_name,
        value=token,
        max_age=settings.token_ttl_seconds,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
        path="/"
    )
    return response


@router.post("/logout", summary="Выход администратора")
def logout(settings: Settings = Depends(get_settings)):
    response = JSONResponse({"message": "Выход выполнен"})
    response.delete_cookie(
        key=settings.auth_cookie_name,
        path="/",
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax"
    )
    return response
