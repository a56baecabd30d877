"""Authentication endpoints. The session token lives in an http-only cookie."""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from flowbalance.api.deps import get_auth_service, get_currency_repo, get_current_user
from flowbalance.api.responses import internal_error_response, success_response
from flowbalance.api.routers.user_settings import settings_response
from flowbalance.api.schemas import (
    ChangePasswordRequest,
    LoginRequest,
    MeResponse,
    RegisterRequest,
    UserResponse,
)
from flowbalance.config.settings import get_settings
from flowbalance.core.exceptions import AppError
from flowbalance.domain.models import User
from flowbalance.repositories.protocols import CurrencyRepository
from flowbalance.services import AuthService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _set_auth_cookie(response: JSONResponse, token: str) -> None:
    settings = get_settings()
    response.set_cookie(
        key=settings.auth_cookie_name,
        value=token,
        max_age=settings.jwt_expire_days * 24 * 60 * 60,
        path="/",
        httponly=True,
        samesite="lax",
        secure=settings.is_production,
    )


@router.post("/register")
def register(
    data: RegisterRequest,
    auth: AuthService = Depends(get_auth_service),
) -> JSONResponse:
    try:
        user = auth.register(data.email, data.password, data.name)
        response = success_response({"user": UserResponse.model_validate(user)}, status_code=201)
        _set_auth_cookie(response, auth.issue_token(user))
        return response
    except AppError:
        raise
    except Exception:
        logger.exception("Registration failed")
        return internal_error_response()


@router.post("/login")
def login(
    data: LoginRequest,
    auth: AuthService = Depends(get_auth_service),
) -> JSONResponse:
    try:
        user, token = auth.login(data.email, data.password)
        response = success_response({"user": UserResponse.model_validate(user)})
        _set_auth_cookie(response, token)
        return response
    except AppError:
        raise
    except Exception:
        logger.exception("Login failed")
        return internal_error_response()


@router.post("/logout")
def logout() -> JSONResponse:
    """Drop the auth cookie. Tokens are stateless, so nothing else to revoke."""
    try:
        response = success_response({"message": "Logged out"})
        response.delete_cookie(get_settings().auth_cookie_name, path="/")
        return response
    except Exception:
        logger.exception("Logout failed")
        return internal_error_response()


@router.get("/me")
def me(
    user: User = Depends(get_current_user),
    auth: AuthService = Depends(get_auth_service),
    currency_repo: CurrencyRepository = Depends(get_currency_repo),
) -> JSONResponse:
    try:
        settings = auth.get_user_settings(user.user_id)
        return success_response(MeResponse(
            user=UserResponse.model_validate(user),
            settings=settings_response(settings, currency_repo) if settings else None,
        ))
    except AppError:
        raise
    except Exception:
        logger.exception("Failed to load current user")
        return internal_error_response()


@router.put("/password")
def change_password(
    data: ChangePasswordRequest,
    user: User = Depends(get_current_user),
    auth: AuthService = Depends(get_auth_service),
) -> JSONResponse:
    try:
        auth.change_password(user.user_id, data.current_password, data.new_password)
        return success_response({"message": "Password updated"})
    except AppError:
        raise
    except Exception:
        logger.exception("Password change failed")
        return internal_error_response()
