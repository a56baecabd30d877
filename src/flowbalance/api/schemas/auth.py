"""Pydantic schemas for auth and user settings endpoints."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import Field

from flowbalance.api.schemas.common import ApiModel
from flowbalance.domain.models import SyncStatus


class RegisterRequest(ApiModel):
    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=1, max_length=128)
    name: Optional[str] = Field(None, max_length=100)


class LoginRequest(ApiModel):
    email: str
    password: str


class UserResponse(ApiModel):
    """Public user fields; the password hash is never exposed."""

    user_id: str
    email: str
    name: str
    created_at: Optional[datetime] = None


class SettingsResponse(ApiModel):
    base_currency_id: Optional[str] = None
    base_currency_code: Optional[str] = None
    date_format: str
    language: str
    theme: str
    fire_enabled: bool
    fire_swr: Decimal
    future_data_days: int
    auto_update_exchange_rates: bool
    last_exchange_rate_update: Optional[datetime] = None
    last_recurring_sync: Optional[datetime] = None
    recurring_processing_status: SyncStatus


class MeResponse(ApiModel):
    user: UserResponse
    settings: Optional[SettingsResponse] = None


class SettingsUpdateRequest(ApiModel):
    base_currency_code: Optional[str] = None
    date_format: Optional[str] = None
    language: Optional[str] = None
    theme: Optional[str] = None
    fire_enabled: Optional[bool] = None
    fire_swr: Optional[Decimal] = None
    future_data_days: Optional[int] = None
    auto_update_exchange_rates: Optional[bool] = None


class ChangePasswordRequest(ApiModel):
    current_password: str
    new_password: str = Field(..., min_length=1, max_length=128)
