"""Pydantic schemas for currencies, exchange rates and conversion."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import Field

from flowbalance.api.schemas.common import ApiModel, UtcDateTime
from flowbalance.domain.models import ExchangeRateType


class CurrencyResponse(ApiModel):
    currency_id: str
    code: str
    name: str
    symbol: str
    decimal_places: int
    is_custom: bool = False


class CustomCurrencyRequest(ApiModel):
    code: str = Field(..., min_length=2, max_length=10)
    name: str = Field(..., min_length=1, max_length=100)
    symbol: str = Field(..., min_length=1, max_length=10)
    decimal_places: int = Field(2, ge=0, le=10)


class UserCurrencyRequest(ApiModel):
    code: str = Field(..., min_length=2, max_length=10)


class ExchangeRateCreateRequest(ApiModel):
    from_currency: str
    to_currency: str
    rate: Decimal
    effective_date: Optional[UtcDateTime] = None
    notes: Optional[str] = None


class ExchangeRateUpdateRequest(ApiModel):
    rate: Optional[Decimal] = None
    effective_date: Optional[UtcDateTime] = None
    notes: Optional[str] = None


class ExchangeRateResponse(ApiModel):
    rate_id: str
    from_currency: str
    to_currency: str
    rate: Decimal
    effective_date: datetime
    type: ExchangeRateType
    source_rate_id: Optional[str] = None
    notes: Optional[str] = None


class ConvertRequest(ApiModel):
    amount: Decimal
    from_currency: str
    to_currency: str
    as_of: Optional[UtcDateTime] = None


class ConversionResponse(ApiModel):
    original_amount: Decimal
    original_currency: str
    converted_amount: Decimal
    target_currency: str
    exchange_rate: Decimal
    success: bool
    error: Optional[str] = None
    formatted_amount: Optional[str] = None


class AutoUpdateRequest(ApiModel):
    force: bool = False


class ExchangeRateUpdateResponse(ApiModel):
    success: bool
    message: str
    updated_count: int = 0
    errors: list[str] = []
    skipped: bool = False
    skip_reason: Optional[str] = None
    error_code: Optional[str] = None
    last_updated: Optional[datetime] = None
    base_currency: Optional[str] = None


class ExchangeRateUpdateStatusResponse(ApiModel):
    enabled: bool
    last_update: Optional[datetime] = None
    needs_update: bool
    hours_since_last_update: Optional[float] = None
