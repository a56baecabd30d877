"""Pydantic schemas for report endpoints."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from flowbalance.api.schemas.common import ApiModel
from flowbalance.api.schemas.ledger import AccountBalanceResponse


class BalanceSheetResponse(ApiModel):
    as_of: datetime
    assets: list[AccountBalanceResponse]
    liabilities: list[AccountBalanceResponse]
    total_assets: dict[str, Decimal]
    total_liabilities: dict[str, Decimal]
    net_worth: dict[str, Decimal]
    base_currency: Optional[str] = None
    net_worth_in_base: Optional[Decimal] = None
    unconverted_currencies: list[str] = []


class CashFlowResponse(ApiModel):
    start_date: datetime
    end_date: datetime
    income: list[AccountBalanceResponse]
    expense: list[AccountBalanceResponse]
    total_income: dict[str, Decimal]
    total_expense: dict[str, Decimal]
    net: dict[str, Decimal]
