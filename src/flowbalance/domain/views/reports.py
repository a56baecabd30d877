"""View models for balance and report outputs."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional

from flowbalance.domain.models import CategoryType


@dataclass
class AccountBalanceView:
    account_id: str
    name: str
    category_id: str
    category_type: CategoryType
    currency_code: str
    balance: Decimal = field(default_factory=lambda: Decimal("0"))


@dataclass
class BalanceSheetView:
    """
    Assets, liabilities and net worth as of a date.

    Totals are per currency code. net_worth_in_base is set when every
    currency could be converted into the base currency.
    """

    as_of: datetime
    assets: list[AccountBalanceView] = field(default_factory=list)
    liabilities: list[AccountBalanceView] = field(default_factory=list)
    total_assets: dict[str, Decimal] = field(default_factory=dict)
    total_liabilities: dict[str, Decimal] = field(default_factory=dict)
    net_worth: dict[str, Decimal] = field(default_factory=dict)
    base_currency: Optional[str] = None
    net_worth_in_base: Optional[Decimal] = None
    unconverted_currencies: list[str] = field(default_factory=list)


@dataclass
class CashFlowView:
    """Income and expense totals over a period."""

    start_date: datetime
    end_date: datetime
    income: list[AccountBalanceView] = field(default_factory=list)
    expense: list[AccountBalanceView] = field(default_factory=list)
    total_income: dict[str, Decimal] = field(default_factory=dict)
    total_expense: dict[str, Decimal] = field(default_factory=dict)
    net: dict[str, Decimal] = field(default_factory=dict)
