"""Report service: balance sheet and cash flow."""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Callable, Optional

from flowbalance.core.exceptions import ValidationError
from flowbalance.core.formatting import round_amount
from flowbalance.core.timezone import end_of_day, now_utc
from flowbalance.domain.models import CategoryType
from flowbalance.domain.views import AccountBalanceView, BalanceSheetView, CashFlowView
from flowbalance.services.account_service import AccountService
from flowbalance.services.currency_service import CurrencyService
from flowbalance.services.settings_service import SettingsService

logger = logging.getLogger(__name__)


def _add(totals: dict[str, Decimal], code: str, amount: Decimal) -> None:
    totals[code] = totals.get(code, Decimal("0")) + amount


class ReportService:
    """Aggregates account balances into reports. Totals are keyed by currency code."""

    def __init__(
        self,
        account_service: AccountService,
        currency_service: CurrencyService,
        settings_service: SettingsService,
        clock: Callable = now_utc,
    ):
        self._account_service = account_service
        self._currency_service = currency_service
        self._settings_service = settings_service
        self._clock = clock

    def get_balance_sheet(self, user_id: str, as_of: Optional[datetime] = None) -> BalanceSheetView:
        """
        Stock account balances as of a date.

        Net worth is converted into the base currency with the rates effective
        on that date; currencies without a rate are listed as unconverted.
        """
        as_of = end_of_day(as_of or self._clock())
        balances = self._account_service.get_account_balances(
            user_id,
            as_of=as_of,
            category_types=[CategoryType.ASSET, CategoryType.LIABILITY],
        )

        sheet = BalanceSheetView(as_of=as_of)
        for view in balances:
            if view.category_type == CategoryType.ASSET:
                sheet.assets.append(view)
                _add(sheet.total_assets, view.currency_code, view.balance)
            else:
                sheet.liabilities.append(view)
                _add(sheet.total_liabilities, view.currency_code, view.balance)

        for code in sorted(set(sheet.total_assets) | set(sheet.total_liabilities)):
            sheet.net_worth[code] = (
                sheet.total_assets.get(code, Decimal("0"))
                - sheet.total_liabilities.get(code, Decimal("0"))
            )

        base = self._settings_service.get_base_currency(user_id)
        if base:
            sheet.base_currency = base.code
            total = Decimal("0")
            for code, amount in sheet.net_worth.items():
                conversion = self._currency_service.convert_currency(user_id, amount, code, base.code, as_of)
                if conversion.success:
                    total += conversion.converted_amount
                else:
                    sheet.unconverted_currencies.append(code)
            if not sheet.unconverted_currencies:
                sheet.net_worth_in_base = round_amount(total, base.decimal_places)
        return sheet

    def get_cash_flow(self, user_id: str, start_date: datetime, end_date: datetime) -> CashFlowView:
        """INCOME and EXPENSE totals between start_date and end_date (inclusive)."""
        if end_date < start_date:
            raise ValidationError("end_date must not be before start_date")
        end_date = end_of_day(end_date)
        balances: list[AccountBalanceView] = self._account_service.get_account_balances(
            user_id,
            as_of=end_date,
            start_date=start_date,
            category_types=[CategoryType.INCOME, CategoryType.EXPENSE],
        )

        flow = CashFlowView(start_date=start_date, end_date=end_date)
        for view in balances:
            if view.category_type == CategoryType.INCOME:
                flow.income.append(view)
                _add(flow.total_income, view.currency_code, view.balance)
            else:
                flow.expense.append(view)
                _add(flow.total_expense, view.currency_code, view.balance)

        for code in sorted(set(flow.total_income) | set(flow.total_expense)):
            flow.net[code] = (
                flow.total_income.get(code, Decimal("0"))
                - flow.total_expense.get(code, Decimal("0"))
            )
        return flow
