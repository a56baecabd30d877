"""
Unit tests for ReportService.

Tests cover:
- Balance sheet totals per currency
- Net worth converted into the base currency
- Unconverted currencies
- Cash flow over a period
"""

from datetime import datetime
from decimal import Decimal

import pytest

from flowbalance.core.exceptions import ValidationError
from flowbalance.domain.models import CategoryType, TransactionType


@pytest.fixture
def holdings(user, account_factory, transaction_factory):
    """CNY 10,000 and USD 1,000 in assets, CNY 3,000 owed."""
    bank = account_factory(user.user_id, type=CategoryType.ASSET, name="Bank")
    wallet = account_factory(user.user_id, type=CategoryType.ASSET, name="USD wallet", currency_code="USD")
    card = account_factory(user.user_id, type=CategoryType.LIABILITY, name="Credit card")
    day = datetime(2024, 6, 1)
    transaction_factory(user.user_id, bank.account_id, TransactionType.BALANCE, Decimal("10000"), date=day)
    transaction_factory(user.user_id, wallet.account_id, TransactionType.BALANCE, Decimal("1000"), date=day)
    transaction_factory(user.user_id, card.account_id, TransactionType.BALANCE, Decimal("3000"), date=day)
    return bank, wallet, card


class TestBalanceSheet:
    """Tests for get_balance_sheet."""

    def test_net_worth_in_base(self, user, holdings, currency_service, report_service):
        """
        GIVEN assets of CNY 10,000 and USD 1,000, a CNY 3,000 liability and USD->CNY 7.2
        WHEN the balance sheet is built
        THEN net worth is 14,200 CNY
        """
        currency_service.create_exchange_rate(user.user_id, "USD", "CNY", Decimal("7.2"))

        sheet = report_service.get_balance_sheet(user.user_id)

        assert sheet.total_assets == {"CNY": Decimal("10000"), "USD": Decimal("1000")}
        assert sheet.total_liabilities == {"CNY": Decimal("3000")}
        assert sheet.net_worth == {"CNY": Decimal("7000"), "USD": Decimal("1000")}
        assert sheet.base_currency == "CNY"
        assert sheet.net_worth_in_base == Decimal("14200.00")
        assert sheet.unconverted_currencies == []
        assert len(sheet.assets) == 2 and len(sheet.liabilities) == 1

    def test_missing_rate_leaves_base_total_empty(self, user, holdings, report_service):
        sheet = report_service.get_balance_sheet(user.user_id)

        assert sheet.unconverted_currencies == ["USD"]
        assert sheet.net_worth_in_base is None

    def test_as_of_before_activity(self, user, holdings, report_service):
        sheet = report_service.get_balance_sheet(user.user_id, as_of=datetime(2024, 5, 1))

        assert sheet.net_worth == {"CNY": Decimal("0"), "USD": Decimal("0")}
        assert sheet.as_of.date() == datetime(2024, 5, 1).date()


class TestCashFlow:
    """Tests for get_cash_flow."""

    def test_period_totals(self, user, account_factory, transaction_factory, report_service):
        salary = account_factory(user.user_id, type=CategoryType.INCOME, name="Salary")
        food = account_factory(user.user_id, type=CategoryType.EXPENSE, name="Food")
        transaction_factory(user.user_id, salary.account_id, TransactionType.INCOME,
                            Decimal("5000"), date=datetime(2024, 6, 5))
        transaction_factory(user.user_id, food.account_id, TransactionType.EXPENSE,
                            Decimal("1200"), date=datetime(2024, 6, 10))
        transaction_factory(user.user_id, food.account_id, TransactionType.EXPENSE,
                            Decimal("300"), date=datetime(2024, 5, 20))

        flow = report_service.get_cash_flow(user.user_id, datetime(2024, 6, 1), datetime(2024, 6, 30))

        assert flow.total_income == {"CNY": Decimal("5000")}
        assert flow.total_expense == {"CNY": Decimal("1200")}
        assert flow.net == {"CNY": Decimal("3800")}

    def test_end_before_start(self, user, report_service):
        with pytest.raises(ValidationError):
            report_service.get_cash_flow(user.user_id, datetime(2024, 6, 30), datetime(2024, 6, 1))
