"""Loan contract service: contracts, payment schedules and payment processing."""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Callable, Optional

from flowbalance.config.settings import get_settings
from flowbalance.core.exceptions import ValidationError, NotFoundError
from flowbalance.core.formatting import format_number, loan_payment_date_for_period
from flowbalance.core.timezone import future_horizon, now_utc, start_of_day
from flowbalance.domain.models import (
    Account,
    CategoryType,
    LoanContract,
    LoanPayment,
    LoanPaymentStatus,
    RepaymentType,
    Transaction,
    TransactionType,
)
from flowbalance.domain.views import GenerationResult, LoanCalculation, LoanResetResult
from flowbalance.repositories.protocols import (
    AccountRepository,
    LoanRepository,
    TransactionRepository,
    UserRepository,
)
from flowbalance.services.loan_calculator import calculate_loan, validate_loan_parameters

logger = logging.getLogger(__name__)

DEFAULT_DESCRIPTION = "{contractName} period {period}"

# Editing any of these rebuilds the pending schedule
TERM_FIELDS = (
    "loan_amount",
    "interest_rate",
    "total_periods",
    "repayment_type",
    "start_date",
    "payment_day",
)


def render_template(template: str, contract: LoanContract, payment: LoanPayment) -> str:
    """Fill {period}, {contractName} and {remainingBalance} placeholders."""
    return (
        template
        .replace("{period}", str(payment.period))
        .replace("{contractName}", contract.contract_name)
        .replace("{remainingBalance}", format_number(payment.remaining_balance))
    )


@dataclass
class LoanContractCreate:
    """Input data for creating a loan contract."""

    account_id: str
    contract_name: str
    loan_amount: Decimal
    interest_rate: Decimal
    total_periods: int
    repayment_type: RepaymentType
    start_date: datetime
    payment_day: int
    payment_account_id: Optional[str] = None
    transaction_description: Optional[str] = None
    transaction_notes: Optional[str] = None
    transaction_tag_ids: list[str] = field(default_factory=list)


@dataclass
class LoanContractUpdate:
    contract_name: Optional[str] = None
    loan_amount: Optional[Decimal] = None
    interest_rate: Optional[Decimal] = None
    total_periods: Optional[int] = None
    repayment_type: Optional[RepaymentType] = None
    start_date: Optional[datetime] = None
    payment_day: Optional[int] = None
    payment_account_id: Optional[str] = None
    transaction_description: Optional[str] = None
    transaction_notes: Optional[str] = None
    transaction_tag_ids: Optional[list[str]] = None
    is_active: Optional[bool] = None


class LoanService:
    """
    Service for loan contracts on LIABILITY accounts.

    The full schedule is stored as PENDING payments when a contract is
    created; processing books due payments into the ledger.
    """

    def __init__(
        self,
        loan_repo: LoanRepository,
        account_repo: AccountRepository,
        transaction_repo: TransactionRepository,
        user_repo: UserRepository,
        clock: Callable = now_utc,
    ):
        self._loan_repo = loan_repo
        self._account_repo = account_repo
        self._transaction_repo = transaction_repo
        self._user_repo = user_repo
        self._clock = clock

    # ------------------------------------------------------------------
    # Contracts
    # ------------------------------------------------------------------

    def create_contract(self, user_id: str, data: LoanContractCreate) -> LoanContract:
        """
        Create a contract and its payment schedule.

        Raises ValidationError when the account is not a LIABILITY account,
        the payment account is not an EXPENSE account in the same currency,
        or the loan terms are out of range.
        """
        account = self._get_account(user_id, data.account_id)
        if self._account_type(account) != CategoryType.LIABILITY:
            raise ValidationError("Loan contracts require a LIABILITY account")
        if data.payment_account_id:
            self._validate_payment_account(user_id, account, data.payment_account_id)
        if not (data.contract_name or "").strip():
            raise ValidationError("Contract name is required")
        if not 1 <= data.payment_day <= 31:
            raise ValidationError("payment_day must be between 1 and 31")

        start = start_of_day(data.start_date)
        calculation = calculate_loan(
            data.loan_amount,
            data.interest_rate,
            data.total_periods,
            data.repayment_type,
            start,
            data.payment_day,
        )

        contract = self._loan_repo.create_contract(LoanContract(
            contract_id=str(uuid.uuid4()),
            user_id=user_id,
            account_id=account.account_id,
            currency_id=account.currency_id,
            contract_name=data.contract_name.strip(),
            loan_amount=Decimal(str(data.loan_amount)),
            interest_rate=Decimal(str(data.interest_rate)),
            total_periods=data.total_periods,
            repayment_type=RepaymentType(data.repayment_type),
            start_date=start,
            payment_day=data.payment_day,
            payment_account_id=data.payment_account_id,
            transaction_description=data.transaction_description,
            transaction_notes=data.transaction_notes,
            transaction_tag_ids=list(data.transaction_tag_ids),
            next_payment_date=start,
            created_at=self._clock(),
        ))
        self._loan_repo.create_payments([
            LoanPayment(
                payment_id=str(uuid.uuid4()),
                contract_id=contract.contract_id,
                user_id=user_id,
                period=item.period,
                payment_date=item.payment_date,
                principal_amount=item.principal,
                interest_amount=item.interest,
                total_amount=item.total_payment,
                remaining_balance=item.remaining_balance,
            )
            for item in calculation.schedule
        ])
        logger.info(
            "Created loan contract %s with %d payments", contract.contract_id, data.total_periods
        )
        return contract

    def get_contract(self, user_id: str, contract_id: str) -> LoanContract:
        contract = self._loan_repo.get_contract(contract_id)
        if not contract or contract.user_id != user_id:
            raise NotFoundError("Loan contract", contract_id)
        return contract

    def list_contracts(self, user_id: str, active_only: bool = False) -> list[LoanContract]:
        return self._loan_repo.list_contracts(user_id, active_only)

    def get_schedule(self, user_id: str, contract_id: str) -> list[LoanPayment]:
        self.get_contract(user_id, contract_id)
        return self._loan_repo.list_payments(contract_id)

    def preview(
        self,
        loan_amount: Decimal,
        interest_rate: Decimal,
        total_periods: int,
        repayment_type: RepaymentType,
        start_date: Optional[datetime] = None,
        payment_day: Optional[int] = None,
    ) -> LoanCalculation:
        return calculate_loan(loan_amount, interest_rate, total_periods, repayment_type, start_date, payment_day)

    def update_contract(self, user_id: str, contract_id: str, patch: LoanContractUpdate) -> LoanContract:
        """
        Edit a contract.

        Changing loan terms (amount, rate, periods, repayment type, start
        date or payment day) rebuilds the PENDING part of the schedule from
        the last completed period onwards; booked periods stay as they are.
        """
        contract = self.get_contract(user_id, contract_id)
        if patch.contract_name is not None:
            if not patch.contract_name.strip():
                raise ValidationError("Contract name is required")
            contract.contract_name = patch.contract_name.strip()
        if patch.payment_account_id is not None:
            account = self._get_account(user_id, contract.account_id)
            self._validate_payment_account(user_id, account, patch.payment_account_id)
            contract.payment_account_id = patch.payment_account_id
        if patch.transaction_description is not None:
            contract.transaction_description = patch.transaction_description
        if patch.transaction_notes is not None:
            contract.transaction_notes = patch.transaction_notes
        if patch.transaction_tag_ids is not None:
            contract.transaction_tag_ids = list(patch.transaction_tag_ids)
        if patch.is_active is not None:
            contract.is_active = patch.is_active
        contract.updated_at = self._clock()

        if not self._apply_terms(contract, patch):
            return self._loan_repo.update_contract(contract)

        completed = [
            p for p in self._loan_repo.list_payments(contract_id)
            if p.status == LoanPaymentStatus.COMPLETED
        ]
        last_period = completed[-1].period if completed else 0
        if contract.total_periods <= last_period:
            raise ValidationError(
                f"Total periods must be greater than the last completed period ({last_period})"
            )
        validate_loan_parameters(contract.loan_amount, contract.interest_rate, contract.total_periods)

        payments = self._rebuild_pending(contract, completed[-1] if completed else None)
        self._loan_repo.replace_pending_payments(contract, payments)
        logger.info(
            "Regenerated %d pending payments of loan contract %s", len(payments), contract_id
        )
        return self.get_contract(user_id, contract_id)

    def reset_payments(
        self,
        user_id: str,
        contract_id: str,
        payment_ids: Optional[list[str]] = None,
    ) -> LoanResetResult:
        """
        Undo processed payments: their transactions are deleted and the
        payments go back to PENDING, to be booked again by the next run.

        payment_ids None resets every completed payment of the contract.
        """
        contract = self.get_contract(user_id, contract_id)
        payments = self._loan_repo.list_payments(contract_id)
        wanted = set(payment_ids) if payment_ids is not None else None
        targets = [
            p for p in payments
            if p.status == LoanPaymentStatus.COMPLETED and (wanted is None or p.payment_id in wanted)
        ]
        if not targets:
            raise ValidationError("No completed payments to reset")

        reset_ids = {p.payment_id for p in targets}
        for payment in targets:
            payment.status = LoanPaymentStatus.PENDING
            payment.principal_transaction_id = None
            payment.interest_transaction_id = None
            payment.balance_transaction_id = None
            payment.processed_at = None

        still_completed = [
            p.period for p in payments
            if p.status == LoanPaymentStatus.COMPLETED and p.payment_id not in reset_ids
        ]
        contract.current_period = max(still_completed, default=0)
        if contract.current_period >= contract.total_periods:
            contract.is_active = False
            contract.next_payment_date = None
        else:
            following = [p for p in payments if p.period == contract.current_period + 1]
            contract.is_active = True
            contract.next_payment_date = following[0].payment_date if following else None
        contract.updated_at = self._clock()

        deleted = self._loan_repo.reset_payments(contract, targets)
        logger.info(
            "Reset %d payments of loan contract %s, deleted %d transactions",
            len(targets), contract_id, deleted,
        )
        return LoanResetResult(reset_count=len(targets), deleted_transactions=deleted)

    def _apply_terms(self, contract: LoanContract, patch: LoanContractUpdate) -> bool:
        """Copy changed loan terms onto the contract; True when any changed."""
        changed = False
        for name in TERM_FIELDS:
            value = getattr(patch, name)
            if value is None:
                continue
            if name == "start_date":
                value = start_of_day(value)
            elif name == "repayment_type":
                value = RepaymentType(value)
            elif name in ("loan_amount", "interest_rate"):
                value = Decimal(str(value))
            if value != getattr(contract, name):
                setattr(contract, name, value)
                changed = True
        if not 1 <= contract.payment_day <= 31:
            raise ValidationError("payment_day must be between 1 and 31")
        return changed

    def _rebuild_pending(self, contract: LoanContract, last_completed: Optional[LoanPayment]) -> list[LoanPayment]:
        """
        Schedule the periods after last_completed.

        The outstanding principal is the remaining balance of the last
        completed period, or the full loan amount when nothing is booked yet.
        """
        start_period = last_completed.period + 1 if last_completed else 1
        principal = last_completed.remaining_balance if last_completed else contract.loan_amount
        periods = contract.total_periods - start_period + 1
        calculation = calculate_loan(principal, contract.interest_rate, periods, contract.repayment_type)

        payments = []
        for item in calculation.schedule:
            period = start_period + item.period - 1
            payments.append(LoanPayment(
                payment_id=str(uuid.uuid4()),
                contract_id=contract.contract_id,
                user_id=contract.user_id,
                period=period,
                payment_date=loan_payment_date_for_period(contract.start_date, contract.payment_day, period),
                principal_amount=item.principal,
                interest_amount=item.interest,
                total_amount=item.total_payment,
                remaining_balance=item.remaining_balance,
            ))
        contract.current_period = last_completed.period if last_completed else 0
        contract.next_payment_date = payments[0].payment_date
        return payments

    def delete_contract(self, user_id: str, contract_id: str) -> int:
        """Delete a contract, its payments and every transaction it generated."""
        self.get_contract(user_id, contract_id)
        generated = self._transaction_repo.query(user_id, loan_contract_id=contract_id)
        removed = self._transaction_repo.delete_many([t.txn_id for t in generated])
        self._loan_repo.delete_contract(contract_id)
        logger.info("Deleted loan contract %s and %d transactions", contract_id, removed)
        return removed

    # ------------------------------------------------------------------
    # Processing
    # ------------------------------------------------------------------

    def process_loan_payments(self, user_id: str) -> GenerationResult:
        """Book every PENDING payment of an active contract due before the horizon."""
        settings = self._user_repo.get_settings(user_id)
        days = settings.future_data_days if settings else get_settings().default_future_data_days
        horizon = future_horizon(self._clock(), days)

        result = GenerationResult()
        contracts: dict[str, Optional[LoanContract]] = {}
        failed: set[str] = set()
        for payment in self._loan_repo.list_due_payments(horizon, user_id):
            # Periods are booked in order; later ones wait for the next run
            if payment.contract_id in failed:
                continue
            if payment.contract_id not in contracts:
                contracts[payment.contract_id] = self._loan_repo.get_contract(payment.contract_id)
            contract = contracts[payment.contract_id]
            if contract is None:
                logger.warning("Skipping payment %s: contract %s is gone", payment.payment_id, payment.contract_id)
                continue
            name, period = contract.contract_name, payment.period
            try:
                self._process_payment(contract, payment)
                result.processed += 1
            except Exception as e:
                logger.exception("Loan payment %s failed", payment.payment_id)
                result.errors.append(f"Loan '{name}' period {period}: {e}")
                failed.add(payment.contract_id)
        return result

    def _process_payment(self, contract: LoanContract, payment: LoanPayment) -> None:
        now = self._clock()
        liability = self._account_repo.get_by_id(contract.account_id)
        if not liability:
            raise NotFoundError("Account", contract.account_id)
        description = render_template(contract.transaction_description or DEFAULT_DESCRIPTION, contract, payment)
        notes = render_template(contract.transaction_notes, contract, payment) if contract.transaction_notes else None

        payment_account = None
        if contract.payment_account_id:
            payment_account = self._account_repo.get_by_id(contract.payment_account_id)

        transactions = []
        if payment_account and payment.principal_amount > 0:
            txn = self._build(contract, payment, payment_account, TransactionType.EXPENSE,
                              payment.principal_amount, f"{description} - principal", notes,
                              contract.transaction_tag_ids, now)
            payment.principal_transaction_id = txn.txn_id
            transactions.append(txn)
        if payment_account and payment.interest_amount > 0:
            txn = self._build(contract, payment, payment_account, TransactionType.EXPENSE,
                              payment.interest_amount, f"{description} - interest", notes,
                              contract.transaction_tag_ids, now)
            payment.interest_transaction_id = txn.txn_id
            transactions.append(txn)

        # Balance snapshots carry no tags
        txn = self._build(contract, payment, liability, TransactionType.BALANCE,
                          payment.remaining_balance, f"{description} - balance", notes, [], now)
        payment.balance_transaction_id = txn.txn_id
        transactions.append(txn)

        payment.status = LoanPaymentStatus.COMPLETED
        payment.processed_at = now

        contract.current_period = max(contract.current_period, payment.period)
        if payment.period >= contract.total_periods:
            contract.is_active = False
            contract.next_payment_date = None
        else:
            following = [
                p for p in self._loan_repo.list_payments(contract.contract_id)
                if p.period == payment.period + 1
            ]
            contract.next_payment_date = following[0].payment_date if following else None
        contract.updated_at = now

        self._loan_repo.complete_payment(payment, contract, transactions)

    def _build(
        self,
        contract: LoanContract,
        payment: LoanPayment,
        account: Account,
        txn_type: TransactionType,
        amount: Decimal,
        description: str,
        notes: Optional[str],
        tag_ids: list[str],
        now: datetime,
    ) -> Transaction:
        return Transaction(
            txn_id=str(uuid.uuid4()),
            user_id=contract.user_id,
            account_id=account.account_id,
            category_id=account.category_id,
            currency_id=account.currency_id,
            type=txn_type,
            amount=amount,
            description=description,
            notes=notes,
            date=payment.payment_date,
            tag_ids=list(tag_ids),
            loan_contract_id=contract.contract_id,
            loan_payment_id=payment.payment_id,
            created_at=now,
        )

    def _get_account(self, user_id: str, account_id: str) -> Account:
        account = self._account_repo.get_by_id(account_id)
        if not account or account.user_id != user_id:
            raise NotFoundError("Account", account_id)
        return account

    def _account_type(self, account: Account) -> CategoryType:
        category = self._account_repo.get_category(account.category_id)
        if not category:
            raise NotFoundError("Category", account.category_id)
        return category.type

    def _validate_payment_account(self, user_id: str, liability: Account, payment_account_id: str) -> None:
        payment_account = self._get_account(user_id, payment_account_id)
        if self._account_type(payment_account) != CategoryType.EXPENSE:
            raise ValidationError("Payment account must be an EXPENSE account")
        if payment_account.currency_id != liability.currency_id:
            raise ValidationError("Payment account must use the loan account's currency")
