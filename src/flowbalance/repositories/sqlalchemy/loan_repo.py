"""SQLAlchemy implementation of LoanRepository."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from flowbalance.domain.models import LoanContract, LoanPayment, LoanPaymentStatus, Transaction
from flowbalance.repositories.sqlalchemy.orm_models import LoanContractORM, LoanPaymentORM, TransactionORM
from flowbalance.repositories.sqlalchemy.transaction_repo import SqlAlchemyTransactionRepository

_CONTRACT_FIELDS = (
    "account_id",
    "currency_id",
    "contract_name",
    "loan_amount",
    "interest_rate",
    "total_periods",
    "repayment_type",
    "start_date",
    "payment_day",
    "payment_account_id",
    "transaction_description",
    "transaction_notes",
    "is_active",
    "current_period",
    "next_payment_date",
)


class SqlAlchemyLoanRepository:
    """SQLAlchemy-backed loan contract repository."""

    def __init__(self, db: Session):
        self._db = db

    def create_contract(self, contract: LoanContract) -> LoanContract:
        orm_contract = LoanContractORM(
            contract_id=contract.contract_id,
            user_id=contract.user_id,
            transaction_tag_ids=list(contract.transaction_tag_ids),
            created_at=contract.created_at,
        )
        for name in _CONTRACT_FIELDS:
            setattr(orm_contract, name, getattr(contract, name))
        self._db.add(orm_contract)
        self._db.commit()
        self._db.refresh(orm_contract)
        return self._contract_to_domain(orm_contract)

    def get_contract(self, contract_id: str) -> Optional[LoanContract]:
        orm_contract = self._db.query(LoanContractORM).filter(
            LoanContractORM.contract_id == contract_id
        ).first()
        return self._contract_to_domain(orm_contract) if orm_contract else None

    def list_contracts(self, user_id: str, active_only: bool = False) -> list[LoanContract]:
        query = self._db.query(LoanContractORM).filter(LoanContractORM.user_id == user_id)
        if active_only:
            query = query.filter(LoanContractORM.is_active == True)  # noqa: E712
        query = query.order_by(LoanContractORM.start_date)
        return [self._contract_to_domain(c) for c in query.all()]

    def update_contract(self, contract: LoanContract) -> LoanContract:
        orm_contract = self._apply_contract(contract)
        self._db.commit()
        self._db.refresh(orm_contract)
        return self._contract_to_domain(orm_contract)

    def delete_contract(self, contract_id: str) -> None:
        orm_contract = self._db.query(LoanContractORM).filter(
            LoanContractORM.contract_id == contract_id
        ).first()
        if orm_contract:
            # Payments go with the contract (delete-orphan cascade)
            self._db.delete(orm_contract)
            self._db.commit()

    def create_payments(self, payments: list[LoanPayment]) -> list[LoanPayment]:
        orm_payments = [self._payment_to_orm(p) for p in payments]
        self._db.add_all(orm_payments)
        self._db.commit()
        for orm_payment in orm_payments:
            self._db.refresh(orm_payment)
        return [self._payment_to_domain(p) for p in orm_payments]

    def list_payments(self, contract_id: str) -> list[LoanPayment]:
        orm_payments = (
            self._db.query(LoanPaymentORM)
            .filter(LoanPaymentORM.contract_id == contract_id)
            .order_by(LoanPaymentORM.period)
            .all()
        )
        return [self._payment_to_domain(p) for p in orm_payments]

    def complete_payment(
        self,
        payment: LoanPayment,
        contract: LoanContract,
        transactions: list[Transaction],
    ) -> None:
        """
        Book a payment in one commit: its ledger transactions, the payment
        row and the contract progress. Nothing is kept if any step fails.
        """
        staging = SqlAlchemyTransactionRepository(self._db)
        try:
            for transaction in transactions:
                staging.stage(transaction)
            self._apply_payment(payment)
            self._apply_contract(contract)
            self._db.commit()
        except Exception:
            self._db.rollback()
            raise

    def replace_pending_payments(self, contract: LoanContract, payments: list[LoanPayment]) -> None:
        """
        Save edited contract terms and swap its PENDING payments for a new
        schedule in one commit. Completed payments are left alone.
        """
        try:
            self._apply_contract(contract)
            self._db.query(LoanPaymentORM).filter(
                LoanPaymentORM.contract_id == contract.contract_id,
                LoanPaymentORM.status == LoanPaymentStatus.PENDING,
            ).delete(synchronize_session="fetch")
            self._db.add_all([self._payment_to_orm(p) for p in payments])
            self._db.commit()
        except Exception:
            self._db.rollback()
            raise

    def reset_payments(self, contract: LoanContract, payments: list[LoanPayment]) -> int:
        """
        Put processed payments back to PENDING in one commit, deleting the
        transactions they generated. Returns the number of deleted transactions.
        """
        payment_ids = [p.payment_id for p in payments]
        try:
            generated = self._db.query(TransactionORM).filter(
                TransactionORM.loan_payment_id.in_(payment_ids)
            ).all()
            for orm_txn in generated:
                self._db.delete(orm_txn)
            for payment in payments:
                self._apply_payment(payment)
            self._apply_contract(contract)
            self._db.commit()
        except Exception:
            self._db.rollback()
            raise
        return len(generated)

    def list_due_payments(self, until: datetime, user_id: Optional[str] = None) -> list[LoanPayment]:
        query = (
            self._db.query(LoanPaymentORM)
            .join(LoanContractORM)
            .filter(
                LoanPaymentORM.status == LoanPaymentStatus.PENDING,
                LoanPaymentORM.payment_date <= until,
                LoanContractORM.is_active == True,  # noqa: E712
            )
        )
        if user_id:
            query = query.filter(LoanPaymentORM.user_id == user_id)
        query = query.order_by(LoanPaymentORM.payment_date, LoanPaymentORM.period)
        return [self._payment_to_domain(p) for p in query.all()]

    def _apply_contract(self, contract: LoanContract) -> LoanContractORM:
        orm_contract = self._db.query(LoanContractORM).filter(
            LoanContractORM.contract_id == contract.contract_id
        ).first()
        if not orm_contract:
            raise ValueError(f"Loan contract not found: {contract.contract_id}")
        for name in _CONTRACT_FIELDS:
            setattr(orm_contract, name, getattr(contract, name))
        orm_contract.transaction_tag_ids = list(contract.transaction_tag_ids)
        return orm_contract

    def _apply_payment(self, payment: LoanPayment) -> LoanPaymentORM:
        orm_payment = self._db.query(LoanPaymentORM).filter(
            LoanPaymentORM.payment_id == payment.payment_id
        ).first()
        if not orm_payment:
            raise ValueError(f"Loan payment not found: {payment.payment_id}")
        orm_payment.payment_date = payment.payment_date
        orm_payment.status = payment.status
        orm_payment.principal_transaction_id = payment.principal_transaction_id
        orm_payment.interest_transaction_id = payment.interest_transaction_id
        orm_payment.balance_transaction_id = payment.balance_transaction_id
        orm_payment.processed_at = payment.processed_at
        return orm_payment

    @staticmethod
    def _contract_to_domain(orm: LoanContractORM) -> LoanContract:
        """Convert ORM model to domain model."""
        return LoanContract(
            contract_id=orm.contract_id,
            user_id=orm.user_id,
            account_id=orm.account_id,
            currency_id=orm.currency_id,
            contract_name=orm.contract_name,
            loan_amount=Decimal(str(orm.loan_amount)),
            interest_rate=Decimal(str(orm.interest_rate)),
            total_periods=orm.total_periods,
            repayment_type=orm.repayment_type,
            start_date=orm.start_date,
            payment_day=orm.payment_day,
            payment_account_id=orm.payment_account_id,
            transaction_description=orm.transaction_description,
            transaction_notes=orm.transaction_notes,
            transaction_tag_ids=list(orm.transaction_tag_ids or []),
            is_active=orm.is_active,
            current_period=orm.current_period,
            next_payment_date=orm.next_payment_date,
            created_at=orm.created_at,
            updated_at=orm.updated_at,
        )

    @staticmethod
    def _payment_to_orm(payment: LoanPayment) -> LoanPaymentORM:
        return LoanPaymentORM(
            payment_id=payment.payment_id,
            contract_id=payment.contract_id,
            user_id=payment.user_id,
            period=payment.period,
            payment_date=payment.payment_date,
            principal_amount=payment.principal_amount,
            interest_amount=payment.interest_amount,
            total_amount=payment.total_amount,
            remaining_balance=payment.remaining_balance,
            status=payment.status,
            principal_transaction_id=payment.principal_transaction_id,
            interest_transaction_id=payment.interest_transaction_id,
            balance_transaction_id=payment.balance_transaction_id,
            processed_at=payment.processed_at,
        )

    @staticmethod
    def _payment_to_domain(orm: LoanPaymentORM) -> LoanPayment:
        return LoanPayment(
            payment_id=orm.payment_id,
            contract_id=orm.contract_id,
            user_id=orm.user_id,
            period=orm.period,
            payment_date=orm.payment_date,
            principal_amount=Decimal(str(orm.principal_amount)),
            interest_amount=Decimal(str(orm.interest_amount)),
            total_amount=Decimal(str(orm.total_amount)),
            remaining_balance=Decimal(str(orm.remaining_balance)),
            status=orm.status,
            principal_transaction_id=orm.principal_transaction_id,
            interest_transaction_id=orm.interest_transaction_id,
            balance_transaction_id=orm.balance_transaction_id,
            processed_at=orm.processed_at,
        )
