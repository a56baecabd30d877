"""SQLAlchemy ORM model definitions."""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    Column,
    String,
    DateTime,
    Boolean,
    Integer,
    Text,
    JSON,
    ForeignKey,
    Numeric,
    Table,
    UniqueConstraint,
    Enum as SqlEnum,
)
from sqlalchemy.orm import relationship

from flowbalance.repositories.sqlalchemy.database import Base
from flowbalance.domain.models.enums import (
    CategoryType,
    TransactionType,
    ExchangeRateType,
    RecurrenceFrequency,
    RepaymentType,
    LoanPaymentStatus,
    SyncStatus,
)


class UserORM(Base):
    """SQLAlchemy model for User."""

    __tablename__ = "users"

    user_id = Column(String(36), primary_key=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=True, onupdate=datetime.utcnow)

    settings = relationship("UserSettingsORM", back_populates="user", uselist=False)


class UserSettingsORM(Base):
    """SQLAlchemy model for UserSettings."""

    __tablename__ = "user_settings"

    settings_id = Column(String(36), primary_key=True)
    user_id = Column(String(36), ForeignKey("users.user_id"), unique=True, nullable=False)
    base_currency_id = Column(String(36), ForeignKey("currencies.currency_id"), nullable=True)
    date_format = Column(String(20), nullable=False, default="YYYY-MM-DD")
    language = Column(String(10), nullable=False, default="zh")
    theme = Column(String(20), nullable=False, default="system")
    fire_enabled = Column(Boolean, default=False)
    fire_swr = Column(Numeric(precision=6, scale=2), default=Decimal("4.0"))
    future_data_days = Column(Integer, nullable=False, default=7)
    auto_update_exchange_rates = Column(Boolean, nullable=False, default=False)
    last_exchange_rate_update = Column(DateTime, nullable=True)
    last_recurring_sync = Column(DateTime, nullable=True)
    recurring_processing_status = Column(
        SqlEnum(SyncStatus, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=SyncStatus.IDLE,
    )
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=True, onupdate=datetime.utcnow)

    user = relationship("UserORM", back_populates="settings")


class CurrencyORM(Base):
    """SQLAlchemy model for Currency (global when created_by is NULL)."""

    __tablename__ = "currencies"
    __table_args__ = (UniqueConstraint("code", "created_by", name="uq_currency_code_owner"),)

    currency_id = Column(String(36), primary_key=True)
    code = Column(String(10), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    symbol = Column(String(10), nullable=False)
    decimal_places = Column(Integer, nullable=False, default=2)
    is_custom = Column(Boolean, nullable=False, default=False)
    created_by = Column(String(36), ForeignKey("users.user_id"), nullable=True)


class UserCurrencyORM(Base):
    """SQLAlchemy model for a user's currency selection."""

    __tablename__ = "user_currencies"
    __table_args__ = (UniqueConstraint("user_id", "currency_id", name="uq_user_currency"),)

    user_currency_id = Column(String(36), primary_key=True)
    user_id = Column(String(36), ForeignKey("users.user_id"), nullable=False, index=True)
    currency_id = Column(String(36), ForeignKey("currencies.currency_id"), nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    order = Column(Integer, nullable=False, default=0)


class ExchangeRateORM(Base):
    """SQLAlchemy model for ExchangeRate."""

    __tablename__ = "exchange_rates"
    __table_args__ = (
        UniqueConstraint(
            "user_id", "from_currency_id", "to_currency_id", "effective_date",
            name="uq_exchange_rate_pair_date",
        ),
    )

    rate_id = Column(String(36), primary_key=True)
    user_id = Column(String(36), ForeignKey("users.user_id"), nullable=False, index=True)
    from_currency_id = Column(String(36), ForeignKey("currencies.currency_id"), nullable=False)
    to_currency_id = Column(String(36), ForeignKey("currencies.currency_id"), nullable=False)
    rate = Column(Numeric(precision=20, scale=8), nullable=False)
    effective_date = Column(DateTime, nullable=False)
    type = Column(SqlEnum(ExchangeRateType), nullable=False, default=ExchangeRateType.USER)
    source_rate_id = Column(String(36), ForeignKey("exchange_rates.rate_id"), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=True, onupdate=datetime.utcnow)


class CategoryORM(Base):
    """SQLAlchemy model for Category (tree via parent_id)."""

    __tablename__ = "categories"

    category_id = Column(String(36), primary_key=True)
    user_id = Column(String(36), ForeignKey("users.user_id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    type = Column(SqlEnum(CategoryType), nullable=False)
    parent_id = Column(String(36), ForeignKey("categories.category_id"), nullable=True)
    order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)


class AccountORM(Base):
    """SQLAlchemy model for Account."""

    __tablename__ = "accounts"

    account_id = Column(String(36), primary_key=True)
    user_id = Column(String(36), ForeignKey("users.user_id"), nullable=False, index=True)
    category_id = Column(String(36), ForeignKey("categories.category_id"), nullable=False)
    currency_id = Column(String(36), ForeignKey("currencies.currency_id"), nullable=False)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    color = Column(String(20), nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=True, onupdate=datetime.utcnow)

    category = relationship("CategoryORM")
    transactions = relationship("TransactionORM", back_populates="account")


transaction_tags = Table(
    "transaction_tags",
    Base.metadata,
    Column("txn_id", String(36), ForeignKey("transactions.txn_id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", String(36), ForeignKey("tags.tag_id", ondelete="CASCADE"), primary_key=True),
)


class TagORM(Base):
    """SQLAlchemy model for Tag."""

    __tablename__ = "tags"
    __table_args__ = (UniqueConstraint("user_id", "name", name="uq_tag_user_name"),)

    tag_id = Column(String(36), primary_key=True)
    user_id = Column(String(36), ForeignKey("users.user_id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    color = Column(String(20), nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)


class TransactionORM(Base):
    """SQLAlchemy model for Transaction (ledger entry)."""

    __tablename__ = "transactions"

    txn_id = Column(String(36), primary_key=True)
    user_id = Column(String(36), ForeignKey("users.user_id"), nullable=False, index=True)
    account_id = Column(String(36), ForeignKey("accounts.account_id"), nullable=False, index=True)
    category_id = Column(String(36), ForeignKey("categories.category_id"), nullable=False)
    currency_id = Column(String(36), ForeignKey("currencies.currency_id"), nullable=False)
    type = Column(SqlEnum(TransactionType), nullable=False)
    amount = Column(Numeric(precision=18, scale=2), nullable=False)
    description = Column(String(500), nullable=False)
    notes = Column(Text, nullable=True)
    date = Column(DateTime, nullable=False, index=True)
    recurring_transaction_id = Column(
        String(36), ForeignKey("recurring_transactions.recurring_id"), nullable=True, index=True
    )
    loan_contract_id = Column(String(36), ForeignKey("loan_contracts.contract_id"), nullable=True)
    loan_payment_id = Column(String(36), ForeignKey("loan_payments.payment_id"), nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=True, onupdate=datetime.utcnow)

    account = relationship("AccountORM", back_populates="transactions")
    tags = relationship("TagORM", secondary=transaction_tags)


class RecurringTransactionORM(Base):
    """SQLAlchemy model for RecurringTransaction."""

    __tablename__ = "recurring_transactions"

    recurring_id = Column(String(36), primary_key=True)
    user_id = Column(String(36), ForeignKey("users.user_id"), nullable=False, index=True)
    account_id = Column(String(36), ForeignKey("accounts.account_id"), nullable=False)
    currency_id = Column(String(36), ForeignKey("currencies.currency_id"), nullable=False)
    type = Column(SqlEnum(TransactionType), nullable=False)
    amount = Column(Numeric(precision=18, scale=2), nullable=False)
    description = Column(String(500), nullable=False)
    notes = Column(Text, nullable=True)
    tag_ids = Column(JSON, nullable=False, default=list)
    frequency = Column(SqlEnum(RecurrenceFrequency), nullable=False)
    interval = Column(Integer, nullable=False, default=1)
    day_of_month = Column(Integer, nullable=True)
    day_of_week = Column(Integer, nullable=True)
    month_of_year = Column(Integer, nullable=True)
    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=True)
    next_date = Column(DateTime, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    max_occurrences = Column(Integer, nullable=True)
    current_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=True, onupdate=datetime.utcnow)


class TransactionTemplateORM(Base):
    """SQLAlchemy model for TransactionTemplate."""

    __tablename__ = "transaction_templates"
    __table_args__ = (UniqueConstraint("user_id", "name", name="uq_template_user_name"),)

    template_id = Column(String(36), primary_key=True)
    user_id = Column(String(36), ForeignKey("users.user_id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    account_id = Column(String(36), ForeignKey("accounts.account_id"), nullable=False)
    currency_id = Column(String(36), ForeignKey("currencies.currency_id"), nullable=False)
    type = Column(SqlEnum(TransactionType), nullable=False)
    description = Column(String(500), nullable=False)
    notes = Column(Text, nullable=True)
    tag_ids = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=True, onupdate=datetime.utcnow)


class LoanContractORM(Base):
    """SQLAlchemy model for LoanContract."""

    __tablename__ = "loan_contracts"

    contract_id = Column(String(36), primary_key=True)
    user_id = Column(String(36), ForeignKey("users.user_id"), nullable=False, index=True)
    account_id = Column(String(36), ForeignKey("accounts.account_id"), nullable=False)
    currency_id = Column(String(36), ForeignKey("currencies.currency_id"), nullable=False)
    contract_name = Column(String(255), nullable=False)
    loan_amount = Column(Numeric(precision=18, scale=2), nullable=False)
    interest_rate = Column(Numeric(precision=10, scale=6), nullable=False)
    total_periods = Column(Integer, nullable=False)
    repayment_type = Column(SqlEnum(RepaymentType), nullable=False)
    start_date = Column(DateTime, nullable=False)
    payment_day = Column(Integer, nullable=False)
    payment_account_id = Column(String(36), ForeignKey("accounts.account_id"), nullable=True)
    transaction_description = Column(String(500), nullable=True)
    transaction_notes = Column(Text, nullable=True)
    transaction_tag_ids = Column(JSON, nullable=False, default=list)
    is_active = Column(Boolean, nullable=False, default=True)
    current_period = Column(Integer, nullable=False, default=0)
    next_payment_date = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=True, onupdate=datetime.utcnow)

    payments = relationship(
        "LoanPaymentORM",
        back_populates="contract",
        cascade="all, delete-orphan",
        order_by="LoanPaymentORM.period",
    )


class LoanPaymentORM(Base):
    """SQLAlchemy model for LoanPayment."""

    __tablename__ = "loan_payments"
    __table_args__ = (UniqueConstraint("contract_id", "period", name="uq_loan_payment_period"),)

    payment_id = Column(String(36), primary_key=True)
    contract_id = Column(String(36), ForeignKey("loan_contracts.contract_id"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("users.user_id"), nullable=False, index=True)
    period = Column(Integer, nullable=False)
    payment_date = Column(DateTime, nullable=False)
    principal_amount = Column(Numeric(precision=18, scale=2), nullable=False)
    interest_amount = Column(Numeric(precision=18, scale=2), nullable=False)
    total_amount = Column(Numeric(precision=18, scale=2), nullable=False)
    remaining_balance = Column(Numeric(precision=18, scale=2), nullable=False)
    status = Column(SqlEnum(LoanPaymentStatus), nullable=False, default=LoanPaymentStatus.PENDING)
    principal_transaction_id = Column(String(36), nullable=True)
    interest_transaction_id = Column(String(36), nullable=True)
    balance_transaction_id = Column(String(36), nullable=True)
    processed_at = Column(DateTime, nullable=True)

    contract = relationship("LoanContractORM", back_populates="payments")


class ProcessingLogORM(Base):
    """SQLAlchemy model for a background sync run."""

    __tablename__ = "processing_logs"

    log_id = Column(String(36), primary_key=True)
    user_id = Column(String(36), ForeignKey("users.user_id"), nullable=False, index=True)
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=True)
    status = Column(
        SqlEnum(SyncStatus, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    processed_recurring = Column(Integer, nullable=False, default=0)
    processed_loans = Column(Integer, nullable=False, default=0)
    processed_exchange_rates = Column(Integer, nullable=False, default=0)
    failed_count = Column(Integer, nullable=False, default=0)
    error_message = Column(Text, nullable=True)
