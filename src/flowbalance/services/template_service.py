"""Transaction template service."""

import logging
import uuid
from dataclasses import dataclass, field
from typing import Callable, Optional

from flowbalance.core.exceptions import ConflictError, NotFoundError, ValidationError
from flowbalance.core.timezone import now_utc
from flowbalance.domain.models import Account, TransactionTemplate, TransactionType
from flowbalance.repositories.protocols import (
    AccountRepository,
    CurrencyRepository,
    TransactionRepository,
    TransactionTemplateRepository,
)

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 100


@dataclass
class TemplateCreate:
    """Input data for creating a transaction template."""

    name: str
    account_id: str
    type: TransactionType
    description: str
    currency_code: Optional[str] = None
    notes: Optional[str] = None
    tag_ids: list[str] = field(default_factory=list)


@dataclass
class TemplateUpdate:
    name: Optional[str] = None
    account_id: Optional[str] = None
    type: Optional[TransactionType] = None
    description: Optional[str] = None
    currency_code: Optional[str] = None
    notes: Optional[str] = None
    tag_ids: Optional[list[str]] = None


class TemplateService:
    """
    Service for saved INCOME/EXPENSE entry templates.

    A template's type must match the kind of its account and it always uses
    the account currency.
    """

    def __init__(
        self,
        template_repo: TransactionTemplateRepository,
        account_repo: AccountRepository,
        currency_repo: CurrencyRepository,
        transaction_repo: TransactionRepository,
        clock: Callable = now_utc,
    ):
        self._template_repo = template_repo
        self._account_repo = account_repo
        self._currency_repo = currency_repo
        self._transaction_repo = transaction_repo
        self._clock = clock

    def create_template(self, user_id: str, data: TemplateCreate) -> TransactionTemplate:
        name = self._validate_name(user_id, data.name)
        account = self._validate_account(user_id, data.account_id, TransactionType(data.type), data.currency_code)
        description = self._validate_description(data.description)
        self._validate_tags(user_id, data.tag_ids)

        now = self._clock()
        template = self._template_repo.create(TransactionTemplate(
            template_id=str(uuid.uuid4()),
            user_id=user_id,
            name=name,
            account_id=account.account_id,
            currency_id=account.currency_id,
            type=TransactionType(data.type),
            description=description,
            notes=data.notes,
            tag_ids=list(data.tag_ids),
            created_at=now,
            updated_at=now,
        ))
        logger.info("Created transaction template %s for user %s", template.template_id, user_id)
        return template

    def get_template(self, user_id: str, template_id: str) -> TransactionTemplate:
        template = self._template_repo.get_by_id(template_id)
        if not template or template.user_id != user_id:
            raise NotFoundError("Transaction template", template_id)
        return template

    def list_templates(
        self,
        user_id: str,
        type: Optional[TransactionType] = None,
        account_id: Optional[str] = None,
    ) -> list[TransactionTemplate]:
        return self._template_repo.list_by_user(user_id, type=type, account_id=account_id)

    def update_template(self, user_id: str, template_id: str, patch: TemplateUpdate) -> TransactionTemplate:
        """Edit a template; account, type and currency are re-checked together."""
        template = self.get_template(user_id, template_id)
        if patch.name is not None:
            template.name = self._validate_name(user_id, patch.name, exclude_id=template_id)
        if patch.account_id is not None or patch.type is not None or patch.currency_code is not None:
            txn_type = TransactionType(patch.type) if patch.type is not None else template.type
            account = self._validate_account(
                user_id, patch.account_id or template.account_id, txn_type, patch.currency_code
            )
            template.account_id = account.account_id
            template.currency_id = account.currency_id
            template.type = txn_type
        if patch.description is not None:
            template.description = self._validate_description(patch.description)
        if patch.notes is not None:
            template.notes = patch.notes
        if patch.tag_ids is not None:
            self._validate_tags(user_id, patch.tag_ids)
            template.tag_ids = list(patch.tag_ids)
        template.updated_at = self._clock()
        return self._template_repo.update(template)

    def delete_template(self, user_id: str, template_id: str) -> None:
        self.get_template(user_id, template_id)
        self._template_repo.delete(template_id)

    def _validate_name(self, user_id: str, name: str, exclude_id: Optional[str] = None) -> str:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Template name is required")
        if len(name) > MAX_NAME_LENGTH:
            raise ValidationError(f"Template name must be at most {MAX_NAME_LENGTH} characters")
        existing = self._template_repo.get_by_name(user_id, name)
        if existing and existing.template_id != exclude_id:
            raise ConflictError(f"Template '{name}' already exists")
        return name

    def _validate_account(
        self,
        user_id: str,
        account_id: str,
        txn_type: TransactionType,
        currency_code: Optional[str],
    ) -> Account:
        if txn_type not in (TransactionType.INCOME, TransactionType.EXPENSE):
            raise ValidationError("Templates only support INCOME and EXPENSE transactions")
        account = self._account_repo.get_by_id(account_id)
        if not account or account.user_id != user_id:
            raise NotFoundError("Account", account_id)
        category = self._account_repo.get_category(account.category_id)
        if category is None or category.type.value != txn_type.value:
            kind = category.type.value if category else "unknown"
            raise ValidationError(f"{kind} accounts do not accept {txn_type.value} templates")
        if currency_code:
            currency = self._currency_repo.get_by_id(account.currency_id)
            if currency and currency.code != currency_code.upper():
                raise ValidationError(
                    f"This account only uses {currency.code}, not {currency_code.upper()}"
                )
        return account

    def _validate_tags(self, user_id: str, tag_ids: list[str]) -> None:
        for tag_id in tag_ids:
            tag = self._transaction_repo.get_tag(tag_id)
            if not tag or tag.user_id != user_id:
                raise NotFoundError("Tag", tag_id)

    @staticmethod
    def _validate_description(description: str) -> str:
        description = (description or "").strip()
        if not description:
            raise ValidationError("Description is required")
        return description
