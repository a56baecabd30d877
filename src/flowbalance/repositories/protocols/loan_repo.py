"""Loan contract repository protocol."""

from datetime import datetime
from typing import Protocol, Optional

from flowbalance.domain.models import LoanContract, LoanPayment, Transaction


class LoanRepository(Protocol):
    """Interface for loan contracts and their payment schedules."""

    def create_contract(self, contract: LoanContract) -> LoanContract:
        ...

    def get_contract(self, contract_id: str) -> Optional[LoanContract]:
        ...

    def list_contracts(self, user_id: str, active_only: bool = False) -> list[LoanContract]:
        ...

    def update_contract(self, contract: LoanContract) -> LoanContract:
        ...

    def delete_contract(self, contract_id: str) -> None:
        """Delete a contract together with its payment schedule."""
        ...

    def create_payments(self, payments: list[LoanPayment]) -> list[LoanPayment]:
        ...

    def list_payments(self, contract_id: str) -> list[LoanPayment]:
        """List payments ordered by period."""
        ...

    def complete_payment(
        self,
        payment: LoanPayment,
        contract: LoanContract,
        transactions: list[Transaction],
    ) -> None:
        """Persist a processed payment, its transactions and the contract atomically."""
        ...

    def replace_pending_payments(self, contract: LoanContract, payments: list[LoanPayment]) -> None:
        """Save the contract and replace its PENDING payments atomically."""
        ...

    def reset_payments(self, contract: LoanContract, payments: list[LoanPayment]) -> int:
        """Revert payments to PENDING and delete their transactions atomically."""
        ...

    def list_due_payments(self, until: datetime, user_id: Optional[str] = None) -> list[LoanPayment]:
        """PENDING payments of active contracts dated on or before `until`."""
        ...
