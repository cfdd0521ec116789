"""
Transaction Ledger

Append / toggle / delete. Nothing else mutates a transaction.

The `auto_reconcile` flag mirrors ResortProfile.auto_reconcile: when on,
every appended transaction is stored reconciled whatever the caller sent.
"""

import secrets
import string
from typing import Callable, Iterable, Optional

import structlog

from resort_finance.models.transaction import NewTransaction, Transaction


logger = structlog.get_logger(__name__)

Listener = Callable[[tuple[Transaction, ...]], None]

ID_ALPHABET = string.digits + string.ascii_lowercase
ID_LENGTH = 9


class TransactionLedger:
    """In-memory ledger, newest transaction first."""

    def __init__(
        self,
        transactions: Optional[Iterable[Transaction]] = None,
        auto_reconcile: bool = False,
    ):
        self._transactions: tuple[Transaction, ...] = tuple(transactions or ())
        self.auto_reconcile = auto_reconcile
        self._listeners: list[Listener] = []

    @property
    def transactions(self) -> tuple[Transaction, ...]:
        return self._transactions

    def __len__(self) -> int:
        return len(self._transactions)

    def get(self, transaction_id: str) -> Optional[Transaction]:
        for tx in self._transactions:
            if tx.id == transaction_id:
                return tx
        return None

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a change listener; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def append(self, new_tx: NewTransaction) -> Transaction:
        """Record a transaction under a fresh id."""
        tx = Transaction(
            **new_tx.model_dump(exclude={"is_reconciled"}),
            id=self._new_id(),
            is_reconciled=self.auto_reconcile or new_tx.is_reconciled,
        )
        self._replace((tx, *self._transactions))
        logger.info(
            "transaction_appended",
            transaction_id=tx.id,
            type=tx.type.value,
            amount=str(tx.amount),
            is_reconciled=tx.is_reconciled,
        )
        return tx

    def delete(self, transaction_id: str) -> bool:
        """Remove a transaction. Returns False when the id is unknown."""
        remaining = tuple(tx for tx in self._transactions if tx.id != transaction_id)
        if len(remaining) == len(self._transactions):
            logger.warning("transaction_not_found", transaction_id=transaction_id, op="delete")
            return False
        self._replace(remaining)
        return True

    def toggle_reconciled(self, transaction_id: str) -> Optional[Transaction]:
        """Flip is_reconciled. Returns the updated record, or None when the id is unknown."""
        current = self.get(transaction_id)
        if current is None:
            logger.warning("transaction_not_found", transaction_id=transaction_id, op="toggle")
            return None

        updated = current.model_copy(update={"is_reconciled": not current.is_reconciled})
        self._replace(tuple(
            updated if tx.id == transaction_id else tx
            for tx in self._transactions
        ))
        return updated

    def replace_all(self, transactions: Iterable[Transaction]) -> None:
        self._replace(tuple(transactions))

    def clear(self) -> int:
        count = len(self._transactions)
        self._replace(())
        return count

    def _new_id(self) -> str:
        taken = {tx.id for tx in self._transactions}
        while True:
            candidate = "".join(secrets.choice(ID_ALPHABET) for _ in range(ID_LENGTH))
            if candidate not in taken:
                return candidate

    def _replace(self, transactions: tuple[Transaction, ...]) -> None:
        self._transactions = transactions
        for listener in list(self._listeners):
            listener(transactions)
