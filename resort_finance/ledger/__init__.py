"""Transaction ledger."""

from resort_finance.ledger.ledger import TransactionLedger

__all__ = ["TransactionLedger"]
