"""
Resort Finance Hub

Front desk and bookkeeping core for a small resort:
- Booking store with temporary room locks and an expiry sweep
- Transaction ledger with reconciliation
- Read-only dashboard views derived from both
"""

__version__ = "0.1.0"
