"""Wallet Domain - prepaid credit ledger (balance = sum of append-only entries)"""

from .service import CreditLedger

__all__ = ["CreditLedger"]
