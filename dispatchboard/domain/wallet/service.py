"""Wallet service - prepaid credit ledger used to meter paid features"""

import contextlib
import logging
from decimal import Decimal
from threading import Lock
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...database import SessionLocal
from ...shared.exceptions import InsufficientFundsError, PersistenceError, ValidationError
from ...shared.validators import validate_amount
from .repository import CreditLedgerRepository
from .schemas import LedgerEntryResponse, WalletStatsResponse

logger = logging.getLogger(__name__)

# Balance check + debit must not interleave for one tenant (per process)
_debit_locks: dict[str, Lock] = {}
_debit_locks_guard = Lock()


def _debit_lock(tenant_id: str) -> Lock:
    with _debit_locks_guard:
        return _debit_locks.setdefault(tenant_id, Lock())


def _checked_amount(amount) -> Decimal:
    try:
        return validate_amount(amount)
    except ValueError as e:
        raise ValidationError(str(e))


class CreditLedger:
    """
    Tenant wallet backed by the append-only ``wallet_ledger`` table.

    Pass ``db`` to work inside a request session (routers), or let the ledger
    open and close its own sessions from ``session_factory`` (route planner).
    """

    def __init__(self, db: Optional[Session] = None, session_factory=SessionLocal):
        self.db = db
        self.session_factory = session_factory
        self.repo = CreditLedgerRepository()

    @contextlib.contextmanager
    def _session(self):
        if self.db is not None:
            yield self.db
            return

        db = self.session_factory()
        try:
            yield db
        finally:
            db.close()

    def _read(self, what: str, query, tenant_id: str, *args):
        with self._session() as db:
            try:
                return query(db, tenant_id, *args)
            except SQLAlchemyError as e:
                db.rollback()
                logger.error(f"❌ Failed to read wallet {what} for tenant {tenant_id}: {e}")
                raise PersistenceError(f"Could not load wallet {what}") from e

    def get_balance(self, tenant_id: str) -> Decimal:
        """Current balance (sum of entries); always read from the database"""
        return self._read("balance", self.repo.get_balance, tenant_id)

    def append_entry(
        self,
        tenant_id: str,
        amount,
        description: str,
        service_type: Optional[str] = None,
    ) -> LedgerEntryResponse:
        """Insert one signed entry"""
        amount = _checked_amount(amount)
        if amount == 0:
            raise ValidationError("Ledger entries must have a non-zero amount")

        with self._session() as db:
            try:
                entry = self.repo.append_entry(db, tenant_id, amount, description, service_type)
            except SQLAlchemyError as e:
                db.rollback()
                logger.error(f"❌ Failed to write ledger entry for tenant {tenant_id}: {e}")
                raise PersistenceError("Transaction failed") from e
            logger.info(f"💳 Ledger entry {amount:+} for tenant {tenant_id}: {description}")
            return LedgerEntryResponse.model_validate(entry)

    def debit(self, tenant_id: str, amount, description: str, service_type: str) -> Decimal:
        """
        Charge the wallet after checking the balance.

        The check and the insert run under a per-tenant lock, so concurrent
        debits in one process cannot overdraw the wallet.

        Args:
            amount: Positive cost; stored as a negative entry

        Returns:
            The balance after the debit

        Raises:
            InsufficientFundsError: balance below ``amount`` (nothing is written)
            PersistenceError: the ledger read or write failed
        """
        cost = abs(_checked_amount(amount))
        with _debit_lock(tenant_id):
            balance = self.get_balance(tenant_id)
            if balance < cost:
                logger.warning(f"⚠️ Insufficient credits for tenant {tenant_id}: balance {balance}, cost {cost}")
                raise InsufficientFundsError(f"Insufficient credits. Cost: ${cost:.2f}, balance: ${balance:.2f}")

            self.append_entry(tenant_id, -cost, description, service_type)
        return balance - cost

    def deposit(self, tenant_id: str, amount, description: Optional[str] = None) -> LedgerEntryResponse:
        """Add funds (payment capture happens upstream)"""
        value = _checked_amount(amount)
        if value <= 0:
            raise ValidationError("Deposit amount must be greater than 0")
        return self.append_entry(tenant_id, value, description or "Wallet top-up", "deposit")

    def get_stats(self, tenant_id: str) -> WalletStatsResponse:
        """Balance plus lifetime income and expenses"""
        totals = self._read("totals", self.repo.get_totals, tenant_id)
        balance = self.get_balance(tenant_id)
        return WalletStatsResponse(balance=balance, **totals)

    def list_transactions(self, tenant_id: str, limit: int = 20) -> list[LedgerEntryResponse]:
        """Most recent entries first"""
        with self._session() as db:
            try:
                entries = self.repo.get_entries(db, tenant_id, limit)
            except SQLAlchemyError as e:
                db.rollback()
                logger.error(f"❌ Failed to read ledger entries for tenant {tenant_id}: {e}")
                raise PersistenceError("Could not load wallet transactions") from e
            return [LedgerEntryResponse.model_validate(e) for e in entries]
