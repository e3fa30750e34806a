"""Wallet repository - Database operations for the credit ledger"""

from decimal import Decimal
from typing import Optional

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from ...models import CreditLedgerEntry

ZERO = Decimal("0.00")


def _as_money(value) -> Decimal:
    if value is None:
        return ZERO
    return Decimal(str(value)).quantize(Decimal("0.01"))


class CreditLedgerRepository:
    """Repository for wallet ledger operations (insert-only)"""

    @staticmethod
    def get_balance(db: Session, tenant_id: str) -> Decimal:
        """Sum of all ledger entries for a tenant"""
        total = (
            db.query(func.sum(CreditLedgerEntry.amount))
            .filter(CreditLedgerEntry.tenant_id == tenant_id)
            .scalar()
        )
        return _as_money(total)

    @staticmethod
    def get_totals(db: Session, tenant_id: str) -> dict:
        """Get income (credits) and expenses (debits, as a positive number)"""
        income, expenses = (
            db.query(
                func.sum(case((CreditLedgerEntry.amount > 0, CreditLedgerEntry.amount), else_=0)),
                func.sum(case((CreditLedgerEntry.amount < 0, -CreditLedgerEntry.amount), else_=0)),
            )
            .filter(CreditLedgerEntry.tenant_id == tenant_id)
            .one()
        )
        return {"income": _as_money(income), "expenses": _as_money(expenses)}

    @staticmethod
    def get_entries(db: Session, tenant_id: str, limit: Optional[int] = 20) -> list[CreditLedgerEntry]:
        """Get the most recent entries first"""
        query = (
            db.query(CreditLedgerEntry)
            .filter(CreditLedgerEntry.tenant_id == tenant_id)
            .order_by(CreditLedgerEntry.created_at.desc())
        )
        if limit:
            query = query.limit(limit)
        return query.all()

    @staticmethod
    def append_entry(
        db: Session,
        tenant_id: str,
        amount: Decimal,
        description: str,
        service_type: Optional[str] = None,
    ) -> CreditLedgerEntry:
        """Insert a ledger entry; entries are never updated afterwards"""
        entry = CreditLedgerEntry(
            tenant_id=tenant_id,
            amount=amount,
            description=description,
            service_type=service_type,
        )
        db.add(entry)
        db.commit()
        db.refresh(entry)
        return entry
