"""Wallet router - FastAPI endpoints for prepaid credits"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ...database import get_db
from ...shared.exceptions import PersistenceError, ValidationError
from ..tenancy import get_tenant_id
from .schemas import DepositRequest, LedgerEntryResponse, WalletStatsResponse
from .service import CreditLedger

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/wallet", tags=["Wallet"])


def get_credit_ledger(db: Session = Depends(get_db)) -> CreditLedger:
    """Dependency injection for CreditLedger"""
    return CreditLedger(db=db)


@router.get("/stats", response_model=WalletStatsResponse)
async def get_wallet_stats(
    tenant_id: str = Depends(get_tenant_id),
    ledger: CreditLedger = Depends(get_credit_ledger),
):
    """Get balance, income and expenses"""
    try:
        return ledger.get_stats(tenant_id)
    except PersistenceError as e:
        raise HTTPException(status_code=503, detail=e.reason)


@router.get("/transactions", response_model=list[LedgerEntryResponse])
async def get_transactions(
    limit: int = Query(20, ge=1, le=200),
    tenant_id: str = Depends(get_tenant_id),
    ledger: CreditLedger = Depends(get_credit_ledger),
):
    """Get recent ledger entries, newest first"""
    try:
        return ledger.list_transactions(tenant_id, limit)
    except PersistenceError as e:
        raise HTTPException(status_code=503, detail=e.reason)


@router.post("/deposits", response_model=LedgerEntryResponse, status_code=201)
async def add_funds(
    data: DepositRequest,
    tenant_id: str = Depends(get_tenant_id),
    ledger: CreditLedger = Depends(get_credit_ledger),
):
    """Record a wallet top-up"""
    try:
        return ledger.deposit(tenant_id, data.amount, data.description)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.reason)
    except PersistenceError as e:
        raise HTTPException(status_code=503, detail=e.reason)
