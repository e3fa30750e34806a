"""Wallet domain schemas - Pydantic models for the credit ledger"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import validate_amount


class LedgerEntryResponse(BaseModel):
    """Schema for a ledger entry"""

    id: str
    amount: Decimal
    description: str
    service_type: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class WalletStatsResponse(BaseModel):
    """Schema for wallet stats"""

    balance: Decimal
    income: Decimal
    expenses: Decimal


class DepositRequest(BaseModel):
    """Schema for adding funds to the wallet"""

    amount: Decimal
    description: Optional[str] = None

    @field_validator("amount")
    @classmethod
    def validate_positive(cls, v):
        v = validate_amount(v)
        if v <= 0:
            raise ValueError("Deposit amount must be greater than 0")
        return v
