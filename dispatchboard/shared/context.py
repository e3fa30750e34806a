"""Explicit per-dashboard context objects passed into the scheduling and routing cores"""

from decimal import Decimal
from typing import Optional

from .notices import Notifier


class DispatchContext:
    """
    State shared by every calendar view and the route planner on one dashboard.

    Holds the tenant, the notifier, the single active gesture session (only one
    booking may be dragged at a time across all views) and the last wallet
    balance shown to the user. The balance is display state only: the route
    planner always re-fetches it from the ledger before charging.
    """

    def __init__(self, tenant_id: str, notifier: Optional[Notifier] = None):
        self.tenant_id = tenant_id
        self.notifier = notifier or Notifier()
        self.active_session = None
        self.wallet_balance: Optional[Decimal] = None

    def claim_session(self, session) -> bool:
        """Take the gesture lock; False if another session is already active"""
        if self.active_session is not None:
            return False
        self.active_session = session
        return True

    def release_session(self, session) -> None:
        if self.active_session is session:
            self.active_session = None
