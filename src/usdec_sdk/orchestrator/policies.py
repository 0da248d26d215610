"""Redeem policies.

Whether redeeming has its own minimum or a lock period is a product decision,
so the orchestrator takes the rule as a parameter. A policy returns None to
allow the redeem or a message explaining why it is refused.
"""

from dataclasses import dataclass
from typing import Callable, Optional

from ..mint.utils import format_usdc


@dataclass(frozen=True)
class RedeemContext:
    """What a policy may look at when deciding on a redeem."""

    owner: str
    amount: int
    """Requested redeem amount in USDEC units."""

    now: float
    """Current Unix timestamp (seconds)."""

    last_mint_confirmed_at: Optional[float] = None
    """Time the last mint in this session was confirmed, if any."""


RedeemPolicy = Callable[[RedeemContext], Optional[str]]


def unrestricted(context: RedeemContext) -> Optional[str]:
    """Allow every redeem ("redeemable anytime")."""
    return None


class MinimumRedeemPolicy:
    """Refuse redeems below a minimum amount."""

    def __init__(self, minimum: int):
        self.minimum = minimum

    def __call__(self, context: RedeemContext) -> Optional[str]:
        if context.amount < self.minimum:
            return f"Minimum redeem is {format_usdc(self.minimum)} USDEC."
        return None


class LockPeriodPolicy:
    """Refuse redeems until ``lock_seconds`` after the last confirmed mint."""

    def __init__(self, lock_seconds: float = 30 * 24 * 3600):
        self.lock_seconds = lock_seconds

    def __call__(self, context: RedeemContext) -> Optional[str]:
        if context.last_mint_confirmed_at is None:
            return None
        unlock_at = context.last_mint_confirmed_at + self.lock_seconds
        if context.now < unlock_at:
            remaining_days = (unlock_at - context.now) / 86400
            return f"Redeem is locked for another {remaining_days:.1f} days."
        return None


def all_of(*policies: RedeemPolicy) -> RedeemPolicy:
    """Combine policies; the first refusal wins."""

    def combined(context: RedeemContext) -> Optional[str]:
        for policy in policies:
            reason = policy(context)
            if reason is not None:
                return reason
        return None

    return combined
