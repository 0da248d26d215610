"""Orchestration modules for the USDEC SDK."""

from .balances import BalanceReader, CachedValue, LoadStatus
from .history import TransactionHistory
from .mint_redeem import MintRedeemOrchestrator
from .policies import (
    LockPeriodPolicy,
    MinimumRedeemPolicy,
    RedeemContext,
    RedeemPolicy,
    all_of,
    unrestricted,
)

__all__ = [
    "MintRedeemOrchestrator",
    "BalanceReader",
    "CachedValue",
    "LoadStatus",
    "TransactionHistory",
    "RedeemContext",
    "RedeemPolicy",
    "LockPeriodPolicy",
    "MinimumRedeemPolicy",
    "all_of",
    "unrestricted",
]
