"""Mint/Redeem Types for USDEC.

User-facing types shared by the validator, the fee calculator and the
transaction orchestrator. All token amounts are integers in the token's
smallest unit (6 decimals for USDC and USDEC).
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Literal, Optional, Union


class TxPhase(str, Enum):
    """Phase of a mint or redeem flow."""

    IDLE = "idle"
    AWAITING_APPROVAL_SIGNATURE = "awaiting_approval_signature"
    APPROVAL_PENDING = "approval_pending"
    APPROVAL_CONFIRMED = "approval_confirmed"
    AWAITING_MINT_SIGNATURE = "awaiting_mint_signature"
    MINT_PENDING = "mint_pending"
    MINT_CONFIRMED = "mint_confirmed"
    AWAITING_REDEEM_SIGNATURE = "awaiting_redeem_signature"
    REDEEM_PENDING = "redeem_pending"
    REDEEM_CONFIRMED = "redeem_confirmed"
    FAILED = "failed"


# Phases during which a transaction is being signed or is on its way on-chain
IN_FLIGHT_PHASES = frozenset(
    {
        TxPhase.AWAITING_APPROVAL_SIGNATURE,
        TxPhase.APPROVAL_PENDING,
        TxPhase.AWAITING_MINT_SIGNATURE,
        TxPhase.MINT_PENDING,
        TxPhase.AWAITING_REDEEM_SIGNATURE,
        TxPhase.REDEEM_PENDING,
    }
)


class TxKind(str, Enum):
    """Kind of submitted transaction."""

    APPROVE = "approve"
    MINT = "mint"
    REDEEM = "redeem"


class ErrorKind(str, Enum):
    """Error taxonomy surfaced by orchestrator steps."""

    INPUT = "input"
    INELIGIBLE = "ineligible"
    NOT_READY = "not_ready"
    SIMULATION = "simulation"
    SIGNATURE_REJECTED = "signature_rejected"
    TRANSACTION_FAILED = "transaction_failed"


class IneligibilityReason(str, Enum):
    """Structural reason a mint or redeem is not permitted."""

    WALLET_NOT_CONNECTED = "wallet_not_connected"
    WRONG_CHAIN = "wrong_chain"
    NOT_ALLOWLISTED = "not_allowlisted"
    AMOUNT_OUT_OF_RANGE = "amount_out_of_range"
    BELOW_VAULT_MINIMUM = "below_vault_minimum"
    ZERO_PREVIEW_SHARES = "zero_preview_shares"
    PREVIEW_UNAVAILABLE = "preview_unavailable"
    REDEEM_POLICY = "redeem_policy"


INELIGIBILITY_MESSAGES = {
    IneligibilityReason.WALLET_NOT_CONNECTED: "Connect a wallet first.",
    IneligibilityReason.WRONG_CHAIN: "Switch to Base network.",
    IneligibilityReason.NOT_ALLOWLISTED: "Not allow-listed.",
    IneligibilityReason.AMOUNT_OUT_OF_RANGE: "Amount is outside the allowed range.",
    IneligibilityReason.BELOW_VAULT_MINIMUM: (
        "Amount after fee is below the vault minimum deposit."
    ),
    IneligibilityReason.ZERO_PREVIEW_SHARES: (
        "Deposit too small to mint any shares; try a larger amount."
    ),
    IneligibilityReason.PREVIEW_UNAVAILABLE: "Vault unavailable, try again later.",
    IneligibilityReason.REDEEM_POLICY: "Redeem not permitted.",
}


@dataclass(frozen=True)
class FeeBreakdown:
    """Protocol fee split of a gross deposit."""

    gross: int
    """Amount the user pays, in USDC units."""

    fee_bps: int
    """Fee rate in basis points (e.g., 100 = 1%)."""

    fee: int
    """Fee in USDC units, truncated."""

    net: int
    """Amount deposited into the vault (gross - fee)."""


@dataclass(frozen=True)
class EligibilityGate:
    """Checks that must all pass before minting."""

    wallet_connected: bool
    correct_chain: bool
    allowlisted: bool
    amount_in_range: bool
    net_above_vault_minimum: bool

    @property
    def eligible(self) -> bool:
        return (
            self.wallet_connected
            and self.correct_chain
            and self.allowlisted
            and self.amount_in_range
            and self.net_above_vault_minimum
        )

    def first_failure(self) -> Optional[IneligibilityReason]:
        """Return the first failing check, in the order a user has to fix them."""
        if not self.wallet_connected:
            return IneligibilityReason.WALLET_NOT_CONNECTED
        if not self.correct_chain:
            return IneligibilityReason.WRONG_CHAIN
        if not self.allowlisted:
            return IneligibilityReason.NOT_ALLOWLISTED
        if not self.amount_in_range:
            return IneligibilityReason.AMOUNT_OUT_OF_RANGE
        if not self.net_above_vault_minimum:
            return IneligibilityReason.BELOW_VAULT_MINIMUM
        return None


@dataclass(frozen=True)
class AllowanceState:
    """Current on-chain allowance against what the next mint needs."""

    current: int
    required: int

    @property
    def needs_approval(self) -> bool:
        return self.current < self.required


@dataclass
class TransactionRecord:
    """A transaction submitted during this session."""

    hash: str
    """Transaction hash (0x-prefixed hex)."""

    kind: TxKind
    """What the transaction does."""

    amount: int
    """Amount bound to the transaction at submission time, in token units."""

    submitted_at: float
    """Unix timestamp (seconds) when the hash was observed."""

    status: Literal["pending", "confirmed", "failed"] = "pending"
    """Confirmation status, updated by the confirmation watch."""

    block_number: Optional[int] = None
    """Block the transaction was included in, once known."""


@dataclass(frozen=True)
class Ok:
    """Successful orchestrator step."""

    value: Any = None


@dataclass(frozen=True)
class Err:
    """Failed orchestrator step."""

    kind: ErrorKind
    detail: str
    reason: Optional[IneligibilityReason] = None
    tx_hash: Optional[str] = None


StepResult = Union[Ok, Err]
