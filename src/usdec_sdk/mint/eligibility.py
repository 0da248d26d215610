"""Fee and Eligibility Calculation for USDEC minting.

The calculator always returns a fee breakdown, even when the gate is closed,
so a blocked user can see the numbers that blocked them. Only the orchestrator
decides whether to move forward.
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, Optional, Union

from eth_utils import is_address

from .types import EligibilityGate, FeeBreakdown
from .utils import calculate_fee


class Allowlist:
    """Fixed set of addresses permitted to mint.

    Membership is case-insensitive; addresses are stored lower-cased.
    """

    def __init__(self, addresses: Iterable[str] = ()):
        normalized = set()
        for address in addresses:
            address = address.strip()
            if not is_address(address):
                raise ValueError(f"Invalid allowlist address: {address}")
            normalized.add(address.lower())
        self._addresses = frozenset(normalized)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "Allowlist":
        """Load an allowlist from a JSON array or a newline-separated file.

        Blank lines and lines starting with ``#`` are ignored in the plain format.
        """
        text = Path(path).read_text(encoding="utf-8")
        if text.lstrip().startswith("["):
            entries = json.loads(text)
            if not isinstance(entries, list):
                raise ValueError(f"Allowlist file must contain a list: {path}")
            return cls(str(entry) for entry in entries)

        lines = (line.strip() for line in text.splitlines())
        return cls(line for line in lines if line and not line.startswith("#"))

    def __contains__(self, address: object) -> bool:
        if not isinstance(address, str):
            return False
        return address.strip().lower() in self._addresses

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._addresses))

    def __len__(self) -> int:
        return len(self._addresses)


@dataclass(frozen=True)
class MintAssessment:
    """Fee breakdown and eligibility gate for one gross amount."""

    breakdown: FeeBreakdown
    gate: EligibilityGate

    @property
    def eligible(self) -> bool:
        return self.gate.eligible


def compute_fee_breakdown(gross: int, fee_bps: int) -> FeeBreakdown:
    """Split a gross amount into protocol fee and net vault deposit.

    Args:
        gross: Gross amount in USDC units
        fee_bps: Fee in basis points, 0 to 10000

    Returns:
        FeeBreakdown where fee + net == gross

    Raises:
        ValueError: If gross is negative or fee_bps is out of range
    """
    if gross < 0:
        raise ValueError(f"Invalid gross amount: {gross}. Must be non-negative")
    if fee_bps < 0 or fee_bps > 10000:
        raise ValueError(f"Invalid fee_bps: {fee_bps}. Must be between 0 and 10000")

    fee = calculate_fee(gross, fee_bps)
    return FeeBreakdown(gross=gross, fee_bps=fee_bps, fee=fee, net=gross - fee)


def assess_mint(
    gross: int,
    *,
    fee_bps: int,
    min_gross: int,
    max_gross: int,
    vault_minimum: int,
    address: Optional[str],
    chain_id: Optional[int],
    expected_chain_id: int,
    allowlist: Allowlist,
) -> MintAssessment:
    """Compute the fee breakdown and eligibility gate for a mint.

    Args:
        gross: Validated gross amount in USDC units
        fee_bps: Mint fee in basis points
        min_gross: Inclusive minimum gross amount in USDC units
        max_gross: Inclusive maximum gross amount in USDC units
        vault_minimum: Minimum net deposit the vault accepts, in USDC units
        address: Connected wallet address, or None when disconnected
        chain_id: Connected chain id, or None when unknown
        expected_chain_id: Chain the contracts live on
        allowlist: Addresses permitted to mint

    Returns:
        MintAssessment; the breakdown is present even when ineligible
    """
    breakdown = compute_fee_breakdown(gross, fee_bps)
    gate = EligibilityGate(
        wallet_connected=address is not None,
        correct_chain=chain_id == expected_chain_id,
        allowlisted=address is not None and address in allowlist,
        amount_in_range=min_gross <= gross <= max_gross,
        net_above_vault_minimum=breakdown.net >= vault_minimum,
    )
    return MintAssessment(breakdown=breakdown, gate=gate)
