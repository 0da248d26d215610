"""USDEC Mint Module.

This module provides the pure building blocks of the USDC -> USDEC flow.

Key components:
- Amount validation (exact decimal string -> integer units)
- Fee breakdown and eligibility gate (allowlist, network, range, vault minimum)
- Allowance resolution against the USDEC contract
- Utility functions for USDC formatting

Example usage:
    ```python
    from usdec_sdk.mint import (
        Allowlist,
        assess_mint,
        validate_amount,
        InvalidAmount,
        BASE_CHAIN_ID,
    )

    gross = validate_amount("11", min_amount="11", max_amount="500")
    if not isinstance(gross, InvalidAmount):
        assessment = assess_mint(
            gross,
            fee_bps=100,
            min_gross=11_000_000,
            max_gross=500_000_000,
            vault_minimum=10_000_000,
            address="0x...",
            chain_id=8453,
            expected_chain_id=BASE_CHAIN_ID,
            allowlist=Allowlist(["0x..."]),
        )
        print(assessment.breakdown.net)  # 10890000
    ```
"""

from .types import (
    AllowanceState,
    EligibilityGate,
    Err,
    ErrorKind,
    FeeBreakdown,
    IN_FLIGHT_PHASES,
    INELIGIBILITY_MESSAGES,
    IneligibilityReason,
    Ok,
    StepResult,
    TransactionRecord,
    TxKind,
    TxPhase,
)
from .amounts import (
    AmountError,
    AmountResult,
    InvalidAmount,
    format_token_amount,
    to_token_amount,
    validate_amount,
)
from .eligibility import Allowlist, MintAssessment, assess_mint, compute_fee_breakdown
from .allowance import AllowanceResolver
from .utils import (
    ARC_LENDING_POOL_BASE,
    BASE_CHAIN_ID,
    BASE_RPC_URL,
    BASESCAN_URL,
    BPS_DENOMINATOR,
    USDC_DECIMALS,
    calculate_fee,
    explorer_tx_url,
    format_bps,
    format_display,
    format_units,
    format_usdc,
    parse_units,
    parse_usdc,
)

__all__ = [
    # Types
    "AllowanceState",
    "EligibilityGate",
    "Err",
    "ErrorKind",
    "FeeBreakdown",
    "IN_FLIGHT_PHASES",
    "INELIGIBILITY_MESSAGES",
    "IneligibilityReason",
    "Ok",
    "StepResult",
    "TransactionRecord",
    "TxKind",
    "TxPhase",
    # Amounts
    "AmountError",
    "AmountResult",
    "InvalidAmount",
    "format_token_amount",
    "to_token_amount",
    "validate_amount",
    # Eligibility
    "Allowlist",
    "MintAssessment",
    "assess_mint",
    "compute_fee_breakdown",
    # Allowance
    "AllowanceResolver",
    # Utils
    "ARC_LENDING_POOL_BASE",
    "BASE_CHAIN_ID",
    "BASE_RPC_URL",
    "BASESCAN_URL",
    "BPS_DENOMINATOR",
    "USDC_DECIMALS",
    "calculate_fee",
    "explorer_tx_url",
    "format_bps",
    "format_display",
    "format_units",
    "format_usdc",
    "parse_units",
    "parse_usdc",
]
