"""Utility functions and constants for USDEC minting."""

from decimal import ROUND_HALF_UP, Decimal

# Base mainnet
BASE_CHAIN_ID = 8453

BASE_RPC_URL = "https://mainnet.base.org"

BASESCAN_URL = "https://basescan.org"

# Arcadia USDC senior tranche lending pool on Base
ARC_LENDING_POOL_BASE = "0x3ec4a293fb906dd2cd440c20decb250def141df1"

USDC_DECIMALS = 6

BPS_DENOMINATOR = 10000


def parse_units(value: str, decimals: int = USDC_DECIMALS) -> int:
    """Parse a decimal string into integer token units without floating point.

    Args:
        value: Non-negative decimal string (e.g., "1.5", ".25", "10")
        decimals: Token decimals

    Returns:
        Amount in the token's smallest unit (e.g., 1500000)

    Raises:
        ValueError: If the string is not a plain non-negative decimal or has
            more fractional digits than ``decimals``
    """
    whole, dot, fraction = value.partition(".")
    if not value.isascii() or (not whole and not fraction):
        raise ValueError(f"Invalid amount: {value!r}")
    if (whole and not whole.isdigit()) or (dot and not fraction.isdigit()):
        raise ValueError(f"Invalid amount: {value!r}")
    if len(fraction) > decimals:
        raise ValueError(
            f"Too many decimals: {value!r}. Maximum: {decimals}"
        )

    return int(whole or "0") * 10**decimals + int(fraction.ljust(decimals, "0") or "0")


def format_units(amount: int, decimals: int = USDC_DECIMALS) -> str:
    """Format integer token units as an exact decimal string.

    Args:
        amount: Amount in the token's smallest unit (e.g., 1500000)
        decimals: Token decimals

    Returns:
        Decimal string with trailing zeros removed (e.g., "1.5")
    """
    if amount < 0:
        raise ValueError(f"Invalid amount: {amount}. Must be non-negative")

    whole, fraction = divmod(amount, 10**decimals)
    if decimals == 0 or fraction == 0:
        return str(whole)
    return f"{whole}.{fraction:0{decimals}d}".rstrip("0")


def format_usdc(amount: int) -> str:
    """Format USDC amount (6 decimals) to human readable string.

    Args:
        amount: USDC amount in 6 decimals (e.g., 1000000 = $1)

    Returns:
        Human readable string (e.g., "1")
    """
    return format_units(amount, USDC_DECIMALS)


def parse_usdc(amount: str) -> int:
    """Parse human readable amount to USDC (6 decimals).

    Args:
        amount: Human readable amount as a string (e.g., "1.50")

    Returns:
        USDC amount in 6 decimals (e.g., 1500000)
    """
    return parse_units(amount, USDC_DECIMALS)


def format_display(amount: int, places: int = 2, decimals: int = USDC_DECIMALS) -> str:
    """Round token units to a fixed number of places for display only.

    Args:
        amount: Amount in the token's smallest unit
        places: Digits after the decimal point (2 for USDC, 4 for USDEC)
        decimals: Token decimals

    Returns:
        Fixed-point string (e.g., format_display(10_890_000) == "10.89")
    """
    value = Decimal(amount).scaleb(-decimals)
    return str(value.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP))


def format_bps(bps: int) -> str:
    """Format basis points to percentage string.

    Args:
        bps: Basis points (e.g., 25 = 0.25%)

    Returns:
        Percentage string (e.g., "0.25%")
    """
    return f"{bps / 100}%"


def calculate_fee(gross: int, fee_bps: int) -> int:
    """Calculate fee amount from gross amount and basis points.

    Args:
        gross: Gross amount in USDC (6 decimals)
        fee_bps: Fee in basis points (e.g., 100 = 1%)

    Returns:
        Fee amount in USDC (6 decimals), truncated
    """
    return (gross * fee_bps) // BPS_DENOMINATOR


def explorer_tx_url(tx_hash: str, explorer_url: str = BASESCAN_URL) -> str:
    """Build a block explorer link for a transaction hash."""
    return f"{explorer_url.rstrip('/')}/tx/{tx_hash}"
