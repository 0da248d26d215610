"""Amount Validation for USDEC.

Turns what a user typed into exact integer token units. Parsing is done on the
string itself; a float round-trip would corrupt the 6th decimal digit for
inputs like "0.000003".
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from .utils import USDC_DECIMALS, format_units, parse_units


class AmountError(str, Enum):
    """Why an amount input was rejected."""

    EMPTY = "empty"
    MALFORMED = "malformed"
    NEGATIVE = "negative"
    TOO_MANY_DECIMALS = "too_many_decimals"
    BELOW_MINIMUM = "below_minimum"
    ABOVE_MAXIMUM = "above_maximum"


@dataclass(frozen=True)
class InvalidAmount:
    """Discriminated "invalid" result of amount validation."""

    error: AmountError
    message: str


AmountResult = Union[int, InvalidAmount]


def _amount_pattern(decimals: int) -> "re.Pattern[str]":
    if decimals == 0:
        return re.compile(r"^\d*$")
    return re.compile(rf"^\d*(\.\d{{1,{decimals}}})?$")


def validate_amount(
    raw: str,
    min_amount: Optional[str] = None,
    max_amount: Optional[str] = None,
    decimals: int = USDC_DECIMALS,
    allow_empty: bool = False,
) -> AmountResult:
    """Validate a user-typed amount and convert it to token units.

    Args:
        raw: The string exactly as typed
        min_amount: Inclusive lower bound as a decimal token amount (e.g., "11")
        max_amount: Inclusive upper bound as a decimal token amount (e.g., "500")
        decimals: Token decimals (6 for USDC)
        allow_empty: Treat an empty string as zero instead of rejecting it

    Returns:
        Amount in token units, or InvalidAmount describing the problem
    """
    if raw == "":
        if allow_empty:
            return 0
        return InvalidAmount(AmountError.EMPTY, "Enter an amount.")

    if raw.startswith("-"):
        return InvalidAmount(AmountError.NEGATIVE, "Amount cannot be negative.")

    if not raw.isascii() or not _amount_pattern(decimals).fullmatch(raw):
        whole, dot, fraction = raw.partition(".")
        if (
            raw.isascii()
            and dot
            and (whole == "" or whole.isdigit())
            and fraction.isdigit()
            and len(fraction) > decimals
        ):
            return InvalidAmount(
                AmountError.TOO_MANY_DECIMALS,
                f"At most {decimals} decimal places are allowed.",
            )
        return InvalidAmount(AmountError.MALFORMED, f"Invalid amount: {raw!r}")

    units = parse_units(raw, decimals)

    if min_amount is not None and units < parse_units(min_amount, decimals):
        return InvalidAmount(
            AmountError.BELOW_MINIMUM, f"Minimum amount is {min_amount}."
        )
    if max_amount is not None and units > parse_units(max_amount, decimals):
        return InvalidAmount(
            AmountError.ABOVE_MAXIMUM, f"Maximum amount is {max_amount}."
        )

    return units


def to_token_amount(raw: str, decimals: int = USDC_DECIMALS) -> int:
    """Convert a valid decimal string to token units, raising on bad input.

    Raises:
        ValueError: If the input does not validate
    """
    result = validate_amount(raw, decimals=decimals)
    if isinstance(result, InvalidAmount):
        raise ValueError(result.message)
    return result


def format_token_amount(amount: int, decimals: int = USDC_DECIMALS) -> str:
    """Format token units as a decimal string that validates back to ``amount``."""
    return format_units(amount, decimals)
