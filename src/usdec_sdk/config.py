"""Configuration for the USDEC mint/redeem flow.

Defaults match the deployed Base mainnet app. Overrides come either from a
``MintConfig`` dict or from ``USDEC_*`` environment variables (a ``.env``
file is loaded if present).
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional, TypedDict

from dotenv import load_dotenv
from eth_utils import is_address, to_checksum_address

from .mint.utils import (
    ARC_LENDING_POOL_BASE,
    BASE_CHAIN_ID,
    BASE_RPC_URL,
    BASESCAN_URL,
    USDC_DECIMALS,
    parse_units,
)


class MintConfig(TypedDict, total=False):
    """Configuration overrides for the orchestrator."""

    chain_id: int
    """Expected chain id. Default: 8453 (Base)"""

    rpc_url: str
    """JSON-RPC endpoint. Default: https://mainnet.base.org"""

    usdec_address: str
    """USDEC token contract (mint/redeem target and USDC spender)."""

    usdc_address: str
    """Raw USDC token contract."""

    vault_address: Optional[str]
    """ERC-4626 vault used for deposit previews. None disables the preview check."""

    decimals: int
    """Token decimals. Default: 6"""

    fee_bps: int
    """Mint fee in basis points (e.g., 100 = 1%). Default: 100"""

    min_input: str
    """Minimum gross mint amount as a decimal string. Default: "11" """

    max_input: str
    """Maximum gross mint amount as a decimal string. Default: "500" """

    vault_minimum: str
    """Minimum net vault deposit as a decimal string. Default: "10" """

    simulate_writes: bool
    """Simulate every write before asking for a signature. Default: True"""

    auto_mint_after_approval: bool
    """Continue with the mint as soon as the approval confirms. Default: True"""

    history_limit: int
    """Number of recent transactions kept. Default: 10"""

    reset_after_seconds: float
    """Age an in-flight transaction must reach before its status view can be reset. Default: 120"""

    explorer_url: str
    """Block explorer base URL. Default: https://basescan.org"""

    allowlist_file: Optional[str]
    """Path to a JSON or newline-separated allowlist file."""


@dataclass(frozen=True)
class ResolvedMintConfig:
    """Resolved configuration with all defaults applied."""

    chain_id: int
    rpc_url: str
    usdec_address: str
    usdc_address: str
    vault_address: Optional[str]
    decimals: int
    fee_bps: int
    min_input: str
    max_input: str
    vault_minimum: str
    simulate_writes: bool
    auto_mint_after_approval: bool
    history_limit: int
    reset_after_seconds: float
    explorer_url: str
    allowlist_file: Optional[str]

    @property
    def min_units(self) -> int:
        return parse_units(self.min_input, self.decimals)

    @property
    def max_units(self) -> int:
        return parse_units(self.max_input, self.decimals)

    @property
    def vault_minimum_units(self) -> int:
        return parse_units(self.vault_minimum, self.decimals)


def resolve_config(config: Optional[MintConfig] = None) -> ResolvedMintConfig:
    """Apply defaults and validate a MintConfig.

    Raises:
        ValueError: If an address or amount is invalid
    """
    config = config or {}

    usdec_address = _require_address("usdec_address", config.get("usdec_address"))
    usdc_address = _require_address("usdc_address", config.get("usdc_address"))
    vault_address = config.get("vault_address", ARC_LENDING_POOL_BASE)
    if vault_address is not None:
        vault_address = _require_address("vault_address", vault_address)

    decimals = config.get("decimals", USDC_DECIMALS)
    fee_bps = config.get("fee_bps", 100)
    if fee_bps < 0 or fee_bps > 10000:
        raise ValueError(f"Invalid fee_bps: {fee_bps}. Must be between 0 and 10000")

    resolved = ResolvedMintConfig(
        chain_id=config.get("chain_id", BASE_CHAIN_ID),
        rpc_url=config.get("rpc_url", BASE_RPC_URL),
        usdec_address=usdec_address,
        usdc_address=usdc_address,
        vault_address=vault_address,
        decimals=decimals,
        fee_bps=fee_bps,
        min_input=config.get("min_input", "11"),
        max_input=config.get("max_input", "500"),
        vault_minimum=config.get("vault_minimum", "10"),
        simulate_writes=config.get("simulate_writes", True),
        auto_mint_after_approval=config.get("auto_mint_after_approval", True),
        history_limit=config.get("history_limit", 10),
        reset_after_seconds=config.get("reset_after_seconds", 120.0),
        explorer_url=config.get("explorer_url", BASESCAN_URL),
        allowlist_file=config.get("allowlist_file"),
    )

    if resolved.min_units > resolved.max_units:
        raise ValueError(
            f"min_input {resolved.min_input} is above max_input {resolved.max_input}"
        )
    parse_units(resolved.vault_minimum, resolved.decimals)
    if resolved.history_limit < 1:
        raise ValueError(f"Invalid history_limit: {resolved.history_limit}")

    return resolved


def load_config_from_env(
    environ: Optional[Mapping[str, str]] = None,
) -> ResolvedMintConfig:
    """Build a configuration from ``USDEC_*`` environment variables.

    Args:
        environ: Mapping to read instead of ``os.environ`` (no .env loading then)

    Raises:
        ValueError: If a variable is missing or malformed
    """
    if environ is None:
        load_dotenv()
        environ = os.environ

    config: MintConfig = {}

    if "USDEC_CHAIN_ID" in environ:
        config["chain_id"] = _parse_int(environ, "USDEC_CHAIN_ID")
    if "USDEC_RPC_URL" in environ:
        config["rpc_url"] = environ["USDEC_RPC_URL"]
    if "USDEC_ADDRESS" in environ:
        config["usdec_address"] = environ["USDEC_ADDRESS"]
    if "USDEC_RAW_USDC_ADDRESS" in environ:
        config["usdc_address"] = environ["USDEC_RAW_USDC_ADDRESS"]
    if "USDEC_VAULT_ADDRESS" in environ:
        config["vault_address"] = environ["USDEC_VAULT_ADDRESS"] or None
    if "USDEC_FEE_BPS" in environ:
        config["fee_bps"] = _parse_int(environ, "USDEC_FEE_BPS")
    if "USDEC_MIN_INPUT" in environ:
        config["min_input"] = _parse_amount(environ, "USDEC_MIN_INPUT")
    if "USDEC_MAX_INPUT" in environ:
        config["max_input"] = _parse_amount(environ, "USDEC_MAX_INPUT")
    if "USDEC_VAULT_MINIMUM" in environ:
        config["vault_minimum"] = _parse_amount(environ, "USDEC_VAULT_MINIMUM")
    if "USDEC_SIMULATE_WRITES" in environ:
        config["simulate_writes"] = _parse_bool(environ, "USDEC_SIMULATE_WRITES")
    if "USDEC_ALLOWLIST_FILE" in environ:
        config["allowlist_file"] = environ["USDEC_ALLOWLIST_FILE"] or None

    return resolve_config(config)


def _require_address(name: str, value: Optional[str]) -> str:
    if not value:
        raise ValueError(f"{name} is required")
    if not is_address(value):
        raise ValueError(f"Invalid {name}: {value}")
    return to_checksum_address(value)


def _parse_int(environ: Mapping[str, str], name: str) -> int:
    try:
        return int(environ[name])
    except ValueError:
        raise ValueError(f"Invalid {name}: {environ[name]!r}") from None


def _parse_amount(environ: Mapping[str, str], name: str) -> str:
    value = environ[name].strip()
    try:
        parse_units(value)
    except ValueError:
        raise ValueError(f"Invalid {name}: {environ[name]!r}") from None
    return value


def _parse_bool(environ: Mapping[str, str], name: str) -> bool:
    value = environ[name].strip().lower()
    if value in ("1", "true", "yes"):
        return True
    if value in ("0", "false", "no"):
        return False
    raise ValueError(f"Invalid {name}: {environ[name]!r}")
