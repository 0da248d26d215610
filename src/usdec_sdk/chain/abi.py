"""Minimal ABI table for the contracts USDEC talks to.

Maps a method name to its canonical signature and output types. Selectors are
derived with keccak at lookup time.
"""

from dataclasses import dataclass
from typing import Any, Dict, Sequence, Tuple

from eth_abi import decode, encode
from eth_utils import function_signature_to_4byte_selector


@dataclass(frozen=True)
class ContractMethod:
    """Callable contract method."""

    name: str
    input_types: Tuple[str, ...]
    output_types: Tuple[str, ...]

    @property
    def signature(self) -> str:
        return f"{self.name}({','.join(self.input_types)})"

    @property
    def selector(self) -> bytes:
        return function_signature_to_4byte_selector(self.signature)

    def encode_call(self, args: Sequence[Any]) -> bytes:
        """ABI-encode calldata (selector + arguments)."""
        if len(args) != len(self.input_types):
            raise ValueError(
                f"{self.signature} takes {len(self.input_types)} arguments, got {len(args)}"
            )
        return self.selector + encode(list(self.input_types), list(args))

    def decode_output(self, data: bytes) -> Any:
        """Decode return data; single outputs are unwrapped."""
        if not self.output_types:
            return None
        values = decode(list(self.output_types), data)
        if len(values) == 1:
            return values[0]
        return values


# ERC-20 (raw USDC, and USDEC balances)
ERC20_METHODS = {
    "balanceOf": ContractMethod("balanceOf", ("address",), ("uint256",)),
    "allowance": ContractMethod("allowance", ("address", "address"), ("uint256",)),
    "approve": ContractMethod("approve", ("address", "uint256"), ("bool",)),
}

# USDEC token
USDEC_METHODS = {
    "mint": ContractMethod("mint", ("uint256",), ()),
    "redeem": ContractMethod("redeem", ("uint256",), ()),
}

# ERC-4626 vault
VAULT_METHODS = {
    "previewDeposit": ContractMethod("previewDeposit", ("uint256",), ("uint256",)),
}

METHODS: Dict[str, ContractMethod] = {
    **ERC20_METHODS,
    **USDEC_METHODS,
    **VAULT_METHODS,
}


def register_method(method: ContractMethod) -> None:
    """Add a method (e.g., a vendor-specific unlocked balance view) to the table."""
    METHODS[method.name] = method


def get_method(name: str) -> ContractMethod:
    """Look up a method by name.

    Raises:
        ValueError: If the method is unknown
    """
    try:
        return METHODS[name]
    except KeyError:
        raise ValueError(f"Unknown contract method: {name}") from None
