"""Transaction Signing for USDEC.

Provides signers the JSON-RPC client can use:
- LocalAccountSigner (direct signing with eth_account)
- any wallet that implements the TransactionSigner protocol
"""

from typing import Any, Dict, Protocol

from eth_account import Account
from eth_utils import is_address, to_checksum_address, to_hex


class TransactionSigner(Protocol):
    """Protocol for signers that can sign raw transactions."""

    async def get_address(self) -> str:
        """Get the signer's address."""
        ...

    async def sign_transaction(self, tx: Dict[str, Any]) -> str:
        """Sign a transaction dict.

        Args:
            tx: Transaction fields (to, data, nonce, gas, gasPrice, chainId, ...)

        Returns:
            Raw signed transaction as 0x-prefixed hex

        Raises:
            SignatureRejectedError: If the user declines to sign
        """
        ...


class LocalAccountSigner:
    """Signer backed by a private key held in process.

    Use this when you have direct access to a private key.
    """

    def __init__(self, private_key: str):
        """
        Args:
            private_key: Private key (hex string with or without 0x prefix)
        """
        self._account = Account.from_key(private_key)

    @property
    def address(self) -> str:
        return self._account.address

    async def get_address(self) -> str:
        return self._account.address

    async def sign_transaction(self, tx: Dict[str, Any]) -> str:
        if "to" in tx:
            if not is_address(tx["to"]):
                raise ValueError(f"Invalid transaction recipient: {tx['to']}")
            tx = {**tx, "to": to_checksum_address(tx["to"])}

        signed = self._account.sign_transaction(tx)
        return to_hex(signed.raw_transaction)
