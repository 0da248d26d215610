"""Ethereum JSON-RPC Chain Client.

Implements the ChainClient protocol over plain JSON-RPC:
1. Calldata is ABI-encoded locally from the method table
2. Writes are optionally simulated (eth_call + eth_estimateGas) before signing
3. The signed transaction is broadcast with eth_sendRawTransaction
4. Receipts are polled until the transaction is included
"""

import asyncio
import itertools
import logging
from typing import Any, Dict, Optional, Sequence

import httpx
from eth_abi.exceptions import DecodingError
from eth_utils import is_address, to_bytes, to_checksum_address, to_hex

from .abi import get_method
from .client import SubmittedTransaction, TxReceipt
from .errors import (
    ChainClientError,
    ReceiptError,
    RpcError,
    SimulationError,
    SubmissionError,
)
from .signing import TransactionSigner

logger = logging.getLogger(__name__)

DEFAULT_GAS_LIMIT = 300_000


class JsonRpcChainClient:
    """Chain client that talks to a node over HTTP JSON-RPC.

    Example:
        ```python
        client = JsonRpcChainClient(
            "https://mainnet.base.org",
            signer=LocalAccountSigner(private_key),
        )
        balance = await client.read(usdc_address, "balanceOf", [owner])
        tx = await client.write(usdc_address, "approve", [spender, amount])
        receipt = await client.wait_for_receipt(tx.hash)
        ```
    """

    def __init__(
        self,
        rpc_url: str,
        signer: Optional[TransactionSigner] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        poll_interval: float = 2.0,
        receipt_timeout: Optional[float] = None,
        default_gas_limit: int = DEFAULT_GAS_LIMIT,
    ):
        """
        Args:
            rpc_url: Node HTTP endpoint
            signer: Signer used by ``write``; reads work without one
            http_client: Optional preconfigured httpx client
            poll_interval: Seconds between receipt lookups
            receipt_timeout: Give up waiting for a receipt after this many
                seconds (None waits indefinitely)
            default_gas_limit: Gas limit used when writes are not simulated
        """
        self.rpc_url = rpc_url
        self._signer = signer
        self._http_client = http_client or httpx.AsyncClient(timeout=30.0)
        self._owns_http_client = http_client is None
        self._poll_interval = poll_interval
        self._receipt_timeout = receipt_timeout
        self._default_gas_limit = default_gas_limit
        self._ids = itertools.count(1)

    async def close(self) -> None:
        if self._owns_http_client:
            await self._http_client.aclose()

    async def _rpc(self, method: str, params: Sequence[Any]) -> Any:
        request: Dict[str, Any] = {
            "jsonrpc": "2.0",
            "method": method,
            "params": list(params),
            "id": next(self._ids),
        }

        try:
            response = await self._http_client.post(self.rpc_url, json=request)
        except httpx.HTTPError as exc:
            raise ChainClientError(f"RPC request {method} failed: {exc}") from exc

        try:
            payload = response.json()
        except ValueError:
            raise ChainClientError(
                f"RPC request {method} failed: {response.status_code} {response.text}"
            ) from None

        if isinstance(payload, dict) and "error" in payload:
            error = payload["error"]
            if isinstance(error, dict):
                raise RpcError(
                    error.get("message", str(error)),
                    code=error.get("code"),
                    data=error.get("data"),
                )
            raise RpcError(str(error))

        if not response.is_success:
            raise ChainClientError(
                f"RPC request {method} failed: {response.status_code} {response.text}"
            )

        return payload.get("result")

    async def chain_id(self) -> int:
        return int(await self._rpc("eth_chainId", []), 16)

    async def read(self, contract: str, method: str, args: Sequence[Any]) -> Any:
        contract_method = get_method(method)
        call = {
            "to": _checksum(contract),
            "data": to_hex(contract_method.encode_call(_normalize_args(args))),
        }
        result = await self._rpc("eth_call", [call, "latest"])
        if not isinstance(result, str):
            raise RpcError(f"eth_call {method} on {call['to']} returned no result")

        # "0x" comes back when nothing is deployed at the address
        try:
            return contract_method.decode_output(to_bytes(hexstr=result))
        except (DecodingError, ValueError) as exc:
            raise ChainClientError(
                f"Could not decode {method} result from {call['to']}: {exc}"
            ) from exc

    async def write(
        self,
        contract: str,
        method: str,
        args: Sequence[Any],
        *,
        simulate: bool = True,
    ) -> SubmittedTransaction:
        if self._signer is None:
            raise SimulationError("No signer configured for write calls")

        contract_method = get_method(method)
        sender = await self._signer.get_address()
        call = {
            "from": sender,
            "to": _checksum(contract),
            "data": to_hex(contract_method.encode_call(_normalize_args(args))),
            "value": "0x0",
        }

        if simulate:
            try:
                await self._rpc("eth_call", [call, "latest"])
                gas = int(await self._rpc("eth_estimateGas", [call]), 16)
            except RpcError as exc:
                raise SimulationError(str(exc)) from exc
        else:
            gas = self._default_gas_limit

        try:
            nonce = int(
                await self._rpc("eth_getTransactionCount", [sender, "pending"]), 16
            )
            gas_price = int(await self._rpc("eth_gasPrice", []), 16)
            chain_id = await self.chain_id()
        except ChainClientError as exc:
            raise SimulationError(f"Could not prepare {method}: {exc}") from exc

        tx = {
            "to": call["to"],
            "data": call["data"],
            "value": 0,
            "gas": gas,
            "gasPrice": gas_price,
            "nonce": nonce,
            "chainId": chain_id,
        }

        # SignatureRejectedError from the signer propagates unchanged
        raw_tx = await self._signer.sign_transaction(tx)

        try:
            tx_hash = await self._rpc("eth_sendRawTransaction", [raw_tx])
        except ChainClientError as exc:
            raise SubmissionError(str(exc)) from exc

        logger.info("Broadcast %s on %s: %s", method, call["to"], tx_hash)
        return SubmittedTransaction(hash=tx_hash)

    async def wait_for_receipt(self, tx_hash: str) -> TxReceipt:
        loop = asyncio.get_running_loop()
        started = loop.time()

        while True:
            # A failed lookup says nothing about the transaction; keep polling
            try:
                receipt = await self._rpc("eth_getTransactionReceipt", [tx_hash])
            except ChainClientError as exc:
                logger.warning("Receipt lookup for %s failed, retrying: %s", tx_hash, exc)
                receipt = None

            if receipt is not None:
                return TxReceipt(
                    status=int(receipt["status"], 16),
                    block_number=int(receipt["blockNumber"], 16),
                )

            if (
                self._receipt_timeout is not None
                and loop.time() - started >= self._receipt_timeout
            ):
                raise ReceiptError(
                    f"Transaction not found after {self._receipt_timeout}s",
                    tx_hash=tx_hash,
                )

            logger.debug("Receipt for %s not available yet", tx_hash)
            await asyncio.sleep(self._poll_interval)


def _checksum(address: str) -> str:
    if not is_address(address):
        raise ValueError(f"Invalid contract address: {address}")
    return to_checksum_address(address)


def _normalize_args(args: Sequence[Any]) -> list:
    # eth_abi only accepts checksummed or lower-case hex addresses
    return [
        to_checksum_address(arg) if isinstance(arg, str) and is_address(arg) else arg
        for arg in args
    ]
