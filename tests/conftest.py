"""Shared fixtures: an in-memory chain client and a wired orchestrator."""

import asyncio
import itertools
from typing import Any, Dict, List, Optional, Sequence, Tuple

import pytest
from eth_account import Account

from usdec_sdk.chain.client import StaticWalletSession, SubmittedTransaction, TxReceipt
from usdec_sdk.mint.eligibility import Allowlist
from usdec_sdk.orchestrator import MintRedeemOrchestrator


# Test wallet (DO NOT use in production)
TEST_PRIVATE_KEY = "0x" + "ab" * 32  # Deterministic test key
TEST_ADDRESS = Account.from_key(TEST_PRIVATE_KEY).address

USDC_ADDRESS = "0x" + "22" * 20
USDEC_ADDRESS = "0x" + "11" * 20
VAULT_ADDRESS = "0x" + "33" * 20
BASE_CHAIN_ID = 8453


class FakeChainClient:
    """ChainClient double that keeps token state in memory.

    Confirmed approvals update the allowance. Set ``release`` to an
    asyncio.Event to hold every receipt until the event is set.
    """

    def __init__(self):
        self.allowance = 0
        self.balances: Dict[str, int] = {}
        self.preview_shares: Optional[int] = None
        self.read_errors: Dict[str, Exception] = {}
        self.fail_next: Dict[str, Exception] = {}
        self.receipt_status: Dict[str, int] = {}
        self.receipt_errors: Dict[str, Exception] = {}
        self.release: Optional[asyncio.Event] = None
        self.reads: List[Tuple[str, str, list]] = []
        self.writes: List[Tuple[str, str, list, bool]] = []
        self.receipts_waited: List[str] = []
        self._submitted: Dict[str, Tuple[str, list]] = {}
        self._counter = itertools.count(1)

    async def read(self, contract: str, method: str, args: Sequence[Any]) -> Any:
        self.reads.append((contract.lower(), method, list(args)))
        if method in self.read_errors:
            raise self.read_errors[method]
        if method == "allowance":
            return self.allowance
        if method == "balanceOf":
            return self.balances.get(contract.lower(), 0)
        if method == "previewDeposit":
            return args[0] if self.preview_shares is None else self.preview_shares
        raise AssertionError(f"Unexpected read: {method}")

    async def write(
        self,
        contract: str,
        method: str,
        args: Sequence[Any],
        *,
        simulate: bool = True,
    ) -> SubmittedTransaction:
        self.writes.append((contract.lower(), method, list(args), simulate))
        if method in self.fail_next:
            raise self.fail_next.pop(method)
        tx_hash = "0x%064x" % next(self._counter)
        self._submitted[tx_hash] = (method, list(args))
        return SubmittedTransaction(hash=tx_hash)

    async def wait_for_receipt(self, tx_hash: str) -> TxReceipt:
        self.receipts_waited.append(tx_hash)
        if self.release is not None:
            await self.release.wait()

        method, args = self._submitted[tx_hash]
        if method in self.receipt_errors:
            raise self.receipt_errors[method]
        status = self.receipt_status.get(method, 1)
        if method == "approve" and status == 1:
            self.allowance = args[1]
        return TxReceipt(status=status, block_number=1000 + len(self.receipts_waited))

    def methods_written(self) -> List[str]:
        return [method for _, method, _, _ in self.writes]


class RecordingNotifier:
    def __init__(self):
        self.messages: List[Tuple[str, str]] = []

    def notify(self, kind: str, message: str) -> None:
        self.messages.append((kind, message))

    def kinds(self) -> List[str]:
        return [kind for kind, _ in self.messages]


@pytest.fixture
def chain() -> FakeChainClient:
    return FakeChainClient()


@pytest.fixture
def session() -> StaticWalletSession:
    return StaticWalletSession(address=TEST_ADDRESS, chain_id=BASE_CHAIN_ID)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def base_config() -> Dict[str, Any]:
    return {
        "usdec_address": USDEC_ADDRESS,
        "usdc_address": USDC_ADDRESS,
        "vault_address": VAULT_ADDRESS,
        "chain_id": BASE_CHAIN_ID,
    }


@pytest.fixture
def make_orchestrator(chain, session, notifier, base_config):
    """Factory for orchestrators wired to the fake chain; kwargs override config."""

    def factory(allowlist=None, redeem_policy=None, clock=None, **overrides):
        extra = {}
        if redeem_policy is not None:
            extra["redeem_policy"] = redeem_policy
        if clock is not None:
            extra["clock"] = clock
        return MintRedeemOrchestrator(
            client=chain,
            session=session,
            allowlist=allowlist if allowlist is not None else Allowlist([TEST_ADDRESS]),
            config={**base_config, **overrides},
            notifier=notifier,
            **extra,
        )

    return factory
