"""Protocols the orchestrator needs from its environment."""

from dataclasses import dataclass
from typing import Any, Optional, Protocol, Sequence


@dataclass(frozen=True)
class TxReceipt:
    """Minimal transaction receipt."""

    status: int
    """1 for success, 0 for reverted."""

    block_number: int


@dataclass(frozen=True)
class SubmittedTransaction:
    """A transaction that has been signed and broadcast."""

    hash: str


class ChainClient(Protocol):
    """Read/write access to contracts plus receipt lookup."""

    async def read(self, contract: str, method: str, args: Sequence[Any]) -> Any:
        """Call a view method and return its decoded result."""
        ...

    async def write(
        self,
        contract: str,
        method: str,
        args: Sequence[Any],
        *,
        simulate: bool = True,
    ) -> SubmittedTransaction:
        """Sign and submit a state-changing call.

        Args:
            contract: Contract address
            method: Method name (see ``usdec_sdk.chain.abi``)
            args: Positional call arguments
            simulate: Run the call against the node before asking for a signature

        Raises:
            SimulationError: If simulation or preparation fails
            SignatureRejectedError: If the user declines to sign
            SubmissionError: If the node refuses the signed transaction
        """
        ...

    async def wait_for_receipt(self, tx_hash: str) -> TxReceipt:
        """Wait until the transaction is included and return its receipt.

        Raises:
            ReceiptError: If the transaction is not found before the timeout
        """
        ...


class WalletSession(Protocol):
    """Live view of the connected wallet.

    Both values may change at any time outside the orchestrator; read them at
    each decision point instead of caching them across an await.
    """

    @property
    def address(self) -> Optional[str]:
        ...

    @property
    def chain_id(self) -> Optional[int]:
        ...


@dataclass
class StaticWalletSession:
    """Mutable in-process wallet session.

    Update the attributes when the wallet connects, disconnects or switches
    network.
    """

    address: Optional[str] = None
    chain_id: Optional[int] = None
