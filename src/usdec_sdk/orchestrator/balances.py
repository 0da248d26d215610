"""Balance and status reader.

Keeps read-only chain values for the connected wallet as cached tri-state
values. Stale balances are fine for display; the orchestrator reads allowance
and vault preview itself whenever it needs a fresh value.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from ..chain.client import ChainClient, WalletSession
from ..chain.errors import ChainClientError
from ..config import ResolvedMintConfig
from ..mint.utils import format_display

logger = logging.getLogger(__name__)


class LoadStatus(str, Enum):
    LOADING = "loading"
    ERROR = "error"
    READY = "ready"


@dataclass(frozen=True)
class CachedValue:
    """A chain value with its load status."""

    status: LoadStatus = LoadStatus.LOADING
    value: Optional[int] = None
    error: Optional[str] = None
    updated_at: Optional[float] = None

    def display(self, places: int = 2, decimals: int = 6) -> str:
        """Text for a balance field ("Loading…", "Error" or a rounded amount)."""
        if self.status == LoadStatus.LOADING:
            return "Loading…"
        if self.status == LoadStatus.ERROR:
            return "Error"
        return format_display(self.value or 0, places=places, decimals=decimals)


class BalanceReader:
    """Polls balances and the vault preview for the connected wallet.

    Example:
        ```python
        reader = BalanceReader(client, session, config)
        stop = asyncio.Event()
        task = asyncio.create_task(reader.poll(interval=4.0, stop=stop))
        ...
        print(reader.usdc_balance.display(2), reader.usdec_balance.display(4))
        stop.set()
        await task
        ```
    """

    def __init__(
        self,
        client: ChainClient,
        session: WalletSession,
        config: ResolvedMintConfig,
        unlocked_method: Optional[str] = None,
    ):
        """
        Args:
            client: Chain client used for reads
            session: Live wallet session
            config: Resolved configuration (token and vault addresses)
            unlocked_method: USDEC view returning the redeemable balance, if the
                deployment has one
        """
        self._client = client
        self._session = session
        self._config = config
        self._unlocked_method = unlocked_method
        self._preview_assets: Optional[int] = None

        self.usdc_balance = CachedValue()
        self.usdec_balance = CachedValue()
        self.unlocked_balance = CachedValue()
        self.preview_shares = CachedValue()

    def set_preview_assets(self, assets: Optional[int]) -> None:
        """Set the net deposit to preview; None clears the preview."""
        if assets != self._preview_assets:
            self._preview_assets = assets
            self.preview_shares = CachedValue()

    def _enabled(self) -> bool:
        return (
            self._session.address is not None
            and self._session.chain_id == self._config.chain_id
        )

    async def refresh(self) -> None:
        """Re-read every value. Failures are stored, never raised."""
        if not self._enabled():
            self.usdc_balance = CachedValue()
            self.usdec_balance = CachedValue()
            self.unlocked_balance = CachedValue()
            self.preview_shares = CachedValue()
            return

        owner = self._session.address
        self.usdc_balance = await self._load(
            self._config.usdc_address, "balanceOf", [owner]
        )
        self.usdec_balance = await self._load(
            self._config.usdec_address, "balanceOf", [owner]
        )
        if self._unlocked_method is not None:
            self.unlocked_balance = await self._load(
                self._config.usdec_address, self._unlocked_method, [owner]
            )

        assets = self._preview_assets
        if self._config.vault_address is not None and assets is not None:
            preview = await self._load(
                self._config.vault_address, "previewDeposit", [assets]
            )
            # Drop the result if the previewed amount changed meanwhile
            if assets == self._preview_assets:
                self.preview_shares = preview

    async def poll(self, interval: float, stop: asyncio.Event) -> None:
        """Refresh every ``interval`` seconds until ``stop`` is set."""
        while not stop.is_set():
            await self.refresh()
            try:
                await asyncio.wait_for(stop.wait(), timeout=interval)
            except asyncio.TimeoutError:
                pass

    async def _load(self, contract: str, method: str, args: list) -> CachedValue:
        try:
            value: Any = await self._client.read(contract, method, args)
        except ChainClientError as exc:
            logger.warning("Read %s on %s failed: %s", method, contract, exc)
            return CachedValue(
                status=LoadStatus.ERROR, error=str(exc), updated_at=time.time()
            )
        return CachedValue(
            status=LoadStatus.READY, value=int(value), updated_at=time.time()
        )
