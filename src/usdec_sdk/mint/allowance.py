"""Allowance Resolution for USDEC minting.

Reads the raw USDC allowance granted to the USDEC contract and compares it
with the gross amount of the next mint. A failed or not-yet-loaded read is
"unknown" (None), never treated as approved or unapproved.
"""

import logging
from typing import Optional, Tuple

from ..chain.client import ChainClient
from ..chain.errors import ChainClientError
from .types import AllowanceState

logger = logging.getLogger(__name__)


class AllowanceResolver:
    """Caches the allowance for one (owner, spender, required) key.

    Any change of owner, spender or required amount discards the cached state.
    """

    def __init__(self, client: ChainClient, token: str, spender: str):
        self._client = client
        self.token = token
        self.spender = spender
        self._key: Optional[Tuple[str, str, int]] = None
        self._state: Optional[AllowanceState] = None

    @property
    def state(self) -> Optional[AllowanceState]:
        """Last resolved state, or None while unknown."""
        return self._state

    def current_state(self, owner: str, required: int) -> Optional[AllowanceState]:
        """Cached state for this owner/amount, or None if it was resolved for another key."""
        if self._key != self._make_key(owner, required):
            return None
        return self._state

    def invalidate(self) -> None:
        self._key = None
        self._state = None

    async def resolve(self, owner: str, required: int) -> Optional[AllowanceState]:
        """Read the allowance from the chain.

        Args:
            owner: Token holder address
            required: Amount the next mint will pull, in token units

        Returns:
            AllowanceState, or None if the read failed
        """
        key = self._make_key(owner, required)
        if key != self._key:
            self._key = key
            self._state = None

        try:
            current = await self._client.read(
                self.token, "allowance", [owner, self.spender]
            )
        except ChainClientError as exc:
            logger.warning("Allowance read failed for %s: %s", owner, exc)
            self._state = None
            return None

        # A newer resolve for a different key may have finished meanwhile
        if self._key != key:
            return None

        self._state = AllowanceState(current=int(current), required=required)
        logger.debug(
            "Allowance for %s: current=%s required=%s", owner, current, required
        )
        return self._state

    def _make_key(self, owner: str, required: int) -> Tuple[str, str, int]:
        return (owner.lower(), self.spender.lower(), required)
