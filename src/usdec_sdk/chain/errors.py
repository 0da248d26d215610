"""Errors raised at the chain client boundary."""

from typing import Any, Optional


class ChainClientError(Exception):
    """Base class for failures reported by a chain client."""


class RpcError(ChainClientError):
    """JSON-RPC error object returned by the node."""

    def __init__(self, message: str, code: Optional[int] = None, data: Any = None):
        super().__init__(message)
        self.code = code
        self.data = data


class SimulationError(ChainClientError):
    """The call was rejected before signing (it would revert, or prepare failed)."""


class SignatureRejectedError(ChainClientError):
    """The user declined to sign in their wallet."""


class SubmissionError(ChainClientError):
    """The node refused the signed transaction; no hash exists."""


class ReceiptError(ChainClientError):
    """No receipt was found before the timeout (transaction dropped or node unreachable)."""

    def __init__(self, message: str, tx_hash: Optional[str] = None):
        super().__init__(message)
        self.tx_hash = tx_hash
