"""Chain access for USDEC.

The orchestrator depends only on the ChainClient and WalletSession protocols;
JsonRpcChainClient is the bundled implementation for plain Ethereum JSON-RPC
nodes.
"""

from .abi import ContractMethod, METHODS, get_method, register_method
from .client import (
    ChainClient,
    StaticWalletSession,
    SubmittedTransaction,
    TxReceipt,
    WalletSession,
)
from .errors import (
    ChainClientError,
    ReceiptError,
    RpcError,
    SignatureRejectedError,
    SimulationError,
    SubmissionError,
)
from .jsonrpc import JsonRpcChainClient
from .signing import LocalAccountSigner, TransactionSigner

__all__ = [
    # Protocols
    "ChainClient",
    "WalletSession",
    "TransactionSigner",
    "StaticWalletSession",
    "SubmittedTransaction",
    "TxReceipt",
    # ABI
    "ContractMethod",
    "METHODS",
    "get_method",
    "register_method",
    # Errors
    "ChainClientError",
    "RpcError",
    "SimulationError",
    "SignatureRejectedError",
    "SubmissionError",
    "ReceiptError",
    # Implementations
    "JsonRpcChainClient",
    "LocalAccountSigner",
]
