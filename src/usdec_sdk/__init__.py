"""USDEC SDK.

Convert USDC into USDEC (net of a protocol fee, deposited into a yield vault)
and redeem USDEC back, with every on-chain step sequenced, guarded and
confirmed by a single orchestrator.

Example usage:
    ```python
    import asyncio
    from usdec_sdk import (
        Allowlist,
        JsonRpcChainClient,
        LocalAccountSigner,
        MintRedeemOrchestrator,
        StaticWalletSession,
        load_config_from_env,
    )

    async def main():
        config = load_config_from_env()
        signer = LocalAccountSigner("0x...")
        client = JsonRpcChainClient(config.rpc_url, signer=signer)
        orchestrator = MintRedeemOrchestrator(
            client=client,
            session=StaticWalletSession(signer.address, config.chain_id),
            allowlist=Allowlist.from_file("allowlist.json"),
            config=config,
        )
        orchestrator.set_mint_amount("25")
        print(await orchestrator.mint())
        await client.close()

    asyncio.run(main())
    ```
"""

from .chain import (
    ChainClient,
    ChainClientError,
    JsonRpcChainClient,
    LocalAccountSigner,
    ReceiptError,
    SignatureRejectedError,
    SimulationError,
    StaticWalletSession,
    SubmissionError,
    WalletSession,
)
from .config import MintConfig, ResolvedMintConfig, load_config_from_env, resolve_config
from .mint import (
    Allowlist,
    Err,
    ErrorKind,
    IneligibilityReason,
    InvalidAmount,
    Ok,
    TransactionRecord,
    TxKind,
    TxPhase,
    assess_mint,
    compute_fee_breakdown,
    format_usdc,
    parse_usdc,
    validate_amount,
)
from .notifier import LoggingNotifier, Notifier
from .orchestrator import (
    BalanceReader,
    LockPeriodPolicy,
    MinimumRedeemPolicy,
    MintRedeemOrchestrator,
    all_of,
    unrestricted,
)

__version__ = "0.1.0"

__all__ = [
    # Orchestrator
    "MintRedeemOrchestrator",
    "BalanceReader",
    "LockPeriodPolicy",
    "MinimumRedeemPolicy",
    "all_of",
    "unrestricted",
    # Config
    "MintConfig",
    "ResolvedMintConfig",
    "load_config_from_env",
    "resolve_config",
    # Chain
    "ChainClient",
    "WalletSession",
    "StaticWalletSession",
    "JsonRpcChainClient",
    "LocalAccountSigner",
    "ChainClientError",
    "SimulationError",
    "SignatureRejectedError",
    "SubmissionError",
    "ReceiptError",
    # Mint
    "Allowlist",
    "Err",
    "ErrorKind",
    "IneligibilityReason",
    "InvalidAmount",
    "Ok",
    "TransactionRecord",
    "TxKind",
    "TxPhase",
    "assess_mint",
    "compute_fee_breakdown",
    "format_usdc",
    "parse_usdc",
    "validate_amount",
    # Notifications
    "Notifier",
    "LoggingNotifier",
]
