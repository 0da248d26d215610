"""Mint USDEC from USDC on Base.

This example walks through one mint with a local private key:
- Shows the fee breakdown and eligibility for the amount
- Approves USDC if the allowance is short
- Mints and waits for confirmation

Prerequisites:
1. pip install usdec-sdk
2. Set environment variables (see README.md)
3. Fund the wallet with USDC and a little ETH on Base

Usage:
    python mint_usdec.py 25
"""

import asyncio
import logging
import os
import sys

from dotenv import load_dotenv

load_dotenv()


async def main():
    # Import here to show what's needed
    from usdec_sdk import (
        Allowlist,
        BalanceReader,
        Ok,
        JsonRpcChainClient,
        LocalAccountSigner,
        MintRedeemOrchestrator,
        StaticWalletSession,
        format_usdc,
        load_config_from_env,
    )

    required = ["USDEC_PRIVATE_KEY", "USDEC_ADDRESS", "USDEC_RAW_USDC_ADDRESS"]
    missing = [var for var in required if not os.environ.get(var)]
    if missing:
        print(f"Missing required environment variables: {', '.join(missing)}")
        print("See README.md for required variables.")
        return

    amount = sys.argv[1] if len(sys.argv) > 1 else "11"
    config = load_config_from_env()
    signer = LocalAccountSigner(os.environ["USDEC_PRIVATE_KEY"])
    client = JsonRpcChainClient(config.rpc_url, signer=signer)

    print("=" * 60)
    print("  MINT USDEC")
    print("=" * 60)

    try:
        print("\n[1] Connecting...")
        chain_id = await client.chain_id()
        session = StaticWalletSession(address=signer.address, chain_id=chain_id)
        print(f"    Wallet: {signer.address}")
        print(f"    Chain:  {chain_id}")

        if config.allowlist_file:
            allowlist = Allowlist.from_file(config.allowlist_file)
        else:
            # Without a list, only this wallet is allowed
            allowlist = Allowlist([signer.address])

        balances = BalanceReader(client, session, config)
        orchestrator = MintRedeemOrchestrator(
            client=client,
            session=session,
            allowlist=allowlist,
            config=config,
            balances=balances,
        )

        print(f"\n[2] Preview for {amount} USDC:")
        result = orchestrator.set_mint_amount(amount)
        if not isinstance(result, Ok):
            print(f"    {result.detail}")
            return
        breakdown = result.value.breakdown
        print(f"    Fee:  {format_usdc(breakdown.fee)} USDC ({config.fee_bps} bps)")
        print(f"    Net:  {format_usdc(breakdown.net)} USDC into the vault")

        await balances.refresh()
        print(f"    USDC balance:  {balances.usdc_balance.display(2)}")
        print(f"    USDEC balance: {balances.usdec_balance.display(4)}")
        print(f"    Vault shares:  {balances.preview_shares.display(4)}")

        print("\n[3] Minting...")
        result = await orchestrator.mint()
        if not isinstance(result, Ok):
            print(f"    Not minted ({result.kind.value}): {result.detail}")
            return

        print("\n[4] Minted!")
        print(f"    TX: {orchestrator.last_tx_url}")
        print(f"    USDEC balance: {balances.usdec_balance.display(4)}")

    finally:
        await client.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(message)s")
    asyncio.run(main())
