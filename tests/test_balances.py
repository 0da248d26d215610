"""Tests for the balance reader."""

import asyncio
import json

import httpx

from usdec_sdk.chain import JsonRpcChainClient
from usdec_sdk.chain.errors import RpcError
from usdec_sdk.config import resolve_config
from usdec_sdk.orchestrator import BalanceReader, CachedValue, LoadStatus

USDC = 10**6


def make_reader(chain, session, base_config, **kwargs):
    return BalanceReader(chain, session, resolve_config(base_config), **kwargs)


class TestCachedValue:
    """Tests for display text."""

    def test_loading(self):
        """Test the initial state."""
        assert CachedValue().display() == "Loading…"

    def test_error(self):
        """Test a failed read."""
        assert CachedValue(status=LoadStatus.ERROR, error="boom").display() == "Error"

    def test_ready(self):
        """Test rounding for USDC and USDEC fields."""
        value = CachedValue(status=LoadStatus.READY, value=12_345_678)
        assert value.display(2) == "12.35"
        assert value.display(4) == "12.3457"


class TestBalanceReader:
    """Tests for BalanceReader."""

    def test_refresh(self, chain, session, base_config):
        """Test balances and preview are read for the connected wallet."""
        chain.balances["0x" + "22" * 20] = 40 * USDC
        chain.balances["0x" + "11" * 20] = 3 * USDC
        chain.preview_shares = 9 * USDC
        reader = make_reader(chain, session, base_config)
        reader.set_preview_assets(10_890_000)

        asyncio.run(reader.refresh())

        assert reader.usdc_balance.display(2) == "40.00"
        assert reader.usdec_balance.display(4) == "3.0000"
        assert reader.preview_shares.value == 9 * USDC
        assert reader.unlocked_balance.status == LoadStatus.LOADING
        assert ("0x" + "33" * 20, "previewDeposit", [10_890_000]) in chain.reads

    def test_read_failure_is_error(self, chain, session, base_config):
        """Test a failing read is stored, not raised."""
        chain.read_errors["balanceOf"] = RpcError("rate limited")
        reader = make_reader(chain, session, base_config)

        asyncio.run(reader.refresh())

        assert reader.usdc_balance.status == LoadStatus.ERROR
        assert reader.usdc_balance.error == "rate limited"
        assert reader.usdc_balance.display() == "Error"

    def test_wrong_chain_is_loading(self, chain, session, base_config):
        """Test nothing is read on the wrong network."""
        session.chain_id = 1
        reader = make_reader(chain, session, base_config)

        asyncio.run(reader.refresh())

        assert chain.reads == []
        assert reader.usdc_balance.display() == "Loading…"

    def test_no_preview_without_amount(self, chain, session, base_config):
        """Test the preview is only read for an amount."""
        reader = make_reader(chain, session, base_config)

        asyncio.run(reader.refresh())

        assert all(read[1] != "previewDeposit" for read in chain.reads)
        assert reader.preview_shares.status == LoadStatus.LOADING

    def test_poll_stops(self, chain, session, base_config):
        """Test polling exits once stopped."""
        reader = make_reader(chain, session, base_config)

        async def scenario():
            stop = asyncio.Event()
            task = asyncio.create_task(reader.poll(interval=60, stop=stop))
            while not chain.reads:
                await asyncio.sleep(0)
            stop.set()
            await asyncio.wait_for(task, timeout=5)

        asyncio.run(scenario())

        assert reader.usdc_balance.status == LoadStatus.READY

    def test_undecodable_result_is_error(self, session, base_config):
        """Test an empty eth_call result from a real client is stored, not raised."""

        def handler(request: httpx.Request) -> httpx.Response:
            body = json.loads(request.content)
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], "result": "0x"})

        client = JsonRpcChainClient(
            "https://rpc.test",
            http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        )
        reader = make_reader(client, session, base_config)

        asyncio.run(reader.refresh())

        assert reader.usdc_balance.status == LoadStatus.ERROR
        assert reader.usdec_balance.status == LoadStatus.ERROR
        assert "Could not decode balanceOf" in reader.usdc_balance.error
