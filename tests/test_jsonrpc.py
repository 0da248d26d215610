"""Tests for the JSON-RPC chain client, ABI table and signer."""

import asyncio
import json

import httpx
import pytest
from eth_abi import encode
from eth_account import Account
from eth_utils import to_checksum_address, to_hex

from usdec_sdk.chain import (
    ChainClientError,
    ContractMethod,
    JsonRpcChainClient,
    LocalAccountSigner,
    ReceiptError,
    RpcError,
    SignatureRejectedError,
    SimulationError,
    SubmissionError,
    TxReceipt,
    get_method,
    register_method,
)
from usdec_sdk.chain.abi import ERC20_METHODS, USDEC_METHODS, VAULT_METHODS


# Test wallet (DO NOT use in production)
TEST_PRIVATE_KEY = "0x" + "ab" * 32  # Deterministic test key
TEST_ADDRESS = Account.from_key(TEST_PRIVATE_KEY).address

RPC_URL = "https://rpc.test"
USDC_ADDRESS = "0x" + "22" * 20
TX_HASH = "0x" + "cd" * 32

WRITE_RESPONSES = {
    "eth_call": {"result": "0x"},
    "eth_estimateGas": {"result": "0xc350"},
    "eth_getTransactionCount": {"result": "0x7"},
    "eth_gasPrice": {"result": "0x3b9aca00"},
    "eth_chainId": {"result": "0x2105"},
    "eth_sendRawTransaction": {"result": TX_HASH},
}


class MockNode:
    """Answers JSON-RPC requests from a method -> payload table.

    A list payload is consumed one entry per request; an exception payload
    is raised as a transport failure.
    """

    def __init__(self, responses):
        self.responses = dict(responses)
        self.requests = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.requests.append(body)
        payload = self.responses[body["method"]]
        if isinstance(payload, list):
            payload = payload.pop(0)
        if isinstance(payload, Exception):
            raise payload
        if isinstance(payload, httpx.Response):
            return payload
        return httpx.Response(200, json={"jsonrpc": "2.0", "id": body["id"], **payload})

    def methods(self):
        return [request["method"] for request in self.requests]


def make_client(node, signer=None, **kwargs):
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(node.handler))
    return JsonRpcChainClient(RPC_URL, signer=signer, http_client=http_client, **kwargs)


class RejectingSigner:
    async def get_address(self):
        return TEST_ADDRESS

    async def sign_transaction(self, tx):
        raise SignatureRejectedError("User rejected the request")


class TestAbi:
    """Tests for the method table."""

    def test_selectors(self):
        """Test well-known ERC-20 selectors."""
        assert to_hex(get_method("approve").selector) == "0x095ea7b3"
        assert to_hex(get_method("balanceOf").selector) == "0x70a08231"
        assert to_hex(get_method("allowance").selector) == "0xdd62ed3e"

    def test_encode_call(self):
        """Test calldata layout."""
        data = get_method("mint").encode_call([11_000_000])
        assert data[:4] == get_method("mint").selector
        assert int.from_bytes(data[4:], "big") == 11_000_000

    def test_wrong_argument_count(self):
        """Test argument count is checked."""
        with pytest.raises(ValueError, match="takes 2 arguments"):
            get_method("approve").encode_call([1])

    def test_unknown_method(self):
        """Test unknown names are rejected."""
        with pytest.raises(ValueError, match="Unknown contract method"):
            get_method("transferFrom")

    def test_bundled_methods(self):
        """Test the bundled table holds exactly the calls the flows make."""
        bundled = {**ERC20_METHODS, **USDEC_METHODS, **VAULT_METHODS}
        assert sorted(bundled) == [
            "allowance",
            "approve",
            "balanceOf",
            "mint",
            "previewDeposit",
            "redeem",
        ]

    def test_register_method(self):
        """Test adding a deployment-specific view."""
        register_method(ContractMethod("unlockedBalanceOf", ("address",), ("uint256",)))
        assert get_method("unlockedBalanceOf").signature == "unlockedBalanceOf(address)"


class TestRead:
    """Tests for view calls."""

    def test_read_decodes_output(self):
        """Test eth_call result is decoded as uint256."""
        node = MockNode({"eth_call": {"result": to_hex(encode(["uint256"], [5_000_000]))}})
        client = make_client(node)

        value = asyncio.run(client.read(USDC_ADDRESS, "balanceOf", [TEST_ADDRESS.lower()]))

        assert value == 5_000_000
        call, block = node.requests[0]["params"]
        assert block == "latest"
        assert call["to"] == to_checksum_address(USDC_ADDRESS)
        assert call["data"].startswith("0x70a08231")

    def test_rpc_error(self):
        """Test a JSON-RPC error object becomes RpcError."""
        node = MockNode(
            {"eth_call": {"error": {"code": 3, "message": "execution reverted", "data": "0x"}}}
        )
        client = make_client(node)

        with pytest.raises(RpcError) as exc_info:
            asyncio.run(client.read(USDC_ADDRESS, "balanceOf", [TEST_ADDRESS]))

        assert exc_info.value.code == 3
        assert str(exc_info.value) == "execution reverted"

    def test_http_error(self):
        """Test a non-JSON HTTP failure."""
        node = MockNode({"eth_call": httpx.Response(502, text="Bad Gateway")})
        client = make_client(node)

        with pytest.raises(ChainClientError, match="502"):
            asyncio.run(client.read(USDC_ADDRESS, "balanceOf", [TEST_ADDRESS]))

    def test_empty_result(self):
        """Test "0x" from an address with no code is a ChainClientError."""
        client = make_client(MockNode({"eth_call": {"result": "0x"}}))

        with pytest.raises(ChainClientError, match="Could not decode balanceOf"):
            asyncio.run(client.read(USDC_ADDRESS, "balanceOf", [TEST_ADDRESS]))

    def test_missing_result(self):
        """Test a null result is an RpcError rather than a decode crash."""
        client = make_client(MockNode({"eth_call": {"result": None}}))

        with pytest.raises(RpcError, match="returned no result"):
            asyncio.run(client.read(USDC_ADDRESS, "balanceOf", [TEST_ADDRESS]))

    def test_chain_id(self):
        """Test chain id parsing."""
        client = make_client(MockNode({"eth_chainId": {"result": "0x2105"}}))
        assert asyncio.run(client.chain_id()) == 8453


class TestWrite:
    """Tests for signed writes."""

    def test_simulated_write(self):
        """Test simulation, preparation and broadcast order."""
        node = MockNode(WRITE_RESPONSES)
        client = make_client(node, signer=LocalAccountSigner(TEST_PRIVATE_KEY))

        tx = asyncio.run(client.write(USDC_ADDRESS, "approve", ["0x" + "11" * 20, 11_000_000]))

        assert tx.hash == TX_HASH
        assert node.methods() == [
            "eth_call",
            "eth_estimateGas",
            "eth_getTransactionCount",
            "eth_gasPrice",
            "eth_chainId",
            "eth_sendRawTransaction",
        ]
        simulated = node.requests[0]["params"][0]
        assert simulated["from"] == TEST_ADDRESS
        assert node.requests[2]["params"] == [TEST_ADDRESS, "pending"]
        assert node.requests[-1]["params"][0].startswith("0x")

    def test_unsimulated_write(self):
        """Test simulation can be turned off."""
        node = MockNode(WRITE_RESPONSES)
        client = make_client(node, signer=LocalAccountSigner(TEST_PRIVATE_KEY))

        asyncio.run(client.write(USDC_ADDRESS, "approve", [TEST_ADDRESS, 1], simulate=False))

        assert "eth_call" not in node.methods()
        assert "eth_estimateGas" not in node.methods()
        assert node.methods()[-1] == "eth_sendRawTransaction"

    def test_simulation_revert(self):
        """Test a reverting call is never signed."""
        responses = {
            **WRITE_RESPONSES,
            "eth_call": {"error": {"code": 3, "message": "execution reverted: not allowed"}},
        }
        node = MockNode(responses)
        client = make_client(node, signer=LocalAccountSigner(TEST_PRIVATE_KEY))

        with pytest.raises(SimulationError, match="not allowed"):
            asyncio.run(client.write("0x" + "11" * 20, "mint", [11_000_000]))

        assert node.methods() == ["eth_call"]

    def test_broadcast_refused(self):
        """Test a refused broadcast is a SubmissionError."""
        responses = {
            **WRITE_RESPONSES,
            "eth_sendRawTransaction": {"error": {"code": -32000, "message": "nonce too low"}},
        }
        client = make_client(MockNode(responses), signer=LocalAccountSigner(TEST_PRIVATE_KEY))

        with pytest.raises(SubmissionError, match="nonce too low"):
            asyncio.run(client.write("0x" + "11" * 20, "redeem", [1]))

    def test_signature_rejected(self):
        """Test a wallet rejection propagates unchanged."""
        node = MockNode(WRITE_RESPONSES)
        client = make_client(node, signer=RejectingSigner())

        with pytest.raises(SignatureRejectedError):
            asyncio.run(client.write("0x" + "11" * 20, "mint", [1]))

        assert "eth_sendRawTransaction" not in node.methods()

    def test_no_signer(self):
        """Test writes need a signer."""
        client = make_client(MockNode(WRITE_RESPONSES))

        with pytest.raises(SimulationError, match="No signer"):
            asyncio.run(client.write("0x" + "11" * 20, "mint", [1]))


class TestReceipts:
    """Tests for receipt polling."""

    def test_polls_until_included(self):
        """Test missing receipts are retried."""
        node = MockNode(
            {
                "eth_getTransactionReceipt": [
                    {"result": None},
                    {"result": None},
                    {"result": {"status": "0x1", "blockNumber": "0x10"}},
                ]
            }
        )
        client = make_client(node, poll_interval=0)

        receipt = asyncio.run(client.wait_for_receipt(TX_HASH))

        assert receipt == TxReceipt(status=1, block_number=16)
        assert len(node.requests) == 3

    def test_reverted_receipt(self):
        """Test status 0 is returned, not raised."""
        node = MockNode(
            {"eth_getTransactionReceipt": {"result": {"status": "0x0", "blockNumber": "0x2a"}}}
        )
        client = make_client(node, poll_interval=0)

        assert asyncio.run(client.wait_for_receipt(TX_HASH)).status == 0

    def test_timeout(self):
        """Test giving up on a dropped transaction."""
        node = MockNode({"eth_getTransactionReceipt": {"result": None}})
        client = make_client(node, poll_interval=0, receipt_timeout=0)

        with pytest.raises(ReceiptError) as exc_info:
            asyncio.run(client.wait_for_receipt(TX_HASH))

        assert exc_info.value.tx_hash == TX_HASH

    def test_transient_lookup_failure_is_retried(self):
        """Test a dropped connection while polling does not abandon the transaction."""
        node = MockNode(
            {
                "eth_getTransactionReceipt": [
                    httpx.ConnectError("connection reset"),
                    {"result": {"status": "0x1", "blockNumber": "0x11"}},
                ]
            }
        )
        client = make_client(node, poll_interval=0)

        receipt = asyncio.run(client.wait_for_receipt(TX_HASH))

        assert receipt == TxReceipt(status=1, block_number=17)
        assert len(node.requests) == 2

    def test_lookup_failure_until_timeout(self):
        """Test persistent RPC failures surface as ReceiptError once the timeout passes."""
        node = MockNode({"eth_getTransactionReceipt": httpx.Response(503, text="unavailable")})
        client = make_client(node, poll_interval=0, receipt_timeout=0)

        with pytest.raises(ReceiptError) as exc_info:
            asyncio.run(client.wait_for_receipt(TX_HASH))

        assert exc_info.value.tx_hash == TX_HASH


class TestLocalAccountSigner:
    """Tests for LocalAccountSigner."""

    def test_address(self):
        """Test signer exposes the account address."""
        signer = LocalAccountSigner(TEST_PRIVATE_KEY)
        assert signer.address == TEST_ADDRESS
        assert asyncio.run(signer.get_address()) == TEST_ADDRESS

    def test_sign_transaction(self):
        """Test lower-case recipients are accepted and signing is deterministic."""
        signer = LocalAccountSigner(TEST_PRIVATE_KEY)
        tx = {
            "to": "0x" + "11" * 20,
            "data": "0x",
            "value": 0,
            "gas": 50_000,
            "gasPrice": 10**9,
            "nonce": 0,
            "chainId": 8453,
        }

        first = asyncio.run(signer.sign_transaction(tx))
        second = asyncio.run(signer.sign_transaction(tx))

        assert first.startswith("0x")
        assert first == second

    def test_invalid_recipient(self):
        """Test invalid recipients are rejected."""
        signer = LocalAccountSigner(TEST_PRIVATE_KEY)
        with pytest.raises(ValueError, match="Invalid transaction recipient"):
            asyncio.run(signer.sign_transaction({"to": "0x1234"}))
