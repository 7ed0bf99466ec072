"""EtherscanClient tests. respx mocks every httpx call."""
import httpx
import pytest
import respx
from fee_tracker.config.settings import ETHERSCAN_BASE_URL
from fee_tracker.sources.etherscan.etherscan_client import (
    EtherscanClient,
    TransferEvent,
    get_explorer_client,
    trim_incomplete_block,
)
from fee_tracker.utils.exceptions import (
    ProviderConnectionError,
    ProviderRateLimitError,
    ProviderResponseError,
    ProviderTimeoutError,
    UnsupportedChainError,
)

POOL = "0x88e6a0c2ddd26feeb64f039a2c41296fcb3f5640"
USDC = "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48"


def raw_event(tx_hash="0xabc", block=1000, ts=1_700_000_000):
    return {
        "blockNumber": str(block),
        "timeStamp": str(ts),
        "hash": tx_hash,
        "gasPrice": "20000000000",
        "gasUsed": "21000",
        "contractAddress": USDC,
        "from": POOL,
        "to": "0x0000000000000000000000000000000000000001",
        "value": "1000000",
    }


def event(block, tx_hash=None):
    return TransferEvent(tx_hash or f"0x{block}", block, 1_700_000_000, "1", "1")


@respx.mock
def test_get_block_number_parses_hex():
    route = respx.get(ETHERSCAN_BASE_URL).mock(
        return_value=httpx.Response(200, json={"jsonrpc": "2.0", "id": 83, "result": "0x1431a4e"})
    )
    assert EtherscanClient(chain_id=1, api_key="k").get_block_number() == 0x1431A4E

    params = route.calls.last.request.url.params
    assert params["module"] == "proxy"
    assert params["action"] == "eth_blockNumber"
    assert params["chainid"] == "1"


@respx.mock
def test_get_block_number_error_payload():
    respx.get(ETHERSCAN_BASE_URL).mock(
        return_value=httpx.Response(200, json={"status": "0", "message": "NOTOK", "result": "Invalid API Key"})
    )
    with pytest.raises(ProviderResponseError):
        EtherscanClient(chain_id=1, api_key="bad").get_block_number()


@respx.mock
def test_transfer_events_are_parsed_in_order():
    payload = {"status": "1", "message": "OK", "result": [raw_event("0x1", 1000), raw_event("0x2", 1001)]}
    route = respx.get(ETHERSCAN_BASE_URL).mock(return_value=httpx.Response(200, json=payload))

    page = EtherscanClient(chain_id=1, api_key="k").get_token_transfer_events(USDC, POOL, 1000, 1100)

    assert [e.hash for e in page.events] == ["0x1", "0x2"]
    assert page.events[0].block_number == 1000
    assert page.events[0].gas_price == "20000000000"
    assert page.is_trimmed is False
    params = route.calls.last.request.url.params
    assert params["action"] == "tokentx"
    assert params["startblock"] == "1000"
    assert params["endblock"] == "1100"
    assert params["sort"] == "asc"
    assert params["offset"] == "10000"


@respx.mock
def test_no_transactions_found_is_an_empty_page():
    respx.get(ETHERSCAN_BASE_URL).mock(
        return_value=httpx.Response(200, json={"status": "0", "message": "No transactions found", "result": []})
    )
    page = EtherscanClient(chain_id=1, api_key="k").get_token_transfer_events(USDC, POOL, 1, 2)
    assert page.events == []
    assert page.is_trimmed is False


@respx.mock
def test_full_page_from_provider_is_trimmed():
    rows = [raw_event(f"0x{i}", block=1000 + i // 2) for i in range(6)]
    respx.get(ETHERSCAN_BASE_URL).mock(
        return_value=httpx.Response(200, json={"status": "1", "message": "OK", "result": rows})
    )
    client = EtherscanClient(chain_id=1, api_key="k", page_cap=6)

    page = client.get_token_transfer_events(USDC, POOL, 1000, 2000)

    assert page.is_trimmed is True
    assert page.dropped_block == 1002
    assert [e.block_number for e in page.events] == [1000, 1000, 1001, 1001]


def test_trim_at_provider_cap_drops_whole_last_block():
    events = [event(100 + i // 1000, f"0x{i}") for i in range(9_997)]
    events += [event(109, "0xa"), event(109, "0xb"), event(109, "0xc")]
    assert len(events) == 10_000

    page = trim_incomplete_block(events)

    assert page.is_trimmed is True
    assert page.dropped_block == 109
    assert all(e.block_number != 109 for e in page.events)
    assert page.events[-1].block_number == 108
    assert page.total == 9_000


def test_below_cap_is_left_alone():
    events = [event(1), event(2)]
    page = trim_incomplete_block(events, page_cap=3)
    assert page.events == events
    assert page.is_trimmed is False
    assert page.dropped_block is None


@respx.mock
def test_rate_limited_status_code():
    respx.get(ETHERSCAN_BASE_URL).mock(return_value=httpx.Response(429))
    with pytest.raises(ProviderRateLimitError):
        EtherscanClient(chain_id=1, api_key="k").get_block_number()


@respx.mock
def test_rate_limited_payload():
    respx.get(ETHERSCAN_BASE_URL).mock(
        return_value=httpx.Response(200, json={"status": "0", "message": "NOTOK", "result": "Max rate limit reached"})
    )
    with pytest.raises(ProviderRateLimitError):
        EtherscanClient(chain_id=1, api_key="k").get_token_transfer_events(USDC, POOL, 1, 2)


@respx.mock
def test_server_error_is_transient():
    respx.get(ETHERSCAN_BASE_URL).mock(return_value=httpx.Response(502))
    with pytest.raises(ProviderResponseError):
        EtherscanClient(chain_id=1, api_key="k").get_block_number()


@respx.mock
def test_timeout_is_retried_then_raised(no_sleep):
    route = respx.get(ETHERSCAN_BASE_URL).mock(side_effect=httpx.ConnectTimeout("timed out"))
    with pytest.raises(ProviderTimeoutError):
        EtherscanClient(chain_id=1, api_key="k").get_block_number()
    assert route.call_count == 3


@respx.mock
def test_connection_failure(no_sleep):
    respx.get(ETHERSCAN_BASE_URL).mock(side_effect=httpx.ConnectError("refused"))
    with pytest.raises(ProviderConnectionError):
        EtherscanClient(chain_id=1, api_key="k").get_block_number()


@respx.mock
def test_transient_failure_recovers_on_retry(no_sleep):
    respx.get(ETHERSCAN_BASE_URL).mock(side_effect=[
        httpx.ReadTimeout("slow"),
        httpx.Response(200, json={"result": "0x10"}),
    ])
    assert EtherscanClient(chain_id=1, api_key="k").get_block_number() == 16


def test_explorer_factory_rejects_unknown_chain():
    with pytest.raises(UnsupportedChainError):
        get_explorer_client(101)
    assert get_explorer_client(1) is get_explorer_client(1)
