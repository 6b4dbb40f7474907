"""
Tests for endpoint selection and the chain table.

Feature: trustrouter
"""

import asyncio

import pytest

from trustrouter.chains import CHAINS, get_chain, rpc_env_var, supported_chains
from trustrouter.endpoints import EndpointSelector
from trustrouter.exceptions import ConfigurationError, NoLiveEndpointError
from trustrouter.testing import FakeNetwork, FakeRegistryNode

DEAD_URL = "https://dead.example/"
LIVE_URL = "https://live.example/"


def selector_for(network: FakeNetwork, overrides: dict[str, list[str]]) -> EndpointSelector:
    return EndpointSelector(rpc_overrides=overrides, timeout=1.0, client=network.client())


class TestChainTable:
    def test_supported_chains(self) -> None:
        chains = supported_chains()

        assert chains[0] == "ethereum"
        assert {"base", "arbitrum", "sepolia", "base-sepolia"} <= set(chains)
        assert len(chains) == len(CHAINS)

    def test_unknown_chain(self) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            get_chain("dogechain")
        assert "Supported:" in str(exc_info.value)

    def test_env_var_names(self) -> None:
        assert rpc_env_var("ethereum") == "ETHEREUM_RPC_URL"
        assert rpc_env_var("base-sepolia") == "BASE_SEPOLIA_RPC_URL"

    def test_testnets_use_testnet_registries(self) -> None:
        assert get_chain("sepolia").registries.identity != get_chain("ethereum").registries.identity
        assert get_chain("base").registries == get_chain("ethereum").registries


class TestCandidates:
    def test_env_override_first(self, monkeypatch: pytest.MonkeyPatch, clean_rpc_env: None) -> None:
        monkeypatch.setenv("BASE_RPC_URL", "https://mine.example/")
        selector = EndpointSelector(rpc_overrides={"base": ["https://configured.example/"]})

        candidates = selector.candidates("base")

        assert candidates[:2] == ["https://mine.example/", "https://configured.example/"]
        assert candidates[2:] == list(get_chain("base").rpc_urls)

    def test_legacy_ethereum_variable(
        self, monkeypatch: pytest.MonkeyPatch, clean_rpc_env: None
    ) -> None:
        monkeypatch.setenv("ETH_RPC_URL", "https://legacy.example/")

        assert EndpointSelector().candidates("ethereum")[0] == "https://legacy.example/"

    def test_duplicates_tried_once(self, clean_rpc_env: None) -> None:
        builtin = get_chain("base").rpc_urls[0]
        selector = EndpointSelector(rpc_overrides={"base": [builtin]})

        candidates = selector.candidates("base")

        assert candidates.count(builtin) == 1
        assert candidates[0] == builtin


class TestSelect:
    def test_first_live_endpoint_wins(self, clean_rpc_env: None) -> None:
        network = FakeNetwork()
        network.add_node(LIVE_URL)
        selector = selector_for(network, {"ethereum": [DEAD_URL, LIVE_URL]})

        transport = asyncio.run(selector.select("ethereum"))

        assert transport.url == LIVE_URL
        assert network.requests[:2] == [DEAD_URL, LIVE_URL]

    def test_zero_block_rejected(self, clean_rpc_env: None) -> None:
        network = FakeNetwork()
        network.add_node(DEAD_URL, FakeRegistryNode(block_number=0))
        network.add_node(LIVE_URL)
        selector = selector_for(network, {"ethereum": [DEAD_URL, LIVE_URL]})

        transport = asyncio.run(selector.select("ethereum"))

        assert transport.url == LIVE_URL

    def test_timeout_rejected(self, clean_rpc_env: None) -> None:
        network = FakeNetwork()
        network.add_timeout(DEAD_URL)
        network.add_node(LIVE_URL)
        selector = selector_for(network, {"ethereum": [DEAD_URL, LIVE_URL]})

        transport = asyncio.run(selector.select("ethereum"))

        assert transport.url == LIVE_URL

    def test_env_override_probed_first(
        self, monkeypatch: pytest.MonkeyPatch, clean_rpc_env: None
    ) -> None:
        monkeypatch.setenv("ETHEREUM_RPC_URL", LIVE_URL)
        network = FakeNetwork()
        network.add_node(LIVE_URL)
        network.add_node(DEAD_URL)
        selector = selector_for(network, {"ethereum": [DEAD_URL]})

        transport = asyncio.run(selector.select("ethereum"))

        assert transport.url == LIVE_URL
        assert network.requests == [LIVE_URL]

    def test_malformed_env_override_skipped(
        self, monkeypatch: pytest.MonkeyPatch, clean_rpc_env: None
    ) -> None:
        monkeypatch.setenv("ETHEREUM_RPC_URL", "https://[::1/bad")
        network = FakeNetwork()
        network.add_node(LIVE_URL)
        selector = selector_for(network, {"ethereum": [LIVE_URL]})

        transport = asyncio.run(selector.select("ethereum"))

        assert transport.url == LIVE_URL
        assert LIVE_URL in network.requests

    def test_all_dead_names_override_variable(self, clean_rpc_env: None) -> None:
        network = FakeNetwork()
        selector = selector_for(network, {})

        with pytest.raises(NoLiveEndpointError) as exc_info:
            asyncio.run(selector.select("base"))

        error = exc_info.value
        assert error.chain == "base"
        assert error.env_var == "BASE_RPC_URL"
        assert error.tried == len(get_chain("base").rpc_urls)
        assert "BASE_RPC_URL" in str(error)
        assert error.code == "NO_LIVE_ENDPOINT"
