"""
Tests for registry reads and batch fetching against the fake registry node.

Feature: trustrouter
"""

import asyncio

import pytest

from trustrouter.chains import get_chain
from trustrouter.exceptions import AgentNotFoundError, CallRevertedError, RpcError
from trustrouter.fetcher import BatchFetcher
from trustrouter.registry import RegistryReader
from trustrouter.resolver import RegistrationResolver
from trustrouter.testing import TEST_RPC_URL, FakeNetwork, FakeRegistryNode
from trustrouter.transport import RpcTransport
from trustrouter.types.agents import UNKNOWN_OWNER

CLIENT_A = "0x" + "c1" * 20
CLIENT_B = "0x" + "c2" * 20


@pytest.fixture
def reader(fake_network: FakeNetwork, fake_node: FakeRegistryNode) -> RegistryReader:
    transport = RpcTransport(TEST_RPC_URL, timeout=1.0, client=fake_network.client())
    return RegistryReader(transport, get_chain("ethereum").registries)


@pytest.fixture
def fetcher(fake_network: FakeNetwork, reader: RegistryReader) -> BatchFetcher:
    resolver = RegistrationResolver(client=fake_network.client(), timeout=1.0)
    return BatchFetcher(reader, resolver, "ethereum", batch_size=3)


class TestRegistryReader:
    def test_exists(self, fake_node: FakeRegistryNode, reader: RegistryReader) -> None:
        fake_node.add_agents(2)

        assert asyncio.run(reader.exists(1))
        assert not asyncio.run(reader.exists(2))

    def test_owner_of_unassigned_reverts(self, reader: RegistryReader) -> None:
        with pytest.raises(RpcError) as exc_info:
            asyncio.run(reader.owner_of(0))
        assert exc_info.value.code == "CALL_REVERTED"

    def test_agent_uri_prefers_token_uri(
        self, fake_node: FakeRegistryNode, reader: RegistryReader
    ) -> None:
        fake_node.add_agent(uri="ipfs://first", metadata={"agentURI": b"ipfs://second"})

        assert asyncio.run(reader.agent_uri(0)) == "ipfs://first"

    def test_agent_uri_falls_back_to_metadata(
        self, fake_node: FakeRegistryNode, reader: RegistryReader
    ) -> None:
        fake_node.add_agent(metadata={"url": b"https://agents.example/a.json"})

        assert asyncio.run(reader.agent_uri(0)) == "https://agents.example/a.json"

    def test_agent_uri_absent(self, fake_node: FakeRegistryNode, reader: RegistryReader) -> None:
        fake_node.add_agent()

        assert asyncio.run(reader.agent_uri(0)) is None

    def test_reputation_summary(self, fake_node: FakeRegistryNode, reader: RegistryReader) -> None:
        fake_node.add_agent(clients=[CLIENT_A, CLIENT_B], feedback=(12, 8750, 2))

        outcome = asyncio.run(reader.reputation_summary(0))

        assert not outcome.degraded
        assert outcome.value.feedback_count == 12
        assert outcome.value.avg_score == 87.5

    def test_reputation_clamped(self, fake_node: FakeRegistryNode, reader: RegistryReader) -> None:
        fake_node.add_agent(clients=[CLIENT_A], feedback=(1, 250, 0))
        fake_node.add_agent(clients=[CLIENT_A], feedback=(1, -40, 0))

        assert asyncio.run(reader.reputation_summary(0)).value.avg_score == 100.0
        assert asyncio.run(reader.reputation_summary(1)).value.avg_score == 0.0

    def test_no_clients_means_no_feedback(
        self, fake_node: FakeRegistryNode, reader: RegistryReader
    ) -> None:
        fake_node.add_agent(feedback=(5, 90, 0))

        outcome = asyncio.run(reader.reputation_summary(0))

        assert not outcome.degraded
        assert outcome.value.feedback_count == 0

    def test_undeployed_reputation_degrades(
        self, fake_node: FakeRegistryNode, reader: RegistryReader
    ) -> None:
        fake_node.reputation_deployed = False
        fake_node.add_agent(clients=[CLIENT_A], feedback=(5, 90, 0))

        outcome = asyncio.run(reader.reputation_summary(0))

        assert outcome.degraded
        assert outcome.error.code == "REPUTATION_UNAVAILABLE"
        assert outcome.value.feedback_count == 0

    def test_undeployed_validation_degrades(
        self, fake_node: FakeRegistryNode, reader: RegistryReader
    ) -> None:
        fake_node.add_agent(validation=(3, 95))

        outcome = asyncio.run(reader.validation_summary(0))

        assert outcome.degraded
        assert outcome.error.code == "VALIDATION_UNAVAILABLE"
        assert outcome.value.validation_count == 0

    def test_deployed_validation(self, fake_node: FakeRegistryNode, reader: RegistryReader) -> None:
        fake_node.validation_deployed = True
        fake_node.add_agent(validation=(3, 95))

        outcome = asyncio.run(reader.validation_summary(0))

        assert outcome.value.validation_count == 3
        assert outcome.value.validation_avg == 95.0


class TestBatchFetcher:
    def test_fetch_one_assembles_record(
        self, fake_node: FakeRegistryNode, fetcher: BatchFetcher
    ) -> None:
        fake_node.add_agent(
            {"name": "Auditor", "services": [{"name": "A2A", "endpoint": "https://a.example"}]},
            owner="0x" + "ab" * 20,
            clients=[CLIENT_A],
            feedback=(4, 80, 0),
        )

        agent = asyncio.run(fetcher.fetch_one(0))

        assert agent.agent_id == 0
        assert agent.owner == "0x" + "ab" * 20
        assert agent.registration.name == "Auditor"
        assert agent.feedback_count == 4
        assert agent.avg_score == 80.0
        assert agent.validation_count == 0

    def test_fetch_one_unassigned(self, fetcher: BatchFetcher) -> None:
        with pytest.raises(AgentNotFoundError):
            asyncio.run(fetcher.fetch_one(7))

    def test_unreadable_owner_with_pointer_is_unknown(
        self, fake_node: FakeRegistryNode, fetcher: BatchFetcher
    ) -> None:
        fake_node.add_agent({"name": "Ownerless"}, owner_failing=True)

        agent = asyncio.run(fetcher.fetch_one(0))

        assert agent.owner == UNKNOWN_OWNER == "unknown"
        assert agent.registration.name == "Ownerless"

    def test_unreadable_owner_without_pointer_is_omitted(
        self, fake_node: FakeRegistryNode, fetcher: BatchFetcher
    ) -> None:
        fake_node.add_agents(2)
        fake_node.add_agent(owner_failing=True)

        with pytest.raises(RpcError) as exc_info:
            asyncio.run(fetcher.fetch_one(2))
        assert not isinstance(exc_info.value, CallRevertedError)
        assert exc_info.value.code == "RPC_ERROR"

        result = asyncio.run(fetcher.fetch_range(0, 3))
        assert result.fetched_ids == [0, 1]
        assert isinstance(result.failures[2], RpcError)

    def test_all_identity_reads_failing_is_omitted(
        self, fake_node: FakeRegistryNode, fetcher: BatchFetcher
    ) -> None:
        fake_node.add_agent({"name": "Flaky"}, failing=True)

        with pytest.raises(RpcError) as exc_info:
            asyncio.run(fetcher.fetch_one(0))
        assert exc_info.value.code == "RPC_ERROR"
        assert "request rate exceeded" in str(exc_info.value)

    def test_unresolvable_metadata_keeps_agent(
        self, fake_node: FakeRegistryNode, fetcher: BatchFetcher
    ) -> None:
        fake_node.add_agent(uri="https://nowhere.example/agent.json")

        agent = asyncio.run(fetcher.fetch_one(0))

        assert agent.registration.is_empty
        assert agent.display_name == "(unnamed)"

    def test_malformed_pointer_keeps_agent(
        self, fake_node: FakeRegistryNode, fetcher: BatchFetcher
    ) -> None:
        fake_node.add_agents(1)
        fake_node.add_agent(uri="https://[::1/agent.json", owner="0x" + "ab" * 20)

        result = asyncio.run(fetcher.fetch_range(0, 2))

        assert result.fetched_ids == [0, 1]
        assert result.failures == {}
        assert result.agents[1].owner == "0x" + "ab" * 20
        assert result.agents[1].registration.is_empty

    def test_range_in_id_order(self, fake_node: FakeRegistryNode, fetcher: BatchFetcher) -> None:
        fake_node.add_agents(8)

        result = asyncio.run(fetcher.fetch_range(0, 8))

        assert result.fetched_ids == list(range(8))
        assert result.failures == {}
        assert [a.registration.name for a in result.agents][:2] == ["Agent-0", "Agent-1"]

    def test_failure_isolated_within_batch(
        self, fake_node: FakeRegistryNode, fetcher: BatchFetcher
    ) -> None:
        fake_node.add_agents(6)
        fake_node.agents[4].failing = True

        result = asyncio.run(fetcher.fetch_range(0, 6))

        assert result.fetched_ids == [0, 1, 2, 3, 5]
        assert set(result.failures) == {4}
        assert isinstance(result.failures[4], RpcError)

    def test_ids_past_end_omitted(self, fake_node: FakeRegistryNode, fetcher: BatchFetcher) -> None:
        fake_node.add_agents(2)

        result = asyncio.run(fetcher.fetch_range(0, 4))

        assert result.fetched_ids == [0, 1]
        assert all(isinstance(e, AgentNotFoundError) for e in result.failures.values())

    def test_unexpected_error_recorded(self, fetcher: BatchFetcher, monkeypatch) -> None:
        async def broken(agent_id: int):
            raise ZeroDivisionError("boom")

        monkeypatch.setattr(fetcher, "fetch_one", broken)

        result = asyncio.run(fetcher.fetch_ids([0, 1]))

        assert result.agents == []
        assert {e.code for e in result.failures.values()} == {"FETCH_FAILED"}

    def test_batches_bound_concurrency(self, fetcher: BatchFetcher, monkeypatch) -> None:
        in_flight = 0
        peak = 0

        async def tracked(agent_id: int):
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0)
            in_flight -= 1
            raise AgentNotFoundError(agent_id, "ethereum")

        monkeypatch.setattr(fetcher, "fetch_one", tracked)

        asyncio.run(fetcher.fetch_ids(range(10)))

        assert peak == 3
