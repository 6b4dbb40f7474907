"""
Pytest fixtures for TrustRouter testing.

Provides a fake registry network, an in-memory cache and sample records for
testing applications that use TrustRouter without touching a real chain.
"""

from collections.abc import Callable
from typing import Any

import pytest

from trustrouter.cache import MemoryCacheStore
from trustrouter.chains import LEGACY_ETHEREUM_ENV_VAR, rpc_env_var, supported_chains
from trustrouter.client import TrustRouterClient
from trustrouter.config import RouterConfig
from trustrouter.testing.fake_chain import FakeNetwork, FakeRegistryNode
from trustrouter.types.agents import AgentRecord
from trustrouter.types.registration import RegistrationFile, ServiceEntry

TEST_RPC_URL = "https://rpc.trustrouter.test/"


# ============================================================================
# Fake Chain Fixtures
# ============================================================================


@pytest.fixture
def clean_rpc_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove every ``{CHAIN}_RPC_URL`` override from the environment."""
    for chain in supported_chains():
        monkeypatch.delenv(rpc_env_var(chain), raising=False)
    monkeypatch.delenv(LEGACY_ETHEREUM_ENV_VAR, raising=False)


@pytest.fixture
def fake_network() -> FakeNetwork:
    """Provide an empty FakeNetwork."""
    return FakeNetwork()


@pytest.fixture
def fake_node(fake_network: FakeNetwork) -> FakeRegistryNode:
    """
    Provide a FakeRegistryNode reachable at ``TEST_RPC_URL``.

    Example:
        ```python
        def test_discovery(fake_node, router_client):
            fake_node.add_agents(5)
            assert asyncio.run(router_client.get_total_agents()) == 5
        ```
    """
    return fake_network.add_node(TEST_RPC_URL)


@pytest.fixture
def memory_cache() -> MemoryCacheStore:
    """Provide an empty in-memory cache."""
    return MemoryCacheStore()


@pytest.fixture
def router_client(
    fake_network: FakeNetwork,
    fake_node: FakeRegistryNode,
    memory_cache: MemoryCacheStore,
    clean_rpc_env: None,
) -> TrustRouterClient:
    """
    Provide a TrustRouterClient wired to the fake network.

    Every chain tries ``TEST_RPC_URL`` first; the built-in public endpoints
    are unreachable on the fake network.
    """
    config = RouterConfig(rpc_overrides={chain: [TEST_RPC_URL] for chain in supported_chains()})
    return TrustRouterClient(
        config=config,
        cache=memory_cache,
        http_client=fake_network.client(),
    )


# ============================================================================
# Sample Data Fixtures
# ============================================================================


@pytest.fixture
def sample_registration() -> RegistrationFile:
    """Provide a sample RegistrationFile with an a2a service and x402 support."""
    return RegistrationFile(
        type="https://eips.ethereum.org/EIPS/eip-8004#registration-v1",
        name="Solidity Auditor",
        description="Audits smart contracts for reentrancy and access control bugs",
        image="https://example.com/auditor.png",
        services=[
            ServiceEntry(
                name="A2A",
                endpoint="https://auditor.example.com/.well-known/agent-card.json",
                version="0.3.0",
            ),
            ServiceEntry(name="x402", endpoint="https://auditor.example.com/pay"),
        ],
        x402_support=True,
        active=True,
        supported_trust=["reputation"],
    )


@pytest.fixture
def make_agent() -> Callable[..., AgentRecord]:
    """
    Provide the ``create_agent_record`` factory.

    Example:
        ```python
        def test_ranking(make_agent):
            agents = [make_agent(0, avg_score=80.0, feedback_count=3)]
        ```
    """
    return create_agent_record


# ============================================================================
# Helper Functions
# ============================================================================


def create_agent_record(
    agent_id: int = 0,
    name: str | None = None,
    description: str | None = None,
    **kwargs: Any,
) -> AgentRecord:
    """
    Create an AgentRecord with customizable fields.

    Args:
        agent_id: Agent ID
        name: Registration name (default: "Agent-<id>")
        description: Registration description
        **kwargs: Additional AgentRecord fields; ``services`` and
            ``x402_support`` go to the registration

    Returns:
        AgentRecord object
    """
    registration = RegistrationFile(
        name=name if name is not None else f"Agent-{agent_id}",
        description=description,
        services=kwargs.pop("services", []),
        x402_support=kwargs.pop("x402_support", False),
    )
    defaults: dict[str, Any] = {
        "owner": "0x00000000000000000000000000000000000000aa",
        "feedback_count": 0,
        "avg_score": 0.0,
    }
    defaults.update(kwargs)
    return AgentRecord(agent_id=agent_id, registration=registration, **defaults)


__all__ = [
    # Fixtures (exported for documentation, actual fixtures are auto-discovered)
    "clean_rpc_env",
    "fake_network",
    "fake_node",
    "memory_cache",
    "router_client",
    "sample_registration",
    "make_agent",
    # Helper functions
    "create_agent_record",
    "TEST_RPC_URL",
]
