"""TrustRouter testing utilities.

Provides an in-process fake registry network and fixtures for testing
applications that use TrustRouter.
"""

from trustrouter.testing.fake_chain import (
    FakeAgent,
    FakeNetwork,
    FakeRegistryNode,
    data_uri,
)
from trustrouter.testing.fixtures import TEST_RPC_URL, create_agent_record

__all__ = [
    # Fake chain
    "FakeNetwork",
    "FakeRegistryNode",
    "FakeAgent",
    "data_uri",
    "TEST_RPC_URL",
    # Helper functions
    "create_agent_record",
]
