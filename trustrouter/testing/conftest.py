"""
Pytest plugin for TrustRouter testing fixtures.

This module re-exports all fixtures from fixtures.py so they can be
automatically discovered by pytest when this package is installed.

To use these fixtures in your tests, add this to your top-level conftest.py:

    pytest_plugins = ["trustrouter.testing.conftest"]

Or import the fixtures directly:

    from trustrouter.testing.fixtures import fake_node, router_client
"""

# Re-export all fixtures for pytest auto-discovery
from trustrouter.testing.fixtures import (
    clean_rpc_env,
    fake_network,
    fake_node,
    make_agent,
    memory_cache,
    router_client,
    sample_registration,
)

__all__ = [
    "clean_rpc_env",
    "fake_network",
    "fake_node",
    "memory_cache",
    "router_client",
    "sample_registration",
    "make_agent",
]
