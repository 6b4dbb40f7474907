"""Shared fixtures: the fake registry network shipped with trustrouter.testing."""

from trustrouter.testing.conftest import (  # noqa: F401
    clean_rpc_env,
    fake_network,
    fake_node,
    make_agent,
    memory_cache,
    router_client,
    sample_registration,
)
