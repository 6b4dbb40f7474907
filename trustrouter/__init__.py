"""TrustRouter - discover and rank agents registered in ERC-8004 registries."""

from trustrouter.cache import CacheStore, JsonFileCacheStore, MemoryCacheStore
from trustrouter.chains import ChainConfig, get_chain, rpc_env_var, supported_chains
from trustrouter.client import TrustRouterClient
from trustrouter.config import FetchOptions, RouterConfig
from trustrouter.discovery import find_max_agent_id
from trustrouter.endpoints import EndpointSelector
from trustrouter.exceptions import (
    AgentNotFoundError,
    CacheUnreadableError,
    CacheUnwritableError,
    CallRevertedError,
    ConfigurationError,
    MetadataUnresolvableError,
    NoLiveEndpointError,
    ReputationUnavailableError,
    RpcConnectionError,
    RpcError,
    RpcTimeoutError,
    TrustRouterError,
    ValidationUnavailableError,
)
from trustrouter.fetcher import BatchFetcher
from trustrouter.logging import configure_logging, get_logger
from trustrouter.ranking import MatchOptions, compute_trust_score, rank_agents
from trustrouter.registry import RegistryReader
from trustrouter.resolver import RegistrationResolver
from trustrouter.transport import RetryConfig, RpcTransport
from trustrouter.types import (
    AgentRecord,
    CacheSnapshot,
    FetchResult,
    Outcome,
    RegistrationFile,
    ScoredAgent,
    ServiceEntry,
)

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Main Client
    "TrustRouterClient",
    "RouterConfig",
    "FetchOptions",
    # Components
    "EndpointSelector",
    "RegistryReader",
    "BatchFetcher",
    "RegistrationResolver",
    "find_max_agent_id",
    # Cache
    "CacheStore",
    "JsonFileCacheStore",
    "MemoryCacheStore",
    # Ranking
    "MatchOptions",
    "compute_trust_score",
    "rank_agents",
    # Chains
    "ChainConfig",
    "get_chain",
    "rpc_env_var",
    "supported_chains",
    # Types
    "AgentRecord",
    "CacheSnapshot",
    "FetchResult",
    "Outcome",
    "RegistrationFile",
    "ScoredAgent",
    "ServiceEntry",
    # Exceptions
    "TrustRouterError",
    "ConfigurationError",
    "NoLiveEndpointError",
    "AgentNotFoundError",
    "RpcError",
    "CallRevertedError",
    "RpcTimeoutError",
    "RpcConnectionError",
    "MetadataUnresolvableError",
    "ReputationUnavailableError",
    "ValidationUnavailableError",
    "CacheUnreadableError",
    "CacheUnwritableError",
    # Transport
    "RpcTransport",
    "RetryConfig",
    # Logging
    "configure_logging",
    "get_logger",
]
