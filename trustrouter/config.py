"""
TrustRouter runtime configuration.

``RouterConfig`` holds installation-wide settings; ``FetchOptions`` carries
per-call policy and is passed explicitly through every client call.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

from trustrouter.exceptions import ConfigurationError

DEFAULT_CACHE_PATH = Path.home() / ".trustrouter" / "cache.json"
DEFAULT_CACHE_TTL_MS = 60 * 60 * 1000
DEFAULT_RPC_TIMEOUT = 10.0
DEFAULT_METADATA_TIMEOUT = 8.0
DEFAULT_BATCH_SIZE = 10
DEFAULT_DISCOVERY_HINT = 200
DEFAULT_DISCOVERY_CEILING = 100_000
DEFAULT_IPFS_GATEWAY = "https://ipfs.io/ipfs/"


@dataclass
class FetchOptions:
    """Per-call fetch policy."""

    force_refresh: bool = False  # Ignore cached snapshots for this call


@dataclass
class RouterConfig:
    """Settings shared by every component of a client."""

    cache_path: Path = DEFAULT_CACHE_PATH
    cache_ttl_ms: int = DEFAULT_CACHE_TTL_MS
    rpc_timeout: float = DEFAULT_RPC_TIMEOUT
    metadata_timeout: float = DEFAULT_METADATA_TIMEOUT
    batch_size: int = DEFAULT_BATCH_SIZE
    discovery_hint: int = DEFAULT_DISCOVERY_HINT
    discovery_ceiling: int = DEFAULT_DISCOVERY_CEILING
    ipfs_gateway: str = DEFAULT_IPFS_GATEWAY
    # chain name -> endpoints tried before the built-in list
    rpc_overrides: dict[str, list[str]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.cache_path = Path(self.cache_path).expanduser()
        if self.cache_ttl_ms < 0:
            raise ConfigurationError("cache_ttl_ms must be >= 0")
        if self.batch_size < 1:
            raise ConfigurationError("batch_size must be >= 1")
        if self.discovery_hint < 1:
            raise ConfigurationError("discovery_hint must be >= 1")
        if self.discovery_ceiling < self.discovery_hint:
            raise ConfigurationError("discovery_ceiling must be >= discovery_hint")
        if not self.ipfs_gateway.endswith("/"):
            self.ipfs_gateway += "/"

    @classmethod
    def from_env(cls) -> "RouterConfig":
        """
        Create a configuration from environment variables.

        Environment variables:
            TRUSTROUTER_CACHE_PATH: Cache file location (default: ~/.trustrouter/cache.json)
            TRUSTROUTER_CACHE_TTL_MS: Freshness window in milliseconds (default: 3600000)
            TRUSTROUTER_IPFS_GATEWAY: Gateway prefix for ipfs:// pointers (default: https://ipfs.io/ipfs/)
            TRUSTROUTER_BATCH_SIZE: Concurrent reads per batch (default: 10)

        Per-chain endpoint overrides ({CHAIN}_RPC_URL) are read at endpoint
        selection time, not here.

        Raises:
            ConfigurationError: If a numeric variable is not an integer
        """
        return cls(
            cache_path=Path(os.environ.get("TRUSTROUTER_CACHE_PATH", str(DEFAULT_CACHE_PATH))),
            cache_ttl_ms=_env_int("TRUSTROUTER_CACHE_TTL_MS", DEFAULT_CACHE_TTL_MS),
            ipfs_gateway=os.environ.get("TRUSTROUTER_IPFS_GATEWAY", DEFAULT_IPFS_GATEWAY),
            batch_size=_env_int("TRUSTROUTER_BATCH_SIZE", DEFAULT_BATCH_SIZE),
        )


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from None
