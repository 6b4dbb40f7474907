"""
TrustRouter async client.

Ties the pieces together: cache lookup, endpoint selection, discovery, batch
fetching with write-through caching, and ranking.
"""

from typing import Any

import httpx

from trustrouter.cache import CacheStore, JsonFileCacheStore
from trustrouter.chains import get_chain, supported_chains
from trustrouter.config import FetchOptions, RouterConfig
from trustrouter.discovery import find_max_agent_id
from trustrouter.endpoints import EndpointSelector
from trustrouter.exceptions import AgentNotFoundError, RpcError
from trustrouter.fetcher import BatchFetcher
from trustrouter.logging import get_logger
from trustrouter.ranking import MatchOptions, compute_trust_score, rank_agents
from trustrouter.registry import RegistryReader
from trustrouter.resolver import RegistrationResolver
from trustrouter.transport import RetryConfig
from trustrouter.types.agents import AgentRecord, ScoredAgent
from trustrouter.types.cache import CacheSnapshot

logger = get_logger()

FIND_POOL_SIZE = 100
LIST_POOL_MAX = 100
INSPECT_POOL_SIZE = 200


class TrustRouterClient:
    """
    Async client for discovering and ranking registered agents.

    One client corresponds to one logical caller. The endpoint picked for a
    chain is reused for the client's lifetime; nothing else is shared
    between clients except the cache file.

    Example:
        ```python
        import asyncio
        from trustrouter import FetchOptions, TrustRouterClient

        async def main():
            async with TrustRouterClient.from_env() as client:
                for result in await client.find("audit solidity", chain="base"):
                    print(result.agent.agent_id, result.agent.display_name, result.trust_score)

                fresh = FetchOptions(force_refresh=True)
                agent = await client.fetch_agent(42, chain="base", options=fresh)

        asyncio.run(main())
        ```
    """

    def __init__(
        self,
        config: RouterConfig | None = None,
        cache: CacheStore | None = None,
        http_client: httpx.AsyncClient | None = None,
        retry_config: RetryConfig | None = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            config: Runtime settings (default: RouterConfig())
            cache: Snapshot store (default: JSON file at config.cache_path)
            http_client: Shared httpx client; closed by the caller if supplied
            retry_config: Rate-limit retry policy for RPC calls
        """
        self.config = config or RouterConfig()
        self.cache = cache or JsonFileCacheStore(
            self.config.cache_path, ttl_ms=self.config.cache_ttl_ms
        )

        self._owns_http = http_client is None
        self._http = http_client or httpx.AsyncClient(
            timeout=max(self.config.rpc_timeout, self.config.metadata_timeout),
            follow_redirects=True,
        )

        self.selector = EndpointSelector(
            rpc_overrides=self.config.rpc_overrides,
            timeout=self.config.rpc_timeout,
            retry_config=retry_config,
            client=self._http,
        )
        self.resolver = RegistrationResolver(
            client=self._http,
            timeout=self.config.metadata_timeout,
            ipfs_gateway=self.config.ipfs_gateway,
        )
        self._readers: dict[str, RegistryReader] = {}

    @classmethod
    def from_env(cls, retry_config: RetryConfig | None = None) -> "TrustRouterClient":
        """
        Create a client configured from environment variables.

        See ``RouterConfig.from_env`` for the variables read.

        Raises:
            ConfigurationError: If a variable holds an invalid value
        """
        return cls(config=RouterConfig.from_env(), retry_config=retry_config)

    @staticmethod
    def supported_chains() -> list[str]:
        return supported_chains()

    async def close(self) -> None:
        """Close the client and release resources."""
        for reader in self._readers.values():
            await reader.transport.close()
        self._readers.clear()
        if self._owns_http:
            await self._http.aclose()

    async def __aenter__(self) -> "TrustRouterClient":
        """Async context manager entry."""
        return self

    async def __aexit__(self, *args: Any) -> None:
        """Async context manager exit - closes the client."""
        await self.close()

    # ─── Plumbing ────────────────────────────────────────────────────

    async def reader(self, chain: str) -> RegistryReader:
        """
        Registry reader bound to a live endpoint for ``chain``.

        Raises:
            ConfigurationError: If the chain is unsupported
            NoLiveEndpointError: If no endpoint answered
        """
        reader = self._readers.get(chain)
        if reader is None:
            chain_config = get_chain(chain)
            transport = await self.selector.select(chain)
            reader = RegistryReader(transport, chain_config.registries)
            self._readers[chain] = reader
        return reader

    def _fetcher(self, reader: RegistryReader, chain: str) -> BatchFetcher:
        return BatchFetcher(reader, self.resolver, chain, batch_size=self.config.batch_size)

    def _discovery_hint(self, chain: str) -> int:
        # A previous run's count, even stale, is the best starting guess
        previous = self.cache.load().get(chain)
        if previous is not None and previous.total_agents > 0:
            return previous.total_agents - 1
        return self.config.discovery_hint

    async def _discover(self, reader: RegistryReader, chain: str) -> int:
        max_id = await find_max_agent_id(
            reader.exists,
            hint=self._discovery_hint(chain),
            ceiling=self.config.discovery_ceiling,
        )
        logger.info("Discovered %d agents on %s", max_id + 1, chain)
        return max_id

    # ─── Queries ─────────────────────────────────────────────────────

    async def get_total_agents(
        self, chain: str = "ethereum", options: FetchOptions | None = None
    ) -> int:
        """
        Number of registered agents on ``chain``.

        Served from a fresh snapshot when possible; otherwise discovered and
        merged into the cache. The count never decreases.
        """
        get_chain(chain)
        cached = self.cache.get_if_fresh(chain, options)
        if cached is not None and cached.total_agents > 0:
            return cached.total_agents

        reader = await self.reader(chain)
        max_id = await self._discover(reader, chain)
        snapshot = self.cache.merge(chain, total_agents=max_id + 1)
        return snapshot.total_agents

    async def fetch_agents(
        self,
        chain: str = "ethereum",
        first: int = 50,
        skip: int = 0,
        options: FetchOptions | None = None,
    ) -> list[AgentRecord]:
        """
        Fetch agents with ids in ``[skip, skip + first)``, in id order.

        Fresh cached records are reused; only missing ids are read from the
        chain. Ids that cannot be assembled are left out.
        """
        get_chain(chain)
        start, end = max(0, skip), max(0, skip) + max(0, first)

        snapshot = self.cache.get_if_fresh(chain, options)
        if snapshot is not None and snapshot.total_agents > 0 and snapshot.covers(start, end):
            logger.debug("Serving agents %d-%d on %s from cache", start, end - 1, chain)
            return snapshot.slice(start, end)

        reader = await self.reader(chain)
        if snapshot is not None and snapshot.total_agents > 0:
            max_id = snapshot.total_agents - 1
        else:
            max_id = await self._discover(reader, chain)

        limit_end = min(end, max_id + 1)
        cached = _cached_records(snapshot, start, limit_end)
        missing = [agent_id for agent_id in range(start, limit_end) if agent_id not in cached]

        result = await self._fetcher(reader, chain).fetch_ids(missing)
        self.cache.merge(chain, result.agents, total_agents=max_id + 1)

        cached.update({agent.agent_id: agent for agent in result.agents})
        return [cached[agent_id] for agent_id in sorted(cached)]

    async def fetch_agent(
        self,
        agent_id: int,
        chain: str = "ethereum",
        options: FetchOptions | None = None,
    ) -> AgentRecord:
        """
        Fetch one agent by id.

        Raises:
            AgentNotFoundError: If the id is unassigned or could not be read
            NoLiveEndpointError: If no endpoint answered
        """
        get_chain(chain)
        if agent_id < 0:
            raise AgentNotFoundError(agent_id, chain)

        snapshot = self.cache.get_if_fresh(chain, options)
        if snapshot is not None and agent_id in snapshot.agents:
            return snapshot.agents[agent_id]

        reader = await self.reader(chain)
        try:
            agent = await self._fetcher(reader, chain).fetch_one(agent_id)
        except RpcError as e:
            logger.debug("Agent %d on %s unreadable: %s", agent_id, chain, e)
            raise AgentNotFoundError(agent_id, chain) from e

        self.cache.merge(chain, [agent])
        return agent

    async def find(
        self,
        task: str,
        service_type: str | None = None,
        chain: str = "ethereum",
        limit: int = 5,
        options: FetchOptions | None = None,
    ) -> list[ScoredAgent]:
        """Best agents for a task description, optionally limited to one service type."""
        agents = await self.fetch_agents(chain=chain, first=FIND_POOL_SIZE, options=options)
        return rank_agents(
            agents, MatchOptions(task=task, service_type=service_type, limit=limit)
        )

    async def list_agents(
        self,
        chain: str = "ethereum",
        sort: str = "reputation",
        limit: int = 20,
        service_type: str | None = None,
        options: FetchOptions | None = None,
    ) -> tuple[int, list[ScoredAgent]]:
        """
        Registered agents ranked by ``sort``.

        Returns:
            (total agents on the chain, ranked page)
        """
        total = await self.get_total_agents(chain, options)
        agents = await self.fetch_agents(
            chain=chain, first=min(limit * 2, LIST_POOL_MAX), options=options
        )
        ranked = rank_agents(
            agents, MatchOptions(service_type=service_type, sort=sort, limit=limit)
        )
        return total, ranked

    async def inspect(
        self,
        id_or_name: str,
        chain: str = "ethereum",
        options: FetchOptions | None = None,
    ) -> ScoredAgent:
        """
        Look an agent up by numeric id or by name.

        Names match case-insensitively: an exact match wins, otherwise the
        lowest id whose name contains the needle.

        Raises:
            AgentNotFoundError: If nothing matches
        """
        needle = id_or_name.strip()
        if needle.isdecimal() and str(int(needle)) == needle:
            agent = await self.fetch_agent(int(needle), chain=chain, options=options)
            return ScoredAgent(agent=agent, trust_score=compute_trust_score(agent))

        agents = await self.fetch_agents(chain=chain, first=INSPECT_POOL_SIZE, options=options)
        wanted = needle.casefold()
        exact = [a for a in agents if (a.registration.name or "").casefold() == wanted]
        partial = [a for a in agents if wanted and wanted in (a.registration.name or "").casefold()]
        matches = exact or partial
        if not matches:
            raise AgentNotFoundError(id_or_name, chain)
        agent = matches[0]
        return ScoredAgent(agent=agent, trust_score=compute_trust_score(agent))


def _cached_records(
    snapshot: CacheSnapshot | None, start: int, end: int
) -> dict[int, AgentRecord]:
    if snapshot is None:
        return {}
    return {
        agent_id: snapshot.agents[agent_id]
        for agent_id in range(start, end)
        if agent_id in snapshot.agents
    }
