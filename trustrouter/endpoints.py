"""
Endpoint selection.

Candidates are probed one at a time, in order, with ``eth_blockNumber``; the
first endpoint that answers with a positive block number inside the deadline
is used for the rest of the call.
"""

import httpx

from trustrouter.chains import env_rpc_override, get_chain
from trustrouter.exceptions import NoLiveEndpointError, RpcError
from trustrouter.logging import get_logger, redact_url
from trustrouter.transport import RetryConfig, RpcTransport

logger = get_logger("endpoints")


class EndpointSelector:
    """
    Picks a live JSON-RPC endpoint per chain.

    Order of candidates: the ``{CHAIN}_RPC_URL`` environment override, then
    any configured overrides, then the built-in public endpoints. Duplicates
    are tried once.
    """

    def __init__(
        self,
        rpc_overrides: dict[str, list[str]] | None = None,
        timeout: float = 10.0,
        retry_config: RetryConfig | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Args:
            rpc_overrides: chain name -> endpoints tried before the built-in list
            timeout: Probe and per-call deadline in seconds
            retry_config: Rate-limit retry policy for selected transports
            client: Shared httpx client handed to every transport
        """
        self.rpc_overrides = rpc_overrides or {}
        self.timeout = timeout
        self.retry_config = retry_config
        self._client = client

    def candidates(self, chain: str) -> list[str]:
        """Ordered, de-duplicated endpoint list for ``chain``."""
        config = get_chain(chain)
        ordered: list[str] = []
        env_url = env_rpc_override(chain)
        if env_url:
            ordered.append(env_url)
        ordered.extend(self.rpc_overrides.get(chain, []))
        ordered.extend(config.rpc_urls)

        seen: set[str] = set()
        unique = []
        for url in ordered:
            if url not in seen:
                seen.add(url)
                unique.append(url)
        return unique

    def make_transport(self, url: str) -> RpcTransport:
        return RpcTransport(
            url,
            timeout=self.timeout,
            retry_config=self.retry_config,
            client=self._client,
        )

    async def probe(self, transport: RpcTransport) -> bool:
        """Return True if the endpoint reports a positive latest block."""
        try:
            block = await transport.block_number()
        except RpcError as e:
            logger.warning("Rejected endpoint %s: %s", transport.display_url, e)
            return False
        if block <= 0:
            logger.warning(
                "Rejected endpoint %s: reported block %d", transport.display_url, block
            )
            return False
        logger.debug("Endpoint %s live at block %d", transport.display_url, block)
        return True

    async def select(self, chain: str) -> RpcTransport:
        """
        Return a transport bound to the first live endpoint for ``chain``.

        Raises:
            ConfigurationError: If the chain is unsupported
            NoLiveEndpointError: If every candidate failed its probe
        """
        config = get_chain(chain)
        urls = self.candidates(chain)
        for url in urls:
            transport = self.make_transport(url)
            if await self.probe(transport):
                logger.info("Using %s for %s", redact_url(url), chain)
                return transport
            await transport.close()

        raise NoLiveEndpointError(chain, config.env_var, tried=len(urls))
