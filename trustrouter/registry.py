"""
Typed reads against the identity, reputation and validation registries.

Identity reads raise; they are the discovery signal. Reputation and
validation reads never raise: an undeployed or reverting registry is reported
as an ``Outcome`` holding zero counts.
"""

from trustrouter import abi
from trustrouter.abi import ABIDecodeError
from trustrouter.chains import RegistryAddresses
from trustrouter.exceptions import (
    CallRevertedError,
    ReputationUnavailableError,
    RpcError,
    ValidationUnavailableError,
)
from trustrouter.logging import get_logger
from trustrouter.transport import RpcTransport
from trustrouter.types.outcome import Outcome, ReputationSummary, ValidationSummary

logger = get_logger("registry")

# getMetadata keys tried, in order, when tokenURI is unavailable
AGENT_URI_METADATA_KEYS = ("agentURI", "tokenURI", "metadata", "url")


class RegistryReader:
    """Read-only view of one chain's registries through one transport."""

    def __init__(self, transport: RpcTransport, registries: RegistryAddresses) -> None:
        self.transport = transport
        self.registries = registries

    # ─── Identity ────────────────────────────────────────────────────

    async def owner_of(self, agent_id: int) -> str:
        """
        Read ``ownerOf(agentId)``.

        Raises:
            CallRevertedError: If the id is not assigned
            RpcError: On transport failures
        """
        result = await self.transport.eth_call(
            self.registries.identity, abi.encode_call("ownerOf(uint256)", agent_id)
        )
        try:
            return abi.decode_address(result)
        except ABIDecodeError as e:
            raise RpcError(f"Malformed ownerOf({agent_id}) result: {e}") from e

    async def exists(self, agent_id: int) -> bool:
        """Probe whether ``agent_id`` is assigned. Any failure counts as absent."""
        try:
            await self.owner_of(agent_id)
        except CallRevertedError:
            return False
        except RpcError as e:
            logger.debug("Probe of agent %d failed: %s", agent_id, e)
            return False
        return True

    async def token_uri(self, agent_id: int) -> str:
        result = await self.transport.eth_call(
            self.registries.identity, abi.encode_call("tokenURI(uint256)", agent_id)
        )
        try:
            return abi.decode_string(result)
        except ABIDecodeError as e:
            raise RpcError(f"Malformed tokenURI({agent_id}) result: {e}") from e

    async def get_metadata(self, agent_id: int, key: str) -> bytes:
        result = await self.transport.eth_call(
            self.registries.identity,
            abi.encode_call("getMetadata(uint256,string)", agent_id, key),
        )
        try:
            return abi.decode_bytes(result)
        except ABIDecodeError as e:
            raise RpcError(f"Malformed getMetadata({agent_id}, {key}) result: {e}") from e

    async def agent_uri(self, agent_id: int) -> str | None:
        """
        Resolve the metadata pointer for an agent.

        ``tokenURI`` first, then the ``getMetadata`` keys in
        ``AGENT_URI_METADATA_KEYS``. Returns None when nothing is set.
        """
        try:
            uri = await self.token_uri(agent_id)
            if uri:
                return uri
        except RpcError as e:
            logger.debug("tokenURI(%d) unavailable: %s", agent_id, e)

        for key in AGENT_URI_METADATA_KEYS:
            try:
                value = await self.get_metadata(agent_id, key)
            except RpcError:
                continue
            if value:
                return value.decode("utf-8", errors="replace")
        return None

    # ─── Reputation ──────────────────────────────────────────────────

    async def get_clients(self, agent_id: int) -> list[str]:
        result = await self.transport.eth_call(
            self.registries.reputation, abi.encode_call("getClients(uint256)", agent_id)
        )
        return abi.decode_address_array(result)

    async def reputation_summary(self, agent_id: int) -> Outcome[ReputationSummary]:
        """
        Aggregate feedback from every client of an agent.

        The summary value is a fixed-point number with ``decimals`` places and
        is clamped into 0-100.
        """
        try:
            clients = await self.get_clients(agent_id)
            if not clients:
                return Outcome.ok(ReputationSummary())

            result = await self.transport.eth_call(
                self.registries.reputation,
                abi.encode_call(
                    "getSummary(uint256,address[],string,string)", agent_id, clients, "", ""
                ),
            )
            count = abi.decode_uint(result, 0)
            value = abi.decode_int(result, 1)
            decimals = abi.decode_uint(result, 2)
        except (RpcError, ABIDecodeError) as e:
            error = ReputationUnavailableError(f"agent {agent_id}: {e}")
            logger.debug("%s", error)
            return Outcome.fallback(ReputationSummary(), error)

        avg = value / 10**decimals
        return Outcome.ok(
            ReputationSummary(feedback_count=count, avg_score=min(100.0, max(0.0, avg)))
        )

    # ─── Validation ──────────────────────────────────────────────────

    async def validation_summary(self, agent_id: int) -> Outcome[ValidationSummary]:
        """Summarize validation proofs across all validators and tags."""
        try:
            result = await self.transport.eth_call(
                self.registries.validation,
                abi.encode_call("getSummary(uint256,address[],string)", agent_id, [], ""),
            )
            count = abi.decode_uint(result, 0)
            avg = abi.decode_uint(result, 1)
        except (RpcError, ABIDecodeError) as e:
            error = ValidationUnavailableError(f"agent {agent_id}: {e}")
            logger.debug("%s", error)
            return Outcome.fallback(ValidationSummary(), error)

        return Outcome.ok(
            ValidationSummary(validation_count=count, validation_avg=float(min(avg, 100)))
        )
