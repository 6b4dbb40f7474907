"""
Batch fetching of agent records.

Ids are fetched in fixed-size batches. Inside a batch every per-id pipeline
runs concurrently and the batch is joined before the next one starts, which
bounds concurrent requests to the batch size. One id failing never affects
another id's result.
"""

import asyncio
from collections.abc import Iterable

from trustrouter.exceptions import (
    AgentNotFoundError,
    CallRevertedError,
    RpcError,
    TrustRouterError,
)
from trustrouter.logging import get_logger
from trustrouter.registry import RegistryReader
from trustrouter.resolver import RegistrationResolver
from trustrouter.types.agents import UNKNOWN_OWNER, AgentRecord
from trustrouter.types.outcome import FetchResult

logger = get_logger("fetch")

DEFAULT_BATCH_SIZE = 10


class BatchFetcher:
    """Assembles ``AgentRecord``s from registry reads and registration documents."""

    def __init__(
        self,
        reader: RegistryReader,
        resolver: RegistrationResolver,
        chain: str,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ) -> None:
        self.reader = reader
        self.resolver = resolver
        self.chain = chain
        self.batch_size = max(1, batch_size)

    async def fetch_one(self, agent_id: int) -> AgentRecord:
        """
        Fetch a single agent.

        Raises:
            AgentNotFoundError: If ``ownerOf`` reverts for the id
            RpcError: If neither owner nor metadata pointer could be read
        """
        owner_result, pointer_result = await asyncio.gather(
            self.reader.owner_of(agent_id),
            self.reader.agent_uri(agent_id),
            return_exceptions=True,
        )

        if isinstance(owner_result, CallRevertedError):
            raise AgentNotFoundError(agent_id, self.chain) from owner_result
        if isinstance(pointer_result, BaseException):
            raise pointer_result
        if isinstance(owner_result, RpcError):
            if pointer_result is None:
                # Nothing about this id could be read; leave it for the next refresh
                raise owner_result
            logger.debug("Owner of agent %d unreadable: %s", agent_id, owner_result)
            owner = UNKNOWN_OWNER
        elif isinstance(owner_result, BaseException):
            raise owner_result
        else:
            owner = owner_result

        registration = await self.resolver.resolve(pointer_result)
        reputation, validation = await asyncio.gather(
            self.reader.reputation_summary(agent_id),
            self.reader.validation_summary(agent_id),
        )

        return AgentRecord(
            agent_id=agent_id,
            owner=owner,
            registration=registration,
            feedback_count=reputation.value.feedback_count,
            avg_score=reputation.value.avg_score,
            validation_count=validation.value.validation_count,
            validation_avg=validation.value.validation_avg,
        )

    async def fetch_range(self, start: int, end: int) -> FetchResult:
        """Fetch every id in ``[start, end)``."""
        return await self.fetch_ids(range(max(0, start), end))

    async def fetch_ids(self, agent_ids: Iterable[int]) -> FetchResult:
        """
        Fetch the given ids batch by batch.

        Returns:
            FetchResult with records in id order; ids that could not be
            assembled appear in ``failures`` with the error that dropped them
        """
        ids = sorted(set(agent_ids))
        result = FetchResult()

        for offset in range(0, len(ids), self.batch_size):
            batch = ids[offset : offset + self.batch_size]
            outcomes = await asyncio.gather(
                *(self.fetch_one(agent_id) for agent_id in batch),
                return_exceptions=True,
            )
            for agent_id, outcome in zip(batch, outcomes):
                if isinstance(outcome, AgentRecord):
                    result.agents.append(outcome)
                elif isinstance(outcome, TrustRouterError):
                    logger.debug("Agent %d omitted: %s", agent_id, outcome)
                    result.failures[agent_id] = outcome
                elif isinstance(outcome, Exception):
                    logger.warning(
                        "Agent %d omitted after unexpected error",
                        agent_id,
                        exc_info=outcome,
                    )
                    result.failures[agent_id] = TrustRouterError(
                        "FETCH_FAILED", f"{type(outcome).__name__}: {outcome}"
                    )
                else:
                    raise outcome

        if ids:
            logger.info(
                "Fetched %d/%d agents on %s (%d omitted)",
                len(result.agents),
                len(ids),
                self.chain,
                len(result.failures),
            )
        return result
