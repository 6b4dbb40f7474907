"""
Agent discovery.

The identity registry has no ``totalSupply()``. Ids are assigned
sequentially from 0 without gaps, so existence is monotonic in the id and the
highest assigned id can be found with O(log N) ``ownerOf`` probes: double a
ceiling from the hint until a probe fails, then binary-search the boundary.
"""

from collections.abc import Awaitable, Callable

from trustrouter.logging import get_logger

logger = get_logger("discovery")

DEFAULT_HINT = 200
DEFAULT_CEILING = 100_000

ExistsProbe = Callable[[int], Awaitable[bool]]


async def find_max_agent_id(
    exists: ExistsProbe,
    hint: int = DEFAULT_HINT,
    ceiling: int = DEFAULT_CEILING,
) -> int:
    """
    Return the highest assigned agent id, or -1 if the registry is empty.

    Args:
        exists: Async probe returning True iff an id is assigned
        hint: First id probed; a good guess keeps the search short
        ceiling: Largest id ever probed

    Returns:
        Highest existing id (total agents = result + 1)
    """
    ceiling = max(1, ceiling)
    hint = min(max(1, hint), ceiling)
    probes = 0

    async def probe(agent_id: int) -> bool:
        nonlocal probes
        probes += 1
        return await exists(agent_id)

    if await probe(hint):
        lo = hint
        high = hint * 2
        while high <= ceiling and await probe(high):
            lo = high
            high *= 2
        # Past the ceiling nothing is probed; the answer is capped there
        hi = ceiling if high > ceiling else high - 1
    else:
        lo, hi = -1, hint - 1

    # Invariant: lo exists (or is -1), every id above hi is known absent or capped
    while lo < hi:
        mid = (lo + hi + 1) // 2
        if await probe(mid):
            lo = mid
        else:
            hi = mid - 1

    logger.debug("Discovered max agent id %d in %d probes (hint %d)", lo, probes, hint)
    return lo
