"""
Property-based tests for agent discovery.

Feature: trustrouter
"""

import asyncio

from hypothesis import given, settings
from hypothesis import strategies as st

from trustrouter.discovery import find_max_agent_id

# Test strategies
max_id_strategy = st.integers(min_value=-1, max_value=20_000)
hint_strategy = st.integers(min_value=1, max_value=5_000)


class CountingProbe:
    """Registry where ids 0..max_id exist; counts every probe."""

    def __init__(self, max_id: int) -> None:
        self.max_id = max_id
        self.probed: list[int] = []

    async def __call__(self, agent_id: int) -> bool:
        self.probed.append(agent_id)
        return 0 <= agent_id <= self.max_id


def discover(max_id: int, **kwargs: int) -> tuple[int, CountingProbe]:
    probe = CountingProbe(max_id)
    return asyncio.run(find_max_agent_id(probe, **kwargs)), probe


@given(max_id=max_id_strategy, hint=hint_strategy)
@settings(max_examples=100)
def test_finds_highest_id(max_id: int, hint: int) -> None:
    """
    Property 1: Discovery finds the boundary

    For any registry holding ids 0..k and any hint, discovery SHALL return k
    (or -1 for an empty registry).
    """
    result, _ = discover(max_id, hint=hint)

    assert result == max_id, f"Expected {max_id}, got {result} (hint {hint})"


@given(max_id=max_id_strategy, hint=hint_strategy)
@settings(max_examples=100)
def test_probe_count_is_logarithmic(max_id: int, hint: int) -> None:
    """
    Property 2: Probe count is O(log N)

    The number of probes SHALL stay within a small multiple of the bit
    length of the ids involved.
    """
    _, probe = discover(max_id, hint=hint)
    bound = 2 * (max(max_id, 0) + hint).bit_length() + 4

    assert len(probe.probed) <= bound, (
        f"{len(probe.probed)} probes exceeds {bound} for k={max_id}, hint={hint}"
    )


@given(max_id=max_id_strategy, hint=hint_strategy)
@settings(max_examples=100)
def test_never_probes_negative_ids(max_id: int, hint: int) -> None:
    """Property 3: Only non-negative ids are ever probed."""
    _, probe = discover(max_id, hint=hint)

    assert all(agent_id >= 0 for agent_id in probe.probed), f"Probed {probe.probed}"


def test_forty_two_agents_with_default_hint() -> None:
    """Ids 0..41 with hint 200 resolve to 41."""
    result, _ = discover(41, hint=200)
    assert result == 41


def test_empty_registry() -> None:
    result, _ = discover(-1)
    assert result == -1


def test_single_agent() -> None:
    result, _ = discover(0, hint=1)
    assert result == 0


def test_hint_exactly_at_boundary() -> None:
    result, _ = discover(200, hint=200)
    assert result == 200


def test_result_capped_at_ceiling() -> None:
    """A registry larger than the ceiling reports the ceiling."""
    result, probe = discover(10**9, hint=200, ceiling=1_000)

    assert result == 1_000
    assert max(probe.probed) <= 1_000


def test_hint_above_ceiling_is_clamped() -> None:
    result, probe = discover(50, hint=5_000, ceiling=1_000)

    assert result == 50
    assert max(probe.probed) <= 1_000


def test_invalid_hint_is_clamped() -> None:
    result, _ = discover(7, hint=0)
    assert result == 7
