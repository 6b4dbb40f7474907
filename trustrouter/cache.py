"""
Best-effort snapshot cache.

Snapshots are keyed by chain name. Reading a missing or corrupt cache yields
an empty map and a failed write is a no-op, so the cache can only ever make a
call faster, never make it fail. There is no locking: concurrent processes
race and the last writer wins.
"""

import json
import os
import tempfile
import time
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any

from trustrouter.config import DEFAULT_CACHE_PATH, DEFAULT_CACHE_TTL_MS, FetchOptions
from trustrouter.exceptions import CacheUnreadableError, CacheUnwritableError
from trustrouter.logging import get_logger
from trustrouter.types.agents import AgentRecord
from trustrouter.types.cache import CacheSnapshot
from trustrouter.types.outcome import Outcome

logger = get_logger("cache")

Snapshots = dict[str, CacheSnapshot]


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


class CacheStore(ABC):
    """
    Abstract snapshot store.

    Backends implement ``_read`` and ``_write`` over the serialized layout
    (chain -> {timestamp, totalAgents, agents}); freshness and merging are
    shared.
    """

    def __init__(
        self,
        ttl_ms: int = DEFAULT_CACHE_TTL_MS,
        clock: Callable[[], int] | None = None,
    ) -> None:
        """
        Args:
            ttl_ms: Freshness window in milliseconds
            clock: Returns the current time in epoch milliseconds
        """
        self.ttl_ms = ttl_ms
        self._clock = clock or now_ms

    @abstractmethod
    def _read(self) -> dict[str, Any] | None:
        """Return the raw layout, None if absent. Raise CacheUnreadableError if corrupt."""
        pass

    @abstractmethod
    def _write(self, raw: dict[str, Any]) -> None:
        """Persist the raw layout. Raise CacheUnwritableError on failure."""
        pass

    def now(self) -> int:
        return self._clock()

    def load_outcome(self) -> Outcome[Snapshots]:
        """Load every snapshot, reporting why the result is empty if it degraded."""
        try:
            raw = self._read()
        except CacheUnreadableError as e:
            logger.warning("Ignoring cache: %s", e)
            return Outcome.fallback({}, e)

        if raw is None:
            return Outcome.ok({})
        if not isinstance(raw, dict):
            error = CacheUnreadableError("top-level value is not an object")
            logger.warning("Ignoring cache: %s", error)
            return Outcome.fallback({}, error)

        snapshots: Snapshots = {}
        for chain, data in raw.items():
            try:
                snapshots[chain] = CacheSnapshot.from_dict(data)
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                logger.warning("Dropping corrupt cache entry for %s: %s", chain, e)
        return Outcome.ok(snapshots)

    def load(self) -> Snapshots:
        """Load every snapshot; empty when absent or unreadable."""
        return self.load_outcome().value

    def save(self, snapshots: Snapshots) -> Outcome[bool]:
        """Write every snapshot. Failure is logged and reported, never raised."""
        raw = {chain: snapshot.to_dict() for chain, snapshot in snapshots.items()}
        try:
            self._write(raw)
        except CacheUnwritableError as e:
            logger.warning("Cache not saved: %s", e)
            return Outcome.fallback(False, e)
        return Outcome.ok(True)

    def is_fresh(self, snapshot: CacheSnapshot) -> bool:
        return self.now() - snapshot.timestamp < self.ttl_ms

    def get_if_fresh(
        self, chain: str, options: FetchOptions | None = None
    ) -> CacheSnapshot | None:
        """Return the chain's snapshot if it is inside the TTL and no refresh is forced."""
        if options is not None and options.force_refresh:
            return None
        snapshot = self.load().get(chain)
        if snapshot is not None and self.is_fresh(snapshot):
            return snapshot
        return None

    def merge(
        self,
        chain: str,
        agents: Iterable[AgentRecord] = (),
        total_agents: int | None = None,
    ) -> CacheSnapshot:
        """
        Write fetched records through to the store.

        Records replace cached entries with the same id; other cached ids are
        kept. ``totalAgents`` only ever grows and the timestamp moves to now.

        Returns:
            The merged snapshot (returned even when the write failed)
        """
        snapshots = self.load()
        current = self.now()
        snapshot = snapshots.get(chain) or CacheSnapshot(timestamp=current)

        for agent in agents:
            snapshot.agents[agent.agent_id] = agent

        candidates = [snapshot.total_agents]
        if total_agents is not None:
            candidates.append(total_agents)
        if snapshot.agents:
            candidates.append(max(snapshot.agents) + 1)
        snapshot.total_agents = max(candidates)
        snapshot.timestamp = current

        snapshots[chain] = snapshot
        self.save(snapshots)
        return snapshot


class JsonFileCacheStore(CacheStore):
    """Snapshots in one pretty-printed JSON file (default ~/.trustrouter/cache.json)."""

    def __init__(
        self,
        path: str | Path = DEFAULT_CACHE_PATH,
        ttl_ms: int = DEFAULT_CACHE_TTL_MS,
        clock: Callable[[], int] | None = None,
    ) -> None:
        super().__init__(ttl_ms=ttl_ms, clock=clock)
        self.path = Path(path).expanduser()

    def _read(self) -> dict[str, Any] | None:
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            raise CacheUnreadableError(f"{self.path}: {e}") from e

        try:
            return json.loads(text)
        except ValueError as e:
            raise CacheUnreadableError(f"{self.path} is not valid JSON: {e}") from e

    def _write(self, raw: dict[str, Any]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=".cache-", suffix=".json", dir=str(self.path.parent)
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    json.dump(raw, handle, indent=2)
                os.replace(tmp_name, self.path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            raise CacheUnwritableError(f"{self.path}: {e}") from e


class MemoryCacheStore(CacheStore):
    """In-process store holding the serialized layout; used by tests and one-shot runs."""

    def __init__(
        self,
        ttl_ms: int = DEFAULT_CACHE_TTL_MS,
        clock: Callable[[], int] | None = None,
    ) -> None:
        super().__init__(ttl_ms=ttl_ms, clock=clock)
        self._raw: str | None = None

    def _read(self) -> dict[str, Any] | None:
        if self._raw is None:
            return None
        try:
            return json.loads(self._raw)
        except ValueError as e:
            raise CacheUnreadableError(f"in-memory cache is corrupt: {e}") from e

    def _write(self, raw: dict[str, Any]) -> None:
        self._raw = json.dumps(raw)
