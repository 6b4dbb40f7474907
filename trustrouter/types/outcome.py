"""Typed results for reads that degrade to a default instead of failing."""

from dataclasses import dataclass, field
from typing import Generic, TypeVar

from trustrouter.exceptions import TrustRouterError
from trustrouter.types.agents import AgentRecord

T = TypeVar("T")


@dataclass
class Outcome(Generic[T]):
    """
    A value plus the error that forced it to a fallback, if any.

    ``Outcome.ok(v)`` is a real read; ``Outcome.fallback(default, err)`` is
    the documented default after ``err``.
    """

    value: T
    error: TrustRouterError | None = None

    @property
    def degraded(self) -> bool:
        return self.error is not None

    @classmethod
    def ok(cls, value: T) -> "Outcome[T]":
        return cls(value=value)

    @classmethod
    def fallback(cls, value: T, error: TrustRouterError) -> "Outcome[T]":
        return cls(value=value, error=error)


@dataclass
class ReputationSummary:
    """Aggregated feedback for one agent."""

    feedback_count: int = 0
    avg_score: float = 0.0


@dataclass
class ValidationSummary:
    """Aggregated validation proofs for one agent."""

    validation_count: int = 0
    validation_avg: float = 0.0


@dataclass
class FetchResult:
    """Records assembled for an id range plus the reason each missing id was dropped."""

    agents: list[AgentRecord] = field(default_factory=list)
    failures: dict[int, TrustRouterError] = field(default_factory=dict)

    @property
    def fetched_ids(self) -> list[int]:
        return [agent.agent_id for agent in self.agents]
