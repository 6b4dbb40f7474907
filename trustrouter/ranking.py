"""
Trust scoring and ranking.

Trust score = 60% reputation (average on-chain feedback, 0-100) + 40%
activity (log-scaled feedback count, 0-100), rounded to two decimals.
"""

import math
from dataclasses import dataclass

from trustrouter.types.agents import AgentRecord, ScoredAgent

REPUTATION_WEIGHT = 0.6
ACTIVITY_WEIGHT = 0.4
RELEVANCE_BONUS = 10.0
DEFAULT_LIMIT = 20

SORT_FIELDS = ("reputation", "name", "recent")


@dataclass
class MatchOptions:
    """Filtering and ordering for ``rank_agents``."""

    task: str | None = None  # Whitespace-separated keywords
    service_type: str | None = None  # Service name, or "x402" for the payment flag
    sort: str = "reputation"  # "reputation", "name" or "recent"
    limit: int = DEFAULT_LIMIT


def compute_trust_score(agent: AgentRecord) -> float:
    """Composite 0-100 score; monotonic in both feedback count and average."""
    reputation = min(100.0, max(0.0, agent.avg_score))
    activity = 0.0
    if agent.feedback_count > 0:
        activity = min(100.0, 25 * math.log10(agent.feedback_count + 1))
    return round(REPUTATION_WEIGHT * reputation + ACTIVITY_WEIGHT * activity, 2)


def _haystack(agent: AgentRecord) -> str:
    registration = agent.registration
    return f"{registration.name or ''} {registration.description or ''}".casefold()


def rank_agents(agents: list[AgentRecord], options: MatchOptions | None = None) -> list[ScoredAgent]:
    """
    Score, filter, sort and truncate agents.

    The keyword relevance bonus (up to 10 points) is added on top of the
    trust score without re-clamping, so a ranked score can exceed 100.
    Ties keep input order; sort by id for a stable result across calls.
    """
    options = options or MatchOptions()
    scored = [ScoredAgent(agent=agent, trust_score=compute_trust_score(agent)) for agent in agents]

    if options.service_type:
        scored = [s for s in scored if s.agent.registration.has_service(options.service_type)]

    if options.task:
        keywords = options.task.casefold().split()
        if keywords:
            matched: list[ScoredAgent] = []
            for s in scored:
                haystack = _haystack(s.agent)
                hits = sum(1 for keyword in keywords if keyword in haystack)
                if hits:
                    bonus = hits / len(keywords) * RELEVANCE_BONUS
                    matched.append(ScoredAgent(agent=s.agent, trust_score=s.trust_score + bonus))
            scored = matched

    sort_field = options.sort or "reputation"
    if sort_field == "name":
        scored.sort(key=lambda s: ((s.agent.registration.name or "").casefold(), s.agent.registration.name or ""))
    elif sort_field == "recent":
        # Higher id = registered more recently
        scored.sort(key=lambda s: s.agent.agent_id, reverse=True)
    else:
        scored.sort(key=lambda s: s.trust_score, reverse=True)

    return scored[: max(0, options.limit)]
