"""Cached chain snapshot model."""

from dataclasses import dataclass, field
from typing import Any

from trustrouter.types.agents import AgentRecord


@dataclass
class CacheSnapshot:
    """Per-chain view of everything fetched so far."""

    timestamp: int  # epoch milliseconds
    total_agents: int = 0
    agents: dict[int, AgentRecord] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CacheSnapshot":
        raw_agents = data.get("agents") or {}
        if not isinstance(raw_agents, dict):
            raise ValueError("agents must be a mapping")
        return cls(
            timestamp=int(data["timestamp"]),
            total_agents=int(data.get("totalAgents", 0)),
            agents={int(key): AgentRecord.from_dict(value) for key, value in raw_agents.items()},
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "totalAgents": self.total_agents,
            "agents": {
                str(agent_id): self.agents[agent_id].to_dict()
                for agent_id in sorted(self.agents)
            },
        }

    def covers(self, start: int, end: int) -> bool:
        """True when every known id in ``[start, end)`` is cached."""
        return all(
            agent_id in self.agents for agent_id in range(start, min(end, self.total_agents))
        )

    def slice(self, start: int, end: int) -> list[AgentRecord]:
        return [
            self.agents[agent_id]
            for agent_id in range(start, min(end, self.total_agents))
            if agent_id in self.agents
        ]
