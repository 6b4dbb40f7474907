"""Agent data models."""

from dataclasses import dataclass, field
from typing import Any

from trustrouter.types.registration import RegistrationFile

UNKNOWN_OWNER = "unknown"


@dataclass
class AgentRecord:
    """One registry entry with its registration document and trust signals."""

    agent_id: int
    owner: str = UNKNOWN_OWNER
    registration: RegistrationFile = field(default_factory=RegistrationFile)
    feedback_count: int = 0
    avg_score: float = 0.0  # 0 to 100
    validation_count: int = 0
    validation_avg: float = 0.0  # 0 to 100

    @property
    def display_name(self) -> str:
        return self.registration.name or "(unnamed)"

    @property
    def display_description(self) -> str:
        return self.registration.description or "(no description)"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AgentRecord":
        """Build from the camelCase form stored in the cache file."""
        return cls(
            agent_id=int(data["agentId"]),
            owner=str(data.get("owner") or UNKNOWN_OWNER),
            registration=RegistrationFile.from_dict(data.get("registration") or {}),
            feedback_count=int(data.get("feedbackCount", 0)),
            avg_score=float(data.get("avgScore", 0)),
            validation_count=int(data.get("validationCount", 0)),
            validation_avg=float(data.get("validationAvg", 0)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "agentId": self.agent_id,
            "owner": self.owner,
            "registration": self.registration.to_dict(),
            "feedbackCount": self.feedback_count,
            "avgScore": self.avg_score,
            "validationCount": self.validation_count,
            "validationAvg": self.validation_avg,
        }

    def to_detail(self, trust_score: float) -> dict[str, Any]:
        """Full single-agent view consumed by inspect-style presenters."""
        return {
            "agentId": self.agent_id,
            "name": self.registration.name,
            "description": self.registration.description,
            "owner": self.owner,
            "services": [service.to_dict() for service in self.registration.services],
            "x402Support": self.registration.x402_support,
            "supportedTrust": list(self.registration.supported_trust),
            "trustScore": trust_score,
            "feedbackCount": self.feedback_count,
            "avgScore": self.avg_score,
            "validationCount": self.validation_count,
            "validationAvg": self.validation_avg,
        }


@dataclass
class ScoredAgent:
    """An agent paired with the score computed for one ranking call."""

    agent: AgentRecord
    trust_score: float

    def to_summary(self) -> dict[str, Any]:
        registration = self.agent.registration
        x402_service = registration.find_service("x402")
        return {
            "agentId": self.agent.agent_id,
            "name": registration.name,
            "description": registration.description,
            "trustScore": self.trust_score,
            "feedbackCount": self.agent.feedback_count,
            "avgScore": self.agent.avg_score,
            "validationCount": self.agent.validation_count,
            "validationAvg": self.agent.validation_avg,
            "services": [service.to_dict() for service in registration.services],
            "x402Support": registration.x402_support,
            "x402Endpoint": x402_service.endpoint if x402_service else None,
            "owner": self.agent.owner,
        }
