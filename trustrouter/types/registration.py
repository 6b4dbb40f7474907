"""Off-chain registration document models."""

from dataclasses import dataclass, field
from typing import Any


def _str_or_none(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def _str_list_or_none(value: Any) -> list[str] | None:
    if not isinstance(value, list):
        return None
    return [item for item in value if isinstance(item, str)]


@dataclass
class ServiceEntry:
    """One capability an agent exposes (a2a, mcp, web, oasf, ...)."""

    name: str
    endpoint: str
    version: str | None = None
    skills: list[str] | None = None
    domains: list[str] | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ServiceEntry":
        version = data.get("version")
        if isinstance(version, (int, float)) and not isinstance(version, bool):
            version = str(version)
        return cls(
            name=_str_or_none(data.get("name")) or "",
            endpoint=_str_or_none(data.get("endpoint")) or "",
            version=_str_or_none(version),
            skills=_str_list_or_none(data.get("skills")),
            domains=_str_list_or_none(data.get("domains")),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"name": self.name, "endpoint": self.endpoint}
        if self.version is not None:
            data["version"] = self.version
        if self.skills is not None:
            data["skills"] = list(self.skills)
        if self.domains is not None:
            data["domains"] = list(self.domains)
        return data


@dataclass
class RegistrationFile:
    """
    The registration document an agent's token URI points at.

    Every field is optional. Unknown keys in the source document are ignored
    and malformed values fall back to the defaults below, so an empty
    ``RegistrationFile()`` is the result of any failed resolution.
    """

    type: str | None = None
    name: str | None = None
    description: str | None = None
    image: str | None = None
    services: list[ServiceEntry] = field(default_factory=list)
    x402_support: bool = False
    active: bool | None = None
    supported_trust: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> "RegistrationFile":
        """Build from parsed JSON, tolerating any shape."""
        if not isinstance(data, dict):
            return cls()

        raw_services = data.get("services")
        if not isinstance(raw_services, list):
            # Early registration files used "endpoints"
            raw_services = data.get("endpoints")
        services = []
        if isinstance(raw_services, list):
            services = [
                ServiceEntry.from_dict(item) for item in raw_services if isinstance(item, dict)
            ]

        active = data.get("active")
        return cls(
            type=_str_or_none(data.get("type")),
            name=_str_or_none(data.get("name")),
            description=_str_or_none(data.get("description")),
            image=_str_or_none(data.get("image")),
            services=services,
            x402_support=data.get("x402Support") is True,
            active=active if isinstance(active, bool) else None,
            supported_trust=_str_list_or_none(data.get("supportedTrust")) or [],
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        for key, value in (
            ("type", self.type),
            ("name", self.name),
            ("description", self.description),
            ("image", self.image),
        ):
            if value is not None:
                data[key] = value
        data["services"] = [service.to_dict() for service in self.services]
        data["x402Support"] = self.x402_support
        if self.active is not None:
            data["active"] = self.active
        data["supportedTrust"] = list(self.supported_trust)
        return data

    @property
    def is_empty(self) -> bool:
        return self == RegistrationFile()

    def has_service(self, service_type: str) -> bool:
        """Case-insensitive match against service names; "x402" checks the payment flag."""
        wanted = service_type.lower()
        if wanted == "x402":
            return self.x402_support
        return any(service.name.lower() == wanted for service in self.services)

    def find_service(self, name: str) -> ServiceEntry | None:
        wanted = name.lower()
        for service in self.services:
            if service.name.lower() == wanted:
                return service
        return None
