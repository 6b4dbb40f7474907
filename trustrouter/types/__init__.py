"""TrustRouter type definitions.

This module exports all data model types used by the package.
"""

from trustrouter.types.agents import UNKNOWN_OWNER, AgentRecord, ScoredAgent
from trustrouter.types.cache import CacheSnapshot
from trustrouter.types.outcome import (
    FetchResult,
    Outcome,
    ReputationSummary,
    ValidationSummary,
)
from trustrouter.types.registration import RegistrationFile, ServiceEntry

__all__ = [
    # Registration documents
    "ServiceEntry",
    "RegistrationFile",
    # Agents
    "AgentRecord",
    "ScoredAgent",
    "UNKNOWN_OWNER",
    # Cache
    "CacheSnapshot",
    # Read results
    "Outcome",
    "FetchResult",
    "ReputationSummary",
    "ValidationSummary",
]
