"""TrustRouter exception classes.

Only ``NoLiveEndpointError`` and ``AgentNotFoundError`` (for explicit
single-id lookups) ever reach callers of the client. The remaining classes
describe failures that the core absorbs and records in ``Outcome`` values.
"""


class TrustRouterError(Exception):
    """Base exception for all TrustRouter errors."""

    def __init__(self, code: str, message: str) -> None:
        self.code = code
        self.message = message
        super().__init__(f"[{code}] {message}")


class ConfigurationError(TrustRouterError):
    """Raised when configuration is invalid or names an unsupported chain."""

    def __init__(self, message: str) -> None:
        super().__init__("CONFIGURATION_ERROR", message)


class NoLiveEndpointError(TrustRouterError):
    """Raised when every candidate RPC endpoint for a chain failed its probe."""

    def __init__(self, chain: str, env_var: str, tried: int = 0) -> None:
        super().__init__(
            "NO_LIVE_ENDPOINT",
            f"All {tried} RPC endpoints failed for {chain}. "
            f"Try setting {env_var} to a reachable endpoint.",
        )
        self.chain = chain
        self.env_var = env_var
        self.tried = tried


class AgentNotFoundError(TrustRouterError):
    """Raised when an explicitly requested agent does not exist."""

    def __init__(self, agent_id: int | str, chain: str) -> None:
        super().__init__("AGENT_NOT_FOUND", f"Agent {agent_id!r} not found on {chain}")
        self.agent_id = agent_id
        self.chain = chain


class RpcError(TrustRouterError):
    """Raised when a JSON-RPC request fails."""

    def __init__(self, message: str, code: str = "RPC_ERROR") -> None:
        super().__init__(code, message)


class CallRevertedError(RpcError):
    """Raised when a contract call reverts or the target has no code."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "CALL_REVERTED")


class RpcTimeoutError(RpcError):
    """Raised when an RPC request exceeds its deadline."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "RPC_TIMEOUT")


class RpcConnectionError(RpcError):
    """Raised on network-level failures and unusable HTTP responses."""

    def __init__(self, message: str) -> None:
        super().__init__(message, "RPC_CONNECTION_ERROR")


class MetadataUnresolvableError(TrustRouterError):
    """An agent's registration document is missing or malformed."""

    def __init__(self, message: str) -> None:
        super().__init__("METADATA_UNRESOLVABLE", message)


class ReputationUnavailableError(TrustRouterError):
    """The reputation registry reverted or is not deployed."""

    def __init__(self, message: str) -> None:
        super().__init__("REPUTATION_UNAVAILABLE", message)


class ValidationUnavailableError(TrustRouterError):
    """The validation registry reverted or is not deployed."""

    def __init__(self, message: str) -> None:
        super().__init__("VALIDATION_UNAVAILABLE", message)


class CacheUnreadableError(TrustRouterError):
    """The cache file is missing, unreadable or corrupt."""

    def __init__(self, message: str) -> None:
        super().__init__("CACHE_UNREADABLE", message)


class CacheUnwritableError(TrustRouterError):
    """The cache file could not be written."""

    def __init__(self, message: str) -> None:
        super().__init__("CACHE_UNWRITABLE", message)
