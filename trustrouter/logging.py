"""
TrustRouter logging utilities.

Provides configurable logging for JSON-RPC traffic, discovery, fetching and
caching. RPC endpoint URLs often carry provider API keys in their path or
query string, so every URL that reaches a log record goes through
``redact_url`` first.
"""

import logging
import re
from typing import Any
from urllib.parse import urlsplit, urlunsplit

# Create package loggers
_sdk_logger = logging.getLogger("trustrouter")
_rpc_logger = logging.getLogger("trustrouter.rpc")

# Patterns for sensitive data that should be masked
_SENSITIVE_PATTERNS = [
    # Key-bearing query parameters
    (re.compile(r"([?&](?:api[_-]?key|apikey|key|token|auth)=)[^&\s]+", re.IGNORECASE), r"\1[REDACTED]"),
    # Provider-style path keys: /v2/<key>, /v3/<key>
    (re.compile(r"(/v[0-9]+/)[A-Za-z0-9_\-]{16,}"), r"\1[REDACTED]"),
    # Any other long opaque path segment
    (re.compile(r"(/)[A-Za-z0-9_\-]{24,}(?=[/?#\s\"']|$)"), r"\1[REDACTED]"),
    # Basic-auth credentials embedded in a URL
    (re.compile(r"(https?://)[^/@\s:]+:[^/@\s]+@"), r"\1[REDACTED]@"),
]

# Path segments at least this long that look like opaque keys are masked
_MIN_KEY_SEGMENT = 24
_KEY_SEGMENT = re.compile(r"^[A-Za-z0-9_\-]+$")


def configure_logging(
    level: int = logging.INFO,
    rpc_level: int | None = None,
    handler: logging.Handler | None = None,
    format_string: str | None = None,
) -> None:
    """
    Configure TrustRouter logging.

    Args:
        level: Default log level for all package loggers (default: INFO)
        rpc_level: Log level for JSON-RPC request/response logging (default: same as level)
        handler: Custom handler to use (default: StreamHandler to stderr)
        format_string: Custom format string (default: includes timestamp, level, logger name)

    Example:
        ```python
        import logging
        from trustrouter.logging import configure_logging

        # Trace every eth_call
        configure_logging(level=logging.INFO, rpc_level=logging.DEBUG)
        ```
    """
    if format_string is None:
        format_string = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    formatter = logging.Formatter(format_string)

    if handler is None:
        handler = logging.StreamHandler()

    handler.setFormatter(formatter)

    _sdk_logger.setLevel(level)
    _sdk_logger.addHandler(handler)

    _rpc_logger.setLevel(rpc_level if rpc_level is not None else level)


def get_logger(name: str | None = None) -> logging.Logger:
    """
    Get a TrustRouter logger.

    Args:
        name: Logger name suffix (e.g., "rpc", "cache"). If None, returns the package logger.

    Returns:
        Logger instance
    """
    if name is None:
        return _sdk_logger
    return logging.getLogger(f"trustrouter.{name}")


def mask_sensitive_data(text: str) -> str:
    """
    Mask API keys and credentials in a string.

    Args:
        text: Text that may contain key-bearing URLs

    Returns:
        Text with sensitive data masked
    """
    result = text
    for pattern, replacement in _SENSITIVE_PATTERNS:
        result = pattern.sub(replacement, result)
    return result


def redact_url(url: str) -> str:
    """
    Return a loggable form of an endpoint URL.

    Drops credentials, replaces a query string with ``?[REDACTED]`` and masks
    any long opaque path segment. Scheme, host and the readable part of the
    path are kept.

    Example:
        >>> redact_url("https://eth-mainnet.g.alchemy.com/v2/abcdefghijklmnopqrstuvwxyz012345")
        'https://eth-mainnet.g.alchemy.com/v2/[REDACTED]'
    """
    try:
        parts = urlsplit(url)
        port = parts.port
    except ValueError:
        return mask_sensitive_data(url)

    if not parts.scheme or not parts.netloc:
        return mask_sensitive_data(url)

    host = parts.hostname or ""
    if port:
        host = f"{host}:{port}"

    segments = []
    for segment in parts.path.split("/"):
        if len(segment) >= _MIN_KEY_SEGMENT and _KEY_SEGMENT.match(segment):
            segments.append("[REDACTED]")
        else:
            segments.append(segment)

    query = "[REDACTED]" if parts.query else ""
    return urlunsplit((parts.scheme, host, "/".join(segments), query, ""))


def log_rpc_call(
    url: str,
    method: str,
    params: list[Any] | None = None,
) -> None:
    """
    Log a JSON-RPC request at DEBUG level.

    Args:
        url: Endpoint URL (redacted before logging)
        method: JSON-RPC method name
        params: Request params (optional)
    """
    if not _rpc_logger.isEnabledFor(logging.DEBUG):
        return

    log_parts = [f"{method} -> {redact_url(url)}"]

    if params:
        log_parts.append(f"params={_preview(params)}")

    _rpc_logger.debug(" | ".join(log_parts))


def log_rpc_result(
    url: str,
    method: str,
    status_code: int | None = None,
    error: str | None = None,
    elapsed_ms: float | None = None,
) -> None:
    """
    Log a JSON-RPC response at DEBUG level.

    Args:
        url: Endpoint URL (redacted before logging)
        method: JSON-RPC method name
        status_code: HTTP status code (optional)
        error: Error description if the call failed (optional)
        elapsed_ms: Request duration in milliseconds (optional)
    """
    if not _rpc_logger.isEnabledFor(logging.DEBUG):
        return

    log_parts = [f"{method} <- {redact_url(url)}"]

    if status_code is not None:
        log_parts.append(f"status={status_code}")

    if elapsed_ms is not None:
        log_parts.append(f"elapsed={elapsed_ms:.2f}ms")

    if error:
        log_parts.append(f"error={mask_sensitive_data(error)}")

    _rpc_logger.debug(" | ".join(log_parts))


def _preview(value: Any, limit: int = 120) -> str:
    text = str(value)
    if len(text) > limit:
        return text[:limit] + "..."
    return text


# Export public API
__all__ = [
    "configure_logging",
    "get_logger",
    "mask_sensitive_data",
    "redact_url",
    "log_rpc_call",
    "log_rpc_result",
]
