"""
Registration document resolution.

Turns the pointer stored on-chain into a ``RegistrationFile``. Supported
pointers: inline ``data:`` URIs, ``ipfs://`` (and bare CIDs) via an HTTP
gateway, and plain ``http(s)://`` URLs. Resolution never raises; any failure
yields an empty ``RegistrationFile``.
"""

import asyncio
import base64
import json
import re
from typing import Any
from urllib.parse import unquote

import httpx

from trustrouter.exceptions import MetadataUnresolvableError
from trustrouter.logging import get_logger, redact_url
from trustrouter.types.outcome import Outcome
from trustrouter.types.registration import RegistrationFile

logger = get_logger("metadata")

_BARE_CID = re.compile(r"^(Qm[1-9A-HJ-NP-Za-km-z]{44}|b[a-z2-7]{58,})(/.*)?$")


class RegistrationResolver:
    """Fetches and parses agent registration documents."""

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        timeout: float = 8.0,
        ipfs_gateway: str = "https://ipfs.io/ipfs/",
    ) -> None:
        """
        Args:
            client: Shared httpx client (the resolver never closes it)
            timeout: Deadline for one document fetch in seconds
            ipfs_gateway: URL prefix that ipfs:// content ids are appended to
        """
        self._client = client
        self._owns_client = client is None
        self.timeout = timeout
        self.ipfs_gateway = ipfs_gateway if ipfs_gateway.endswith("/") else ipfs_gateway + "/"

    async def close(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout, follow_redirects=True)
        return self._client

    async def resolve(self, pointer: str | None) -> RegistrationFile:
        """Resolve a pointer, returning an empty file on any failure."""
        return (await self.resolve_outcome(pointer)).value

    async def resolve_outcome(self, pointer: str | None) -> Outcome[RegistrationFile]:
        """Resolve a pointer and report why it degraded, if it did."""
        if not pointer:
            return Outcome.ok(RegistrationFile())

        pointer = pointer.strip()
        try:
            if pointer.startswith("data:"):
                document = decode_data_uri(pointer)
            else:
                document = await self._fetch(self.to_fetch_url(pointer))
        except MetadataUnresolvableError as e:
            logger.debug("Registration unresolved: %s", e)
            return Outcome.fallback(RegistrationFile(), e)

        if not isinstance(document, dict):
            error = MetadataUnresolvableError(
                f"Registration document is a {type(document).__name__}, not an object"
            )
            logger.debug("Registration unresolved: %s", error)
            return Outcome.fallback(RegistrationFile(), error)

        return Outcome.ok(RegistrationFile.from_dict(document))

    def to_fetch_url(self, pointer: str) -> str:
        """
        Map a pointer onto the HTTP(S) URL it is fetched from.

        Raises:
            MetadataUnresolvableError: If the scheme is not supported
        """
        if pointer.startswith("ipfs://"):
            cid = pointer[len("ipfs://"):]
            if cid.startswith("ipfs/"):
                cid = cid[len("ipfs/"):]
            return self.ipfs_gateway + cid
        if _BARE_CID.match(pointer):
            return self.ipfs_gateway + pointer
        if pointer.startswith(("http://", "https://")):
            return pointer
        raise MetadataUnresolvableError(f"Unsupported pointer scheme: {pointer[:40]!r}")

    async def _fetch(self, url: str) -> Any:
        client = self._get_client()
        try:
            response = await asyncio.wait_for(client.get(url), timeout=self.timeout)
        except (httpx.HTTPError, httpx.InvalidURL, asyncio.TimeoutError) as e:
            raise MetadataUnresolvableError(
                f"Fetching {redact_url(url)} failed: {type(e).__name__}"
            ) from e
        except ValueError as e:
            # httpx rejects some malformed URLs with a plain ValueError
            raise MetadataUnresolvableError(
                f"Fetching {redact_url(url)} failed: {type(e).__name__}"
            ) from e

        if not response.is_success:
            raise MetadataUnresolvableError(
                f"Fetching {redact_url(url)} returned HTTP {response.status_code}"
            )

        try:
            return json.loads(response.text)
        except ValueError as e:
            raise MetadataUnresolvableError(
                f"Document at {redact_url(url)} is not valid JSON"
            ) from e


def decode_data_uri(uri: str) -> Any:
    """
    Decode an inline ``data:`` URI carrying a JSON document.

    Raises:
        MetadataUnresolvableError: If the URI or its content is malformed
    """
    header, sep, payload = uri[len("data:"):].partition(",")
    if not sep:
        raise MetadataUnresolvableError("data: URI has no payload separator")

    try:
        if header.lower().endswith(";base64"):
            padded = payload.strip() + "=" * (-len(payload.strip()) % 4)
            text = base64.b64decode(padded).decode("utf-8")
        else:
            text = unquote(payload)
        return json.loads(text)
    except ValueError as e:
        raise MetadataUnresolvableError(f"data: URI content is malformed: {e}") from e
