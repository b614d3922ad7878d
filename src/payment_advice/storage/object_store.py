"""Object store sink: artifacts are uploaded to a remote file host over HTTP."""

from __future__ import annotations

from datetime import datetime

import httpx

from payment_advice.exceptions import ArtifactNotFoundError
from payment_advice.storage.base import Sink
from payment_advice.utils.logging import get_logger

logger = get_logger(__name__)


class ObjectStoreSink(Sink):
    """PUTs each artifact to ``<upload_url>/<reference>.pdf``.

    Deadlines are only tracked in memory. After a restart the reaper no
    longer knows about earlier uploads and the remote host's own retention
    applies.
    """

    name = "object"

    def __init__(
        self,
        upload_url: str,
        public_url: str | None = None,
        client: httpx.AsyncClient | None = None,
        timeout: float = 60.0,
    ) -> None:
        """Initialize the sink.

        Args:
            upload_url: Base URL objects are written to
            public_url: Base URL objects are downloaded from (defaults to upload_url)
            client: Optional httpx client (for testing)
            timeout: Request timeout in seconds
        """
        self.upload_url = upload_url.rstrip("/")
        self.public_base_url = (public_url or upload_url).rstrip("/")
        self.timeout = timeout
        self._external_client = client
        self._internal_client: httpx.AsyncClient | None = None
        self._deadlines: dict[str, datetime] = {}

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._external_client:
            return self._external_client

        if self._internal_client is None:
            self._internal_client = httpx.AsyncClient(timeout=self.timeout)
        return self._internal_client

    def _object_url(self, reference: str) -> str:
        return f"{self.upload_url}/{reference}.pdf"

    async def store(self, reference: str, content: bytes, *, created_at: datetime, expires_at: datetime) -> None:
        client = self._get_client()
        response = await client.put(
            self._object_url(reference),
            content=content,
            headers={"Content-Type": "application/pdf"},
        )
        response.raise_for_status()
        self._deadlines[reference] = expires_at

        logger.debug("object_uploaded", reference=reference, status=response.status_code)

    async def deadline(self, reference: str) -> datetime | None:
        return self._deadlines.get(reference)

    async def read(self, reference: str) -> bytes:
        client = self._get_client()
        response = await client.get(self._object_url(reference))
        if response.status_code == 404:
            raise ArtifactNotFoundError()
        response.raise_for_status()
        return response.content

    async def expire(self, reference: str) -> None:
        client = self._get_client()
        response = await client.delete(self._object_url(reference))
        if response.status_code != 404:
            response.raise_for_status()
        # The deadline is dropped only once the remote object is gone
        self._deadlines.pop(reference, None)

    async def purge_expired(self, now: datetime) -> int:
        expired = [ref for ref, deadline in self._deadlines.items() if deadline <= now]
        removed = 0
        for reference in expired:
            try:
                await self.expire(reference)
                removed += 1
            except httpx.HTTPError as e:
                logger.warning("object_delete_failed", reference=reference, error=str(e))
        return removed

    def public_url(self, reference: str) -> str:
        return f"{self.public_base_url}/{reference}.pdf"

    async def close(self) -> None:
        """Close the internal HTTP client."""
        if self._internal_client:
            await self._internal_client.aclose()
            self._internal_client = None
