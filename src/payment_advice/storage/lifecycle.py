"""Ephemeral artifact lifecycle: naming, storing, reading and expiring."""

from __future__ import annotations

import re
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta

from payment_advice.exceptions import ArtifactNotFoundError, PaymentAdviceError, StorageError
from payment_advice.storage.base import Sink
from payment_advice.utils.clock import Clock, utc_now
from payment_advice.utils.logging import get_logger

logger = get_logger(__name__)

UNSAFE_CHARS_REGEX = re.compile(r"[^A-Za-z0-9_-]")

# 6 random bytes, 12 hex characters
TOKEN_BYTES = 6

DEFAULT_TTL = timedelta(minutes=10)


def sanitize_identifier(value: str) -> str:
    """Replace every character outside ``[A-Za-z0-9_-]`` with ``-``.

    Args:
        value: Caller supplied identifier

    Returns:
        String safe to use as a file name or storage key
    """
    return UNSAFE_CHARS_REGEX.sub("-", value) or "artifact"


def make_reference(identifier: str) -> str:
    """Build a collision-free reference from a logical identifier."""
    return f"{sanitize_identifier(identifier)}-{secrets.token_hex(TOKEN_BYTES)}"


@dataclass(frozen=True)
class EphemeralArtifact:
    """A stored PDF with a bounded lifetime."""

    reference: str
    url: str
    size: int
    created_at: datetime
    expires_at: datetime

    @property
    def ttl(self) -> timedelta:
        return self.expires_at - self.created_at


class ArtifactStore:
    """Stores artifacts in a sink and enforces their time-to-live."""

    def __init__(
        self,
        sink: Sink,
        ttl: timedelta = DEFAULT_TTL,
        clock: Clock = utc_now,
    ) -> None:
        """Initialize the store.

        Args:
            sink: Backend the bytes are written to
            ttl: Lifetime of every artifact
            clock: Source of the current time
        """
        self.sink = sink
        self.ttl = ttl
        self.clock = clock

    async def create(self, identifier: str, content: bytes) -> EphemeralArtifact:
        """Store ``content`` under a fresh reference derived from ``identifier``.

        The sink write completes before the artifact is returned, so the URL
        handed to the caller always points at readable data.
        """
        reference = make_reference(identifier)
        created_at = self.clock()
        expires_at = created_at + self.ttl

        try:
            await self.sink.store(
                reference,
                content,
                created_at=created_at,
                expires_at=expires_at,
            )
        except Exception as e:
            logger.error("artifact_store_failed", sink=self.sink.name, reference=reference, error=str(e))
            raise StorageError() from e

        logger.info(
            "artifact_stored",
            sink=self.sink.name,
            reference=reference,
            size=len(content),
            expires_at=expires_at.isoformat(),
        )

        return EphemeralArtifact(
            reference=reference,
            url=self.sink.public_url(reference),
            size=len(content),
            created_at=created_at,
            expires_at=expires_at,
        )

    async def open(self, reference: str) -> bytes:
        """Read an artifact.

        Args:
            reference: Reference returned by :meth:`create`

        Returns:
            The artifact's bytes

        Raises:
            ArtifactNotFoundError: If the artifact expired or never existed
            StorageError: If the sink cannot be read
        """
        if sanitize_identifier(reference) != reference:
            raise ArtifactNotFoundError()

        try:
            deadline = await self.sink.deadline(reference)
            if deadline is None:
                raise ArtifactNotFoundError()

            if deadline <= self.clock():
                await self.discard(reference)
                raise ArtifactNotFoundError()

            return await self.sink.read(reference)
        except PaymentAdviceError:
            raise
        except Exception as e:
            logger.error("artifact_read_failed", sink=self.sink.name, reference=reference, error=str(e))
            raise StorageError() from e

    async def discard(self, reference: str) -> None:
        """Delete an artifact, logging instead of raising on failure."""
        try:
            await self.sink.expire(reference)
            logger.info("artifact_expired", sink=self.sink.name, reference=reference)
        except Exception as e:
            logger.warning(
                "artifact_expire_failed",
                sink=self.sink.name,
                reference=reference,
                error=str(e),
            )

    async def sweep(self) -> int:
        """Remove every artifact whose deadline has passed.

        Returns:
            Number of artifacts removed
        """
        removed = await self.sink.purge_expired(self.clock())
        if removed:
            logger.info("artifacts_swept", sink=self.sink.name, removed=removed)
        return removed

    async def close(self) -> None:
        await self.sink.close()
