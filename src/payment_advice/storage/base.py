"""Sink interface shared by every artifact backend."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime


class Sink(ABC):
    """A place decoded PDFs are written to and served from.

    Every sink records the deadline of each artifact alongside it, so the
    expiry index lives wherever the bytes live.
    """

    name: str = "sink"

    @abstractmethod
    async def store(self, reference: str, content: bytes, *, created_at: datetime, expires_at: datetime) -> None:
        """Write an artifact. Must not return before the artifact is readable."""

    @abstractmethod
    async def deadline(self, reference: str) -> datetime | None:
        """Return the artifact's expiry, or None if it does not exist."""

    @abstractmethod
    async def read(self, reference: str) -> bytes:
        """Return the artifact's bytes.

        Raises:
            ArtifactNotFoundError: If the artifact does not exist
        """

    @abstractmethod
    async def expire(self, reference: str) -> None:
        """Delete an artifact. Deleting a missing artifact is not an error."""

    @abstractmethod
    async def purge_expired(self, now: datetime) -> int:
        """Delete every artifact whose deadline is at or before ``now``.

        Returns:
            Number of artifacts removed
        """

    @abstractmethod
    def public_url(self, reference: str) -> str:
        """URL the caller can download the artifact from."""

    async def close(self) -> None:
        """Release resources held by the sink."""
