"""Database sink: one ``stored_artifact`` row per artifact."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from sqlalchemy import delete, select

from payment_advice.db.engine import create_session_factory
from payment_advice.db.models import Base, StoredArtifact
from payment_advice.exceptions import ArtifactNotFoundError
from payment_advice.storage.base import Sink
from payment_advice.utils.logging import get_logger

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

logger = get_logger(__name__)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class DatabaseSink(Sink):
    """Stores artifacts in a SQL table and serves them by token."""

    name = "database"

    def __init__(self, engine: AsyncEngine, public_base_url: str) -> None:
        """Initialize the sink.

        Args:
            engine: Async engine for the artifact database
            public_base_url: Base URL of this service
        """
        self.engine = engine
        self.public_base_url = public_base_url.rstrip("/")
        self._session_factory = create_session_factory(engine)
        self._schema_ready = False
        self._schema_lock = asyncio.Lock()

    async def _ensure_schema(self) -> None:
        if self._schema_ready:
            return
        async with self._schema_lock:
            if not self._schema_ready:
                async with self.engine.begin() as conn:
                    await conn.run_sync(Base.metadata.create_all)
                self._schema_ready = True
                logger.info("artifact_schema_ready")

    async def store(self, reference: str, content: bytes, *, created_at: datetime, expires_at: datetime) -> None:
        await self._ensure_schema()
        async with self._session_factory() as session:
            session.add(
                StoredArtifact(
                    token=reference,
                    filename=f"{reference}.pdf",
                    content=content,
                    created_at=created_at,
                    expires_at=expires_at,
                )
            )
            await session.commit()

    async def deadline(self, reference: str) -> datetime | None:
        await self._ensure_schema()
        async with self._session_factory() as session:
            result = await session.execute(
                select(StoredArtifact.expires_at).where(StoredArtifact.token == reference)
            )
            expires_at = result.scalar_one_or_none()
        return _as_utc(expires_at) if expires_at is not None else None

    async def read(self, reference: str) -> bytes:
        await self._ensure_schema()
        async with self._session_factory() as session:
            result = await session.execute(
                select(StoredArtifact.content).where(StoredArtifact.token == reference)
            )
            content = result.scalar_one_or_none()
        if content is None:
            raise ArtifactNotFoundError()
        return content

    async def expire(self, reference: str) -> None:
        await self._ensure_schema()
        async with self._session_factory() as session:
            await session.execute(delete(StoredArtifact).where(StoredArtifact.token == reference))
            await session.commit()

    async def purge_expired(self, now: datetime) -> int:
        await self._ensure_schema()
        async with self._session_factory() as session:
            result = await session.execute(delete(StoredArtifact).where(StoredArtifact.expires_at <= now))
            await session.commit()
        return result.rowcount or 0

    def public_url(self, reference: str) -> str:
        return f"{self.public_base_url}/pdf/{reference}"

    async def close(self) -> None:
        await self.engine.dispose()
