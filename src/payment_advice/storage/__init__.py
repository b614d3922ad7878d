"""Ephemeral artifact storage."""

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING

from payment_advice.storage.base import Sink
from payment_advice.storage.lifecycle import (
    ArtifactStore,
    EphemeralArtifact,
    make_reference,
    sanitize_identifier,
)
from payment_advice.storage.reaper import ArtifactReaper

if TYPE_CHECKING:
    from payment_advice.config import Settings
    from payment_advice.utils.clock import Clock

__all__ = [
    "ArtifactReaper",
    "ArtifactStore",
    "EphemeralArtifact",
    "Sink",
    "build_artifact_store",
    "build_sink",
    "make_reference",
    "sanitize_identifier",
]


def build_sink(settings: Settings) -> Sink | None:
    """Create the sink for the configured delivery.

    Args:
        settings: Application settings

    Returns:
        The sink, or None for inline delivery
    """
    if settings.delivery == "filesystem":
        from payment_advice.storage.filesystem import FilesystemSink

        return FilesystemSink(settings.storage_dir, settings.public_base_url)

    if settings.delivery == "database":
        from payment_advice.db.engine import create_engine
        from payment_advice.storage.database import DatabaseSink

        return DatabaseSink(create_engine(settings), settings.public_base_url)

    if settings.delivery == "object":
        from payment_advice.storage.object_store import ObjectStoreSink

        if not settings.object_store_url:
            raise ValueError("OBJECT_STORE_URL is required for the object delivery")
        return ObjectStoreSink(
            settings.object_store_url,
            public_url=settings.object_store_public_url or None,
        )

    return None


def build_artifact_store(settings: Settings, clock: Clock) -> ArtifactStore | None:
    """Create the artifact store for the configured delivery, if any."""
    sink = build_sink(settings)
    if sink is None:
        return None
    return ArtifactStore(
        sink,
        ttl=timedelta(seconds=settings.artifact_ttl_seconds),
        clock=clock,
    )
