"""Tests for the ephemeral artifact lifecycle and its sinks."""

from __future__ import annotations

import asyncio
import os
import re
import time
from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from payment_advice.exceptions import ArtifactNotFoundError, StorageError
from payment_advice.storage import (
    ArtifactReaper,
    ArtifactStore,
    Sink,
    make_reference,
    sanitize_identifier,
)
from payment_advice.storage.database import DatabaseSink
from payment_advice.storage.filesystem import FilesystemSink

from conftest import PUBLIC_BASE_URL, SAMPLE_PDF


class TestSanitizeIdentifier:
    """Tests for sanitize_identifier."""

    def test_safe_characters_unchanged(self):
        assert sanitize_identifier("task-123_ABC") == "task-123_ABC"

    def test_path_traversal_neutralized(self):
        result = sanitize_identifier("../../etc/passwd")

        assert "/" not in result
        assert "\\" not in result
        assert ".." not in result
        assert result == "------etc-passwd"

    def test_each_unsafe_character_replaced(self):
        assert sanitize_identifier("inv 1/po:2") == "inv-1-po-2"
        assert sanitize_identifier("naïve") == "na-ve"

    def test_empty_identifier(self):
        assert sanitize_identifier("") == "artifact"

    def test_reference_has_random_token(self):
        first = make_reference("task-1")
        second = make_reference("task-1")

        assert first != second
        assert re.fullmatch(r"task-1-[0-9a-f]{12}", first)


@pytest.fixture
def filesystem_sink(tmp_path) -> FilesystemSink:
    return FilesystemSink(tmp_path / "files", PUBLIC_BASE_URL)


@pytest.fixture
def filesystem_store(filesystem_sink, clock) -> ArtifactStore:
    return ArtifactStore(filesystem_sink, ttl=timedelta(minutes=10), clock=clock)


@pytest.fixture
def database_store(test_engine, clock) -> ArtifactStore:
    return ArtifactStore(DatabaseSink(test_engine, PUBLIC_BASE_URL), ttl=timedelta(minutes=10), clock=clock)


class TestFilesystemLifecycle:
    """Tests for ArtifactStore backed by the filesystem."""

    async def test_create_writes_before_returning(self, filesystem_store, filesystem_sink, clock):
        artifact = await filesystem_store.create("task-123", SAMPLE_PDF)

        path = filesystem_sink.path_for(artifact.reference)
        assert path.read_bytes() == SAMPLE_PDF
        assert artifact.url == f"{PUBLIC_BASE_URL}/files/{artifact.reference}.pdf"
        assert artifact.created_at == clock.now
        assert artifact.ttl == timedelta(minutes=10)

    async def test_retrievable_within_ttl(self, filesystem_store, clock):
        artifact = await filesystem_store.create("task-123", SAMPLE_PDF)
        clock.advance(minutes=5)

        assert await filesystem_store.open(artifact.reference) == SAMPLE_PDF

    async def test_not_retrievable_after_ttl(self, filesystem_store, filesystem_sink, clock):
        artifact = await filesystem_store.create("task-123", SAMPLE_PDF)
        clock.advance(minutes=11)

        with pytest.raises(ArtifactNotFoundError):
            await filesystem_store.open(artifact.reference)
        assert not filesystem_sink.path_for(artifact.reference).exists()

    async def test_expires_exactly_at_deadline(self, filesystem_store, clock):
        artifact = await filesystem_store.create("task-123", SAMPLE_PDF)
        clock.advance(minutes=10)

        with pytest.raises(ArtifactNotFoundError):
            await filesystem_store.open(artifact.reference)

    async def test_repeated_reads_do_not_extend_lifetime(self, filesystem_store, clock):
        artifact = await filesystem_store.create("task-123", SAMPLE_PDF)
        for _ in range(3):
            clock.advance(minutes=3)
            await filesystem_store.open(artifact.reference)

        clock.advance(minutes=2)

        with pytest.raises(ArtifactNotFoundError):
            await filesystem_store.open(artifact.reference)

    async def test_unknown_reference(self, filesystem_store):
        with pytest.raises(ArtifactNotFoundError):
            await filesystem_store.open("task-999-000000000000")

    async def test_traversal_reference_rejected(self, filesystem_store):
        with pytest.raises(ArtifactNotFoundError):
            await filesystem_store.open("../../etc/passwd")

    async def test_identifier_stays_inside_directory(self, filesystem_store, filesystem_sink):
        artifact = await filesystem_store.create("../../etc/passwd", SAMPLE_PDF)

        path = filesystem_sink.path_for(artifact.reference)
        assert path.parent == filesystem_sink.directory
        assert path.exists()

    async def test_read_after_concurrent_delete(self, filesystem_store, filesystem_sink):
        artifact = await filesystem_store.create("task-123", SAMPLE_PDF)
        deadline = await filesystem_sink.deadline(artifact.reference)
        await filesystem_sink.expire(artifact.reference)

        assert deadline is not None
        with pytest.raises(ArtifactNotFoundError):
            await filesystem_sink.read(artifact.reference)

    async def test_sweep_removes_only_expired(self, filesystem_store, filesystem_sink, clock):
        old = await filesystem_store.create("old", SAMPLE_PDF)
        clock.advance(minutes=6)
        fresh = await filesystem_store.create("fresh", SAMPLE_PDF)
        clock.advance(minutes=5)

        removed = await filesystem_store.sweep()

        assert removed == 1
        assert not filesystem_sink.path_for(old.reference).exists()
        assert filesystem_sink.path_for(fresh.reference).exists()

    async def test_expiry_index_survives_restart(self, filesystem_sink, tmp_path, clock):
        store = ArtifactStore(filesystem_sink, clock=clock)
        artifact = await store.create("task-123", SAMPLE_PDF)

        restarted = ArtifactStore(FilesystemSink(tmp_path / "files", PUBLIC_BASE_URL), clock=clock)
        clock.advance(minutes=11)

        assert await restarted.sweep() == 1
        assert not filesystem_sink.path_for(artifact.reference).exists()

    async def test_sweep_during_write_keeps_new_file(self, filesystem_store, filesystem_sink, monkeypatch):
        real_utime = os.utime
        removed_mid_write = []

        def utime_then_sweep(path, times):
            removed_mid_write.append(filesystem_sink._purge(time.time() + 60))
            real_utime(path, times)

        monkeypatch.setattr(os, "utime", utime_then_sweep)

        artifact = await filesystem_store.create("task-123", SAMPLE_PDF)

        path = filesystem_sink.path_for(artifact.reference)
        assert removed_mid_write == [0]
        assert path.read_bytes() == SAMPLE_PDF
        assert list(filesystem_sink.directory.iterdir()) == [path]


class TestDatabaseLifecycle:
    """Tests for ArtifactStore backed by the database."""

    async def test_round_trip_within_ttl(self, database_store, clock):
        artifact = await database_store.create("invpo-1-2", SAMPLE_PDF)
        clock.advance(minutes=5)

        assert artifact.url == f"{PUBLIC_BASE_URL}/pdf/{artifact.reference}"
        assert await database_store.open(artifact.reference) == SAMPLE_PDF

    async def test_not_retrievable_after_ttl(self, database_store, clock):
        artifact = await database_store.create("invpo-1-2", SAMPLE_PDF)
        clock.advance(minutes=11)

        with pytest.raises(ArtifactNotFoundError):
            await database_store.open(artifact.reference)
        assert await database_store.sink.deadline(artifact.reference) is None

    async def test_unknown_token(self, database_store):
        with pytest.raises(ArtifactNotFoundError):
            await database_store.open("missing-000000000000")

    async def test_sweep(self, database_store, clock):
        await database_store.create("a", SAMPLE_PDF)
        await database_store.create("b", SAMPLE_PDF)
        clock.advance(minutes=9)
        keep = await database_store.create("c", SAMPLE_PDF)
        clock.advance(minutes=2)

        assert await database_store.sweep() == 2
        assert await database_store.open(keep.reference) == SAMPLE_PDF


class TestStoreFailures:
    """Sink failures surface as StorageError, cleanup failures not at all."""

    @pytest.fixture
    def broken_sink(self) -> AsyncMock:
        sink = AsyncMock(spec=Sink)
        sink.name = "broken"
        sink.public_url = lambda reference: f"http://broken/{reference}"
        return sink

    async def test_store_failure(self, broken_sink, clock):
        broken_sink.store.side_effect = OSError("disk full")
        store = ArtifactStore(broken_sink, clock=clock)

        with pytest.raises(StorageError):
            await store.create("task-1", SAMPLE_PDF)

    async def test_discard_failure_swallowed(self, broken_sink, clock):
        broken_sink.deadline.return_value = clock.now
        broken_sink.expire.side_effect = OSError("permission denied")
        store = ArtifactStore(broken_sink, clock=clock)

        with pytest.raises(ArtifactNotFoundError):
            await store.open("task-1-000000000000")


class TestArtifactReaper:
    """Tests for the background reaper."""

    async def test_sweep_once(self, filesystem_store, filesystem_sink, clock):
        artifact = await filesystem_store.create("task-1", SAMPLE_PDF)
        clock.advance(minutes=10)

        removed = await ArtifactReaper(filesystem_store).sweep_once()

        assert removed == 1
        assert not filesystem_sink.path_for(artifact.reference).exists()

    async def test_sweep_errors_are_swallowed(self, clock):
        sink = AsyncMock(spec=Sink)
        sink.name = "broken"
        sink.purge_expired.side_effect = RuntimeError("boom")

        reaper = ArtifactReaper(ArtifactStore(sink, clock=clock))

        assert await reaper.sweep_once() == 0

    async def test_background_loop_sweeps_and_stops(self, filesystem_store, filesystem_sink, clock):
        artifact = await filesystem_store.create("task-1", SAMPLE_PDF)
        clock.advance(minutes=11)
        reaper = ArtifactReaper(filesystem_store, interval_seconds=0.01)

        reaper.start()
        try:
            for _ in range(100):
                if not filesystem_sink.path_for(artifact.reference).exists():
                    break
                await asyncio.sleep(0.01)
        finally:
            await reaper.stop()

        assert not filesystem_sink.path_for(artifact.reference).exists()
        assert reaper.running is False
