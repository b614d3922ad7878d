"""Filesystem sink: one PDF file per artifact in a shared directory."""

from __future__ import annotations

import asyncio
import os
from datetime import datetime, timezone
from pathlib import Path

from payment_advice.exceptions import ArtifactNotFoundError
from payment_advice.storage.base import Sink
from payment_advice.utils.logging import get_logger

logger = get_logger(__name__)

SUFFIX = ".pdf"
PARTIAL_SUFFIX = ".partial"


class FilesystemSink(Sink):
    """Stores artifacts as ``<reference>.pdf`` files.

    The modification time of each file is set to its deadline, which keeps
    the expiry index on disk and lets a restarted process purge leftovers.
    """

    name = "filesystem"

    def __init__(self, directory: Path, public_base_url: str) -> None:
        """Initialize the sink.

        Args:
            directory: Directory the files are written to (created if missing)
            public_base_url: Base URL of this service
        """
        self.directory = Path(directory)
        self.public_base_url = public_base_url.rstrip("/")
        self.directory.mkdir(parents=True, exist_ok=True)

    def path_for(self, reference: str) -> Path:
        return self.directory / f"{reference}{SUFFIX}"

    async def store(self, reference: str, content: bytes, *, created_at: datetime, expires_at: datetime) -> None:
        await asyncio.to_thread(self._write, self.path_for(reference), content, expires_at)

    @staticmethod
    def _write(path: Path, content: bytes, expires_at: datetime) -> None:
        # The file only appears under its .pdf name once its mtime holds the deadline
        staging = path.with_name(f".{path.name}{PARTIAL_SUFFIX}")
        try:
            staging.write_bytes(content)
            deadline = expires_at.timestamp()
            os.utime(staging, (deadline, deadline))
            os.replace(staging, path)
        except OSError:
            staging.unlink(missing_ok=True)
            raise

    async def deadline(self, reference: str) -> datetime | None:
        try:
            stat = await asyncio.to_thread(self.path_for(reference).stat)
        except FileNotFoundError:
            return None
        return datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc)

    async def read(self, reference: str) -> bytes:
        try:
            return await asyncio.to_thread(self.path_for(reference).read_bytes)
        except FileNotFoundError as e:
            raise ArtifactNotFoundError() from e

    async def expire(self, reference: str) -> None:
        await asyncio.to_thread(self.path_for(reference).unlink, missing_ok=True)

    async def purge_expired(self, now: datetime) -> int:
        return await asyncio.to_thread(self._purge, now.timestamp())

    def _purge(self, now_ts: float) -> int:
        removed = 0
        for path in self.directory.glob(f"*{SUFFIX}"):
            try:
                if path.stat().st_mtime <= now_ts:
                    path.unlink(missing_ok=True)
                    removed += 1
            except FileNotFoundError:
                continue
            except OSError as e:
                logger.warning("artifact_file_purge_failed", path=str(path), error=str(e))
        return removed

    def public_url(self, reference: str) -> str:
        return f"{self.public_base_url}/files/{reference}{SUFFIX}"
