"""Stored artifact model for the database delivery."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import LargeBinary, String
from sqlalchemy.orm import Mapped, mapped_column

from payment_advice.db.models.base import Base


class StoredArtifact(Base):
    """A decoded payment advice PDF served by token until ``expires_at``."""

    __tablename__ = "stored_artifact"

    token: Mapped[str] = mapped_column(String(255), primary_key=True)
    filename: Mapped[str] = mapped_column(String(255))
    content: Mapped[bytes] = mapped_column(LargeBinary)
    created_at: Mapped[datetime]

    # Persistent expiry index, swept by the reaper
    expires_at: Mapped[datetime] = mapped_column(index=True)

    def __repr__(self) -> str:
        return f"<StoredArtifact(token={self.token}, expires_at={self.expires_at})>"
