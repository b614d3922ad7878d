"""Database models for the payment advice service."""

from payment_advice.db.models.artifacts import StoredArtifact
from payment_advice.db.models.base import Base

__all__ = [
    "Base",
    "StoredArtifact",
]
