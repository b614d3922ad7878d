"""Declarative base for the artifact tables."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all models. Datetime columns are always timezone aware."""

    type_annotation_map = {datetime: DateTime(timezone=True)}
