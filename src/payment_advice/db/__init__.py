"""Database module for the payment advice service."""

from payment_advice.db.engine import create_engine, create_session_factory

__all__ = ["create_engine", "create_session_factory"]
