"""Maintenance mode admin endpoints."""

from __future__ import annotations

import hmac
from datetime import datetime
from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel

from payment_advice.api.deps import AppClock, AppSettings, Maintenance
from payment_advice.config import Settings
from payment_advice.exceptions import AuthorizationError
from payment_advice.maintenance import parse_duration
from payment_advice.schemas import CamelModel
from payment_advice.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["maintenance"])


class EnterMaintenanceRequest(BaseModel):
    """Body of POST /enter-maintenance.

    Fields accept any JSON value so that the key is checked before the
    duration is validated.
    """

    duration: Any = None
    key: Any = None


class ExitMaintenanceRequest(BaseModel):
    """Body of POST /exit-maintenance."""

    key: Any = None


class MaintenanceResponse(CamelModel):
    """Result of an admin maintenance action."""

    message: str
    paused: bool
    pause_until: datetime | None = None


class MaintenanceStatusResponse(CamelModel):
    """Current maintenance state as seen by the server."""

    paused: bool
    pause_until: datetime | None = None
    server_time: datetime


def verify_maintenance_key(supplied: object, settings: Settings) -> None:
    """Check a supplied key against the configured shared secret.

    An unset configured key rejects every attempt.

    Raises:
        AuthorizationError: If the key is missing or does not match
    """
    expected = settings.maintenance_key
    valid = (
        bool(expected)
        and isinstance(supplied, str)
        and bool(supplied)
        and hmac.compare_digest(supplied.encode(), expected.encode())
    )
    if not valid:
        logger.warning("maintenance_key_rejected", key_supplied=bool(supplied))
        raise AuthorizationError()


@router.post("/enter-maintenance", response_model=MaintenanceResponse)
async def enter_maintenance(
    settings: AppSettings,
    maintenance: Maintenance,
    clock: AppClock,
    body: EnterMaintenanceRequest | None = None,
) -> MaintenanceResponse:
    """Pause all non-admin traffic for ``duration``.

    Args:
        settings: Application settings
        maintenance: Maintenance controller
        clock: Current time source
        body: Duration and admin key

    Returns:
        The new maintenance state
    """
    body = body or EnterMaintenanceRequest()
    verify_maintenance_key(body.key, settings)

    duration = parse_duration(body.duration)
    state = maintenance.pause(duration, clock())

    return MaintenanceResponse(
        message=f"Maintenance mode enabled ({body.duration})",
        paused=state.paused,
        pause_until=state.pause_until,
    )


@router.post("/exit-maintenance", response_model=MaintenanceResponse)
async def exit_maintenance(
    settings: AppSettings,
    maintenance: Maintenance,
    body: ExitMaintenanceRequest | None = None,
) -> MaintenanceResponse:
    """Resume normal traffic.

    Args:
        settings: Application settings
        maintenance: Maintenance controller
        body: Admin key

    Returns:
        The cleared maintenance state
    """
    body = body or ExitMaintenanceRequest()
    verify_maintenance_key(body.key, settings)

    state = maintenance.resume()

    return MaintenanceResponse(
        message="Maintenance mode disabled",
        paused=state.paused,
        pause_until=state.pause_until,
    )


@router.get("/status", response_model=MaintenanceStatusResponse)
async def maintenance_status(
    maintenance: Maintenance,
    clock: AppClock,
) -> MaintenanceStatusResponse:
    """Report the maintenance state without changing it."""
    state = maintenance.state
    return MaintenanceStatusResponse(
        paused=state.paused,
        pause_until=state.pause_until,
        server_time=clock(),
    )
