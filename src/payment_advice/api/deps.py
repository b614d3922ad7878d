"""FastAPI dependencies for the payment advice service."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, Request

from payment_advice.config import Settings
from payment_advice.maintenance import MaintenanceController
from payment_advice.services.upstream_client import PaymentAdviceClient
from payment_advice.storage import ArtifactStore
from payment_advice.utils.clock import Clock


def get_app_settings(request: Request) -> Settings:
    """Settings the application was created with."""
    return request.app.state.settings


def get_maintenance(request: Request) -> MaintenanceController:
    """Maintenance controller owned by the application."""
    return request.app.state.maintenance


def get_clock(request: Request) -> Clock:
    """Clock used for pauses and artifact deadlines."""
    return request.app.state.clock


def get_artifact_store(request: Request) -> ArtifactStore | None:
    """Artifact store for the configured delivery, None for inline delivery."""
    return request.app.state.artifacts


async def get_upstream_client(
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> AsyncGenerator[PaymentAdviceClient, None]:
    """Upstream client scoped to a single request."""
    client = PaymentAdviceClient(settings)
    try:
        yield client
    finally:
        await client.close()


# Type aliases for common dependencies
AppSettings = Annotated[Settings, Depends(get_app_settings)]
Maintenance = Annotated[MaintenanceController, Depends(get_maintenance)]
AppClock = Annotated[Clock, Depends(get_clock)]
Artifacts = Annotated[ArtifactStore | None, Depends(get_artifact_store)]
UpstreamClient = Annotated[PaymentAdviceClient, Depends(get_upstream_client)]
