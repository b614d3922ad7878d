"""Request gate that short-circuits traffic while maintenance mode is active."""

from __future__ import annotations

from datetime import datetime

from fastapi import Request
from fastapi.responses import Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from payment_advice.maintenance.state import MaintenanceController
from payment_advice.utils.logging import get_logger

logger = get_logger(__name__)

ADMIN_PATHS = frozenset({"/enter-maintenance", "/exit-maintenance", "/status"})


def should_block(path: str, now: datetime, controller: MaintenanceController) -> bool:
    """Decide whether a request must be short-circuited.

    Admin paths always pass. Otherwise an expired pause is cleared here,
    on the first request that observes it.

    Args:
        path: Request path
        now: Current time
        controller: Owner of the maintenance state

    Returns:
        True if the request must not reach its handler
    """
    if path in ADMIN_PATHS:
        return False

    return controller.check(now).is_active(now)


class MaintenanceGateMiddleware(BaseHTTPMiddleware):
    """Answer 200 with an empty body for every non-admin request during a pause.

    Callers that do not understand errors keep working; they just get nothing.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        controller: MaintenanceController = request.app.state.maintenance
        now = request.app.state.clock()

        if should_block(request.url.path, now, controller):
            logger.debug("maintenance_request_blocked", path=request.url.path)
            return Response(status_code=200, content=b"")

        return await call_next(request)
