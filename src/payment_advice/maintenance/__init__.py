"""Operator maintenance mode."""

from payment_advice.maintenance.gate import ADMIN_PATHS, MaintenanceGateMiddleware, should_block
from payment_advice.maintenance.state import (
    INDEFINITE_UNTIL,
    MaintenanceController,
    MaintenanceState,
    parse_duration,
)

__all__ = [
    "ADMIN_PATHS",
    "INDEFINITE_UNTIL",
    "MaintenanceController",
    "MaintenanceGateMiddleware",
    "MaintenanceState",
    "parse_duration",
    "should_block",
]
