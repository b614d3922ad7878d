"""Maintenance state and the controller that owns it."""

from __future__ import annotations

import re
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from payment_advice.exceptions import InvalidDurationError
from payment_advice.utils.logging import get_logger

logger = get_logger(__name__)

# Expiry used for "indefinite" pauses
INDEFINITE_UNTIL = datetime(9999, 12, 31, 23, 59, 59, tzinfo=timezone.utc)

DURATION_REGEX = re.compile(r"([0-9]+)([mh])")


@dataclass(frozen=True)
class MaintenanceState:
    """Immutable snapshot of the maintenance flag and its deadline."""

    paused: bool = False
    pause_until: datetime | None = None

    def is_active(self, now: datetime) -> bool:
        """Whether the pause still blocks traffic at ``now``."""
        return self.paused and self.pause_until is not None and self.pause_until > now

    def is_expired(self, now: datetime) -> bool:
        """Whether the state is paused but its deadline has passed."""
        return self.paused and (self.pause_until is None or self.pause_until <= now)


RUNNING = MaintenanceState()


def parse_duration(value: object) -> timedelta | None:
    """Parse a maintenance duration.

    Args:
        value: ``indefinite``, ``<int>m`` or ``<int>h`` as received in the request body

    Returns:
        The duration, or None for an indefinite pause

    Raises:
        InvalidDurationError: If the value matches none of the accepted forms
    """
    if not isinstance(value, str):
        raise InvalidDurationError()

    if value == "indefinite":
        return None

    match = DURATION_REGEX.fullmatch(value)
    if not match:
        raise InvalidDurationError()

    try:
        amount, unit = int(match.group(1)), match.group(2)
        if unit == "m":
            return timedelta(minutes=amount)
        return timedelta(hours=amount)
    except (OverflowError, ValueError) as e:
        raise InvalidDurationError() from e


class MaintenanceController:
    """Owns the process-wide maintenance state.

    The state is an immutable snapshot replaced under a lock, so concurrent
    readers never observe ``paused`` and ``pause_until`` out of step.
    """

    def __init__(self, state: MaintenanceState = RUNNING) -> None:
        self._state = state
        self._lock = threading.Lock()

    @property
    def state(self) -> MaintenanceState:
        """Current snapshot, without side effects."""
        return self._state

    def pause(self, duration: timedelta | None, now: datetime) -> MaintenanceState:
        """Enter maintenance mode.

        Args:
            duration: Length of the pause, None for indefinite
            now: Current time

        Returns:
            The new state

        Raises:
            InvalidDurationError: If the deadline falls outside the datetime range
        """
        if duration is None:
            until = INDEFINITE_UNTIL
        else:
            try:
                until = min(now + duration, INDEFINITE_UNTIL)
            except OverflowError as e:
                raise InvalidDurationError() from e

        new_state = MaintenanceState(paused=True, pause_until=until)
        with self._lock:
            self._state = new_state

        logger.info("maintenance_entered", pause_until=until.isoformat())
        return new_state

    def resume(self) -> MaintenanceState:
        """Leave maintenance mode. Idempotent."""
        with self._lock:
            was_paused = self._state.paused
            self._state = RUNNING

        logger.info("maintenance_exited", was_paused=was_paused)
        return RUNNING

    def check(self, now: datetime) -> MaintenanceState:
        """Return the effective state at ``now``, clearing an expired pause.

        Args:
            now: Current time

        Returns:
            The state after lazy expiry has been applied
        """
        state = self._state
        if not state.is_expired(now):
            return state

        with self._lock:
            # Another request may have resumed or re-paused in the meantime
            if self._state is not state:
                return self._state
            self._state = RUNNING

        logger.info(
            "maintenance_auto_resumed",
            pause_until=state.pause_until.isoformat() if state.pause_until else None,
        )
        return RUNNING
