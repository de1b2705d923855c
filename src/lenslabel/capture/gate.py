"""Camera authorization gate.

Frames may only be produced once camera access has been granted by an
external authorization event. The gate moves one way:

    UNAUTHORIZED -> AUTHORIZED -> RUNNING
"""

from __future__ import annotations

import logging
from enum import StrEnum

logger = logging.getLogger(__name__)


class GateState(StrEnum):
    UNAUTHORIZED = "unauthorized"
    AUTHORIZED = "authorized"
    RUNNING = "running"


class AuthorizationGate:
    """Tracks whether the capture pipeline is allowed to start."""

    def __init__(self) -> None:
        self._state = GateState.UNAUTHORIZED

    @property
    def state(self) -> GateState:
        """Current gate state."""
        return self._state

    @property
    def is_authorized(self) -> bool:
        """True once camera access has been granted."""
        return self._state is not GateState.UNAUTHORIZED

    def on_authorization(self, granted: bool) -> GateState:
        """Apply the result of an authorization request.

        A denial keeps the gate closed; it can be asked again later.
        """
        if self._state is GateState.UNAUTHORIZED and granted:
            self._state = GateState.AUTHORIZED
            logger.info("Camera access granted")
        elif not granted:
            logger.warning("Camera access denied")
        return self._state

    def start(self) -> None:
        """Mark the pipeline as running.

        Raises:
            RuntimeError: If camera access has not been granted yet.
        """
        if self._state is GateState.UNAUTHORIZED:
            raise RuntimeError("Cannot start capture before camera access is granted")
        self._state = GateState.RUNNING
