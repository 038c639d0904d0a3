"""Admin gate — PIN check toggling a process-local admin flag."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from enum import Enum

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    GUEST = "guest"
    ADMIN = "admin"


class AdminGate:
    """Two-state capability flag: GUEST <-> ADMIN.

    Nothing is persisted; a restart always starts as GUEST. The PIN is a
    plain shared value compared with ``==``.
    """

    def __init__(self, admin_secret: str):
        self._secret = admin_secret
        self._state = SessionState.GUEST
        self._since = datetime.now(timezone.utc)

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def since(self) -> datetime:
        return self._since

    @property
    def is_admin(self) -> bool:
        return self._state == SessionState.ADMIN

    def authenticate(self, candidate_pin: str) -> bool:
        """Return True and become ADMIN if the PIN matches."""
        if candidate_pin != self._secret:
            logger.warning("Admin login rejected")
            return False
        self._set_state(SessionState.ADMIN)
        return True

    def logout(self) -> None:
        self._set_state(SessionState.GUEST)

    def to_dict(self) -> dict:
        return {
            "is_admin": self.is_admin,
            "state": self._state.value,
            "since": self._since.isoformat(),
        }

    def _set_state(self, new_state: SessionState) -> None:
        if new_state == self._state:
            return
        old_state = self._state
        self._state = new_state
        self._since = datetime.now(timezone.utc)
        logger.info("Admin gate: %s -> %s", old_state.value, new_state.value)
