"""Bearer credential owned by one console session."""
from __future__ import annotations

import logging
from collections.abc import Callable

log = logging.getLogger("session")


class Session:
    """Holds the bearer token attached to every engine request.

    ``expire(token)`` is called on 401 with the token the failed request carried;
    it clears the credential only if that token is still the current one, so
    401s from requests queued before the clear do not fire the hook again. A 401
    while no credential is held also asks for re-authentication, once until the
    next ``issue``.
    """

    def __init__(self, token: str | None = None, on_expired: Callable[[], None] | None = None):
        self._token = token or None
        self._listeners: list[Callable[[], None]] = []
        if on_expired is not None:
            self._listeners.append(on_expired)
        self.expired_count = 0
        self._reauth_pending = False

    @property
    def token(self) -> str | None:
        return self._token

    @property
    def authenticated(self) -> bool:
        return self._token is not None

    def issue(self, token: str) -> None:
        self._token = token or None
        self._reauth_pending = False
        log.info("credential issued")

    def on_expired(self, callback: Callable[[], None]) -> None:
        """Register a re-authentication hook (e.g. send the operator to login)."""
        self._listeners.append(callback)

    def expire(self, token_used: str | None) -> bool:
        if self._token is None:
            if self._reauth_pending:
                return False
        elif token_used != self._token:
            return False
        self._token = None
        self._reauth_pending = True
        self.expired_count += 1
        log.warning("credential rejected by engine; re-authentication required")
        for callback in self._listeners:
            callback()
        return True

    def auth_headers(self) -> dict[str, str]:
        if not self._token:
            return {}
        return {"Authorization": f"Bearer {self._token}"}
