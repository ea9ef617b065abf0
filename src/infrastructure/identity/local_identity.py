"""
In-process identity provider holding at most one session.

Stands in for the hosted auth service's session-change notifications: the
current user id is delivered to each listener on subscribe and again on
every sign-in, sign-out or token refresh.
"""
from collections.abc import Callable

import structlog

from src.application.interfaces.identity_provider import IdentityProvider, SessionListener

logger = structlog.get_logger(__name__)


class LocalIdentityProvider(IdentityProvider):
    def __init__(self, user_id: str | None = None) -> None:
        self._user_id = user_id
        self._listeners: list[SessionListener] = []

    @property
    def current_user_id(self) -> str | None:
        return self._user_id

    async def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        self._listeners.append(listener)
        await self._notify(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def sign_in(self, user_id: str) -> None:
        self._user_id = user_id
        logger.info("session_started", user_id=user_id)
        await self._emit()

    async def sign_out(self) -> None:
        logger.info("session_ended", user_id=self._user_id)
        self._user_id = None
        await self._emit()

    async def refresh_token(self) -> None:
        await self._emit()

    async def _emit(self) -> None:
        for listener in list(self._listeners):
            await self._notify(listener)

    async def _notify(self, listener: SessionListener) -> None:
        try:
            await listener(self._user_id)
        except Exception:
            # Listener failures must not break session handling for other subscribers.
            logger.exception("session_listener_failed", user_id=self._user_id)
