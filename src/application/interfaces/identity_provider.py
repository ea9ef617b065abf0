from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable

SessionListener = Callable[[str | None], Awaitable[None]]


class AuthenticationRequiredError(Exception):
    def __init__(self) -> None:
        super().__init__("A signed-in user is required for this operation.")


class IdentityProvider(ABC):
    """
    Port for the external identity provider.

    The only contract the listings core relies on is "current user id or
    None", delivered on subscribe and again on every session change.
    """

    @property
    @abstractmethod
    def current_user_id(self) -> str | None:
        ...

    @abstractmethod
    async def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register ``listener``, call it once with the current user id, return an unsubscribe callable."""
        ...

    def require_user_id(self) -> str:
        user_id = self.current_user_id
        if user_id is None:
            raise AuthenticationRequiredError()
        return user_id
