"""
Process-wide reactive auth state: {user, session, loading}.
"""
import logging
import threading
from typing import Callable, List, Optional

from pydantic import BaseModel

from jobboard.schemas.auth import AuthSession, AuthUser
from jobboard.services.auth import AuthSessionClient, Subscription

logger = logging.getLogger(__name__)


class AuthState(BaseModel):
    user: Optional[AuthUser] = None
    session: Optional[AuthSession] = None
    loading: bool = True


Listener = Callable[[AuthState], None]


class AuthStore:
    def __init__(self):
        self._state = AuthState()
        self._listeners: List[Listener] = []
        self._subscription: Optional[Subscription] = None
        self._lock = threading.Lock()

    @property
    def state(self) -> AuthState:
        return self._state

    @property
    def is_authenticated(self) -> bool:
        return self._state.user is not None

    @property
    def user_id(self) -> Optional[str]:
        return self._state.user.id if self._state.user else None

    @property
    def access_token(self) -> Optional[str]:
        return self._state.session.access_token if self._state.session else None

    @property
    def auth_tag(self) -> str:
        return "auth" if self.access_token else "anon"

    def set_state(self, state: AuthState) -> None:
        with self._lock:
            self._state = state
            listeners = list(self._listeners)
        for listener in listeners:
            listener(state)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a function that removes it."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe():
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)
        return unsubscribe

    def bind(self, auth_client: AuthSessionClient) -> None:
        """Populate once from the identity provider, then follow its change events."""
        self.set_state(self._state.model_copy(update={"loading": True}))

        def update(_event: str, session: Optional[AuthSession]) -> None:
            self.set_state(AuthState(
                user=session.user if session else None,
                session=session,
                loading=False,
            ))

        update("INITIAL", auth_client.get_session())
        self._subscription = auth_client.on_auth_state_change(update)
        logger.debug("Auth store bound", extra={"authenticated": self.is_authenticated})

    def close(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
