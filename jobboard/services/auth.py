"""
Identity provider client (GoTrue-style REST API under /auth/v1).

IdentityClient is stateless and shared by HTTP handlers, each request carrying
its own access token. AuthSessionClient keeps one signed-in session for a
long-lived client process and notifies subscribers when it changes.
"""
import logging
import threading
import uuid
from typing import Any, Callable, Dict, List, Optional

import requests

from jobboard.core.config import Config, settings
from jobboard.core.exceptions import AuthenticationError, BackendRequestError
from jobboard.schemas.auth import AuthResponse, AuthSession, AuthUser
from jobboard.services.backend import require_backend_config

logger = logging.getLogger(__name__)


class AuthEvent:
    INITIAL_SESSION = "INITIAL_SESSION"
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"
    USER_UPDATED = "USER_UPDATED"


AuthCallback = Callable[[str, Optional[AuthSession]], None]


class IdentityClient:
    def __init__(
        self,
        base_url: str,
        api_key: str,
        session: Optional[requests.Session] = None,
        timeout: float = 10,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.session = session or requests.Session()
        self.timeout = timeout

    @classmethod
    def from_settings(cls, config: Config = settings, session: Optional[requests.Session] = None) -> "IdentityClient":
        url, key = require_backend_config(config)
        return cls(url, key, session=session, timeout=config.request_timeout_seconds)

    @property
    def auth_url(self) -> str:
        return f"{self.base_url}/auth/v1"

    def _request(
        self,
        method: str,
        path: str,
        payload: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, str]] = None,
        access_token: Optional[str] = None,
    ) -> requests.Response:
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {access_token or self.api_key}",
            "Content-Type": "application/json",
        }
        try:
            response = self.session.request(
                method,
                f"{self.auth_url}/{path}",
                params=params,
                json=payload,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.warning(f"Identity provider {path} transport error: {e}")
            raise BackendRequestError(0, "Network Error", str(e)) from e

        if not response.ok:
            raise BackendRequestError(response.status_code, response.reason or "", response.text)
        return response

    @staticmethod
    def _parse_auth_response(body: Dict[str, Any]) -> AuthResponse:
        # Token grants return a session with a nested user; sign-up without
        # auto-confirm returns only the user.
        if body.get("access_token"):
            session = AuthSession.model_validate(body)
            return AuthResponse(user=session.user, session=session)
        user = body.get("user") or body
        return AuthResponse(user=AuthUser.model_validate(user) if user.get("id") else None)

    def sign_up(
        self,
        email: str,
        password: str,
        full_name: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        redirect_to: Optional[str] = None,
    ) -> AuthResponse:
        data = dict(metadata or {})
        if full_name:
            data["full_name"] = full_name
        params = {"redirect_to": redirect_to} if redirect_to else None
        response = self._request(
            "POST", "signup",
            payload={"email": email, "password": password, "data": data},
            params=params,
        )
        logger.info("Account registered", extra={"email": email})
        return self._parse_auth_response(response.json())

    def sign_in_with_password(self, email: str, password: str) -> AuthResponse:
        try:
            response = self._request(
                "POST", "token",
                payload={"email": email, "password": password},
                params={"grant_type": "password"},
            )
        except BackendRequestError as e:
            if e.status in (400, 401):
                logger.info("Sign-in rejected", extra={"email": email})
                raise AuthenticationError("Invalid login credentials") from e
            raise
        return self._parse_auth_response(response.json())

    def refresh_session(self, refresh_token: str) -> AuthResponse:
        try:
            response = self._request(
                "POST", "token",
                payload={"refresh_token": refresh_token},
                params={"grant_type": "refresh_token"},
            )
        except BackendRequestError as e:
            if e.status in (400, 401):
                raise AuthenticationError("Session expired or revoked") from e
            raise
        return self._parse_auth_response(response.json())

    def sign_out(self, access_token: str) -> None:
        self._request("POST", "logout", access_token=access_token)

    def get_user(self, access_token: str) -> AuthUser:
        try:
            response = self._request("GET", "user", access_token=access_token)
        except BackendRequestError as e:
            if e.status in (401, 403):
                raise AuthenticationError() from e
            raise
        return AuthUser.model_validate(response.json())


class Subscription:
    def __init__(self, client: "AuthSessionClient", callback: AuthCallback):
        self.id = uuid.uuid4().hex
        self._client = client
        self.callback = callback

    def unsubscribe(self) -> None:
        self._client._remove_listener(self.id)


class AuthSessionClient:
    """
    Holds the signed-in session of one client process.
    Sign-in/up/out delegate to the identity provider; listeners hear every change.
    """

    def __init__(self, identity: IdentityClient):
        self.identity = identity
        self._session: Optional[AuthSession] = None
        self._listeners: Dict[str, Subscription] = {}
        self._lock = threading.Lock()

    def _remove_listener(self, subscription_id: str) -> None:
        with self._lock:
            self._listeners.pop(subscription_id, None)

    def _emit(self, event: str) -> None:
        with self._lock:
            listeners: List[Subscription] = list(self._listeners.values())
        for subscription in listeners:
            try:
                subscription.callback(event, self._session)
            except Exception:
                logger.exception(f"Auth listener failed on {event}")

    def on_auth_state_change(self, callback: AuthCallback) -> Subscription:
        subscription = Subscription(self, callback)
        with self._lock:
            self._listeners[subscription.id] = subscription
        callback(AuthEvent.INITIAL_SESSION, self._session)
        return subscription

    def get_session(self) -> Optional[AuthSession]:
        session = self._session
        if session is None or not session.is_expired:
            return session
        if not session.refresh_token:
            self._set_session(None, AuthEvent.SIGNED_OUT)
            return None
        try:
            refreshed = self.identity.refresh_session(session.refresh_token)
        except AuthenticationError:
            logger.info("Stored session could not be refreshed; signing out locally")
            self._set_session(None, AuthEvent.SIGNED_OUT)
            return None
        self._set_session(refreshed.session, AuthEvent.TOKEN_REFRESHED)
        return self._session

    def _set_session(self, session: Optional[AuthSession], event: str) -> None:
        self._session = session
        self._emit(event)

    def sign_up(self, email: str, password: str, full_name: Optional[str] = None,
                metadata: Optional[Dict[str, Any]] = None, redirect_to: Optional[str] = None) -> AuthResponse:
        result = self.identity.sign_up(email, password, full_name, metadata, redirect_to)
        if result.session:
            self._set_session(result.session, AuthEvent.SIGNED_IN)
        return result

    def sign_in_with_password(self, email: str, password: str) -> AuthResponse:
        result = self.identity.sign_in_with_password(email, password)
        self._set_session(result.session, AuthEvent.SIGNED_IN)
        return result

    def refresh_user(self) -> Optional[AuthUser]:
        session = self.get_session()
        if session is None:
            return None
        user = self.identity.get_user(session.access_token)
        self._set_session(session.model_copy(update={"user": user}), AuthEvent.USER_UPDATED)
        return user

    def sign_out(self) -> None:
        session = self._session
        try:
            if session is not None:
                self.identity.sign_out(session.access_token)
        finally:
            # The local session is dropped even when the provider call fails
            self._set_session(None, AuthEvent.SIGNED_OUT)
