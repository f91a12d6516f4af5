"""Authentication for a Stitch app client.

``StitchAuth`` owns the session: it logs users in and out, persists the
session to storage, and supplies the refresh step the request pipeline
uses when the server rejects an access token.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from .config import AuthConfig
from .core.credentials import CredentialState
from .core.errors import ErrorFactory
from .core.pipeline import AuthenticatedPipeline
from .errors import StitchError, UnauthenticatedError
from .models import (
    Credentials,
    LoginResponse,
    OperationKind,
    PendingOperation,
    RefreshResponse,
    StitchUser,
    UserProfile,
)
from .telemetry import get_logger, traced
from .transport import Request, ResponseStatus

if TYPE_CHECKING:
    from .auth_providers import StitchCredential
    from .codec import Codec
    from .core.dispatcher import TaskDispatcher
    from .core.handle import ResultHandle
    from .routes import AuthRoutes
    from .storage import Storage
    from .transport import RequestExecutor

CREDENTIALS_STORAGE_KEY = "auth_info"
PROFILE_STORAGE_KEY = "user_profile"

AuthListener = Callable[["StitchAuth"], None]


class StitchAuth:
    """Session management for one app client."""

    def __init__(
        self,
        executor: RequestExecutor,
        routes: AuthRoutes,
        storage: Storage,
        dispatcher: TaskDispatcher,
        codec: Codec,
        *,
        config: AuthConfig | None = None,
        device_info: dict[str, Any] | None = None,
        default_timeout: float | None = None,
    ) -> None:
        self.config = config or AuthConfig()
        self._executor = executor
        self._routes = routes
        self._storage = storage
        self._dispatcher = dispatcher
        self._codec = codec
        self._device_info = device_info or {}
        self._default_timeout = default_timeout
        self._logger = get_logger()
        self._login_lock = threading.Lock()
        self._listeners: list[AuthListener] = []
        self._listeners_lock = threading.Lock()

        credentials, profile = self._restore()
        self._user: StitchUser | None = (
            self._make_user(credentials, profile) if credentials else None
        )
        self._credentials = CredentialState(credentials)
        self._credentials.on_change(self._on_credentials_changed)
        self._pipeline = AuthenticatedPipeline(
            executor,
            self._credentials,
            self._refresh_session,
            codec,
            dispatcher,
            default_timeout=default_timeout,
        )
        self._refresher = AccessTokenRefresher(self)
        if self.config.proactive_refresh:
            self._refresher.start()

    @property
    def pipeline(self) -> AuthenticatedPipeline:
        return self._pipeline

    @property
    def credentials(self) -> CredentialState:
        return self._credentials

    @property
    def is_logged_in(self) -> bool:
        return self._credentials.is_logged_in()

    @property
    def user(self) -> StitchUser | None:
        return self._user

    def add_auth_listener(self, listener: AuthListener) -> None:
        """Register a listener called whenever the session changes.

        This includes the logout forced by a failed refresh.
        """
        with self._listeners_lock:
            self._listeners.append(listener)

    def remove_auth_listener(self, listener: AuthListener) -> None:
        with self._listeners_lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def login_with_credential(self, credential: StitchCredential) -> ResultHandle[StitchUser]:
        """Log in, replacing any existing session.

        Anonymous logins reuse an existing anonymous session.
        """
        return self._dispatcher.submit(lambda: self._login(credential))

    def logout(self) -> ResultHandle[None]:
        """Log out. The server is told on a best-effort basis."""
        return self._dispatcher.submit(self._logout)

    def refresh_access_token(self) -> ResultHandle[None]:
        """Refresh the access token now, joining any refresh in flight."""

        def _refresh() -> None:
            current = self._credentials.current()
            if current is None:
                raise UnauthenticatedError()
            self._pipeline.reauthenticate(current)

        return self._dispatcher.submit(_refresh)

    @traced("stitch.auth.login")
    def _login(self, credential: StitchCredential) -> StitchUser:
        with self._login_lock:
            current = self._credentials.current()
            if current is not None:
                if (
                    credential.reuses_existing_session
                    and current.logged_in_provider_type == credential.provider_type
                    and self._user is not None
                ):
                    return self._user
                self._logout()

            provider_name = credential.resolved_provider_name
            body = dict(credential.material())
            body["options"] = {"device": self._device_info}
            login: LoginResponse = self._pipeline.run(
                PendingOperation(
                    kind=OperationKind.LOGIN,
                    route=self._routes.auth_provider_login_route(provider_name),
                    payload=body,
                    decode_to=LoginResponse,
                    requires_auth=False,
                )
            )
            credentials = Credentials(
                access_token=login.access_token,
                refresh_token=login.refresh_token,
                user_id=login.user_id,
                device_id=login.device_id,
                logged_in_provider_type=credential.provider_type,
                logged_in_provider_name=provider_name,
            )
            self._user = self._make_user(credentials, None)
            self._credentials.replace(credentials)

            try:
                profile: UserProfile = self._pipeline.run(
                    PendingOperation(
                        kind=OperationKind.PROFILE,
                        route=self._routes.profile_route,
                        method="GET",
                        decode_to=UserProfile,
                    )
                )
            except StitchError:
                self._credentials.clear()
                raise

            self._storage.set(PROFILE_STORAGE_KEY, profile.model_dump_json(by_alias=True))
            self._user = self._make_user(credentials, profile)
            self._logger.info(
                "Logged in",
                user_id=credentials.user_id,
                provider=credential.provider_type,
            )
            return self._user

    def _logout(self) -> None:
        current = self._credentials.current()
        if current is None:
            return
        try:
            self._pipeline.run(
                PendingOperation(
                    kind=OperationKind.LOGOUT,
                    route=self._routes.session_route,
                    method="DELETE",
                    use_refresh_token=True,
                )
            )
        except StitchError as e:
            self._logger.warning("Server logout failed", error=str(e))
        finally:
            self._credentials.clear()
            self._logger.info("Logged out", user_id=current.user_id)

    def _refresh_session(self, credentials: Credentials) -> Credentials:
        """Exchange the refresh token for a new access token."""
        response = self._executor.execute(
            Request(
                method="POST",
                path=self._routes.session_route,
                headers={"Authorization": f"Bearer {credentials.refresh_token}"},
                timeout=self._default_timeout,
            )
        )
        if response.status is not ResponseStatus.OK:
            raise ErrorFactory.from_response(response)
        refreshed: RefreshResponse = self._codec.decode(response.body, RefreshResponse)
        return credentials.with_access_token(refreshed.access_token)

    def _on_credentials_changed(self, credentials: Credentials | None) -> None:
        if credentials is None:
            self._user = None
            self._storage.remove(CREDENTIALS_STORAGE_KEY)
            self._storage.remove(PROFILE_STORAGE_KEY)
        else:
            self._storage.set(CREDENTIALS_STORAGE_KEY, credentials.model_dump_json())

        with self._listeners_lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(self)
            except Exception:
                self._logger.exception("Auth listener failed")

    def _restore(self) -> tuple[Credentials | None, UserProfile | None]:
        raw = self._storage.get(CREDENTIALS_STORAGE_KEY)
        if raw is None:
            return None, None
        try:
            credentials = Credentials.model_validate_json(raw)
        except ValidationError:
            self._logger.warning("Discarding unreadable stored session")
            self._storage.remove(CREDENTIALS_STORAGE_KEY)
            self._storage.remove(PROFILE_STORAGE_KEY)
            return None, None

        profile = None
        raw_profile = self._storage.get(PROFILE_STORAGE_KEY)
        if raw_profile is not None:
            try:
                profile = UserProfile.model_validate_json(raw_profile)
            except ValidationError:
                self._storage.remove(PROFILE_STORAGE_KEY)
        self._logger.debug("Restored stored session", user_id=credentials.user_id)
        return credentials, profile

    @staticmethod
    def _make_user(credentials: Credentials, profile: UserProfile | None) -> StitchUser:
        return StitchUser(
            id=credentials.user_id,
            logged_in_provider_type=credentials.logged_in_provider_type,
            logged_in_provider_name=credentials.logged_in_provider_name,
            profile=profile or UserProfile(),
        )

    def close(self) -> None:
        """Stop background session maintenance."""
        self._refresher.stop()


class AccessTokenRefresher:
    """Background thread refreshing access tokens shortly before they expire."""

    def __init__(self, auth: StitchAuth) -> None:
        self._auth = auth
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self._logger = get_logger()

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._loop,
            name="stitch-token-refresher",
            daemon=True,
        )
        self._thread.start()

    def check_refresh(self) -> bool:
        """Refresh if the access token is about to expire.

        Returns:
            True if a refresh was performed.
        """
        current = self._auth.credentials.current()
        if current is None:
            return False
        if not current.access_token_expires_within(self._auth.config.refresh_expiry_buffer):
            return False
        self._auth.pipeline.reauthenticate(current)
        return True

    def _loop(self) -> None:
        while not self._stop.wait(timeout=self._auth.config.refresh_check_interval):
            try:
                self.check_refresh()
            except StitchError as e:
                self._logger.warning("Proactive token refresh failed", error=str(e))

    def stop(self) -> None:
        """Stop the refresher thread; safe to call more than once."""
        self._stop.set()
        if self._thread is not None and self._thread.is_alive():
            self._thread.join(timeout=5)
        self._thread = None
