"""Stitch app client and the registry of initialized clients."""

from __future__ import annotations

import platform
import threading
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, ClassVar, Self, TypeVar

from . import __version__
from .auth import StitchAuth
from .codec import Codec, JsonCodec
from .config import StitchAppClientConfig
from .core.dispatcher import TaskDispatcher
from .errors import InvalidConfigError
from .routes import AppRoutes
from .services.service import StitchService
from .storage import FileStorage, MemoryStorage, Storage
from .telemetry import configure_telemetry, get_logger
from .transport import HttpRequestExecutor, RequestExecutor

if TYPE_CHECKING:
    from .core.handle import ResultHandle
    from .services.service import ServiceClientFactory

T = TypeVar("T")


class StitchAppClient:
    """Client for one Stitch app.

    Every remote call returns a ``ResultHandle`` immediately; the work runs
    on the client's background workers.
    """

    def __init__(
        self,
        config: StitchAppClientConfig,
        *,
        executor: RequestExecutor | None = None,
        storage: Storage | None = None,
        codec: Codec | None = None,
    ) -> None:
        """Initialize client.

        Args:
            config: SDK configuration.
            executor: Request executor; defaults to one backed by httpx.
            storage: Session storage; defaults to a file under
                ``config.data_directory``, or memory when unset.
            codec: Payload codec; defaults to ``JsonCodec``.
        """
        self.config = config
        self._logger = get_logger().bind(client_app_id=config.client_app_id)
        self._routes = AppRoutes(config.client_app_id)
        self._dispatcher = TaskDispatcher(
            config.scheduler.max_workers,
            close_grace_period=config.scheduler.close_grace_period,
        )
        self._executor = executor or HttpRequestExecutor(config)
        self._codec = codec or JsonCodec()
        if storage is None:
            storage = (
                FileStorage.for_app(config.data_directory, config.client_app_id)
                if config.data_directory
                else MemoryStorage()
            )
        self._auth = StitchAuth(
            self._executor,
            self._routes.auth,
            storage,
            self._dispatcher,
            self._codec,
            config=config.auth,
            device_info=self._device_info(),
            default_timeout=config.default_request_timeout,
        )
        self._functions = StitchService(self._auth.pipeline, self._routes.service)
        self._closed = False

    def _device_info(self) -> dict[str, Any]:
        info: dict[str, Any] = {
            "appId": self.config.client_app_id,
            "platform": "python",
            "platformVersion": platform.python_version(),
            "sdkVersion": __version__,
        }
        if self.config.local_app_name:
            info["appName"] = self.config.local_app_name
        if self.config.local_app_version:
            info["appVersion"] = self.config.local_app_version
        return info

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    @property
    def auth(self) -> StitchAuth:
        return self._auth

    def call_function(
        self,
        name: str,
        args: Sequence[Any] | None = None,
        result_type: Any = Any,
        *,
        timeout: float | None = None,
    ) -> ResultHandle[Any]:
        """Call an app function.

        Args:
            name: Function name.
            args: Positional arguments, encoded as JSON.
            result_type: Type the result is decoded into.
            timeout: Advisory request timeout in seconds.

        Raises:
            ClosedError: If the client has been closed.
        """
        return self._functions.call_function(name, args, result_type, timeout=timeout)

    def get_service_client(
        self,
        factory: ServiceClientFactory[T],
        service_name: str = "",
    ) -> T:
        """Build a client for a linked service.

        Args:
            factory: Callable taking a ``StitchService``, such as
                ``RemoteMongoClient`` or ``TwilioServiceClient``.
            service_name: Name the service is linked under.
        """
        return factory(StitchService(self._auth.pipeline, self._routes.service, service_name))

    def close(self) -> None:
        """Stop background work and release the transport."""
        if self._closed:
            return
        self._closed = True
        self._auth.close()
        self._dispatcher.close()
        self._executor.close()
        self._logger.debug("App client closed")


class Stitch:
    """Process-wide registry of app clients."""

    _clients: ClassVar[dict[str, StitchAppClient]] = {}
    _default_app_id: ClassVar[str | None] = None
    _lock: ClassVar[threading.Lock] = threading.Lock()

    @classmethod
    def initialize_app_client(
        cls,
        config: StitchAppClientConfig,
        **kwargs: Any,
    ) -> StitchAppClient:
        """Create and register a client for ``config.client_app_id``.

        Raises:
            InvalidConfigError: If a client for that app already exists.
        """
        return cls._register(config, as_default=False, **kwargs)

    @classmethod
    def initialize_default_app_client(
        cls,
        config: StitchAppClientConfig,
        **kwargs: Any,
    ) -> StitchAppClient:
        """Create a client and make it the default one.

        Raises:
            InvalidConfigError: If a default client already exists, or a
                client for that app does.
        """
        return cls._register(config, as_default=True, **kwargs)

    @classmethod
    def _register(
        cls,
        config: StitchAppClientConfig,
        *,
        as_default: bool,
        **kwargs: Any,
    ) -> StitchAppClient:
        with cls._lock:
            if as_default and cls._default_app_id is not None:
                raise InvalidConfigError("Default app client already initialized")
            if config.client_app_id in cls._clients:
                raise InvalidConfigError(
                    f"App client for {config.client_app_id!r} already initialized",
                    field="client_app_id",
                )
            configure_telemetry(config.telemetry)
            client = StitchAppClient(config, **kwargs)
            cls._clients[config.client_app_id] = client
            if as_default:
                cls._default_app_id = config.client_app_id
            return client

    @classmethod
    def has_app_client(cls, client_app_id: str) -> bool:
        with cls._lock:
            return client_app_id in cls._clients

    @classmethod
    def get_app_client(cls, client_app_id: str) -> StitchAppClient:
        """Get a registered client.

        Raises:
            InvalidConfigError: If no client was initialized for the app.
        """
        with cls._lock:
            client = cls._clients.get(client_app_id)
        if client is None:
            raise InvalidConfigError(
                f"App client for {client_app_id!r} not initialized",
                field="client_app_id",
            )
        return client

    @classmethod
    def get_default_app_client(cls) -> StitchAppClient:
        with cls._lock:
            app_id = cls._default_app_id
        if app_id is None:
            raise InvalidConfigError("Default app client not initialized")
        return cls.get_app_client(app_id)

    @classmethod
    def close_all(cls) -> None:
        """Close and forget every registered client."""
        with cls._lock:
            clients = list(cls._clients.values())
            cls._clients.clear()
            cls._default_app_id = None
        for client in clients:
            client.close()
