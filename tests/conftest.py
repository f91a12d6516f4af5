"""
Shared test fixtures for Stitch SDK tests.

Provides configuration, credentials, and a pipeline wired to the
test doubles in ``fakes``.
"""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from fakes import (
    FakeExecutor,
    FakeReauthenticator,
    FakeStitchServer,
    TokenGate,
    make_credentials,
)
from stitch_sdk.client import Stitch, StitchAppClient
from stitch_sdk.codec import JsonCodec
from stitch_sdk.config import AuthConfig, SchedulerConfig, StitchAppClientConfig, TelemetryConfig
from stitch_sdk.core.credentials import CredentialState
from stitch_sdk.core.dispatcher import TaskDispatcher
from stitch_sdk.core.pipeline import AuthenticatedPipeline
from stitch_sdk.models import Credentials
from stitch_sdk.storage import MemoryStorage


@pytest.fixture
def credentials() -> Credentials:
    """Provide credentials whose access token the fake server rejects."""
    return make_credentials()


@pytest.fixture
def dispatcher() -> Iterator[TaskDispatcher]:
    """Provide a dispatcher that is closed after the test."""
    d = TaskDispatcher(max_workers=8, close_grace_period=2.0)
    yield d
    d.close()


@pytest.fixture
def codec() -> JsonCodec:
    return JsonCodec()


@pytest.fixture
def credential_state(credentials: Credentials) -> CredentialState:
    return CredentialState(credentials)


@pytest.fixture
def reauthenticator() -> FakeReauthenticator:
    return FakeReauthenticator()


@pytest.fixture
def executor() -> FakeExecutor:
    """Provide an executor that only accepts the refreshed token."""
    return FakeExecutor(TokenGate({"fresh-token"}))


@pytest.fixture
def pipeline(
    executor: FakeExecutor,
    credential_state: CredentialState,
    reauthenticator: FakeReauthenticator,
    codec: JsonCodec,
    dispatcher: TaskDispatcher,
) -> AuthenticatedPipeline:
    """Provide a pipeline wired to the fakes above."""
    return AuthenticatedPipeline(
        executor,
        credential_state,
        reauthenticator,
        codec,
        dispatcher,
    )


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def base_config() -> StitchAppClientConfig:
    """Provide a client configuration without background refresh."""
    return StitchAppClientConfig(
        client_app_id="test-app-abcde",
        base_url="https://stitch.example.com",
        scheduler=SchedulerConfig(max_workers=4, close_grace_period=2.0),
        auth=AuthConfig(proactive_refresh=False),
        telemetry=TelemetryConfig(enabled=False),
    )


@pytest.fixture
def server() -> FakeStitchServer:
    return FakeStitchServer()


@pytest.fixture
def app_client(
    base_config: StitchAppClientConfig,
    server: FakeStitchServer,
    storage: MemoryStorage,
) -> Iterator[StitchAppClient]:
    """Provide an app client talking to the in-memory server."""
    client = StitchAppClient(base_config, executor=FakeExecutor(server), storage=storage)
    yield client
    client.close()


@pytest.fixture(autouse=True)
def _reset_registry() -> Iterator[None]:
    yield
    Stitch.close_all()
