"""Unit tests for the Twilio service client."""

from __future__ import annotations

import pytest

from fakes import FakeStitchServer
from stitch_sdk.auth_providers import AnonymousCredential
from stitch_sdk.client import StitchAppClient
from stitch_sdk.errors import StitchServiceError, UnauthenticatedError
from stitch_sdk.services import TwilioServiceClient

TIMEOUT = 5.0


@pytest.fixture
def twilio(app_client: StitchAppClient) -> TwilioServiceClient:
    app_client.auth.login_with_credential(AnonymousCredential()).result(timeout=TIMEOUT)
    return app_client.get_service_client(TwilioServiceClient, "twilio1")


class TestTwilioServiceClient:
    """Tests for send_message."""

    def test_send_sms(self, twilio: TwilioServiceClient, server: FakeStitchServer) -> None:
        server.functions["send"] = lambda args: {"sid": "SM123"}

        assert twilio.send_message("+15551234567", "+15557654321", "hello").result(timeout=TIMEOUT) is None

        payload = server.function_calls[-1]
        assert payload["name"] == "send"
        assert payload["service"] == "twilio1"
        assert payload["arguments"] == [
            {"to": "+15551234567", "from": "+15557654321", "body": "hello"}
        ]

    def test_send_mms(self, twilio: TwilioServiceClient, server: FakeStitchServer) -> None:
        server.functions["send"] = lambda args: None

        twilio.send_message(
            "+15551234567",
            "+15557654321",
            "look",
            media_url="https://example.com/cat.png",
        ).result(timeout=TIMEOUT)

        args = server.function_calls[-1]["arguments"][0]
        assert args["mediaUrl"] == "https://example.com/cat.png"

    def test_service_error(self, twilio: TwilioServiceClient) -> None:
        error = twilio.send_message("+1", "+2", "x").exception(timeout=TIMEOUT)

        assert isinstance(error, StitchServiceError)
        assert error.error_code == "FunctionNotFound"

    def test_requires_login(self, app_client: StitchAppClient) -> None:
        client = app_client.get_service_client(TwilioServiceClient, "twilio1")

        error = client.send_message("+1", "+2", "x").exception(timeout=TIMEOUT)

        assert isinstance(error, UnauthenticatedError)
