"""Twilio messaging service client."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ..core.handle import ResultHandle
    from .service import StitchService


class TwilioServiceClient:
    """Sends SMS/MMS messages through a linked Twilio service."""

    def __init__(self, service: StitchService) -> None:
        self._service = service

    def send_message(
        self,
        to: str,
        from_: str,
        body: str,
        media_url: str | None = None,
    ) -> ResultHandle[None]:
        """Send a message; ``media_url`` makes it an MMS.

        Args:
            to: Number to send the message to.
            from_: Number the message is from.
            body: Message text.
            media_url: URL of media to attach.
        """
        args: dict[str, Any] = {"to": to, "from": from_, "body": body}
        if media_url is not None:
            args["mediaUrl"] = media_url
        return self._service.call_function("send", [args], None)
