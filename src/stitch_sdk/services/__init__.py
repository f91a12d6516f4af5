"""Clients for services linked to a Stitch app."""

from __future__ import annotations

from .service import ServiceClientFactory, StitchService
from .twilio import TwilioServiceClient

__all__ = [
    "ServiceClientFactory",
    "StitchService",
    "TwilioServiceClient",
]
