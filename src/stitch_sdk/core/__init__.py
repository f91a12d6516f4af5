"""Core components for the Stitch SDK.

Concurrency primitives and session state shared by every client. The
request pipeline lives in ``stitch_sdk.core.pipeline``.
"""

from __future__ import annotations

from .credentials import CredentialState
from .dispatcher import TaskDispatcher
from .errors import ErrorFactory
from .handle import HandleState, ResultHandle
from .single_flight import SingleFlight

__all__ = [
    "CredentialState",
    "ErrorFactory",
    "HandleState",
    "ResultHandle",
    "SingleFlight",
    "TaskDispatcher",
]
