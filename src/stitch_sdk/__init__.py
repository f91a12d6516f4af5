"""Stitch Python SDK."""

__version__ = "1.0.0"

from .auth import StitchAuth  # noqa: E402
from .auth_providers import (  # noqa: E402
    AnonymousCredential,
    CustomCredential,
    ServerApiKeyCredential,
    UserApiKeyCredential,
    UserPasswordCredential,
)
from .client import Stitch, StitchAppClient  # noqa: E402
from .config import StitchAppClientConfig  # noqa: E402
from .core.handle import ResultHandle  # noqa: E402
from .errors import (  # noqa: E402
    AuthRetryExhaustedError,
    ClosedError,
    DecodingError,
    NetworkError,
    ReauthenticationFailedError,
    StitchError,
    StitchServiceError,
    UnauthenticatedError,
)
from .models import Credentials, StitchUser  # noqa: E402

__all__ = [
    "AnonymousCredential",
    "AuthRetryExhaustedError",
    "ClosedError",
    "Credentials",
    "CustomCredential",
    "DecodingError",
    "NetworkError",
    "ReauthenticationFailedError",
    "ResultHandle",
    "ServerApiKeyCredential",
    "Stitch",
    "StitchAppClient",
    "StitchAppClientConfig",
    "StitchAuth",
    "StitchError",
    "StitchServiceError",
    "StitchUser",
    "UnauthenticatedError",
    "UserApiKeyCredential",
    "UserPasswordCredential",
]
