"""Pydantic models for the Stitch SDK.

Frozen models for immutability: credentials are replaced wholesale,
never mutated in place.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from enum import StrEnum
from typing import Any, Self

import jwt
from pydantic import BaseModel, ConfigDict, Field


class Credentials(BaseModel):
    """Session material for a logged in user."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    access_token: str = Field(..., min_length=1)
    refresh_token: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1)
    device_id: str | None = None
    logged_in_provider_type: str
    logged_in_provider_name: str

    @property
    def is_valid(self) -> bool:
        """Check that both tokens are present."""
        return bool(self.access_token and self.refresh_token)

    def with_access_token(self, access_token: str) -> Self:
        """Return a copy carrying a new access token."""
        return self.model_copy(update={"access_token": access_token})

    def access_token_expires_at(self) -> datetime | None:
        """Read the ``exp`` claim of the access token, if it is a JWT."""
        try:
            claims = jwt.decode(
                self.access_token,
                options={"verify_signature": False},
            )
        except jwt.exceptions.InvalidTokenError:
            return None
        exp = claims.get("exp")
        if not isinstance(exp, (int, float)):
            return None
        return datetime.fromtimestamp(exp, tz=UTC)

    def access_token_expires_within(self, seconds: int) -> bool:
        """Check if the access token expires within the given window.

        Tokens without a readable expiry are treated as not expiring.
        """
        expires_at = self.access_token_expires_at()
        if expires_at is None:
            return False
        return datetime.now(UTC) + timedelta(seconds=seconds) >= expires_at

    def __repr__(self) -> str:
        return (
            f"Credentials(user_id={self.user_id!r}, "
            f"provider={self.logged_in_provider_type!r})"
        )


class UserIdentity(BaseModel):
    """An identity linked to a user."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    provider_type: str


class UserProfile(BaseModel):
    """Profile of the logged in user, as reported by the server."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    user_type: str | None = Field(default=None, alias="type")
    data: dict[str, Any] = Field(default_factory=dict)
    identities: list[UserIdentity] = Field(default_factory=list)

    @property
    def email(self) -> str | None:
        return self.data.get("email")

    @property
    def name(self) -> str | None:
        return self.data.get("name")


class StitchUser(BaseModel):
    """A user logged in to a Stitch app."""

    model_config = ConfigDict(frozen=True)

    id: str
    logged_in_provider_type: str
    logged_in_provider_name: str
    profile: UserProfile = Field(default_factory=UserProfile)

    @property
    def identities(self) -> list[UserIdentity]:
        return self.profile.identities


class LoginResponse(BaseModel):
    """Body returned by a provider login route."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    access_token: str
    refresh_token: str
    user_id: str
    device_id: str | None = None


class RefreshResponse(BaseModel):
    """Body returned by the session refresh route."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    access_token: str


class OperationKind(StrEnum):
    """Kinds of remote calls the pipeline carries."""

    FUNCTION_CALL = "function_call"
    STREAM = "stream"
    LOGIN = "login"
    PROFILE = "profile"
    REFRESH = "refresh"
    LOGOUT = "logout"


class PendingOperation(BaseModel):
    """Immutable descriptor of one logical remote call.

    ``payload`` is already serialized to JSON-compatible data. ``decode_to``
    names the type the response body is decoded into; ``None`` discards it.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    kind: OperationKind
    route: str
    method: str = "POST"
    payload: Any = None
    params: dict[str, str] | None = None
    decode_to: Any = None
    timeout: float | None = None
    requires_auth: bool = True
    use_refresh_token: bool = False

    @property
    def name(self) -> str:
        return f"{self.kind.value} {self.method} {self.route}"
