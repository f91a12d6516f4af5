"""Login credentials for the supported authentication providers."""

from __future__ import annotations

from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field, SecretStr


class StitchCredential(BaseModel):
    """Material presented to an authentication provider to log in."""

    model_config = ConfigDict(frozen=True)

    provider_type: ClassVar[str]
    default_provider_name: ClassVar[str]
    # Logging in again with the same provider returns the existing user.
    reuses_existing_session: ClassVar[bool] = False

    provider_name: str | None = None

    @property
    def resolved_provider_name(self) -> str:
        return self.provider_name or self.default_provider_name

    def material(self) -> dict[str, Any]:
        """Body fields sent to the login route."""
        return {}


class AnonymousCredential(StitchCredential):
    """Log in as an anonymous user."""

    provider_type: ClassVar[str] = "anon-user"
    default_provider_name: ClassVar[str] = "anon-user"
    reuses_existing_session: ClassVar[bool] = True


class UserPasswordCredential(StitchCredential):
    """Log in with a username (email) and password."""

    provider_type: ClassVar[str] = "local-userpass"
    default_provider_name: ClassVar[str] = "local-userpass"

    username: str = Field(..., min_length=1)
    password: SecretStr

    def material(self) -> dict[str, Any]:
        return {
            "username": self.username,
            "password": self.password.get_secret_value(),
        }


class UserApiKeyCredential(StitchCredential):
    """Log in with a key a user created for themselves."""

    provider_type: ClassVar[str] = "api-key"
    default_provider_name: ClassVar[str] = "api-key"

    key: SecretStr

    def material(self) -> dict[str, Any]:
        return {"key": self.key.get_secret_value()}


class ServerApiKeyCredential(UserApiKeyCredential):
    """Log in with a server API key."""


class CustomCredential(StitchCredential):
    """Log in with a JWT issued by a custom authentication system."""

    provider_type: ClassVar[str] = "custom-token"
    default_provider_name: ClassVar[str] = "custom-token"

    token: SecretStr

    def material(self) -> dict[str, Any]:
        return {"token": self.token.get_secret_value()}
