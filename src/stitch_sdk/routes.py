"""Route construction for the Stitch client API."""

from __future__ import annotations

API_BASE = "/api/client/v2.0"


class AuthRoutes:
    """Routes for login, profile and session management."""

    def __init__(self, client_app_id: str) -> None:
        self.client_app_id = client_app_id
        self.session_route = f"{API_BASE}/auth/session"
        self.profile_route = f"{API_BASE}/auth/profile"

    def auth_provider_route(self, provider_name: str) -> str:
        return f"{API_BASE}/app/{self.client_app_id}/auth/providers/{provider_name}"

    def auth_provider_login_route(self, provider_name: str) -> str:
        return f"{self.auth_provider_route(provider_name)}/login"


class ServiceRoutes:
    """Routes for function execution."""

    def __init__(self, client_app_id: str) -> None:
        self.client_app_id = client_app_id
        self.function_call_route = f"{API_BASE}/app/{client_app_id}/functions/call"


class AppRoutes:
    """All routes for one client app."""

    def __init__(self, client_app_id: str) -> None:
        self.client_app_id = client_app_id
        self.app_route = f"{API_BASE}/app/{client_app_id}"
        self.auth = AuthRoutes(client_app_id)
        self.service = ServiceRoutes(client_app_id)
