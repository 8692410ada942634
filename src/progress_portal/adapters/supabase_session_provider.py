"""Supabase Auth session provider."""

import logging
from collections.abc import Mapping
from dataclasses import dataclass

from supabase import AuthError, Client

from progress_portal.domain.users import AuthSession, User
from progress_portal.services.sessions import SessionProvider

_logger = logging.getLogger(__name__)


@dataclass
class SupabaseSessionProvider(SessionProvider):
    """Session provider backed by Supabase Auth.

    Signing in stores the session on the client it was made with, so this
    client is kept apart from the one that reads and writes project data.
    Requests are identified only by the bearer token they carry.
    """

    client: Client

    def current_user(self, access_token: str) -> User | None:
        """Return the user for a bearer token, or None when it is not valid."""
        try:
            response = self.client.auth.get_user(access_token)
        except AuthError as exc:
            _logger.info("Rejected access token: %s", exc)
            return None
        if response is None or response.user is None:
            return None
        return _to_user(response.user)

    def sign_in(self, email: str, password: str) -> AuthSession:
        """Sign in with email and password."""
        response = self.client.auth.sign_in_with_password(
            {"email": email, "password": password}
        )
        return _to_session(response)

    def sign_up(
        self, email: str, password: str, *, name: str, country_code: str | None
    ) -> AuthSession:
        """Register an account with the profile fields kept in user metadata."""
        metadata = {"full_name": name}
        if country_code:
            metadata["country_code"] = country_code
        response = self.client.auth.sign_up(
            {"email": email, "password": password, "options": {"data": metadata}}
        )
        return _to_session(response)

    def logout(self, access_token: str) -> None:
        """Revoke the session the token belongs to."""
        self.client.auth.admin.sign_out(access_token, "local")


def _to_session(response: object) -> AuthSession:
    auth_user = getattr(response, "user", None)
    if auth_user is None:
        raise RuntimeError("Auth provider returned no user")
    session = getattr(response, "session", None)
    return AuthSession(
        user=_to_user(auth_user),
        access_token=getattr(session, "access_token", None),
    )


def _to_user(auth_user: object) -> User:
    """Map a Supabase auth user to the portal's user model.

    Profile fields come from ``user_metadata``; the admin flag is read only
    from ``app_metadata``, which users cannot edit themselves.
    """
    email = getattr(auth_user, "email", None)
    metadata: Mapping[str, object] = getattr(auth_user, "user_metadata", None) or {}
    app_metadata: Mapping[str, object] = getattr(auth_user, "app_metadata", None) or {}
    local_part = email.split("@", 1)[0] if email else ""
    name = metadata.get("full_name") or metadata.get("name") or local_part
    username = metadata.get("username") or local_part
    is_admin = bool(app_metadata.get("is_admin")) or app_metadata.get("role") == "admin"
    return User(
        uid=str(getattr(auth_user, "id", "")),
        name=str(name),
        username=str(username),
        email=email,
        photo_url=_optional_str(metadata.get("avatar_url")),
        is_admin=is_admin,
        country_code=_optional_str(metadata.get("country_code")),
    )


def _optional_str(value: object) -> str | None:
    return str(value) if value else None
