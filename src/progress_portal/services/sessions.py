"""Signed-in identity supplied by the auth provider."""

from dataclasses import dataclass
from typing import Protocol

from progress_portal.domain.users import AuthSession, User


class SessionProvider(Protocol):
    """Interface to the external authentication provider."""

    def current_user(self, access_token: str) -> User | None:
        """Return the user an access token belongs to, or None when invalid."""

    def sign_in(self, email: str, password: str) -> AuthSession:
        """Sign in with email and password."""

    def sign_up(
        self, email: str, password: str, *, name: str, country_code: str | None
    ) -> AuthSession:
        """Register a new account."""

    def logout(self, access_token: str) -> None:
        """End the session the access token belongs to."""


class AccessDeniedError(PermissionError):
    """The current user may not perform the requested action."""


@dataclass
class SessionService:
    """Service wrapping the session provider."""

    provider: SessionProvider

    def current_user(self, access_token: str | None) -> User | None:
        """Return the user for a request's access token, if any."""
        if not access_token:
            return None
        return self.provider.current_user(access_token)

    def sign_in(self, email: str, password: str) -> AuthSession:
        """Sign in through the provider."""
        return self.provider.sign_in(email.strip(), password)

    def sign_up(
        self,
        email: str,
        password: str,
        *,
        name: str,
        country_code: str | None = None,
    ) -> AuthSession:
        """Register through the provider."""
        return self.provider.sign_up(
            email.strip(), password, name=name.strip(), country_code=country_code
        )

    def logout(self, access_token: str) -> None:
        """Sign out through the provider."""
        self.provider.logout(access_token)
