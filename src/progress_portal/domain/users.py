"""Domain models for portal users."""

from dataclasses import dataclass


@dataclass(frozen=True)
class User:
    """Represents the signed-in identity supplied by the auth provider."""

    uid: str
    name: str
    username: str
    email: str | None = None
    photo_url: str | None = None
    is_admin: bool = False
    country_code: str | None = None


@dataclass(frozen=True)
class AuthSession:
    """A signed-in user and the bearer token that proves it.

    ``access_token`` is None when the provider still wants the email address
    confirmed before it issues a session.
    """

    user: User
    access_token: str | None = None
