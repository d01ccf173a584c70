"""Identity provider port (abstract interface).

Adapters speak the provider's own error dialect: they raise ``ProviderError``
carrying the raw provider code. ``identity.auth.AuthService`` is the only
place those codes are translated.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class AuthUser:
    """An authenticated identity as returned by the provider."""

    uid: str
    email: str | None
    display_name: str | None = None
    email_verified: bool = False
    provider: str = "password"
    id_token: str | None = None
    refresh_token: str | None = None


class ProviderError(Exception):
    """Raised by adapters with the provider's raw error code."""

    def __init__(self, code: str, detail: str | None = None):
        self.code = code
        self.detail = detail
        super().__init__(f"{code}: {detail}" if detail else code)


class IdentityProvider(ABC):
    """Abstract identity provider interface."""

    @abstractmethod
    async def sign_up(self, email: str, password: str, display_name: str | None = None) -> AuthUser:
        """Create an account and return the signed-in user."""
        ...

    @abstractmethod
    async def sign_in(self, email: str, password: str) -> AuthUser: ...

    @abstractmethod
    async def federated_sign_in(self, provider: str, credential: str) -> AuthUser:
        """Sign in with an OAuth credential issued by ``provider`` (e.g. ``google.com``)."""
        ...

    @abstractmethod
    async def send_password_reset(self, email: str) -> None: ...

    @abstractmethod
    async def sign_out(self, user: AuthUser | None) -> None: ...
