"""Identity provider factory.

Provides get_identity_provider() / set_identity_provider() to swap
implementations:
- FakeIdentityProvider for development and testing
- FirebaseIdentityProvider for production
"""

from identity.provider.fake_adapter import FakeIdentityProvider
from identity.provider.firebase_adapter import FirebaseIdentityProvider
from identity.provider.port import AuthUser, IdentityProvider, ProviderError
from shared.config import get_settings

__all__ = [
    "AuthUser",
    "FakeIdentityProvider",
    "FirebaseIdentityProvider",
    "IdentityProvider",
    "ProviderError",
    "get_identity_provider",
    "reset_identity_provider",
    "set_identity_provider",
]

_current_provider: IdentityProvider | None = None


def _build_provider() -> IdentityProvider:
    settings = get_settings()
    if settings.IDENTITY_PROVIDER == "firebase":
        return FirebaseIdentityProvider(
            api_key=settings.require_identity_key(),
            base_url=settings.IDENTITY_BASE_URL,
            timeout=settings.IDENTITY_TIMEOUT_SECONDS,
        )
    return FakeIdentityProvider()


def get_identity_provider() -> IdentityProvider:
    """Return the current identity provider, building it from settings on first use."""
    global _current_provider
    if _current_provider is None:
        _current_provider = _build_provider()
    return _current_provider


def set_identity_provider(provider: IdentityProvider) -> None:
    """Override the active identity provider (useful for tests)."""
    global _current_provider
    _current_provider = provider


def reset_identity_provider() -> None:
    global _current_provider
    _current_provider = None
