"""Authentication service — the identity-provider boundary.

Every provider failure is translated here, once, into a closed
``AuthErrorCode`` with a fixed shopper-facing message. Raw provider codes
never leave this module.
"""

from enum import Enum
from typing import Callable

import structlog

from identity.provider import AuthUser, IdentityProvider, ProviderError, get_identity_provider
from shared.errors import AuthError

logger = structlog.get_logger(__name__)


class AuthErrorCode(Enum):
    EMAIL_ALREADY_IN_USE = "email_already_in_use"
    WEAK_PASSWORD = "weak_password"
    INVALID_EMAIL = "invalid_email"
    USER_NOT_FOUND = "user_not_found"
    WRONG_PASSWORD = "wrong_password"
    INVALID_CREDENTIALS = "invalid_credentials"
    USER_DISABLED = "user_disabled"
    TOO_MANY_REQUESTS = "too_many_requests"
    NETWORK_ERROR = "network_error"
    SIGN_IN_CANCELLED = "sign_in_cancelled"
    ACCOUNT_EXISTS_WITH_DIFFERENT_CREDENTIAL = "account_exists_with_different_credential"
    UNKNOWN = "unknown"


AUTH_ERROR_MESSAGES = {
    AuthErrorCode.EMAIL_ALREADY_IN_USE: "This email is already registered.",
    AuthErrorCode.WEAK_PASSWORD: "Password should be at least 6 characters.",
    AuthErrorCode.INVALID_EMAIL: "Please enter a valid email address.",
    AuthErrorCode.USER_NOT_FOUND: "No account found with this email.",
    AuthErrorCode.WRONG_PASSWORD: "Incorrect password.",
    AuthErrorCode.INVALID_CREDENTIALS: "Incorrect email or password.",
    AuthErrorCode.USER_DISABLED: "This account has been disabled.",
    AuthErrorCode.TOO_MANY_REQUESTS: "Too many failed attempts. Try again later.",
    AuthErrorCode.NETWORK_ERROR: "Network error. Check your connection.",
    AuthErrorCode.SIGN_IN_CANCELLED: "Sign-in was cancelled.",
    AuthErrorCode.ACCOUNT_EXISTS_WITH_DIFFERENT_CREDENTIAL: "Account exists with different sign-in method.",
    AuthErrorCode.UNKNOWN: "An unexpected error occurred.",
}

_PROVIDER_CODES = {
    "EMAIL_EXISTS": AuthErrorCode.EMAIL_ALREADY_IN_USE,
    "WEAK_PASSWORD": AuthErrorCode.WEAK_PASSWORD,
    "INVALID_EMAIL": AuthErrorCode.INVALID_EMAIL,
    "MISSING_EMAIL": AuthErrorCode.INVALID_EMAIL,
    "EMAIL_NOT_FOUND": AuthErrorCode.USER_NOT_FOUND,
    "INVALID_PASSWORD": AuthErrorCode.WRONG_PASSWORD,
    "MISSING_PASSWORD": AuthErrorCode.WRONG_PASSWORD,
    "INVALID_LOGIN_CREDENTIALS": AuthErrorCode.INVALID_CREDENTIALS,
    "USER_DISABLED": AuthErrorCode.USER_DISABLED,
    "TOO_MANY_ATTEMPTS_TRY_LATER": AuthErrorCode.TOO_MANY_REQUESTS,
    "NETWORK_REQUEST_FAILED": AuthErrorCode.NETWORK_ERROR,
    "INVALID_IDP_RESPONSE": AuthErrorCode.SIGN_IN_CANCELLED,
    "FEDERATED_USER_ID_ALREADY_LINKED": AuthErrorCode.ACCOUNT_EXISTS_WITH_DIFFERENT_CREDENTIAL,
}


def map_provider_error(raw_code: str | None) -> AuthErrorCode:
    return _PROVIDER_CODES.get((raw_code or "").strip().upper(), AuthErrorCode.UNKNOWN)


def auth_error(code: AuthErrorCode) -> AuthError:
    return AuthError(code, AUTH_ERROR_MESSAGES[code])


class AuthService:
    """Tracks the signed-in user and notifies listeners when it changes."""

    def __init__(self, provider: IdentityProvider | None = None):
        self.provider = provider or get_identity_provider()
        self.current_user: AuthUser | None = None
        self._listeners: list[Callable[[AuthUser | None], None]] = []

    @property
    def is_authenticated(self) -> bool:
        return self.current_user is not None

    def on_auth_state_change(self, listener: Callable[[AuthUser | None], None]) -> Callable[[], None]:
        """Register ``listener``; the returned callable unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def sign_up(self, email: str, password: str, display_name: str | None = None) -> AuthUser:
        user = await self._call("sign_up", self.provider.sign_up(email, password, display_name))
        self._set_user(user)
        return user

    async def sign_in(self, email: str, password: str) -> AuthUser:
        user = await self._call("sign_in", self.provider.sign_in(email, password))
        self._set_user(user)
        return user

    async def federated_sign_in(self, provider: str, credential: str | None) -> AuthUser:
        if not credential:
            raise auth_error(AuthErrorCode.SIGN_IN_CANCELLED)
        user = await self._call("federated_sign_in", self.provider.federated_sign_in(provider, credential))
        self._set_user(user)
        return user

    async def send_password_reset(self, email: str) -> None:
        await self._call("send_password_reset", self.provider.send_password_reset(email))

    async def sign_out(self) -> None:
        await self._call("sign_out", self.provider.sign_out(self.current_user))
        self._set_user(None)

    async def _call(self, operation: str, awaitable):
        try:
            return await awaitable
        except ProviderError as exc:
            code = map_provider_error(exc.code)
            logger.info("auth_failed", operation=operation, code=code.value)
            raise auth_error(code) from exc

    def _set_user(self, user: AuthUser | None) -> None:
        previous, self.current_user = self.current_user, user
        if previous == user:
            return

        logger.info("auth_state_changed", uid=user.uid if user else None)
        for listener in list(self._listeners):
            listener(user)
