"""In-memory identity provider for development and testing.

Accounts live in a dict keyed by email. Behaviour follows the hosted
provider closely enough for the auth service's error mapping to be
exercised: the same raw error codes, a six character password minimum and
disabled accounts.
"""

import re
from uuid import uuid4

from identity.provider.port import AuthUser, IdentityProvider, ProviderError

_EMAIL = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MIN_PASSWORD_LENGTH = 6
SUPPORTED_FEDERATED_PROVIDERS = ("google.com", "facebook.com")


class FakeIdentityProvider(IdentityProvider):
    def __init__(self) -> None:
        self.accounts: dict[str, dict] = {}
        self.password_resets: list[str] = []
        self.calls: list[dict] = []
        self.fail_with: str | None = None

    def configure(self, fail_with: str | None = None) -> None:
        """Make every following call fail with the raw provider code ``fail_with``."""
        self.fail_with = fail_with

    def disable(self, email: str) -> None:
        self.accounts[email.lower()]["disabled"] = True

    async def sign_up(self, email, password, display_name=None):
        self._record("sign_up", email=email)
        email = (email or "").strip().lower()
        if not _EMAIL.match(email):
            raise ProviderError("INVALID_EMAIL")
        if email in self.accounts:
            raise ProviderError("EMAIL_EXISTS")
        if len(password or "") < MIN_PASSWORD_LENGTH:
            raise ProviderError("WEAK_PASSWORD", "Password should be at least 6 characters")

        self.accounts[email] = {
            "uid": uuid4().hex,
            "password": password,
            "display_name": display_name,
            "disabled": False,
            "provider": "password",
        }
        return self._user(email)

    async def sign_in(self, email, password):
        self._record("sign_in", email=email)
        email = (email or "").strip().lower()
        if not _EMAIL.match(email):
            raise ProviderError("INVALID_EMAIL")

        account = self.accounts.get(email)
        if account is None:
            raise ProviderError("EMAIL_NOT_FOUND")
        if account["disabled"]:
            raise ProviderError("USER_DISABLED")
        if account["password"] != password:
            raise ProviderError("INVALID_PASSWORD")
        return self._user(email)

    async def federated_sign_in(self, provider, credential):
        self._record("federated_sign_in", provider=provider)
        if provider not in SUPPORTED_FEDERATED_PROVIDERS:
            raise ProviderError("INVALID_PROVIDER_ID")

        # Fake credentials are simply the account email
        email = (credential or "").strip().lower()
        account = self.accounts.get(email)
        if account is not None and account["provider"] != provider:
            raise ProviderError("FEDERATED_USER_ID_ALREADY_LINKED")
        if account is None:
            self.accounts[email] = {
                "uid": uuid4().hex,
                "password": None,
                "display_name": email.split("@")[0],
                "disabled": False,
                "provider": provider,
            }
        return self._user(email)

    async def send_password_reset(self, email):
        self._record("send_password_reset", email=email)
        email = (email or "").strip().lower()
        if email not in self.accounts:
            raise ProviderError("EMAIL_NOT_FOUND")
        self.password_resets.append(email)

    async def sign_out(self, user):
        self._record("sign_out", uid=user.uid if user else None)

    def _record(self, method: str, **kwargs) -> None:
        self.calls.append({"method": method, **kwargs})
        if self.fail_with:
            raise ProviderError(self.fail_with)

    def _user(self, email: str) -> AuthUser:
        account = self.accounts[email]
        return AuthUser(
            uid=account["uid"],
            email=email,
            display_name=account["display_name"],
            email_verified=account["provider"] != "password",
            provider=account["provider"],
            id_token=f"fake-id-token-{account['uid']}",
        )
