"""Firebase identity adapter over the Identity Toolkit REST API.

Endpoints used (all ``POST {base}/accounts:<method>?key=<api key>``):
- ``signUp``, ``update`` and ``sendOobCode`` (VERIFY_EMAIL) to register
- ``signInWithPassword`` to sign in
- ``signInWithIdp`` for Google/Facebook credentials
- ``sendOobCode`` (PASSWORD_RESET) for password resets

Error bodies look like ``{"error": {"message": "EMAIL_EXISTS"}}``; the message
is passed on untranslated as a ``ProviderError`` code.
"""

import httpx
import structlog

from identity.provider.port import AuthUser, IdentityProvider, ProviderError

logger = structlog.get_logger(__name__)

DEFAULT_BASE_URL = "https://identitytoolkit.googleapis.com/v1"


class FirebaseIdentityProvider(IdentityProvider):
    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def sign_up(self, email, password, display_name=None):
        data = await self._call("signUp", {"email": email, "password": password, "returnSecureToken": True})
        id_token = data["idToken"]

        if display_name:
            data = {**data, **await self._call("update", {"idToken": id_token, "displayName": display_name})}

        await self._call("sendOobCode", {"requestType": "VERIFY_EMAIL", "idToken": id_token})
        return self._user(data, id_token=id_token)

    async def sign_in(self, email, password):
        data = await self._call(
            "signInWithPassword",
            {"email": email, "password": password, "returnSecureToken": True},
        )
        return self._user(data)

    async def federated_sign_in(self, provider, credential):
        data = await self._call(
            "signInWithIdp",
            {
                "postBody": f"id_token={credential}&providerId={provider}",
                "requestUri": "http://localhost",
                "returnSecureToken": True,
                "returnIdpCredential": True,
            },
        )
        if data.get("needConfirmation"):
            raise ProviderError("FEDERATED_USER_ID_ALREADY_LINKED")
        return self._user(data, provider=provider)

    async def send_password_reset(self, email):
        await self._call("sendOobCode", {"requestType": "PASSWORD_RESET", "email": email})

    async def sign_out(self, user):
        # ID tokens are stateless; dropping them client-side is the sign-out
        return None

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _call(self, method: str, payload: dict) -> dict:
        url = f"{self.base_url}/accounts:{method}"
        try:
            response = await self._client.post(url, params={"key": self.api_key}, json=payload)
        except httpx.HTTPError as exc:
            logger.warning("identity_provider_unreachable", method=method, error=str(exc))
            raise ProviderError("NETWORK_REQUEST_FAILED", str(exc)) from exc

        try:
            body = response.json()
        except ValueError as exc:
            raise ProviderError("INVALID_RESPONSE", f"{method} answered {response.status_code}") from exc

        if response.is_error:
            message = (body.get("error") or {}).get("message", "") if isinstance(body, dict) else ""
            code, _, detail = message.partition(" : ")
            raise ProviderError(code.strip() or f"HTTP_{response.status_code}", detail or None)
        return body

    @staticmethod
    def _user(data: dict, id_token: str | None = None, provider: str = "password") -> AuthUser:
        return AuthUser(
            uid=data["localId"],
            email=data.get("email"),
            display_name=data.get("displayName") or None,
            email_verified=bool(data.get("emailVerified", False)),
            provider=provider,
            id_token=id_token or data.get("idToken"),
            refresh_token=data.get("refreshToken"),
        )
