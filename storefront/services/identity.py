"""
Identity Provider Client

Thin async client for the hosted auth service (Supabase Auth REST API):
email/password, OAuth redirect, phone OTP and password recovery.
"""

import logging
from typing import Any, Optional
from urllib.parse import urlencode

import httpx

from ..core.config import Settings, settings
from ..core.exceptions import ConfigurationError, IdentityProviderError
from ..models.auth import IdentitySession

logger = logging.getLogger(__name__)

DEFAULT_COUNTRY_CODE = "+91"


def to_e164(phone: str, country_code: str = DEFAULT_COUNTRY_CODE) -> str:
    """Prefix a local number with the country code"""
    phone = phone.strip()
    return phone if phone.startswith("+") else f"{country_code}{phone}"


class IdentityProviderClient:
    """
    Client for the identity provider's auth endpoints.

    Upstream 4xx responses raise IdentityProviderError with the upstream
    status; 5xx and transport failures raise it with 503.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        site_url: str = "http://localhost:8000",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.site_url = site_url.rstrip("/")
        self._api_key = api_key
        self._http_client = httpx.AsyncClient(timeout=timeout, transport=transport)

    @classmethod
    def from_settings(cls, config: Settings) -> "IdentityProviderClient":
        if not config.identity_configured:
            raise ConfigurationError(
                "Missing required environment variables: SUPABASE_URL, SUPABASE_ANON_KEY"
            )
        return cls(
            base_url=config.supabase_url,
            api_key=config.supabase_anon_key,
            site_url=config.site_url,
        )

    async def close(self) -> None:
        await self._http_client.aclose()

    def _headers(self, access_token: Optional[str] = None) -> dict[str, str]:
        return {
            "apikey": self._api_key,
            "Authorization": f"Bearer {access_token or self._api_key}",
            "Content-Type": "application/json",
        }

    async def _request(
        self,
        method: str,
        path: str,
        body: Optional[dict] = None,
        params: Optional[dict] = None,
        access_token: Optional[str] = None,
    ) -> dict[str, Any]:
        url = f"{self.base_url}/auth/v1/{path}"
        try:
            response = await self._http_client.request(
                method,
                url,
                json=body,
                params=params,
                headers=self._headers(access_token),
            )
        except httpx.HTTPError as e:
            logger.error(f"Identity provider unreachable: {method} {path} - {e}")
            raise IdentityProviderError("Authentication service unavailable", status_code=503) from e

        if response.status_code >= 500:
            logger.error(f"Identity provider error: {response.status_code} {method} {path}")
            raise IdentityProviderError("Authentication service unavailable", status_code=503)

        try:
            data = response.json() if response.content else {}
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}

        if response.status_code >= 400:
            message = (
                data.get("error_description")
                or data.get("msg")
                or data.get("message")
                or data.get("error")
                or "Authentication failed"
            )
            logger.info(f"Identity provider rejected {method} {path}: {message}")
            raise IdentityProviderError(str(message), status_code=response.status_code)

        return data

    async def sign_in_with_password(self, email: str, password: str) -> IdentitySession:
        data = await self._request(
            "POST",
            "token",
            body={"email": email, "password": password},
            params={"grant_type": "password"},
        )
        return IdentitySession.model_validate(data)

    async def sign_up(
        self,
        email: str,
        password: str,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        phone: Optional[str] = None,
    ) -> dict[str, Any]:
        return await self._request(
            "POST",
            "signup",
            body={
                "email": email,
                "password": password,
                "data": {"first_name": first_name, "last_name": last_name, "phone": phone},
            },
        )

    def oauth_authorize_url(self, provider: str = "google", next_path: str = "/") -> str:
        """URL the browser is sent to for an OAuth sign-in"""
        redirect_to = f"{self.site_url}/auth/callback?{urlencode({'next': next_path})}"
        query = urlencode({"provider": provider, "redirect_to": redirect_to})
        return f"{self.base_url}/auth/v1/authorize?{query}"

    async def send_otp(self, phone: str) -> dict[str, Any]:
        return await self._request("POST", "otp", body={"phone": to_e164(phone)})

    async def verify_otp(self, phone: str, token: str) -> IdentitySession:
        data = await self._request(
            "POST",
            "verify",
            body={"type": "sms", "phone": to_e164(phone), "token": token},
        )
        return IdentitySession.model_validate(data)

    async def refresh_session(self, refresh_token: str) -> IdentitySession:
        data = await self._request(
            "POST",
            "token",
            body={"refresh_token": refresh_token},
            params={"grant_type": "refresh_token"},
        )
        return IdentitySession.model_validate(data)

    async def reset_password(self, email: str) -> dict[str, Any]:
        return await self._request(
            "POST",
            "recover",
            body={"email": email},
            params={"redirect_to": f"{self.site_url}/auth/reset-password"},
        )

    async def update_password(self, access_token: str, new_password: str) -> dict[str, Any]:
        return await self._request(
            "PUT",
            "user",
            body={"password": new_password},
            access_token=access_token,
        )

    async def sign_out(self, access_token: str) -> None:
        await self._request("POST", "logout", access_token=access_token)


identity_client: Optional[IdentityProviderClient] = None


def get_identity_client() -> IdentityProviderClient:
    """Get or create the shared identity provider client"""
    global identity_client
    if identity_client is None:
        identity_client = IdentityProviderClient.from_settings(settings)
    return identity_client


async def close_identity_client() -> None:
    global identity_client
    if identity_client is not None:
        await identity_client.close()
        identity_client = None
