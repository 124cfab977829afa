"""Credentials for the search cluster: API keys, basic auth and bearer tokens."""

import time
from typing import Optional

import httpx

from hitstream.config import SearchSettings
from hitstream.exceptions import AuthenticationError

# Renew tokens this long before they expire.
EARLY_RENEWAL_SECONDS = 300
DEFAULT_TOKEN_LIFETIME = 1200


class TokenManager:
    """
    Caches the bearer token used when token_auth is enabled.

    Tokens come from the cluster's token service (settings.token_url)
    through a client_credentials grant, signed with the configured
    username and password. One token is shared by every request the
    client sends and renewed once it is within EARLY_RENEWAL_SECONDS of
    its expiry.

    Example:
        manager = TokenManager(SearchSettings(username="reader", password="...", token_auth=True))
        headers = {"Authorization": f"Bearer {await manager.get_token(http)}"}
    """

    def __init__(self, settings: SearchSettings):
        self.settings = settings
        self._access_token: Optional[str] = None
        self._renew_at: float = 0

    @property
    def needs_renewal(self) -> bool:
        return self._access_token is None or time.monotonic() >= self._renew_at

    async def get_token(self, client: httpx.AsyncClient) -> str:
        """
        Return the cached token, asking the token service for a new one first if needed.

        Raises:
            AuthenticationError: If credentials are missing or the grant is refused
        """
        if self.needs_renewal:
            await self._request_token(client)
        return self._access_token  # type: ignore[return-value]

    def invalidate(self) -> None:
        """Forget the cached token; the next request fetches a new one."""
        self._access_token = None
        self._renew_at = 0

    async def _request_token(self, client: httpx.AsyncClient) -> None:
        username, password = self.settings.username, self.settings.password
        if username is None or password is None:
            raise AuthenticationError(
                "token_auth requires HITSTREAM_USERNAME and HITSTREAM_PASSWORD"
            )

        try:
            response = await client.post(
                self.settings.token_url,
                json={"grant_type": "client_credentials"},
                auth=(username, password.get_secret_value()),
            )
        except httpx.RequestError as e:
            raise AuthenticationError(f"Token service unreachable: {e}") from e

        if response.status_code >= 400:
            raise AuthenticationError(
                f"Token grant refused: {response.status_code} - {response.text}",
                status_code=response.status_code,
            )

        try:
            grant = response.json()
            token = grant["access_token"]
        except (ValueError, KeyError, TypeError) as e:
            raise AuthenticationError(
                f"Token service returned no access_token: {response.text[:200]}",
                status_code=response.status_code,
            ) from e

        lifetime = grant.get("expires_in", DEFAULT_TOKEN_LIFETIME)
        self._access_token = token
        self._renew_at = time.monotonic() + lifetime - EARLY_RENEWAL_SECONDS


def static_auth_headers(settings: SearchSettings) -> dict:
    """Authorization headers that don't need a token round-trip."""
    if settings.api_key is not None:
        return {"Authorization": f"ApiKey {settings.api_key.get_secret_value()}"}
    return {}


def basic_auth(settings: SearchSettings) -> Optional[httpx.BasicAuth]:
    """Basic auth for the httpx client, unless another scheme is configured."""
    if settings.api_key is not None or settings.token_auth:
        return None
    if settings.username is None or settings.password is None:
        return None
    return httpx.BasicAuth(settings.username, settings.password.get_secret_value())
