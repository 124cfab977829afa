"""Configuration management via environment variables."""

from typing import Optional

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class SearchSettings(BaseSettings):
    """
    Search cluster connection and paging configuration.

    All values are read from environment variables prefixed with HITSTREAM_.
    A .env file in the current directory is loaded automatically.

    Attributes:
        url: Base URL of the cluster's REST endpoint
        api_key: Encoded API key, sent as "Authorization: ApiKey ..."
        username: User for basic auth or for the token grant
        password: Password for basic auth or for the token grant (stored securely)
        token_auth: Exchange username/password for short-lived bearer tokens
        token_url_path: Path of the token service
        request_timeout: Per-request timeout in seconds
        page_size: Matches requested per batch
        scroll_ttl: How long the cluster keeps a scroll context alive between batches
        add_tie_breaker: Append tie_breaker_field to sort-key paginated requests
        tie_breaker_field: Sort field that makes the order total

    Example:
        # HITSTREAM_URL=https://search.internal:9200
        # HITSTREAM_API_KEY=your-key
        # HITSTREAM_PAGE_SIZE=500

        settings = SearchSettings()
        print(settings.page_size)
    """

    url: str = "http://localhost:9200"
    api_key: Optional[SecretStr] = None
    username: Optional[str] = None
    password: Optional[SecretStr] = None
    token_auth: bool = False
    token_url_path: str = "/_security/oauth2/token"
    request_timeout: float = 30.0
    page_size: int = Field(default=10, gt=0)
    scroll_ttl: str = "1m"
    add_tie_breaker: bool = True
    tie_breaker_field: str = "_doc"

    model_config = SettingsConfigDict(
        env_prefix="HITSTREAM_",
        env_file=".env",
        env_file_encoding="utf-8",
    )

    @property
    def base_url(self) -> str:
        """Cluster URL without a trailing slash."""
        return self.url.rstrip("/")

    @property
    def token_url(self) -> str:
        """Full URL of the token service."""
        return f"{self.base_url}{self.token_url_path}"
