from functools import lru_cache
from typing import Optional

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


ALLOWED_RATE_PROVIDERS = {"static", "external-http"}
ALLOWED_STRATEGIES = {"anchored", "two-leg"}


class Settings(BaseSettings):
    """Application settings loaded from environment with defaults.

    Environment variable mapping follows pydantic's rules (e.g., APP_NAME, DEBUG,
    EXCHANGE_API_BASE_URL, EXCHANGE_API_KEY, CONVERSION_STRATEGY).

    The live exchangerate-api v6 service expects the key as a path segment, so
    point EXCHANGE_API_BASE_URL at ``https://v6.exchangerate-api.com/v6/<KEY>``
    when using it. The key is also sent as the ``apikey`` query parameter for
    gateways that read it from there; the default base URL only suits such
    gateways.
    """

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Basic app metadata
    app_name: str = "FX Converter"
    debug: bool = False
    version: str = "0.1.0"

    # Upstream rates API; requests go to {base_url}/latest/{code}?apikey={key}
    exchange_api_base_url: str = "https://v6.exchangerate-api.com/v6"
    exchange_api_key: SecretStr = SecretStr("")
    # None keeps the httpx default
    http_timeout_seconds: Optional[float] = None

    # Allowed: 'static' (built-in fixed table), 'external-http' (live upstream)
    exchange_rate_provider: str = "external-http"

    # 'anchored' fetches one table at the source currency; 'two-leg' fetches one per side
    conversion_strategy: str = "anchored"
    concurrent_legs: bool = True

    def init_post_load(self) -> None:
        """Normalize and validate enumerated fields."""
        self.exchange_api_base_url = self.exchange_api_base_url.rstrip("/")
        if self.exchange_rate_provider not in ALLOWED_RATE_PROVIDERS:
            raise ValueError(
                f"Unsupported exchange_rate_provider '{self.exchange_rate_provider}'. Allowed: {ALLOWED_RATE_PROVIDERS}"
            )
        if self.conversion_strategy not in ALLOWED_STRATEGIES:
            raise ValueError(
                f"Unsupported conversion_strategy '{self.conversion_strategy}'. Allowed: {ALLOWED_STRATEGIES}"
            )

    @property
    def missing_api_key(self) -> bool:
        return (
            self.exchange_rate_provider == "external-http"
            and not self.exchange_api_key.get_secret_value()
        )


@lru_cache
def get_settings() -> Settings:
    settings = Settings()
    settings.init_post_load()
    return settings
