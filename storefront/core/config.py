"""Storefront Configuration"""

from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache

from .exceptions import ConfigurationError


class Settings(BaseSettings):
    """Application settings loaded from environment"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Kurti Storefront"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8000
    site_url: str = "http://localhost:8000"

    # Commerce backend (WooCommerce REST API)
    api_base_url: Optional[str] = None
    wordpress_consumer_key: Optional[str] = None
    wordpress_consumer_secret: Optional[str] = None
    woocommerce_timeout: float = 30.0

    # Identity provider (Supabase Auth)
    supabase_url: Optional[str] = None
    supabase_anon_key: Optional[str] = None

    # Shopper session
    auth_cookie_name: str = "auth_token"
    auth_cookie_max_age: int = 60 * 60 * 24 * 7  # 7 days
    session_max_age_hours: int = 24

    @property
    def woocommerce_configured(self) -> bool:
        """Check if commerce backend credentials are configured"""
        return all([
            self.api_base_url,
            self.wordpress_consumer_key,
            self.wordpress_consumer_secret,
        ])

    @property
    def identity_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_anon_key)

    def require_woocommerce(self) -> tuple[str, str, str]:
        """
        Return (base_url, consumer_key, consumer_secret).

        Raises:
            ConfigurationError: if any value is missing or the base URL
                has no http(s) scheme
        """
        missing = [
            name
            for name, value in [
                ("API_BASE_URL", self.api_base_url),
                ("WORDPRESS_CONSUMER_KEY", self.wordpress_consumer_key),
                ("WORDPRESS_CONSUMER_SECRET", self.wordpress_consumer_secret),
            ]
            if not value or not value.strip()
        ]
        if missing:
            raise ConfigurationError(
                f"Missing required environment variables: {', '.join(missing)}",
                details={"missing": missing},
            )

        base_url = self.api_base_url.strip().rstrip("/")
        if not base_url.startswith(("http://", "https://")):
            raise ConfigurationError(
                f"API_BASE_URL must start with http:// or https://. Current value: {base_url}"
            )

        return base_url, self.wordpress_consumer_key, self.wordpress_consumer_secret


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


settings = get_settings()
