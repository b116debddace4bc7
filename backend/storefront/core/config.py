"""
Configuración centralizada de la aplicación
"""
import json
from dataclasses import dataclass
from typing import Dict, List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


@dataclass(frozen=True)
class RateLimitRule:
    """Sliding window limit for one endpoint class"""
    max_requests: int
    window_seconds: int


class Settings(BaseSettings):
    """Configuración de la aplicación"""

    # API Settings
    API_TITLE: str = "Storefront API"
    API_VERSION: str = "1.0.0"
    API_DESCRIPTION: str = "Order lifecycle and inventory backend for the furniture storefront"
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    API_DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = "sqlite:///./storefront.db"

    # CORS - Can be string (comma-separated) or JSON array
    # Example: "http://localhost:3000,https://yourdomain.com" or '["http://localhost:3000"]'
    ALLOWED_ORIGINS: Optional[str] = "http://localhost:3000"

    # Storefront
    CURRENCY: str = "MAD"
    SITE_URL: str = "http://localhost:3000"
    MAX_CHECKOUT_LINES: int = 50
    MAX_LINE_QUANTITY: int = 100
    BOOKING_UNIQUE_SLOTS: bool = False

    # Admin authentication
    AUTH_SECRET: str = ""
    ADMIN_SESSION_TTL_HOURS: int = 24 * 7
    ADMIN_EMAIL: str = ""
    ADMIN_PASSWORD_HASH: str = ""
    # Comma-separated SHA-256 hex digests of accepted X-API-Key values
    ADMIN_API_KEY_HASHES: str = ""

    # Payment gateway (Stripe-compatible checkout sessions)
    PAYMENT_GATEWAY_SECRET_KEY: str = ""
    PAYMENT_GATEWAY_API_BASE: str = "https://api.stripe.com"
    PAYMENT_WEBHOOK_SECRET: str = ""
    PAYMENT_WEBHOOK_TOLERANCE_SECONDS: int = 300

    # Notification service
    NOTIFICATION_SERVICE_URL: str = ""
    NOTIFICATION_SERVICE_API_KEY: str = ""
    NOTIFICATION_MAX_ATTEMPTS: int = 3
    NOTIFICATION_RETRY_DELAY_SECONDS: float = 1.0

    # Rate limits per endpoint class
    RATE_LIMIT_CHECKOUT_MAX: int = 10
    RATE_LIMIT_CHECKOUT_WINDOW_SECONDS: int = 10 * 60
    RATE_LIMIT_BOOKING_MAX: int = 5
    RATE_LIMIT_BOOKING_WINDOW_SECONDS: int = 10 * 60
    RATE_LIMIT_CONTACT_MAX: int = 10
    RATE_LIMIT_CONTACT_WINDOW_SECONDS: int = 10 * 60
    RATE_LIMIT_DEFAULT_MAX: int = 10
    RATE_LIMIT_DEFAULT_WINDOW_SECONDS: int = 60

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    def get_allowed_origins(self) -> List[str]:
        """Parse ALLOWED_ORIGINS string into list"""
        if not self.ALLOWED_ORIGINS:
            return ["http://localhost:3000"]

        # Try JSON parse first (for array format)
        try:
            origins = json.loads(self.ALLOWED_ORIGINS)
            if isinstance(origins, list):
                return origins
        except (json.JSONDecodeError, ValueError):
            pass

        # Fall back to comma-separated string
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",")]

    def get_api_key_hashes(self) -> List[str]:
        """Parse ADMIN_API_KEY_HASHES into a list of lowercase digests"""
        return [
            digest.strip().lower()
            for digest in self.ADMIN_API_KEY_HASHES.split(",")
            if digest.strip()
        ]

    def get_rate_limits(self) -> Dict[str, RateLimitRule]:
        """Rate limit rules keyed by endpoint class"""
        return {
            "checkout": RateLimitRule(self.RATE_LIMIT_CHECKOUT_MAX, self.RATE_LIMIT_CHECKOUT_WINDOW_SECONDS),
            "booking": RateLimitRule(self.RATE_LIMIT_BOOKING_MAX, self.RATE_LIMIT_BOOKING_WINDOW_SECONDS),
            "contact": RateLimitRule(self.RATE_LIMIT_CONTACT_MAX, self.RATE_LIMIT_CONTACT_WINDOW_SECONDS),
            "default": RateLimitRule(self.RATE_LIMIT_DEFAULT_MAX, self.RATE_LIMIT_DEFAULT_WINDOW_SECONDS),
        }
