"""Configuration Settings for the Identity Provider Core

Manages environment variables and application configuration.

OAuth client credentials are configured per provider, either as JSON:
    OAUTH_PROVIDERS='{"zoho": {"client_id": "...", "client_secret": "..."}}'
or as nested variables:
    OAUTH_PROVIDERS__ZOHO__CLIENT_ID=...
    OAUTH_PROVIDERS__ZOHO__CLIENT_SECRET=...
"""

from functools import lru_cache
from typing import Dict, List, Optional

from pydantic import BaseModel, field_validator
from pydantic_settings import BaseSettings


class OAuthClientSettings(BaseModel):
    """Client registration for one external identity provider.

    Attributes:
        client_id: OAuth client id issued by the provider
        client_secret: OAuth client secret issued by the provider
        redirect_url: Callback URL override (defaults to Settings.oauth_redirect_url)
        scopes: Scope override (defaults to the provider's own scopes)
        enabled: Offer this provider as a sign-in method
    """
    client_id: str
    client_secret: str
    redirect_url: Optional[str] = None
    scopes: Optional[List[str]] = None
    enabled: bool = True


class Settings(BaseSettings):
    """Application settings"""

    # Service info
    service_name: str = "fm-auth-providers"
    service_version: str = "1.0.0"
    environment: str = "development"

    # Redis configuration (authorization request store)
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_db: int = 0
    redis_password: Optional[str] = None

    @property
    def redis_url(self) -> str:
        """Construct Redis URL from components"""
        if self.redis_password:
            return f"redis://:{self.redis_password}@{self.redis_host}:{self.redis_port}/{self.redis_db}"
        return f"redis://{self.redis_host}:{self.redis_port}/{self.redis_db}"

    # External identity providers
    oauth_redirect_url: str = "http://localhost:8000/api/v1/auth/oauth2/callback"
    oauth_http_timeout_seconds: float = 10.0
    oauth_request_ttl_seconds: int = 600  # 10 minutes to complete a login
    oauth_providers: Dict[str, OAuthClientSettings] = {}

    @field_validator("oauth_providers")
    @classmethod
    def normalize_provider_names(cls, value: Dict[str, OAuthClientSettings]) -> Dict[str, OAuthClientSettings]:
        """Provider names are matched case-insensitively"""
        return {name.strip().lower(): client for name, client in value.items()}

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"  # json or text

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        env_nested_delimiter = "__"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance

    Returns:
        Settings instance
    """
    return Settings()
