"""
Centralized application configuration
"""
from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    """Application settings, loaded from environment or .env"""

    # API Settings
    API_TITLE: str = "Storefront API"
    API_VERSION: str = "1.0.0"
    API_DESCRIPTION: str = "Multi-tenant storefront and admin backend"
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    ENVIRONMENT: str = "development"

    # Database (empty means "not configured"; connection helpers raise)
    DATABASE_URL: str = ""

    # Auth - tokens are issued by the frontend, we only verify them
    AUTH_SECRET: str = ""

    # CORS - Can be string (comma-separated) or JSON array
    # Example: "http://localhost:3000,https://shop.example.com" or '["http://localhost:3000"]'
    ALLOWED_ORIGINS: Optional[str] = "http://localhost:3000"

    # Statistics cache
    STATS_CACHE_TTL_MS: int = 30_000
    STATS_WARM_ON_WRITE: str = "true"

    # Tenant resolution: hosts like "acme.localhost" carry a tenant label
    TENANT_LOCAL_SUFFIX: str = "localhost"

    # Products at or below this stock count as "low stock" in statistics
    LOW_STOCK_THRESHOLD: int = 5

    def get_allowed_origins(self) -> List[str]:
        """Parse ALLOWED_ORIGINS string into list"""
        if not self.ALLOWED_ORIGINS:
            return ["http://localhost:3000"]

        # Try JSON parse first (for array format)
        import json
        try:
            origins = json.loads(self.ALLOWED_ORIGINS)
            if isinstance(origins, list):
                return origins
        except (json.JSONDecodeError, ValueError):
            pass

        # Fall back to comma-separated string
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",")]

    @property
    def stats_warm_on_write(self) -> bool:
        """Warming after writes is on unless explicitly set to 'false'"""
        return self.STATS_WARM_ON_WRITE.strip().lower() != "false"

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


settings = Settings()
