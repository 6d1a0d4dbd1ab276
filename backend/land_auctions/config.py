from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(RuntimeError):
    """Raised at startup when a required setting (credentials) is missing."""


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # App
    app_env: str = "development"
    app_debug: bool = False
    app_host: str = "0.0.0.0"
    app_port: int = 8000

    # Database: PostgreSQL (primary) or SQLite (local dev fallback)
    database_url: str = ""  # postgresql://...
    use_sqlite: bool = True

    @property
    def effective_database_url(self) -> str:
        """Return the async database URL to use."""
        if self.database_url:
            url = self.database_url
            if url.startswith("postgres://"):
                url = "postgresql+asyncpg://" + url[len("postgres://"):]
            elif url.startswith("postgresql://"):
                url = "postgresql+asyncpg://" + url[len("postgresql://"):]
            elif url.startswith("sqlite"):
                return url
            elif not url.startswith("postgresql+asyncpg://"):
                url = "postgresql+asyncpg://" + url
            return url
        db_path = Path(__file__).parent.parent / "data" / "land_auctions.db"
        db_path.parent.mkdir(parents=True, exist_ok=True)
        return f"sqlite+aiosqlite:///{db_path}"

    @property
    def is_sqlite(self) -> bool:
        return self.effective_database_url.startswith("sqlite")

    # Firecrawl extraction provider
    firecrawl_api_key: str = ""
    firecrawl_base_url: str = "https://api.firecrawl.dev/v2"
    provider_max_attempts: int = 2

    # Discovery
    discovery_concurrency: int = 3
    discovery_drain_timeout: float = 60.0
    max_urls_per_source: int = 20
    listing_link_threshold: int = 15
    detail_extraction_enabled: bool = False
    run_history_limit: int = 50

    # Geocoding (Nominatim)
    geocoder_user_agent: str = "land-auctions/0.1"
    geocode_delay_seconds: float = 1.1
    geocode_cache_ttl_seconds: float = 86400.0

    # Field boundaries (not backed by a spatial store yet)
    field_boundary_cache_ttl_seconds: float = 86400.0

    # Scheduler (periodic discovery)
    scheduler_enabled: bool = False
    scheduler_interval_hours: float = 24.0

    # CORS: allowed origins (comma-separated)
    cors_origins: str = "http://localhost:5173,http://localhost:3000"

    @property
    def cors_origin_list(self) -> list[str]:
        """Parse CORS_ORIGINS into a list."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    def require_extraction_credentials(self) -> None:
        """Fail fast when the extraction provider cannot be called at all."""
        if not self.firecrawl_api_key:
            raise ConfigurationError("FIRECRAWL_API_KEY is not configured")

    def validate_production(self) -> list[str]:
        """Check critical env vars for production. Returns list of warnings."""
        warnings = []
        if self.app_env == "production":
            if not self.database_url:
                warnings.append("DATABASE_URL is required in production")
            if self.discovery_concurrency > 10:
                warnings.append("DISCOVERY_CONCURRENCY above 10 may hit provider rate limits")
        return warnings


settings = Settings()
