from dataclasses import dataclass
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


@dataclass(frozen=True)
class Credentials:
    """One optional secret per external provider.

    Absence is not an error until an adapter that needs the secret is invoked.
    """

    google_api_key: str | None = None
    tmdb_api_key: str | None = None
    raindrop_token: str | None = None
    cloudflare_account_id: str | None = None
    cloudflare_media_token: str | None = None
    cf_images_hash: str | None = None
    cf_images_signing_key: str | None = None


class Settings(BaseSettings):
    # Environment mode: dev or prod
    ENV: Literal["dev", "prod"] = "dev"

    # Database
    DATABASE_URL: str

    # Blob store root (content-addressed JSON snapshots)
    BLOB_STORE_PATH: str = "data/blobs"

    # Provider secrets
    GOOGLE_API_KEY: str | None = None
    TMDB_API_KEY: str | None = None
    RAINDROP_TOKEN: str | None = None
    CLOUDFLARE_ACCOUNT_ID: str | None = None
    CLOUDFLARE_MEDIA_TOKEN: str | None = None
    CF_HOSTED_IMAGES_HASH: str | None = None
    CF_HOSTED_IMAGES_KEYS_API_TOKEN: str | None = None

    # Admin allowlist (comma separated emails, empty = any authenticated user)
    ADMIN_EMAILS: str | None = None

    # Logging
    LOG_LEVEL: str = "INFO"
    SLACK_WEBHOOK_URL: str | None = None

    # Bookmark sync producer (replaces the platform cron trigger)
    BOOKMARK_SYNC_ENABLED: bool = False
    BOOKMARK_SYNC_INTERVAL_SECONDS: int = 60 * 60

    # Bookmark queue consumer
    QUEUE_CONSUMER_ENABLED: bool = False
    QUEUE_POLL_INTERVAL_SECONDS: int = 30

    # Docs Configuration
    DOCS_ENABLED: bool | None = None  # Override docs setting (None = auto based on ENV)

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",  # ignore unrelated keys in local .env
    )

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENV == "prod"

    @property
    def is_development(self) -> bool:
        return self.ENV == "dev"

    @property
    def debug_enabled(self) -> bool:
        return self.is_development

    @property
    def effective_log_level(self) -> str:
        """Return appropriate log level based on environment."""
        if self.is_production:
            # In production, minimum INFO level (ignore DEBUG)
            return self.LOG_LEVEL if self.LOG_LEVEL.upper() != "DEBUG" else "INFO"
        return self.LOG_LEVEL

    @property
    def docs_enabled(self) -> bool:
        """Swagger/ReDoc docs enabled based on environment or override."""
        if self.DOCS_ENABLED is not None:
            return self.DOCS_ENABLED
        return self.is_development

    @property
    def admin_emails(self) -> list[str]:
        if not self.ADMIN_EMAILS:
            return []
        return [e.strip().lower() for e in self.ADMIN_EMAILS.split(",") if e.strip()]

    @property
    def credentials(self) -> Credentials:
        return Credentials(
            google_api_key=self.GOOGLE_API_KEY,
            tmdb_api_key=self.TMDB_API_KEY,
            raindrop_token=self.RAINDROP_TOKEN,
            cloudflare_account_id=self.CLOUDFLARE_ACCOUNT_ID,
            cloudflare_media_token=self.CLOUDFLARE_MEDIA_TOKEN,
            cf_images_hash=self.CF_HOSTED_IMAGES_HASH,
            cf_images_signing_key=self.CF_HOSTED_IMAGES_KEYS_API_TOKEN,
        )


settings = Settings()
