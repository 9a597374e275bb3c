from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env")

    app_name: str = "CardScan"
    debug: bool = False
    log_level: str = "INFO"

    cors_allow_origins: list[str] = ["*"]

    # Object storage (credentials come from the boto3 credential chain)
    aws_region: str = "us-east-1"
    s3_bucket_name: str = ""
    storage_max_attempts: int = 3
    signed_url_expiry_seconds: int = 60

    # OCR
    google_vision_api_key: str = ""
    google_vision_api_url: str = "https://vision.googleapis.com/v1"

    # Card catalog
    pokemon_tcg_api_key: str = ""
    pokemon_tcg_api_url: str = "https://api.pokemontcg.io/v2"
    catalog_max_retries: int = 2
    catalog_backoff_seconds: float = 0.5
    catalog_refresh_interval_seconds: float = 24 * 60 * 60

    # Applies to every outbound HTTP call
    http_timeout_seconds: float = 15.0


settings = Settings()


# =============================================================================
# PRICE RESOLUTION
# =============================================================================

# Candidates whose printed set total is within this distance of the total read
# off the card are preferred when the total maps to no known set
PRICE_TOTAL_TOLERANCE = 5
