from typing import Optional
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .goals.models import ScoringWeights


class YouTubeSettings(BaseModel):
    """YouTube Data API configuration settings"""
    api_key: Optional[str] = Field(default=None, description="Server-side API key used when no user token is present")
    base_url: str = Field(default="https://www.googleapis.com/youtube/v3", description="YouTube Data API v3 base URL")
    request_timeout: float = Field(default=10.0, gt=0, description="Per-call timeout in seconds")
    relevance_language: str = Field(default="en", description="Language bias for search results")
    max_subscription_pages: int = Field(default=10, ge=1, description="Pages of 50 subscriptions to read")
    subscriptions_timeout: float = Field(default=15.0, gt=0, description="Budget in seconds for reading all subscription pages")


class PathSettings(BaseModel):
    """Learning path generation settings"""
    max_keywords: int = Field(default=10, ge=1, description="Keywords accepted per request, each costs a search call")
    results_per_keyword: int = Field(default=15, ge=1, le=50, description="Search results requested per keyword")
    details_batch_size: int = Field(default=50, ge=1, le=50, description="Video ids per videos.list call")
    path_size: int = Field(default=20, ge=1, description="Maximum videos in a generated path")
    weights: ScoringWeights = Field(default_factory=ScoringWeights)


class AppSettings(BaseModel):
    """General application settings"""
    environment: str = Field(default="development", description="Application environment")
    frontend_url: str = Field(default="http://localhost:3000", description="Frontend application URL")
    log_level: str = Field(default="INFO", description="Logging level")

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v):
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of: {', '.join(valid_levels)}")
        return v.upper()

    @field_validator('environment')
    @classmethod
    def validate_environment(cls, v):
        valid_envs = ['development', 'staging', 'production']
        if v.lower() not in valid_envs:
            raise ValueError(f"ENVIRONMENT must be one of: {', '.join(valid_envs)}")
        return v.lower()


class Settings(BaseSettings):
    """Main settings class that combines all configuration sections"""

    # App settings
    environment: str = Field(default="development", alias="ENVIRONMENT")
    frontend_url: str = Field(default="http://localhost:3000", alias="FRONTEND_URL")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    sentry_dsn: Optional[str] = Field(default=None, alias="SENTRY_DSN")
    rate_limit_enabled: bool = Field(default=True, alias="RATE_LIMIT_ENABLED")

    # YouTube settings
    youtube_api_key: Optional[str] = Field(default=None, alias="YOUTUBE_API_KEY")
    youtube_api_base_url: str = Field(
        default="https://www.googleapis.com/youtube/v3",
        alias="YOUTUBE_API_BASE_URL"
    )
    youtube_request_timeout: float = Field(default=10.0, alias="YOUTUBE_REQUEST_TIMEOUT")
    youtube_relevance_language: str = Field(default="en", alias="YOUTUBE_RELEVANCE_LANGUAGE")
    youtube_max_subscription_pages: int = Field(default=10, alias="YOUTUBE_MAX_SUBSCRIPTION_PAGES")
    youtube_subscriptions_timeout: float = Field(default=15.0, alias="YOUTUBE_SUBSCRIPTIONS_TIMEOUT")

    # Path generation settings
    max_keywords_per_request: int = Field(default=10, alias="MAX_KEYWORDS_PER_REQUEST")
    search_results_per_keyword: int = Field(default=15, alias="SEARCH_RESULTS_PER_KEYWORD")
    details_batch_size: int = Field(default=50, alias="DETAILS_BATCH_SIZE")
    learning_path_size: int = Field(default=20, alias="LEARNING_PATH_SIZE")

    # Scoring weights
    weight_quality: float = Field(default=0.35, alias="WEIGHT_QUALITY")
    weight_trust: float = Field(default=0.25, alias="WEIGHT_TRUST")
    weight_duration: float = Field(default=0.20, alias="WEIGHT_DURATION")
    weight_recency: float = Field(default=0.10, alias="WEIGHT_RECENCY")
    weight_popularity: float = Field(default=0.10, alias="WEIGHT_POPULARITY")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @property
    def app(self) -> AppSettings:
        """Get app settings as a structured object"""
        return AppSettings(
            environment=self.environment,
            frontend_url=self.frontend_url,
            log_level=self.log_level
        )

    @property
    def youtube(self) -> YouTubeSettings:
        """Get YouTube API settings as a structured object"""
        return YouTubeSettings(
            api_key=self.youtube_api_key,
            base_url=self.youtube_api_base_url,
            request_timeout=self.youtube_request_timeout,
            relevance_language=self.youtube_relevance_language,
            max_subscription_pages=self.youtube_max_subscription_pages,
            subscriptions_timeout=self.youtube_subscriptions_timeout
        )

    @property
    def scoring_weights(self) -> ScoringWeights:
        return ScoringWeights(
            quality=self.weight_quality,
            trust=self.weight_trust,
            duration=self.weight_duration,
            recency=self.weight_recency,
            popularity=self.weight_popularity
        )

    @property
    def path(self) -> PathSettings:
        """Get path generation settings as a structured object"""
        return PathSettings(
            max_keywords=self.max_keywords_per_request,
            results_per_keyword=self.search_results_per_keyword,
            details_batch_size=self.details_batch_size,
            path_size=self.learning_path_size,
            weights=self.scoring_weights
        )

    @property
    def cors_origins(self) -> list[str]:
        """Get CORS origins based on environment"""
        base_origins = [
            "http://localhost:3000",
            "http://127.0.0.1:3000"
        ]

        if self.environment == "production":
            base_origins.append(self.frontend_url)

        return base_origins

    @property
    def is_production(self) -> bool:
        """Check if running in production mode"""
        return self.environment == "production"


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance (singleton pattern)"""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
