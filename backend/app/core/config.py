"""Application configuration."""

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

SECTION_KEYS: tuple[str, ...] = (
    "overview",
    "company",
    "meeting",
    "interactions",
    "competitors",
    "techStack",
    "news",
    "nextSteps",
    "strategicBrief",
)

DEFAULT_SECTIONS: tuple[str, ...] = SECTION_KEYS[:-1]

UNASSIGNED_PROJECT = "Unassigned"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # OpenAI Settings
    openai_api_key: str | None = Field(default=None, description="OpenAI API key")
    openai_model: str = Field(default="gpt-3.5-turbo", description="Model for simple sections and the narrative report")
    openai_complex_model: str = Field(
        default="gpt-4",
        description="Model for sections that need deeper analysis (competitors, techStack, nextSteps)"
    )
    openai_base_url: str = Field(default="https://api.openai.com/v1", description="OpenAI API base URL")
    llm_timeout_seconds: float = Field(default=60.0, description="Timeout for a single LLM request")

    # Enrichment (Apollo people match)
    apollo_api_key: str | None = Field(default=None, description="Apollo API key")
    apollo_base_url: str = Field(default="https://api.apollo.io/v1", description="Apollo API base URL")
    enrichment_cache_ttl_seconds: int = Field(
        default=3600,
        description="How long a successful enrichment lookup is reused (seconds)"
    )

    # Company news
    news_api_key: str | None = Field(default=None, description="NewsAPI key")
    news_base_url: str = Field(default="https://newsapi.org/v2", description="NewsAPI base URL")
    news_lookback_days: int = Field(default=30, description="How far back to search for company news")
    news_page_size: int = Field(default=5, description="Number of articles to keep per report")

    # Database
    database_url: str = Field(
        default="sqlite+aiosqlite:///./lead_reports.db",
        description="Database connection URL"
    )

    # CORS
    cors_origins: str = Field(
        default="http://localhost:5173,http://localhost:3000",
        description="Comma-separated list of allowed CORS origins"
    )

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    # Security
    secret_key: str = Field(
        default="change-this-to-a-random-secret-key-in-production",
        description="Secret key for JWT token generation"
    )
    jwt_algorithm: str = Field(default="HS256", description="JWT algorithm")
    jwt_expiration_hours: int = Field(default=24, description="JWT token expiration in hours")
    auth_cookie_name: str = Field(default="token", description="Cookie carrying the access token")
    auth_cookie_secure: bool = Field(default=False, description="Send the auth cookie over HTTPS only")

    # Report generation
    default_sections: list[str] = Field(
        default_factory=lambda: list(DEFAULT_SECTIONS),
        description="Sections generated for a new report"
    )

    # Status polling (client side)
    poll_interval_seconds: float = Field(default=2.0, description="Delay between status polls")
    poll_timeout_seconds: float = Field(default=60.0, description="Give up polling after this many seconds")

    # Development Settings
    debug: bool = Field(default=False, description="Debug mode")
    log_level: str = Field(default="INFO", description="Log level")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is valid."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return v_upper

    @field_validator("jwt_expiration_hours", "news_lookback_days", "news_page_size")
    @classmethod
    def validate_positive_int(cls, v: int) -> int:
        """Validate integer is positive."""
        if v <= 0:
            raise ValueError(f"Value must be positive, got {v}")
        return v

    @field_validator("poll_interval_seconds", "poll_timeout_seconds", "llm_timeout_seconds")
    @classmethod
    def validate_positive_float(cls, v: float) -> float:
        if v <= 0:
            raise ValueError(f"Value must be positive, got {v}")
        return v

    @field_validator("enrichment_cache_ttl_seconds")
    @classmethod
    def validate_cache_ttl(cls, v: int) -> int:
        if v < 0:
            raise ValueError("enrichment_cache_ttl_seconds must not be negative")
        return v

    @field_validator("default_sections")
    @classmethod
    def validate_default_sections(cls, v: list[str]) -> list[str]:
        """Validate every default section is a recognized key."""
        unknown = [key for key in v if key not in SECTION_KEYS]
        if unknown:
            raise ValueError(f"Unknown section keys: {unknown}")
        return v

    @model_validator(mode="after")
    def validate_poll_window(self) -> "Settings":
        """Polling must be able to run at least once before giving up."""
        if self.poll_interval_seconds > self.poll_timeout_seconds:
            raise ValueError(
                "poll_interval_seconds must be less than or equal to poll_timeout_seconds"
            )
        return self


# Global settings instance
settings = Settings()
