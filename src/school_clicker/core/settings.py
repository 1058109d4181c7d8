"""Application settings and configuration.

This module defines all configuration options for the School Clicker service.
Settings are loaded from environment variables with sensible defaults.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be overridden via environment variables or .env files.
    """

    # Application metadata
    app_name: str = Field(default="School Clicker", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Database configuration
    database_url: str = Field(default="sqlite:///./school_clicker.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")
    create_tables_on_startup: bool = Field(default=True, alias="CREATE_TABLES_ON_STARTUP")

    # Rate limiting backend ("memory" or "redis")
    rate_limit_backend: str = Field(default="memory", alias="RATE_LIMIT_BACKEND")
    redis_url: str = Field(default="redis://localhost:6379", alias="REDIS_URL")

    # Rate-limit budgets (points per window)
    session_create_points: int = Field(default=5, alias="SESSION_CREATE_POINTS")
    session_create_window_seconds: int = Field(default=60, alias="SESSION_CREATE_WINDOW_SECONDS")
    school_create_points: int = Field(default=3, alias="SCHOOL_CREATE_POINTS")
    school_create_window_seconds: int = Field(default=3600, alias="SCHOOL_CREATE_WINDOW_SECONDS")
    score_ip_points: int = Field(default=5, alias="SCORE_IP_POINTS")
    score_ip_window_seconds: int = Field(default=60, alias="SCORE_IP_WINDOW_SECONDS")
    score_session_points: int = Field(default=20, alias="SCORE_SESSION_POINTS")
    score_session_window_seconds: int = Field(default=60, alias="SCORE_SESSION_WINDOW_SECONDS")

    # Session lifecycle and friction escalation
    session_ttl_seconds: int = Field(default=6 * 60 * 60, alias="SESSION_TTL_SECONDS")
    friction_block_threshold: int = Field(default=3, alias="FRICTION_BLOCK_THRESHOLD")
    friction_block_seconds: int = Field(default=15 * 60, alias="FRICTION_BLOCK_SECONDS")

    # Human-verification provider
    captcha_provider: str = Field(default="hcaptcha", alias="CAPTCHA_PROVIDER")
    captcha_verify_url: str = Field(
        default="https://hcaptcha.com/siteverify",
        alias="CAPTCHA_VERIFY_URL",
    )
    captcha_secret: str | None = Field(default=None, alias="CAPTCHA_SECRET")
    captcha_timeout_seconds: float = Field(default=5.0, alias="CAPTCHA_TIMEOUT_SECONDS")
    # Without a secret, verification either passes open (availability) or fails closed.
    captcha_pass_open_when_unconfigured: bool = Field(
        default=True,
        alias="CAPTCHA_PASS_OPEN_WHEN_UNCONFIGURED",
    )

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(
        default=["*"],
        alias="CORS_ORIGINS",
    )
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(
        default=["*"],
        alias="CORS_ALLOW_HEADERS",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def effective_database_url(self) -> str:
        """Return the database URL respecting testing overrides."""
        if self.use_testing_database and self.test_database_url:
            return self.test_database_url
        return self.database_url


settings = Settings()
