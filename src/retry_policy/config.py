"""
Configuration settings for the retry policy.

Process-wide defaults are loaded from environment variables (prefix
``RETRY_``) with sensible defaults. Use a .env file for local development.
Per-call-site policies are ``RetryConfig`` values built from these defaults
or from explicit options.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional


class Settings(BaseSettings):
    """Retry defaults loaded from environment variables."""
    
    model_config = SettingsConfigDict(
        env_prefix="RETRY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )
    
    # === Application ===
    APP_NAME: str = "retry-policy"
    APP_VERSION: str = "0.1.0"
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "development"  # "production" switches to JSON logs
    
    # === Retry Defaults ===
    DEFAULT_MAX_ATTEMPTS: int = 3  # Total attempts, including the first
    DEFAULT_INITIAL_DELAY_MS: float = 1000.0
    DEFAULT_MULTIPLIER: Optional[float] = None  # None = constant delay
    DEFAULT_JITTER: float = 0.0  # 0 disables jitter
    
    # === Monitoring ===
    METRICS_ENABLED: bool = True


# Global settings instance
settings = Settings()
