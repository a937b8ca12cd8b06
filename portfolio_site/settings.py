"""Site-wide configuration settings."""

import os
from pydantic_settings import BaseSettings


class SiteSettings(BaseSettings):
    """Portfolio site configuration settings."""

    site_url: str = os.getenv("SITE_URL", "https://example.com")
    default_github_username: str = os.getenv("DEFAULT_GITHUB_USERNAME", "alexmorgan")
    enable_link_validation: bool = os.getenv("ENABLE_LINK_VALIDATION", "true").lower() == "true"
    link_validation_timeout: float = float(os.getenv("LINK_VALIDATION_TIMEOUT", "3"))
    upstream_timeout: float = float(os.getenv("UPSTREAM_TIMEOUT", "10"))
    cookie_max_age: int = int(os.getenv("COOKIE_MAX_AGE", str(60 * 60 * 24 * 365)))

    # Generate endpoint: N requests per window per client IP
    generate_rate_limit_max: int = int(os.getenv("GENERATE_RATE_LIMIT_MAX", "3"))
    generate_rate_limit_window: int = int(os.getenv("GENERATE_RATE_LIMIT_WINDOW", "60"))
    # Dislike feedback: one regeneration per window per session
    dislike_rate_limit_window: int = int(os.getenv("DISLIKE_RATE_LIMIT_WINDOW", "60"))

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"
