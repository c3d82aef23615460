"""Pydantic Settings — loads configuration from environment variables."""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_file": ".env", "extra": "ignore"}

    api_key: str = ""

    redis_url: str = "redis://localhost:6379"
    record_ttl_seconds: int = 0

    botline_endpoint: str = ""
    botline_token: str = ""

    targets_file: str = ""
    results_dir: str = ""

    environment: str = "production"
    is_offline: bool = False
    mock_delay_seconds: float = 1.0

    browser_headless: bool = True
    browser_launch_timeout_ms: int = 30000
    navigation_timeout_ms: int = 25000
    default_timeout_ms: int = 30000
    default_delay_ms: int = 2000
    max_delay_ms: int = 3000
    max_retries: int = 2
    retry_delay_seconds: float = 2.0

    log_level: str = "INFO"

    @property
    def use_mock_scraper(self) -> bool:
        return self.is_offline or self.environment != "production"


@lru_cache
def get_settings() -> Settings:
    return Settings()
