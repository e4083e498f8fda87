"""
PromptHub Search Configuration
"""
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Supabase
    supabase_url: str = ""
    supabase_anon_key: str = ""
    supabase_service_role_key: str = ""
    use_service_role: bool = False
    prompts_table: str = "prompts"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False
    log_level: str = "info"

    # Query defaults
    default_max_results: int = Field(default=5, ge=1)
    max_results_limit: int = Field(default=20, ge=1)
    default_min_confidence: float = Field(default=0.3, ge=0.0, le=1.0)
    default_algorithm: str = "smart"

    # Result cache
    cache_enabled: bool = True
    cache_ttl_seconds: float = 300.0
    cache_sweep_interval_seconds: float = 300.0
    cache_stale_multiplier: float = 3.0
    cache_max_entries: int = 500

    # Retrieval
    retrieval_timeout_seconds: float = 5.0
    max_keyword_searches: int = 3
    smart_fallback_floor: int = 3
    expanded_page_size: int = 50
    category_page_size: int = 10
    content_preview_length: int = 500

    # Monitoring
    slow_search_threshold_ms: int = 1000


# Global settings instance - lazy loaded
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
