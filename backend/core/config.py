"""
Application configuration using Pydantic Settings.
All environment variables are loaded and validated here.
"""

from functools import lru_cache
from typing import List
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Outbound Call Service
    call_service_url: str = "http://localhost:3000/api/call"
    call_service_api_key: str = ""

    # Interview Metadata Provider
    interview_api_url: str = "http://localhost:3000/api/interviews"

    # Shared HTTP client
    http_timeout_seconds: float = 30.0
    http_connect_timeout_seconds: float = 10.0

    # Redis (local cache + view event queues)
    redis_url: str = "redis://localhost:6379"
    view_ttl_seconds: int = 3600
    sse_keepalive_seconds: int = 30
    view_sweep_interval_seconds: float = 60.0

    # Demo user (no authentication in this service)
    default_user_id: str = "demo-user"
    default_user_name: str = "Demo User"

    # How long the "Calling you..." notice stays up after the provider accepts
    calling_notice_seconds: float = 5.0

    # Assistant descriptor sent with every call request
    assistant_name: str = "Interview Assistant"
    assistant_voice_provider: str = "azure"
    assistant_voice_id: str = "andrew"
    assistant_model_provider: str = "anthropic"
    assistant_model: str = "claude-3-opus-20240229"

    # W&B Weave
    wandb_api_key: str = ""
    weave_project: str = "interview-call"

    # App
    cors_origins: str = "http://localhost:5173,http://localhost:3000"
    demo_mode: bool = False

    # Rate limiting
    rate_limit_per_minute: int = 10

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins into a list, ensuring proper URL format."""
        origins = []
        for origin in self.cors_origins.split(","):
            origin = origin.strip()
            if not origin:
                continue
            # Auto-add https:// if missing protocol
            if not origin.startswith("http://") and not origin.startswith("https://"):
                origin = f"https://{origin}"
            origins.append(origin)
        return origins

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
