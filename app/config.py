"""Application configuration management."""

from typing import Dict, List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_RATE_LIMIT = 10
ENV_RATE_LIMITS = {
    "production": 5,
    "development": 100,
}


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    These settings are automatically loaded from the .env file or environment variables.
    All sensitive data (API keys) should be stored in environment variables, not hardcoded.

    Attributes:
        stability_api_key: Stability AI key (Stable Diffusion XL / 2.1)
        openai_api_key: OpenAI key (DALL-E 3)
        app_env: Deployment environment ("production" or "development")
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        timeout: Timeout in seconds for provider calls and image downloads
        max_retries: Attempts per provider call before falling back
        rate_limit_requests: Explicit per-client quota (overrides app_env)
        rate_limit_window: Quota window in seconds
    """

    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=False,
        extra='ignore'
    )

    # API Keys and endpoints
    stability_api_key: Optional[str] = None
    openai_api_key: Optional[str] = None
    sdxl_endpoint: Optional[str] = None
    sd2_endpoint: Optional[str] = None
    midjourney_endpoint: Optional[str] = None
    midjourney_api_key: Optional[str] = None
    custom_model_endpoint: Optional[str] = None
    custom_model_api_key: Optional[str] = None
    replicate_token: Optional[str] = None
    huggingface_token: Optional[str] = None

    # Application Settings
    app_env: Optional[str] = None
    log_level: str = "INFO"
    timeout: int = 30
    max_retries: int = 3
    retry_backoff: float = 1.0
    compression_quality: int = 85
    max_history_items: int = 100

    # Admission limiting
    rate_limit_requests: Optional[int] = None
    rate_limit_window: int = 60

    # HTTP server
    host: str = "0.0.0.0"
    port: int = 3000
    allowed_origins: str = "*"
    enable_ui: bool = True

    def effective_rate_limit(self) -> int:
        """Per-client quota: explicit setting, then environment default, then 10."""
        if self.rate_limit_requests is not None:
            return self.rate_limit_requests
        env = (self.app_env or "").lower()
        return ENV_RATE_LIMITS.get(env, DEFAULT_RATE_LIMIT)

    def origins(self) -> List[str]:
        """Allowed CORS origins as a list."""
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]

    def model_overrides(self) -> Dict[str, Dict[str, Optional[str]]]:
        """Endpoint/credential overrides per model id.

        Returns:
            Mapping consumed by ModelRegistry.from_overrides()
        """
        return {
            "stable-diffusion-xl": {
                "endpoint": self.sdxl_endpoint,
                "credential": self.stability_api_key,
            },
            "stable-diffusion-2": {
                "endpoint": self.sd2_endpoint,
                "credential": self.stability_api_key,
            },
            "dalle-3": {
                "credential": self.openai_api_key,
            },
            "midjourney": {
                "endpoint": self.midjourney_endpoint,
                "credential": self.midjourney_api_key,
            },
            "custom": {
                "endpoint": self.custom_model_endpoint,
                "credential": self.custom_model_api_key,
            },
            "flux-schnell": {
                "credential": self.replicate_token,
            },
            "sdxl-huggingface": {
                "credential": self.huggingface_token,
            },
        }


# Global settings instance
settings = Settings()
