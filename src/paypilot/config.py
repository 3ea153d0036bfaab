"""PayPilot configuration."""

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration for the intent endpoint and the conversation core."""

    model_config = SettingsConfigDict(
        env_prefix="PAYPILOT_",
        env_file=".env",
        extra="ignore",  # Ignore extra fields from .env
        populate_by_name=True,
    )

    # Generative backend
    gemini_api_key: str = Field(
        default="",
        validation_alias=AliasChoices("PAYPILOT_GEMINI_API_KEY", "GEMINI_API_KEY"),
    )
    gemini_model: str = "gemini-2.5-flash"
    temperature: float = 0.1
    top_p: float = 1.0
    max_output_tokens: int = 1024

    # Hosted backend (auth + REST store)
    supabase_url: str = Field(
        default="http://127.0.0.1:54321",
        validation_alias=AliasChoices("PAYPILOT_SUPABASE_URL", "SUPABASE_URL"),
    )
    supabase_anon_key: str = Field(
        default="",
        validation_alias=AliasChoices("PAYPILOT_SUPABASE_ANON_KEY", "SUPABASE_ANON_KEY"),
    )
    require_auth: bool = False

    # Client side
    function_url: str = "http://127.0.0.1:8000/ai-chat"
    request_timeout: float = 30.0
    max_retries: int = 0
    history_window: int = 6
    language: str = "az"

    # Confirmation flow
    code_ttl_seconds: int = 60
    max_code_attempts: int = 3
    settlement_delay: float = 1.5

    # Server
    host: str = "127.0.0.1"
    port: int = 8000


settings = Settings()
