"""Engine configuration"""

from pydantic_settings import BaseSettings

from .core.model import ModelConfig, Provider


class Settings(BaseSettings):
    log_level: str = "INFO"
    catalog_path: str | None = None  # Override for the packaged catalog.yaml

    # Server-side provider keys, used when the caller does not send custom keys
    openai_api_key: str = ""
    groq_api_key: str = ""
    anthropic_api_key: str = ""
    gemini_api_key: str = ""

    # System model: drafts, scores and rewrites prompts regardless of the user's model
    system_provider: Provider = Provider.GROQ
    system_model: str = "llama-3.3-70b-versatile"
    system_temperature: float = 0.7
    system_top_p: float = 1.0
    system_top_k: int = 40
    system_max_tokens: int = 8192

    # Run APE styles concurrently instead of one after another
    parallel_variants: bool = True

    # Per-session workbenches kept by the API; idle ones are evicted least recently used first
    max_sessions: int = 256

    class Config:
        env_file = ".env"
        extra = "ignore"

    def system_model_config(self) -> ModelConfig:
        return ModelConfig(
            provider=self.system_provider,
            model=self.system_model,
            temperature=self.system_temperature,
            top_p=self.system_top_p,
            top_k=self.system_top_k,
            max_tokens=self.system_max_tokens,
        )


settings = Settings()


def get_settings() -> Settings:
    """Get the Settings instance (dependency injection for FastAPI)"""
    return settings
