from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # OpenRouter
    openrouter_api_key: str = ""
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    default_model: str = "openai/gpt-4o-mini"
    openrouter_model: str = ""
    planner_model: str = ""  # optional override for plan generation only

    # Structured generation
    generation_max_tokens: int = 4096
    generation_max_attempts: int = 2
    plan_temperature: float = 0.0
    analysis_temperature: float = 0.5

    # Search providers
    search_provider: str = "tavily"  # tavily | brave
    tavily_api_key: str = ""
    brave_api_key: str = ""
    search_fallback_to_tavily: bool = True
    openalex_base_url: str = "https://api.openalex.org"
    openalex_mailto: str = ""
    social_domains: str = "twitter.com,x.com"
    provider_timeout_seconds: float = 30.0
    min_results_per_step: int = 1
    max_results_per_step: int = 10

    # Prompt context
    ledger_item_content_chars: int = 1200

    # Progress streaming
    progress_queue_size: int = 256

    # App
    cors_origins: str = "http://localhost:3000"
    app_log_level: str = "INFO"
    noisy_log_level: str = "WARNING"
    log_dir: str = "logs"

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",")]

    @property
    def social_domain_list(self) -> list[str]:
        return [d.strip() for d in self.social_domains.split(",") if d.strip()]


settings = Settings()
