from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    ENVIRONMENT: str = "production"

    # Database (hosted Postgres)
    DATABASE_URL: str = ""

    # Supabase: handed to browser clients for the realtime change feed
    SUPABASE_URL: str = ""
    SUPABASE_ANON_KEY: str = ""
    SUPABASE_SERVICE_ROLE_KEY: str = ""

    # Auth (reported by the health check only; login is a mock email lookup)
    AUTH_SECRET: str = ""
    AUTH_URL: str = ""

    # CORS: comma-separated list of allowed origins
    CORS_ORIGINS: str = ""

    # Assistant replies
    AI_PROVIDER: str = "openai"  # "openai" | "perplexity" | "gemini"
    AI_MAX_ATTEMPTS: int = 3
    AI_RETRY_BASE_DELAY: float = 1.0  # seconds; doubles after each failed attempt
    AI_REQUEST_TIMEOUT: float = 20.0  # seconds per attempt
    AI_HISTORY_LIMIT: int = 10

    OPENAI_API_KEY: str = ""
    OPENAI_MODEL: str = "gpt-4o-mini"

    PERPLEXITY_API_KEY: str = ""
    PERPLEXITY_MODEL: str = "sonar"

    GEMINI_API_KEY: str = ""
    GEMINI_MODEL: str = "gemini-3-flash-preview"

    @property
    def ASYNC_DATABASE_URL(self) -> str:
        return self.DATABASE_URL.replace("postgresql://", "postgresql+asyncpg://", 1)

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def ai_api_key(self) -> str:
        return {
            "openai": self.OPENAI_API_KEY,
            "perplexity": self.PERPLEXITY_API_KEY,
            "gemini": self.GEMINI_API_KEY,
        }.get(self.AI_PROVIDER, "")


settings = Settings()
