from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    # Durable store for the session registry (SQLite file by default)
    DATABASE_URL: str = "sqlite:///recursive_stack.db"

    # Placeholder question shown on a fresh root node
    ROOT_QUESTION: str = "Root"

    # Breadcrumb labels longer than this are cut and suffixed with "..."
    BREADCRUMB_MAX_LENGTH: int = 30

    LOG_LEVEL: str = "INFO"

    # Loads from a .env file in the root directory
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

# Singleton instance
settings = Settings()
