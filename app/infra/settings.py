from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    divtrack_env: str = "dev"

    divtrack_db_url: str = "sqlite:///./divtrack.db"
    divtrack_log_level: str = "INFO"

    # --- Yahoo Finance ---
    yahoo_timeout_seconds: float = 10.0
    yahoo_history_range: str = "10y"

    # --- sessions ---
    session_ttl_days: int = 30

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",  # don't crash on other future vars
    }


settings = Settings()
