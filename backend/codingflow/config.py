"""CodingFlow configuration: storage location, defaults, logging."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str = "sqlite:///data/codingflow.db"
    database_echo: bool = False
    sqlite_wal: bool = True  # WAL keeps readers off a half-applied cascade

    # Logging
    log_level: str = "INFO"

    # Cycle planning (hours)
    default_cycle_capacity: float = 40.0
    sprint_capacity: float = 80.0

    # Project defaults
    create_default_labels: bool = True
    default_project_icon: str = "folder.fill"
    default_project_color: str = "007AFF"

    # AI tracking
    ai_events_default_limit: int = 50

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
