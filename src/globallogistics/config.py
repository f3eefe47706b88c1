"""Application configuration."""

from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    app_name: str = "GlobalLogistics"
    debug: bool = False
    public_base_url: str = "http://localhost:5000"

    # Database
    database_url: str = "sqlite+aiosqlite:///./data/globallogistics.db"

    # Paths
    base_dir: Path = Path(__file__).parent.parent.parent
    data_dir: Path = base_dir / "data"
    notification_templates_path: Path = Path(__file__).parent / "notifications" / "templates.yaml"

    # Shipments
    tracking_number_attempts: int = 5

    # Notifications
    notification_queue_size: int = 1000
    notification_webhook_url: str | None = None
    notification_timeout_seconds: float = 10.0

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
