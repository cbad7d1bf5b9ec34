from typing import Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Database
    mongodb_url: str = Field(default="mongodb://localhost:27017", description="MongoDB connection URL")
    database_name: str = Field(default="encantia_panel", min_length=1, description="MongoDB database name")

    # Collections
    alerts_collection: str = Field(default="alerts", min_length=1)
    admin_alerts_collection: str = Field(default="alertsadmin", min_length=1, description="스태프 대시보드 공지 컬렉션")
    music_collection: str = Field(default="musicas", min_length=1)
    profiles_collection: str = Field(default="profiles", min_length=1)

    # App Settings
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    debug: bool = True
    api_version: str = "1.0.0"

    # Logging
    log_level: str = "INFO"
    log_dir: Optional[str] = Field(default=None, description="Rotating file log directory (disabled when empty)")

    # Music catalog
    music_base_url: str = Field(default="https://music.encantia.lat/", description="Public base URL for uploaded tracks")

    # Alert feed: change stream reconnection
    alerts_feed_reconnect_enabled: bool = Field(default=True, description="Reopen the change stream when it drops")
    alerts_feed_reconnect_max_attempts: int = Field(default=5, ge=0, le=100)
    alerts_feed_reconnect_base_delay: float = Field(default=1.0, ge=0.0, description="Initial backoff in seconds")
    alerts_feed_reconnect_max_delay: float = Field(default=30.0, gt=0.0, description="Backoff ceiling in seconds")

    # Frontend CORS
    allowed_origins: list[str] = Field(
        default_factory=lambda: [
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ],
        description="Allowed CORS origins"
    )

    @field_validator('log_level')
    def validate_log_level(cls, v):
        """Normalize and validate the log level name"""
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @field_validator('music_base_url')
    def validate_music_base_url(cls, v):
        """Base URL must end with a slash so filenames can be appended"""
        v = v.strip()
        return v if v.endswith("/") else v + "/"

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"


settings = Settings()
