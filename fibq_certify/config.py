"""
Application Configuration
Loads settings from environment variables
"""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application settings loaded from .env file"""

    # Application
    APP_ENV: str = "development"
    APP_NAME: str = "FIBQ Certify"
    APP_URL: str = "http://localhost:8000"  # Origin printed into QR verification links
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = "sqlite:///./fibq_certify.db"

    # JWT
    JWT_SECRET_KEY: str = "temp-jwt-secret-change-later"
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRATION_HOURS: int = 24

    # Rendering
    PREVIEW_TEXT_SCALE: float = 0.9
    EDITOR_DISPLAY_SCALE: float = 0.7
    FONT_DIR: Optional[str] = None
    STATIC_DIR: str = "static"  # Served at /static; local image sources resolve here

    # Export
    EXPORT_SUPERSAMPLE: int = 3
    EXPORT_MARGIN: float = 0.9

    # Remote images (photos, logos, backgrounds)
    IMAGE_FETCH_TIMEOUT: float = 10.0
    MAX_IMAGE_BYTES: int = 5242880  # 5MB

    class Config:
        env_file = ".env"
        case_sensitive = True


# Create global settings instance
settings = Settings()
