from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional

DEFAULT_SECRET_KEY = "change-this-in-production-secret-key-12345"


class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = "sqlite:///./shopfront.db"

    # JWT Authentication
    SECRET_KEY: str = DEFAULT_SECRET_KEY
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    # Application
    APP_NAME: str = "Shopfront"
    APP_VERSION: str = "1.0.0"
    PORT: int = 3000
    LOG_LEVEL: str = "INFO"

    # CORS
    ALLOWED_ORIGINS: List[str] = ["*"]

    # Password security
    BCRYPT_ROUNDS: int = 12

    # Uploads
    UPLOAD_DIR: str = "uploads"
    MAX_UPLOAD_BYTES: int = 5 * 1024 * 1024
    PLACEHOLDER_IMAGE_URL: str = "https://placehold.co/600x400?text=No+Image"

    # Seeded admin account, created on startup when all three are set
    ADMIN_USERNAME: Optional[str] = None
    ADMIN_EMAIL: Optional[str] = None
    ADMIN_PASSWORD: Optional[str] = None

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    @property
    def using_default_secret(self) -> bool:
        return self.SECRET_KEY == DEFAULT_SECRET_KEY


settings = Settings()
