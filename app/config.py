from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # Database
    database_url: str = "sqlite:///./app.db"

    # JWT (admin bearer tokens are minted by the identity provider)
    secret_key: str = "your-secret-key-change-in-production"
    algorithm: str = "HS256"

    # Frontend URL for CORS
    frontend_url: str = "http://localhost:3000"

    # Photo upload: folder path for announcement photos (empty = backend/uploads/images)
    photo_upload_dir: str = ""
    photo_max_bytes: int = 20 * 1024 * 1024  # 20 MiB
    # False = a second, different photo for the same announcement is a conflict
    photo_overwrite_allowed: bool = False

    # Management password shown once after creating an announcement
    management_password_length: int = 6

    log_level: str = "INFO"

    class Config:
        env_file = ".env"


@lru_cache
def get_settings() -> Settings:
    return Settings()
