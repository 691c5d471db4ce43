from pydantic_settings import BaseSettings
from typing import Optional, List

class Settings(BaseSettings):
    PROJECT_NAME: str = "CourseQuest API"
    VERSION: str = "1.0.0"
    API_V1_STR: str = "/api/v1"
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 2

    # CORS
    ALLOWED_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:3000",
    ]
    FRONTEND_URL: str = "http://localhost:5173"

    # Database Configuration
    DATABASE_HOST: str = "localhost"
    DATABASE_PORT: str = "5432"
    DATABASE_USER: str = "postgres"
    DATABASE_PASSWORD: str = ""
    DATABASE_NAME: str = "coursequest"

    # Overrides the composed postgres URL when set (e.g. sqlite for tests)
    DATABASE_URL: str = ""

    def __init__(self, **data):
        super().__init__(**data)
        if not self.DATABASE_URL:
            self.DATABASE_URL = (
                f'postgresql://{self.DATABASE_USER}:{self.DATABASE_PASSWORD}'
                f'@{self.DATABASE_HOST}:{self.DATABASE_PORT}/{self.DATABASE_NAME}'
            )

    # Email
    SENDGRID_API_KEY: Optional[str] = None
    EMAILS_FROM_EMAIL: str = "no-reply@coursequest.app"
    EMAILS_FROM_NAME: str = "CourseQuest"

    # Object storage (S3 / Cloudflare R2 compatible)
    STORAGE_ENDPOINT_URL: Optional[str] = None
    STORAGE_REGION: str = "auto"
    STORAGE_ACCESS_KEY_ID: Optional[str] = None
    STORAGE_SECRET_ACCESS_KEY: Optional[str] = None
    STORAGE_BUCKET_NAME: str = "coursequest"
    STORAGE_PUBLIC_DOMAIN: str = ""

    # Gamification
    XP_PER_LEVEL: int = 500
    DEFAULT_REJECTION_REASON: str = "Payment verification failed"

    LOG_DIR: str = "logs"
    LOG_LEVEL: str = "INFO"
    SLOW_REQUEST_MS: int = 1000
    TESTING: bool = False

    class Config:
        env_file = ".env"

settings = Settings()
