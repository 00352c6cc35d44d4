from pydantic_settings import BaseSettings
from pydantic import validator


class Settings(BaseSettings):
    # Application settings
    APP_NAME: str = "Parish Catechism Administration"
    DEBUG: bool = False
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    LOG_LEVEL: str = "INFO"

    # Database settings
    DATABASE_URL: str = "sqlite+aiosqlite:///./catechism.db"
    DATABASE_ECHO: bool = False

    # Row fetching
    ROW_PAGE_SIZE: int = 1000  # Rows per page for students/attendance tables
    RECENT_ATTENDANCE_DAYS: int = 7

    # Academic year fallback when no current year is configured
    DEFAULT_TOTAL_WEEKS: int = 0

    @validator("DATABASE_URL")
    def validate_database_url(cls, v):
        if not v:
            raise ValueError("DATABASE_URL is required")
        return v

    @validator("ROW_PAGE_SIZE", "RECENT_ATTENDANCE_DAYS")
    def validate_positive(cls, v):
        if v <= 0:
            raise ValueError("must be a positive integer")
        return v

    @validator("LOG_LEVEL")
    def normalize_log_level(cls, v):
        return (v or "INFO").upper()

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
