from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="GYMHUB_",
        case_sensitive=False,
    )

    # App
    env: str = "development"
    debug: bool = False
    log_level: str = "INFO"

    # Database
    db_url: str = "sqlite+aiosqlite:///./gymhub.db"

    # Calendar
    timezone: str = "UTC"
    max_calendar_range_days: int = 62

    # Private lessons
    default_lesson_duration_minutes: int = 30
    default_max_gymnasts: int = 1
    auto_confirm_bookings: bool = True


def get_settings() -> Settings:
    return Settings()
