from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

from parkinglot.utils.constants import FinePolicyKind


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Application
    app_name: str = "Parking Facility API"
    debug: bool = False
    environment: str = "production"
    log_level: str = "INFO"

    # Database
    database_url: str = "sqlite+aiosqlite:///./parking.db"

    # CORS
    cors_origins: list[str] = ["http://localhost:3000", "http://localhost:8080"]

    # Parking rules
    overstay_threshold_hours: int = 24
    handicapped_hourly_rate: float = 2.0
    reserved_violation_fine: float = 100.0
    reservation_grace_minutes: int = 30

    # Fine policy
    fine_policy: FinePolicyKind = FinePolicyKind.FIXED
    fixed_fine_amount: float = 50.0
    hourly_fine_rate: float = 20.0
    hourly_fine_cap: float | None = None
    progressive_fine_cap: float = 500.0
    fine_cap: float | None = None

    # Background jobs
    reservation_sweep_interval_seconds: float = 60.0
    seed_sample_data: bool = True


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
