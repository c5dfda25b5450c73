"""
Configuration management using pydantic-settings.
All settings loaded from environment variables (12-factor app).
"""

from functools import lru_cache
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Automation backend (CRUD webhooks behind the proxy)
    backend_base_url: str = Field(default="", description="Base URL of the CRUD webhook backend")
    backend_timeout_seconds: float = Field(default=30.0, gt=0, description="Backend request timeout")

    # Security
    jwt_secret: str = Field(
        default="change-this-to-a-secure-random-string-in-production",
        description="JWT signing secret",
    )
    jwt_algorithm: str = Field(default="HS256", description="JWT algorithm")
    jwt_expiration_minutes: int = Field(default=1440, description="Session lifetime (24h)")
    authorized_email: str = Field(
        default="", description="Only this account may open a session (blank = any)"
    )
    google_client_id: str = Field(
        default="", description="OAuth client ID that Google ID tokens must be issued for"
    )

    # API
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=8000, description="API port")
    api_reload: bool = Field(default=True, description="Enable hot reload")
    cors_origins: str = Field(
        default="http://localhost:3000,http://localhost:5173",
        description="CORS allowed origins (comma-separated)",
    )

    # Logging
    log_level: str = Field(default="info", description="Log level")
    log_format: str = Field(default="json", description="Log format (json|console)")

    # Command center
    appointment_statuses: str = Field(
        default="Scheduled Meeting,Appointment Scheduled",
        description="Contact statuses that count as booked appointments (comma-separated)",
    )
    activity_feed_limit: int = Field(default=20, ge=1, le=200, description="Activity feed size")
    default_range_preset: str = Field(default="30d", description="Date range used when none is given")

    # Alert policy
    error_rate_threshold: float = Field(
        default=0.10, ge=0.0, le=1.0, description="Error share that raises an error-rate alert"
    )
    error_rate_min_records: int = Field(
        default=5, ge=0, description="Operation count that must be exceeded before rating errors"
    )
    cost_spike_min_days: int = Field(
        default=3, ge=0, description="Distinct cost days that must be exceeded before spike detection"
    )
    cost_spike_multiplier: float = Field(
        default=2.0, gt=0, description="Max day / mean day ratio that counts as a spike"
    )
    cost_spike_noise_floor: float = Field(
        default=0.01, ge=0, description="Mean daily cost below which spikes are ignored"
    )
    expiry_warning_days: int = Field(default=7, ge=1, description="Days left that raise a warning")
    expiry_info_days: int = Field(default=14, ge=1, description="Days left that raise an info alert")

    # Development
    dev_mode: bool = Field(
        default=False, description="Development mode (console logs, sessions without Google sign-in)"
    )
    testing: bool = Field(default=False, description="Testing mode")

    @field_validator("cors_origins")
    @classmethod
    def parse_cors_origins(cls, v: str) -> List[str]:
        """Parse comma-separated CORS origins."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @property
    def appointment_status_set(self) -> tuple[str, ...]:
        """Appointment-eligible contact statuses, in configured order."""
        return tuple(s.strip() for s in self.appointment_statuses.split(",") if s.strip())


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.
    Uses lru_cache to ensure singleton behavior.
    """
    return Settings()
