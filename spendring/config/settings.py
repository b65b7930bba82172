"""
Configuration Management for SpendRing

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Gesture thresholds and home screen timings live here too, so the
feel of the home screen can be tuned without touching the state machines.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        extra="ignore"
    )

    credentials_path: str = Field(
        ...,
        description="Path to Google service account credentials JSON"
    )
    spreadsheet_id: str = Field(
        ...,
        description="ID of the Google Sheets spreadsheet to use"
    )

    # Sheet names within the spreadsheet
    expenses_sheet_name: str = Field(
        default="Expenses",
        description="Name of the sheet for expenses"
    )
    budgets_sheet_name: str = Field(
        default="Budgets",
        description="Name of the sheet for budgets (one row per owner)"
    )
    categories_sheet_name: str = Field(
        default="Categories",
        description="Name of the sheet for categories"
    )
    accounts_sheet_name: str = Field(
        default="Accounts",
        description="Name of the sheet holding owner credential records"
    )
    audit_sheet_name: str = Field(
        default="AuditLog",
        description="Name of the sheet for audit logs"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """Warn if credentials file doesn't exist (but don't fail - might be mounted later)."""
        if not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before running the application."
            )
        return v


class GestureSettings(BaseSettings):
    """Thresholds for the home screen gesture disambiguator."""

    model_config = SettingsConfigDict(
        env_prefix="GESTURE_",
        extra="ignore"
    )

    movement_threshold_px: float = Field(
        default=10.0,
        gt=0,
        description="Movement on either axis beyond this turns a press into a drag"
    )
    swipe_threshold_px: float = Field(
        default=50.0,
        gt=0,
        description="Minimum dominant-axis displacement for a swipe to count"
    )
    double_tap_window_ms: float = Field(
        default=300.0,
        gt=0,
        description="Two taps closer than this are a double-tap"
    )


class HomeSettings(BaseSettings):
    """Home screen behaviour: severity, animation and onboarding timings."""

    model_config = SettingsConfigDict(
        env_prefix="HOME_",
        extra="ignore"
    )

    warning_ratio: float = Field(
        default=0.80,
        gt=0.0,
        lt=1.0,
        description="Spend-to-cap ratio at which the ring turns to warning"
    )
    animation_duration_ms: float = Field(
        default=600.0,
        gt=0,
        description="Duration of the hero number interpolation"
    )
    animation_frame_ms: float = Field(
        default=16.0,
        gt=0,
        description="Interval between animation ticks"
    )
    onboarding_session_limit: int = Field(
        default=3,
        ge=0,
        description="Onboarding is shown for this many first sessions"
    )
    onboarding_show_ms: float = Field(
        default=2500.0,
        ge=0,
        description="How long the onboarding hint is shown"
    )
    onboarding_transition_ms: float = Field(
        default=1000.0,
        ge=0,
        description="Duration of the onboarding fade-out"
    )
    session_counter_path: str = Field(
        default=".spendring/session_count.json",
        description="Where the app-open counter is persisted"
    )


class ApiSettings(BaseSettings):
    """Account deletion API configuration."""

    model_config = SettingsConfigDict(
        env_prefix="SPENDRING_API_",
        extra="ignore"
    )

    admin_token: Optional[str] = Field(
        default=None,
        description="Bearer token required by the API. Unset means open (local use only)"
    )
    cors_allow_origins: str = Field(
        default="*",
        description="Comma-separated list of allowed CORS origins"
    )

    @property
    def cors_origins_list(self) -> list[str]:
        """Get allowed origins as a list."""
        return [o.strip() for o in self.cors_allow_origins.split(",") if o.strip()]


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    default_owner_id: str = Field(
        default="local-user",
        description="Owner id used by the Streamlit front end when no auth session is present"
    )

    # Validation thresholds
    max_expense_amount: float = Field(
        default=100000.0,
        description="Maximum reasonable single expense (for sanity checking)"
    )
    future_date_tolerance_days: int = Field(
        default=1,
        ge=0,
        description="How many days in the future an expense date can be"
    )


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Note: These are loaded lazily to allow partial configuration

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def gestures(self) -> GestureSettings:
        return GestureSettings()

    @property
    def home(self) -> HomeSettings:
        return HomeSettings()

    @property
    def api(self) -> ApiSettings:
        return ApiSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    sections = {
        "google_sheets": lambda: settings.google_sheets,
        "gestures": lambda: settings.gestures,
        "home": lambda: settings.home,
        "api": lambda: settings.api,
        "app": lambda: settings.app,
    }

    for name, load in sections.items():
        try:
            load()
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
