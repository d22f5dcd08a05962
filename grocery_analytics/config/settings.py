"""
Grocery Sales Analytics
Centralized Configuration Management

Configuration for the batch report, loaded with Pydantic settings so every
value can be overridden from the environment or a local ``.env`` file.
"""

from functools import lru_cache
from typing import List, Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DATE_FORMAT_CHOICES = ["month_day_year", "day_month_year"]
ANOMALY_POLICY_CHOICES = ["flag", "exclude"]


class SourceSettings(BaseSettings):
    """Input CSV Configuration"""

    model_config = SettingsConfigDict(env_prefix="GROCERY_SOURCE_")

    store1_path: str = Field(default="./data/raw/store1.csv", description="Store 1 transactions export")
    store2_path: str = Field(default="./data/raw/store2.csv", description="Store 2 transactions export")
    store1_date_format: str = Field(default="month_day_year", description="Date encoding used by store 1")
    store2_date_format: str = Field(default="day_month_year", description="Date encoding used by store 2")
    time_format: str = Field(default="%H:%M:%S", description="Wall-clock time format")
    encoding: str = Field(default="utf8", description="File encoding (polars name)")
    delimiter: str = Field(default=",", description="Field delimiter")
    null_values: List[str] = Field(
        default=["", "NULL", "null", "None", "NA", "N/A"],
        description="Strings read as missing values",
    )

    @field_validator("store1_date_format", "store2_date_format")
    @classmethod
    def validate_date_format(cls, v: str) -> str:
        """Validate date format name"""
        if v.lower() not in DATE_FORMAT_CHOICES:
            raise ValueError(f"Date format must be one of: {DATE_FORMAT_CHOICES}")
        return v.lower()


class ReportSettings(BaseSettings):
    """Report Rendering Configuration"""

    model_config = SettingsConfigDict(env_prefix="GROCERY_REPORT_")

    output_dir: str = Field(default="./reports", description="Directory for report and charts")
    top_n: int = Field(default=10, ge=1, description="Products shown in top/bottom rankings")
    figure_dpi: int = Field(default=100, description="Chart resolution")
    currency_symbol: str = Field(default="$", description="Currency symbol used in narrative")
    render_charts: bool = Field(default=True, description="Render PNG charts")


class QualitySettings(BaseSettings):
    """Data Quality Configuration"""

    model_config = SettingsConfigDict(env_prefix="GROCERY_QUALITY_")

    anomaly_policy: str = Field(
        default="flag",
        description="Handling of negative prices / non-positive quantities: flag or exclude",
    )

    @field_validator("anomaly_policy")
    @classmethod
    def validate_policy(cls, v: str) -> str:
        """Validate anomaly policy value"""
        if v.lower() not in ANOMALY_POLICY_CHOICES:
            raise ValueError(f"Anomaly policy must be one of: {ANOMALY_POLICY_CHOICES}")
        return v.lower()


class MonitoringSettings(BaseSettings):
    """Logging Configuration"""

    model_config = SettingsConfigDict(env_prefix="GROCERY_")

    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="text", description="Log format: json or text")
    log_file: Optional[str] = Field(default=None, description="Log file path")


class Settings(BaseSettings):
    """
    Main Application Settings

    Aggregates all configuration sections and provides a single entry point
    for accessing application configuration.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = Field(default="grocery-analytics", description="Application name")
    app_env: str = Field(default="development", description="Environment")
    version: str = Field(default="1.0.0", description="Application version")

    # Subsystem configurations
    sources: SourceSettings = Field(default_factory=SourceSettings)
    report: ReportSettings = Field(default_factory=ReportSettings)
    quality: QualitySettings = Field(default_factory=QualitySettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)

    @field_validator("app_env")
    @classmethod
    def validate_env(cls, v: str) -> str:
        """Validate environment value"""
        allowed = ["development", "production", "testing"]
        if v.lower() not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v.lower()


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses LRU cache to ensure settings are only loaded once.

    Returns:
        Settings: Application settings instance
    """
    return Settings()
