# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Application configuration via environment variables and .env files."""

from pathlib import Path
from typing import Annotated, Self

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from riskwatch.core.constants import TriggerLevel


def _split_csv(v: object) -> list[str]:
    if isinstance(v, str):
        return [item.strip().lower() for item in v.split(",") if item.strip()]
    return [str(item).lower() for item in v] if isinstance(v, list) else []


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="RISKWATCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
    )

    # Database
    db_path: Path = Path("riskwatch.db")
    auto_create_schema: bool = True

    # LLM (Anthropic)
    anthropic_api_key: str = ""
    llm_model: str = "claude-sonnet-4-6"
    llm_max_tokens: int = 1024
    llm_temperature: float = 0.0
    llm_timeout: float = 30.0
    llm_fallback_enabled: bool = True
    llm_cache_ttl: int = 86_400  # seconds (24 hours)

    # Detection and scoring
    keyword_calibration: float = Field(3.0, gt=0)
    confidence_saturation: float = Field(3.0, gt=0)
    pattern_weight: float = Field(1.0, ge=0)
    category_concurrency: int = Field(8, ge=1)

    # Communication context
    business_hours_start: int = Field(8, ge=0, le=23)
    business_hours_end: int = Field(18, ge=1, le=24)
    default_timezone: str = "UTC"
    internal_domains: Annotated[list[str], NoDecode] = []
    personal_email_domains: Annotated[list[str], NoDecode] = [
        "gmail.com",
        "yahoo.com",
        "hotmail.com",
        "outlook.com",
        "icloud.com",
        "protonmail.com",
    ]
    competitor_domains: Annotated[list[str], NoDecode] = []
    large_attachment_bytes: int = 10 * 1024 * 1024
    bulk_export_attachment_count: int = 5
    bulk_export_bytes: int = 25 * 1024 * 1024
    frequency_window_hours: int = 1
    frequency_threshold: int = 20

    @field_validator(
        "internal_domains", "personal_email_domains", "competitor_domains", mode="before"
    )
    @classmethod
    def _parse_domains(cls, v: object) -> list[str]:
        return _split_csv(v)

    # Employee aggregation
    employee_window_days: int = Field(30, ge=1)
    communication_weight: float = Field(0.6, ge=0, le=1)
    violation_weight: float = Field(0.4, ge=0, le=1)

    # Violations
    auto_violation_trigger: TriggerLevel = TriggerLevel.INVESTIGATION

    # Anomaly detection
    anomaly_z_threshold: float = Field(2.0, gt=0)
    anomaly_window_days: int = Field(30, ge=2)
    anomaly_recent_days: int = Field(7, ge=1)
    risk_spike_threshold: float = Field(75.0, ge=0, le=100)

    # Batch analysis
    batch_max_items: int = Field(500, ge=1)

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"

    @model_validator(mode="after")
    def _check_consistency(self) -> Self:
        if abs(self.communication_weight + self.violation_weight - 1.0) > 1e-9:
            msg = "communication_weight and violation_weight must sum to 1.0"
            raise ValueError(msg)
        if self.business_hours_start >= self.business_hours_end:
            msg = "business_hours_start must be earlier than business_hours_end"
            raise ValueError(msg)
        if self.anomaly_recent_days >= self.anomaly_window_days:
            msg = "anomaly_recent_days must be shorter than anomaly_window_days"
            raise ValueError(msg)
        return self


def get_settings() -> Settings:
    return Settings()
