# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Communication records and their analysis overlay."""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from riskwatch.core.constants import AnalysisMethod, RiskFactor


class Attachment(BaseModel):
    """Metadata for one attachment; contents are never ingested."""

    model_config = ConfigDict(frozen=True)

    filename: str
    size_bytes: int = Field(default=0, ge=0)
    content_type: str = ""


class RiskFlag(BaseModel):
    """Per-category summary stored on the communication overlay."""

    category_id: int
    category_name: str
    final_risk_score: float
    analysis_method: AnalysisMethod
    triggers_alert: bool = False
    triggers_investigation: bool = False
    triggers_critical: bool = False
    factors: list[RiskFactor] = Field(default_factory=list)


class CommunicationOverlay(BaseModel):
    """Mutable analysis results written over an immutable communication."""

    risk_score: int = Field(ge=0, le=100)
    risk_flags: list[RiskFlag] = Field(default_factory=list)
    category: str | None = None
    category_id: int | None = None
    is_flagged: bool = False
    is_analyzed: bool = True
    analyzed_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    analyzer_version: str = ""


class Communication(BaseModel):
    """A normalized communication as handed over by a connector."""

    model_config = ConfigDict(frozen=True)

    id: str
    employee_id: str | None = None
    sender: str
    recipients: list[str] = Field(default_factory=list)
    subject: str = ""
    body: str = ""
    attachments: list[Attachment] = Field(default_factory=list)
    sent_at: datetime
    is_external: bool = False
    channel: str = "email"
    sender_timezone: str | None = None
    # Factors the connector already knows about (e.g. duplicate_vendor).
    context_flags: list[RiskFactor] = Field(default_factory=list)
    overlay: CommunicationOverlay | None = None

    @field_validator("context_flags", mode="before")
    @classmethod
    def _coerce_flags(cls, v: object) -> object:
        if isinstance(v, list):
            return [RiskFactor(f) if isinstance(f, str) else f for f in v]
        return v

    @field_validator("sent_at")
    @classmethod
    def _assume_utc(cls, v: datetime) -> datetime:
        return v if v.tzinfo is not None else v.replace(tzinfo=UTC)

    @property
    def searchable_text(self) -> str:
        """Subject, body, and attachment names, lowercased."""
        parts = [self.subject, self.body, *(a.filename for a in self.attachments)]
        return "\n".join(p for p in parts if p).lower()

    @property
    def total_attachment_bytes(self) -> int:
        return sum(a.size_bytes for a in self.attachments)
