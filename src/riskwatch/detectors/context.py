# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Derive the contextual risk factors of a communication."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from email.utils import parseaddr
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from riskwatch.core.config import Settings
from riskwatch.core.constants import RiskFactor
from riskwatch.models.communication import Communication

logger = logging.getLogger("riskwatch.detectors.context")

URGENCY_RE = re.compile(
    r"\b(urgent|asap|immediately|emergency|time[\s\-]sensitive|rush)\b", re.IGNORECASE
)
# Whole-thousand currency amounts such as $5,000 or 25000 USD.
ROUND_AMOUNT_RE = re.compile(
    r"(?:[$€£]\s?[1-9]\d{0,2}(?:,?000)+(?:\.00)?(?![\d,])"
    r"|\b[1-9]\d{0,2}(?:,?000)+(?:\.00)?\s?(?:usd|eur|gbp|dollars)\b)",
    re.IGNORECASE,
)

_WEEKEND = (5, 6)


@dataclass(frozen=True, slots=True)
class CommunicationContext:
    """Factors present for one communication, evaluated once per pass."""

    factors: frozenset[RiskFactor]
    local_sent_at: datetime
    sender_recent_count: int = 0

    def has(self, factor: RiskFactor) -> bool:
        return factor in self.factors


def email_domain(address: str) -> str:
    """Lowercased domain of an address, accepting ``Name <user@host>`` forms."""
    _, addr = parseaddr(address)
    addr = addr or address
    return addr.rsplit("@", 1)[-1].strip().lower() if "@" in addr else ""


def _in_domains(domain: str, domains: list[str]) -> bool:
    return any(domain == d or domain.endswith("." + d) for d in domains)


def resolve_timezone(name: str | None, settings: Settings) -> ZoneInfo:
    candidate = name or settings.default_timezone
    try:
        return ZoneInfo(candidate)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(
            "Unknown timezone %r, using %s", candidate, settings.default_timezone
        )
        return ZoneInfo(settings.default_timezone)


def build_context(
    communication: Communication,
    settings: Settings,
    *,
    sender_recent_count: int = 0,
    employee_timezone: str | None = None,
) -> CommunicationContext:
    """Compute which :class:`RiskFactor` conditions hold for *communication*.

    ``sender_recent_count`` is the number of communications the sender sent
    within the configured rolling window, including this one.
    """
    tz = resolve_timezone(communication.sender_timezone or employee_timezone, settings)
    local = communication.sent_at.astimezone(tz)
    factors: set[RiskFactor] = set(communication.context_flags)

    if is_after_hours(local, settings):
        factors.add(RiskFactor.AFTER_HOURS)
    if local.weekday() in _WEEKEND:
        factors.add(RiskFactor.WEEKEND_SUBMISSION)

    domains = [d for d in (email_domain(r) for r in communication.recipients) if d]
    outside_org = bool(settings.internal_domains) and any(
        not _in_domains(d, settings.internal_domains) for d in domains
    )
    if communication.is_external or outside_org:
        factors.add(RiskFactor.EXTERNAL_RECIPIENT)
        factors.add(RiskFactor.EXTERNAL_CONTACT)
    if any(_in_domains(d, settings.personal_email_domains) for d in domains):
        factors.add(RiskFactor.PERSONAL_EMAIL)
    if any(_in_domains(d, settings.competitor_domains) for d in domains):
        factors.add(RiskFactor.COMPETITOR_CONTACT)

    attachments = communication.attachments
    if any(a.size_bytes > settings.large_attachment_bytes for a in attachments):
        factors.add(RiskFactor.LARGE_ATTACHMENT)
    if (
        len(attachments) >= settings.bulk_export_attachment_count
        or communication.total_attachment_bytes >= settings.bulk_export_bytes
    ):
        factors.add(RiskFactor.BULK_EXPORT)

    if sender_recent_count >= settings.frequency_threshold:
        factors.add(RiskFactor.FREQUENCY)

    text = f"{communication.subject}\n{communication.body}"
    if URGENCY_RE.search(text):
        factors.add(RiskFactor.URGENT_PROCESSING)
    if ROUND_AMOUNT_RE.search(text):
        factors.add(RiskFactor.ROUND_NUMBERS)

    return CommunicationContext(
        factors=frozenset(factors),
        local_sent_at=local,
        sender_recent_count=sender_recent_count,
    )


def is_after_hours(local: datetime, settings: Settings) -> bool:
    """Outside business hours in the sender's local time, or on a weekend."""
    if local.weekday() in _WEEKEND:
        return True
    return not settings.business_hours_start <= local.hour < settings.business_hours_end
