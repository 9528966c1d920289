# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Unit tests for communication context factors."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from riskwatch.core.config import Settings
from riskwatch.core.constants import RiskFactor
from riskwatch.detectors.context import build_context, email_domain, resolve_timezone
from riskwatch.models.communication import Attachment, Communication

# 2026-03-04 is a Wednesday.
WEDNESDAY_10_UTC = datetime(2026, 3, 4, 10, 0, tzinfo=UTC)


def _make_communication(**overrides) -> Communication:
    data = {
        "id": "msg-1",
        "sender": "ada@corp.example",
        "recipients": ["bob@corp.example"],
        "subject": "Status",
        "body": "All good.",
        "sent_at": WEDNESDAY_10_UTC,
    }
    data.update(overrides)
    return Communication(**data)


def _settings(**overrides) -> Settings:
    defaults = {
        "internal_domains": "corp.example",
        "competitor_domains": "rival.example",
    }
    defaults.update(overrides)
    return Settings(_env_file=None, **defaults)


class TestEmailDomain:
    @pytest.mark.parametrize(
        ("address", "expected"),
        [
            ("bob@Corp.Example", "corp.example"),
            ("Bob Smith <bob@corp.example>", "corp.example"),
            ("not-an-address", ""),
        ],
    )
    def test_domain(self, address, expected):
        assert email_domain(address) == expected


class TestTimeFactors:
    def test_business_hours_clean(self):
        ctx = build_context(_make_communication(), _settings())
        assert ctx.factors == frozenset()

    def test_after_hours_utc(self):
        comm = _make_communication(sent_at=datetime(2026, 3, 4, 23, 0, tzinfo=UTC))
        ctx = build_context(comm, _settings())
        assert ctx.has(RiskFactor.AFTER_HOURS)
        assert not ctx.has(RiskFactor.WEEKEND_SUBMISSION)

    def test_end_hour_is_exclusive(self):
        comm = _make_communication(sent_at=datetime(2026, 3, 4, 18, 0, tzinfo=UTC))
        assert build_context(comm, _settings()).has(RiskFactor.AFTER_HOURS)

    def test_sender_timezone_applies(self):
        # 15:00 UTC is 10:00 in New York (EST before the March DST switch).
        comm = _make_communication(
            sent_at=datetime(2026, 3, 4, 15, 0, tzinfo=UTC), sender_timezone="America/New_York"
        )
        ctx = build_context(comm, _settings())
        assert not ctx.has(RiskFactor.AFTER_HOURS)
        assert ctx.local_sent_at.hour == 10

    def test_employee_timezone_fallback(self):
        # 10:00 UTC is 02:00 in Los Angeles.
        ctx = build_context(
            _make_communication(), _settings(), employee_timezone="America/Los_Angeles"
        )
        assert ctx.has(RiskFactor.AFTER_HOURS)

    def test_weekend(self):
        comm = _make_communication(sent_at=datetime(2026, 3, 7, 11, 0, tzinfo=UTC))
        ctx = build_context(comm, _settings())
        assert ctx.has(RiskFactor.WEEKEND_SUBMISSION)
        assert ctx.has(RiskFactor.AFTER_HOURS)

    def test_unknown_timezone_uses_default(self):
        tz = resolve_timezone("Mars/Olympus_Mons", _settings())
        assert str(tz) == "UTC"


class TestRecipientFactors:
    def test_outside_internal_domains(self):
        comm = _make_communication(recipients=["bob@corp.example", "x@partner.example"])
        ctx = build_context(comm, _settings())
        assert ctx.has(RiskFactor.EXTERNAL_RECIPIENT)
        assert ctx.has(RiskFactor.EXTERNAL_CONTACT)

    def test_internal_subdomain(self):
        comm = _make_communication(recipients=["ops@eu.corp.example"])
        assert not build_context(comm, _settings()).has(RiskFactor.EXTERNAL_RECIPIENT)

    def test_connector_external_flag(self):
        comm = _make_communication(is_external=True)
        ctx = build_context(comm, _settings(internal_domains=""))
        assert ctx.has(RiskFactor.EXTERNAL_RECIPIENT)

    def test_personal_email(self):
        comm = _make_communication(recipients=["me@gmail.com"])
        ctx = build_context(comm, _settings())
        assert ctx.has(RiskFactor.PERSONAL_EMAIL)
        assert ctx.has(RiskFactor.EXTERNAL_RECIPIENT)

    def test_competitor_contact(self):
        comm = _make_communication(recipients=["cto@rival.example"])
        assert build_context(comm, _settings()).has(RiskFactor.COMPETITOR_CONTACT)


class TestAttachmentAndContentFactors:
    def test_large_attachment(self):
        comm = _make_communication(
            attachments=[Attachment(filename="dump.zip", size_bytes=11 * 1024 * 1024)]
        )
        assert build_context(comm, _settings()).has(RiskFactor.LARGE_ATTACHMENT)

    def test_bulk_export_by_count(self):
        comm = _make_communication(
            attachments=[Attachment(filename=f"f{i}.csv", size_bytes=10) for i in range(5)]
        )
        ctx = build_context(comm, _settings())
        assert ctx.has(RiskFactor.BULK_EXPORT)
        assert not ctx.has(RiskFactor.LARGE_ATTACHMENT)

    def test_bulk_export_by_total_size(self):
        comm = _make_communication(
            attachments=[Attachment(filename=f"f{i}.csv", size_bytes=9 * 1024 * 1024) for i in range(3)]
        )
        assert build_context(comm, _settings()).has(RiskFactor.BULK_EXPORT)

    def test_frequency(self):
        ctx = build_context(_make_communication(), _settings(), sender_recent_count=20)
        assert ctx.has(RiskFactor.FREQUENCY)
        ctx = build_context(_make_communication(), _settings(), sender_recent_count=19)
        assert not ctx.has(RiskFactor.FREQUENCY)

    def test_urgency(self):
        comm = _make_communication(subject="URGENT: approve now")
        assert build_context(comm, _settings()).has(RiskFactor.URGENT_PROCESSING)

    @pytest.mark.parametrize("text", ["Pay $5,000 today", "invoice for 25000 USD", "€10000"])
    def test_round_numbers(self, text):
        comm = _make_communication(body=text)
        assert build_context(comm, _settings()).has(RiskFactor.ROUND_NUMBERS)

    def test_non_round_amount(self):
        comm = _make_communication(body="Pay $5,217.43 today")
        assert not build_context(comm, _settings()).has(RiskFactor.ROUND_NUMBERS)

    def test_connector_supplied_flags(self):
        comm = _make_communication(context_flags=["duplicateVendor"])
        assert build_context(comm, _settings()).has(RiskFactor.DUPLICATE_VENDOR)
