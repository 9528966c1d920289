# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Threat category, keyword, and category snapshot models."""

from __future__ import annotations

import hashlib
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Self

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    ValidationInfo,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from riskwatch.core.constants import (
    DEFAULT_ALERT_THRESHOLD,
    DEFAULT_BASE_RISK_SCORE,
    DEFAULT_CRITICAL_THRESHOLD,
    DEFAULT_INVESTIGATION_THRESHOLD,
    INDUSTRIES,
    KEYWORD_WEIGHT_MAX,
    KEYWORD_WEIGHT_MIN,
    MAX_CATEGORY_NAME_LENGTH,
    MAX_DESCRIPTION_LENGTH,
    MAX_KEYWORD_LENGTH,
    MAX_KEYWORDS_PER_CATEGORY,
    MULTIPLIER_MAX,
    MULTIPLIER_MIN,
    CategoryType,
    PatternGroup,
    RiskFactor,
    Severity,
)
from riskwatch.core.exceptions import ConfigurationError

_CATEGORY_NAME_RE = re.compile(r"^[a-zA-Z0-9\s\-_().&]+$")

# Category configuration arrives in camelCase from the category-management
# side and in snake_case from YAML files; both spellings are accepted.
_MODEL_CONFIG = ConfigDict(
    frozen=True,
    populate_by_name=True,
    alias_generator=to_camel,
    str_strip_whitespace=True,
)


class CategoryKeyword(BaseModel):
    """A weighted keyword or phrase belonging to one category."""

    model_config = _MODEL_CONFIG

    id: int | None = None
    keyword: str = Field(min_length=1, max_length=MAX_KEYWORD_LENGTH)
    weight: float = Field(default=1.0, ge=KEYWORD_WEIGHT_MIN, le=KEYWORD_WEIGHT_MAX)
    is_phrase: bool = False
    required_context: str | None = Field(default=None, max_length=MAX_KEYWORD_LENGTH)

    @model_validator(mode="before")
    @classmethod
    def _default_phrase_flag(cls, data: Any) -> Any:
        if isinstance(data, Mapping) and "is_phrase" not in data and "isPhrase" not in data:
            keyword = data.get("keyword")
            if isinstance(keyword, str):
                data = {**data, "is_phrase": len(keyword.split()) > 1}
        return data

    @field_validator("required_context")
    @classmethod
    def _blank_context_is_none(cls, v: str | None) -> str | None:
        return v or None


class ThreatCategory(BaseModel):
    """A named threat pattern definition with keywords, patterns, and thresholds."""

    model_config = _MODEL_CONFIG

    id: int | None = None
    name: str = Field(min_length=1, max_length=MAX_CATEGORY_NAME_LENGTH)
    type: CategoryType = CategoryType.CUSTOM
    industry: str | None = None
    description: str = Field(default="", max_length=MAX_DESCRIPTION_LENGTH)
    base_risk_score: float = Field(default=DEFAULT_BASE_RISK_SCORE, ge=0, le=100)
    severity: Severity = Severity.MEDIUM
    alert_threshold: float = Field(default=DEFAULT_ALERT_THRESHOLD, ge=0, le=100)
    investigation_threshold: float = Field(
        default=DEFAULT_INVESTIGATION_THRESHOLD, ge=0, le=100
    )
    critical_threshold: float = Field(default=DEFAULT_CRITICAL_THRESHOLD, ge=0, le=100)
    detection_patterns: dict[PatternGroup, list[str]] = Field(default_factory=dict)
    risk_multipliers: dict[RiskFactor, float] = Field(default_factory=dict)
    keywords: list[CategoryKeyword] = Field(
        default_factory=list, max_length=MAX_KEYWORDS_PER_CATEGORY
    )
    examples: list[str] = Field(default_factory=list)
    llm_fallback: bool = True
    is_active: bool = True

    @field_validator("name")
    @classmethod
    def _check_name(cls, v: str) -> str:
        if not _CATEGORY_NAME_RE.match(v):
            msg = "name may only contain letters, numbers, spaces, and - _ ( ) . &"
            raise ValueError(msg)
        return v

    @field_validator("industry")
    @classmethod
    def _check_industry(cls, v: str | None) -> str | None:
        if v and v not in INDUSTRIES:
            msg = f"industry must be one of: {', '.join(INDUSTRIES)}"
            raise ValueError(msg)
        return v or None

    @field_validator("detection_patterns", "risk_multipliers", mode="before")
    @classmethod
    def _normalize_keys(cls, v: Any, info: ValidationInfo) -> Any:
        if not isinstance(v, Mapping):
            return v
        enum_cls = PatternGroup if info.field_name == "detection_patterns" else RiskFactor
        normalized: dict[Any, Any] = {}
        for key, value in v.items():
            try:
                normalized[enum_cls(key)] = value
            except ValueError:
                msg = f"unknown {info.field_name} key {key!r}"
                raise ValueError(msg) from None
        return normalized

    @field_validator("detection_patterns")
    @classmethod
    def _drop_blank_patterns(
        cls, v: dict[PatternGroup, list[str]]
    ) -> dict[PatternGroup, list[str]]:
        cleaned = {group: [p.strip() for p in patterns if p.strip()] for group, patterns in v.items()}
        return {group: patterns for group, patterns in cleaned.items() if patterns}

    @field_validator("risk_multipliers")
    @classmethod
    def _check_multipliers(cls, v: dict[RiskFactor, float]) -> dict[RiskFactor, float]:
        for factor, multiplier in v.items():
            if not MULTIPLIER_MIN <= multiplier <= MULTIPLIER_MAX:
                msg = (
                    f"multiplier for {factor} must be between "
                    f"{MULTIPLIER_MIN} and {MULTIPLIER_MAX}, got {multiplier}"
                )
                raise ValueError(msg)
        return v

    @model_validator(mode="after")
    def _check_invariants(self) -> Self:
        if not (
            self.alert_threshold
            <= self.investigation_threshold
            <= self.critical_threshold
        ):
            msg = (
                "thresholds must satisfy alert <= investigation <= critical "
                f"(got {self.alert_threshold}, {self.investigation_threshold}, "
                f"{self.critical_threshold})"
            )
            raise ValueError(msg)

        if self.type == CategoryType.INDUSTRY_SPECIFIC and not self.industry:
            msg = "industry_specific categories require an industry"
            raise ValueError(msg)

        seen: set[str] = set()
        for kw in self.keywords:
            folded = kw.keyword.casefold()
            if folded in seen:
                msg = f"duplicate keyword {kw.keyword!r}"
                raise ValueError(msg)
            seen.add(folded)
        return self

    def fingerprint(self) -> str:
        """Stable digest of everything that influences evaluation."""
        payload = self.model_dump_json(exclude={"is_active"})
        return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def parse_category(data: Mapping[str, Any] | ThreatCategory) -> ThreatCategory:
    """Validate *data* as a category, raising :class:`ConfigurationError` on failure."""
    if isinstance(data, ThreatCategory):
        return data
    try:
        return ThreatCategory.model_validate(dict(data))
    except ValidationError as exc:
        name = data.get("name", "<unnamed>") if isinstance(data, Mapping) else "<unnamed>"
        msg = f"Invalid category {name!r}: {exc}"
        raise ConfigurationError(msg) from exc


@dataclass(frozen=True, slots=True)
class CategorySnapshot:
    """Immutable set of active categories read once per analysis pass."""

    categories: tuple[ThreatCategory, ...]
    fingerprint: str
    taken_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @classmethod
    def from_categories(cls, categories: Iterable[ThreatCategory]) -> CategorySnapshot:
        active = tuple(
            sorted(
                (c for c in categories if c.is_active),
                key=lambda c: (c.id if c.id is not None else -1, c.name),
            )
        )
        digest = hashlib.sha256()
        for category in active:
            digest.update(category.fingerprint().encode("ascii"))
        return cls(categories=active, fingerprint=digest.hexdigest())

    def __len__(self) -> int:
        return len(self.categories)

    def get(self, category_id: int) -> ThreatCategory | None:
        for category in self.categories:
            if category.id == category_id:
                return category
        return None
