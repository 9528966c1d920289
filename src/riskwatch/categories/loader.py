# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Load and validate threat categories from YAML files."""

from __future__ import annotations

import logging
from pathlib import Path

import yaml

from riskwatch.core.exceptions import ConfigurationError
from riskwatch.models.category import ThreatCategory, parse_category

logger = logging.getLogger("riskwatch.categories.loader")

PREDEFINED_PATH = Path(__file__).parent / "predefined.yaml"


def load_categories_file(path: str | Path) -> list[ThreatCategory]:
    """Parse a YAML file holding a list of categories.

    The file may be a bare list or a mapping with a ``categories`` key.
    Every entry is validated before anything is returned, so a single bad
    category rejects the whole file.

    Raises
    ------
    ConfigurationError
        If the file cannot be read, is not valid YAML, or any category is invalid.
    """
    file_path = Path(path)
    try:
        raw_text = file_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"Cannot read category file {file_path}: {exc}") from exc

    try:
        data = yaml.safe_load(raw_text)
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML syntax in {file_path.name}: {exc}") from exc

    if isinstance(data, dict):
        data = data.get("categories")
    if not isinstance(data, list):
        msg = f"Expected a list of categories in {file_path.name}, got {type(data).__name__}"
        raise ConfigurationError(msg)

    categories: list[ThreatCategory] = []
    seen: set[str] = set()
    for index, entry in enumerate(data):
        if not isinstance(entry, dict):
            msg = f"Entry {index} in {file_path.name} is not a mapping"
            raise ConfigurationError(msg)
        category = parse_category(entry)
        if category.name.casefold() in seen:
            msg = f"Category {category.name!r} appears twice in {file_path.name}"
            raise ConfigurationError(msg)
        seen.add(category.name.casefold())
        categories.append(category)

    logger.info("Loaded %d categories from %s", len(categories), file_path)
    return categories


def load_predefined_categories() -> list[ThreatCategory]:
    """The bundled predefined category templates."""
    return load_categories_file(PREDEFINED_PATH)
