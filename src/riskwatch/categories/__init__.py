# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Threat category configuration files."""

from riskwatch.categories.loader import load_categories_file, load_predefined_categories

__all__ = ["load_categories_file", "load_predefined_categories"]
