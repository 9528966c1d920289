# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""riskwatch - Insider-threat risk detection and scoring engine."""

__version__ = "0.1.0"

from riskwatch.sdk import evaluate, evaluate_sync

__all__ = [
    "__version__",
    "evaluate",
    "evaluate_sync",
]
