# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Violation lifecycle management."""

from riskwatch.violations.state_machine import ViolationStateMachine
from riskwatch.violations.validator import ViolationValidator

__all__ = ["ViolationStateMachine", "ViolationValidator"]
