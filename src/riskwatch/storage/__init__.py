# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Storage layer -- SQLite connection, schema, and repositories."""

from riskwatch.storage.database import close_db, get_db, init_db, transaction
from riskwatch.storage.repositories import (
    CategoryRepository,
    CommunicationRepository,
    DetectionRepository,
    EmployeeRepository,
    JobRepository,
    MetricsRepository,
    ViolationRepository,
)
from riskwatch.storage.schema import create_schema

__all__ = [
    "CategoryRepository",
    "CommunicationRepository",
    "DetectionRepository",
    "EmployeeRepository",
    "JobRepository",
    "MetricsRepository",
    "ViolationRepository",
    "close_db",
    "create_schema",
    "get_db",
    "init_db",
    "transaction",
]
