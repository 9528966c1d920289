# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Repository modules for database access."""

from riskwatch.storage.repositories.categories import CategoryRepository
from riskwatch.storage.repositories.communications import CommunicationRepository
from riskwatch.storage.repositories.detections import DetectionRepository
from riskwatch.storage.repositories.employees import EmployeeRepository
from riskwatch.storage.repositories.jobs import JobRepository
from riskwatch.storage.repositories.metrics import MetricsRepository
from riskwatch.storage.repositories.violations import ViolationRepository

__all__ = [
    "CategoryRepository",
    "CommunicationRepository",
    "DetectionRepository",
    "EmployeeRepository",
    "JobRepository",
    "MetricsRepository",
    "ViolationRepository",
]
