# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Database schema.

Every statement is idempotent, so :func:`create_schema` runs on each
connection.  Detection results and violation status history are
append-only; triggers reject any UPDATE or DELETE against them.
"""

from __future__ import annotations

import logging

import aiosqlite

logger = logging.getLogger("riskwatch.storage.schema")

_TABLES = [
    """
    CREATE TABLE IF NOT EXISTS threat_categories (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL UNIQUE COLLATE NOCASE,
        type TEXT NOT NULL,
        industry TEXT,
        description TEXT NOT NULL DEFAULT '',
        base_risk_score REAL NOT NULL,
        severity TEXT NOT NULL,
        alert_threshold REAL NOT NULL,
        investigation_threshold REAL NOT NULL,
        critical_threshold REAL NOT NULL,
        detection_patterns TEXT NOT NULL DEFAULT '{}',
        risk_multipliers TEXT NOT NULL DEFAULT '{}',
        examples TEXT NOT NULL DEFAULT '[]',
        llm_fallback INTEGER NOT NULL DEFAULT 1,
        is_active INTEGER NOT NULL DEFAULT 1,
        created_at TEXT NOT NULL DEFAULT (datetime('now')),
        updated_at TEXT NOT NULL DEFAULT (datetime('now')),
        CHECK (alert_threshold <= investigation_threshold),
        CHECK (investigation_threshold <= critical_threshold)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS category_keywords (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        category_id INTEGER NOT NULL REFERENCES threat_categories(id) ON DELETE CASCADE,
        keyword TEXT NOT NULL,
        weight REAL NOT NULL DEFAULT 1.0,
        is_phrase INTEGER NOT NULL DEFAULT 0,
        required_context TEXT,
        UNIQUE (category_id, keyword COLLATE NOCASE)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS employees (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        email TEXT NOT NULL,
        department TEXT NOT NULL DEFAULT '',
        timezone TEXT,
        is_active INTEGER NOT NULL DEFAULT 1,
        risk_score INTEGER NOT NULL DEFAULT 0,
        risk_level TEXT NOT NULL DEFAULT 'Low',
        risk_updated_at TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS communications (
        id TEXT PRIMARY KEY,
        employee_id TEXT REFERENCES employees(id),
        sender TEXT NOT NULL,
        recipients TEXT NOT NULL DEFAULT '[]',
        subject TEXT NOT NULL DEFAULT '',
        body TEXT NOT NULL DEFAULT '',
        attachments TEXT NOT NULL DEFAULT '[]',
        sent_at TEXT NOT NULL,
        is_external INTEGER NOT NULL DEFAULT 0,
        channel TEXT NOT NULL DEFAULT 'email',
        sender_timezone TEXT,
        context_flags TEXT NOT NULL DEFAULT '[]',
        risk_score INTEGER,
        risk_flags TEXT,
        category TEXT,
        category_id INTEGER,
        is_flagged INTEGER NOT NULL DEFAULT 0,
        is_analyzed INTEGER NOT NULL DEFAULT 0,
        analyzed_at TEXT,
        analyzer_version TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS detection_results (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        communication_id TEXT NOT NULL REFERENCES communications(id),
        category_id INTEGER NOT NULL REFERENCES threat_categories(id),
        category_name TEXT NOT NULL,
        matched_keywords TEXT NOT NULL DEFAULT '[]',
        pattern_matches TEXT NOT NULL DEFAULT '[]',
        confidence REAL NOT NULL,
        risk_score REAL NOT NULL,
        final_risk_score REAL NOT NULL,
        applied_multipliers TEXT NOT NULL DEFAULT '{}',
        triggers_alert INTEGER NOT NULL DEFAULT 0,
        triggers_investigation INTEGER NOT NULL DEFAULT 0,
        triggers_critical INTEGER NOT NULL DEFAULT 0,
        analysis_method TEXT NOT NULL,
        reasoning TEXT NOT NULL DEFAULT '',
        recommendations TEXT NOT NULL DEFAULT '[]',
        degraded INTEGER NOT NULL DEFAULT 0,
        degradation_reason TEXT,
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS violations (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        employee_id TEXT NOT NULL REFERENCES employees(id),
        communication_id TEXT REFERENCES communications(id),
        category_id INTEGER REFERENCES threat_categories(id),
        violation_type TEXT NOT NULL,
        severity TEXT NOT NULL,
        status TEXT NOT NULL DEFAULT 'Active',
        description TEXT NOT NULL DEFAULT '',
        evidence TEXT NOT NULL DEFAULT '[]',
        structured_evidence TEXT,
        ai_validation_status TEXT NOT NULL DEFAULT 'pending',
        ai_validation_score REAL,
        ai_validation_reasoning TEXT,
        ai_recommended_status TEXT,
        ai_validated_at TEXT,
        metadata TEXT NOT NULL DEFAULT '{}',
        version INTEGER NOT NULL DEFAULT 1,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL,
        resolved_at TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS violation_status_history (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        violation_id INTEGER NOT NULL REFERENCES violations(id),
        previous_status TEXT NOT NULL,
        new_status TEXT NOT NULL,
        reason TEXT NOT NULL,
        changed_by TEXT NOT NULL,
        ai_assisted INTEGER NOT NULL DEFAULT 0,
        ai_confidence REAL,
        metadata TEXT NOT NULL DEFAULT '{}',
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS employee_metrics (
        employee_id TEXT NOT NULL REFERENCES employees(id),
        metric_date TEXT NOT NULL,
        email_volume INTEGER NOT NULL DEFAULT 0,
        after_hours_activity INTEGER NOT NULL DEFAULT 0,
        PRIMARY KEY (employee_id, metric_date)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS analysis_jobs (
        id TEXT PRIMARY KEY,
        kind TEXT NOT NULL,
        target TEXT NOT NULL DEFAULT '',
        status TEXT NOT NULL,
        summary TEXT,
        error TEXT,
        created_at TEXT NOT NULL,
        completed_at TEXT
    )
    """,
]

_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_keywords_category ON category_keywords(category_id)",
    "CREATE INDEX IF NOT EXISTS idx_comms_employee_sent ON communications(employee_id, sent_at)",
    "CREATE INDEX IF NOT EXISTS idx_comms_sender_sent ON communications(sender, sent_at)",
    "CREATE INDEX IF NOT EXISTS idx_comms_analyzed ON communications(is_analyzed)",
    "CREATE INDEX IF NOT EXISTS idx_detections_comm ON detection_results(communication_id)",
    "CREATE INDEX IF NOT EXISTS idx_violations_employee ON violations(employee_id, status)",
    # One automatic violation per (communication, category).
    """
    CREATE UNIQUE INDEX IF NOT EXISTS idx_violations_detection
    ON violations(communication_id, category_id)
    WHERE communication_id IS NOT NULL AND category_id IS NOT NULL
    """,
    "CREATE INDEX IF NOT EXISTS idx_history_violation ON violation_status_history(violation_id)",
    "CREATE INDEX IF NOT EXISTS idx_jobs_created ON analysis_jobs(created_at)",
]


def _append_only_triggers(table: str) -> list[str]:
    return [
        f"""
        CREATE TRIGGER IF NOT EXISTS trg_{table}_no_update
        BEFORE UPDATE ON {table}
        BEGIN
            SELECT RAISE(ABORT, '{table} is append-only');
        END
        """,
        f"""
        CREATE TRIGGER IF NOT EXISTS trg_{table}_no_delete
        BEFORE DELETE ON {table}
        BEGIN
            SELECT RAISE(ABORT, '{table} is append-only');
        END
        """,
    ]


_TRIGGERS = [
    *_append_only_triggers("detection_results"),
    *_append_only_triggers("violation_status_history"),
]


async def create_schema(db: aiosqlite.Connection) -> None:
    """Create all tables, indexes, and triggers that do not yet exist."""
    for statement in (*_TABLES, *_INDEXES, *_TRIGGERS):
        await db.execute(statement)
    await db.commit()
    logger.debug("Schema ensured (%d tables)", len(_TABLES))


TABLE_NAMES: tuple[str, ...] = (
    "threat_categories",
    "category_keywords",
    "employees",
    "communications",
    "detection_results",
    "violations",
    "violation_status_history",
    "employee_metrics",
    "analysis_jobs",
)
