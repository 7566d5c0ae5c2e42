"""Audit Sink — structured audit lines on a dedicated logger.

Invariants:
    - One log record per AuditEntry on the "certtrack.audit" logger
    - record() never raises into the audited operation
"""

import logging

from certtrack.core.repository_protocols import AuditEntry

audit_logger = logging.getLogger("certtrack.audit")


class LoggingAuditSink:
    """AuditSink that writes entries through the JSON log pipeline."""

    def record(self, entry: AuditEntry) -> None:
        try:
            audit_logger.info(
                f"{entry.actor} {entry.action} {entry.resource_type}/{entry.resource_id}",
                extra={
                    "actor": entry.actor,
                    "action": entry.action,
                    "resource_type": entry.resource_type,
                    "resource_id": entry.resource_id,
                    "before": entry.before,
                    "after": entry.after,
                },
            )
        except Exception as e:  # audit must not break the operation
            logging.getLogger(__name__).error(f"Audit logging failed: {e}", exc_info=True)


class MemoryAuditSink:
    """Collects entries in a list; used by tests and local tooling."""

    def __init__(self):
        self.entries: list[AuditEntry] = []

    def record(self, entry: AuditEntry) -> None:
        self.entries.append(entry)
