"""
Decision audit log

Append-only record of scheduling decisions for one user. Only the most recent
`retention` decisions stay in memory; older ones are moved to an export
buffer that the caller drains and persists. Nothing is ever dropped without
first being handed back.
"""

import logging
from typing import List

from sleepcore.exceptions import ConfigurationError, ValidationError
from sleepcore.models.decision import Decision

logger = logging.getLogger(__name__)


class DecisionLog:
    """Bounded in-memory audit trail with explicit hand-off for persistence"""

    def __init__(self, retention: int = 500):
        if retention < 1:
            raise ConfigurationError(
                message=f"Decision log retention must be at least 1 (got {retention})",
                config_key="decision_log_retention"
            )
        self.retention = retention
        self._entries: List[Decision] = []
        self._pending_export: List[Decision] = []
        self._total = 0

    def append(self, decision: Decision) -> None:
        self._entries.append(decision)
        self._total += 1

        overflow = len(self._entries) - self.retention
        if overflow > 0:
            self._pending_export.extend(self._entries[:overflow])
            del self._entries[:overflow]
            logger.debug(f"Moved {overflow} decisions to export buffer for user {decision.user_id}")

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def total_recorded(self) -> int:
        """Decisions ever appended, including exported ones"""
        return self._total

    @property
    def pending_export_count(self) -> int:
        return len(self._pending_export)

    def recent(self, limit: int = 10) -> List[Decision]:
        """Most recent decisions, newest last"""
        if limit <= 0:
            return []
        return list(self._entries[-limit:])

    def page(self, offset: int = 0, limit: int = 50) -> List[Decision]:
        """In-memory decisions in append order"""
        if offset < 0 or limit < 0:
            raise ValidationError(
                message="Offset and limit must be non-negative",
                field="offset" if offset < 0 else "limit",
                value=offset if offset < 0 else limit,
                operation="page_decisions"
            )
        return list(self._entries[offset:offset + limit])

    def drain_export(self) -> List[Decision]:
        """Hand back decisions evicted from memory; the buffer is emptied"""
        drained = self._pending_export
        self._pending_export = []
        return drained

    def restore(self, decisions: List[Decision], total_recorded: int = 0) -> None:
        """
        Reload decisions from a snapshot, oldest first

        Anything beyond the retention window lands in the export buffer again.
        """
        for decision in decisions:
            self.append(decision)
        self._total = max(self._total, total_recorded)
