"""
Audit trail.

Services report state-changing actions to an ``AuditSink``. Delivery is
fire-and-forget: a failing sink is logged and never fails the operation
that produced the record.
"""

import abc
from typing import Any, Dict, List, Optional

from examhub.common.logger import LoggerAdapter, app_logger

logger = app_logger.getChild("audit")


class AuditSink(abc.ABC):
    """Destination for audit records."""

    @abc.abstractmethod
    async def record(self, action: str, actor_id: Optional[str], **details: Any) -> None:
        """
        Store one audit record.

        Args:
            action: Dotted action name, e.g. ``exam.publish``
            actor_id: ID of the user who performed the action
            **details: Action-specific fields
        """
        pass


class LoggingAuditSink(AuditSink):
    """Audit sink that writes records to the ``examhub.audit`` logger."""

    def __init__(self):
        self._log = LoggerAdapter(logger, {"audit": True})

    async def record(self, action: str, actor_id: Optional[str], **details: Any) -> None:
        self._log.with_context(action=action, actor_id=actor_id, **details).info(
            f"{action} by {actor_id or 'system'}"
        )


class MemoryAuditSink(AuditSink):
    """Audit sink that keeps records in memory, used by tests and tooling."""

    def __init__(self):
        self.records: List[Dict[str, Any]] = []

    async def record(self, action: str, actor_id: Optional[str], **details: Any) -> None:
        self.records.append({"action": action, "actor_id": actor_id, **details})

    def actions(self) -> List[str]:
        return [entry["action"] for entry in self.records]


async def emit(sink: Optional[AuditSink], action: str, actor_id: Optional[str], **details: Any) -> None:
    """Deliver an audit record, logging and dropping any sink failure."""
    if sink is None:
        return
    try:
        await sink.record(action, actor_id, **details)
    except Exception as e:
        logger.warning(f"Audit sink failed for {action}: {e}", exc_info=True)
