"""Event log for orchestrator operations.

Every issue, verify, revoke, upload, download and identity creation appends
one LogEntry row. Each entry is also mirrored to the ``audit`` logger as a
structured record.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from docvault.db.models import EventType, LogEntry

log = logging.getLogger("audit")


@dataclass
class RequestContext:
    """Client details captured from the HTTP request."""

    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


class EventLog:
    """Append-only event log backed by the log_entries table."""

    def __init__(self, db: Session):
        self.db = db

    def record(
        self,
        event_type: EventType | str,
        account: Optional[str] = None,
        *,
        success: bool = True,
        credential_ref: Optional[str] = None,
        content_id: Optional[str] = None,
        content_hash: Optional[str] = None,
        ledger_txn_id: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
        error: Optional[str] = None,
        context: Optional[RequestContext] = None,
    ) -> Optional[LogEntry]:
        """Write one log entry.

        A failure to persist the entry is logged and does not propagate, so
        auditing never changes the outcome of the operation being audited.

        Returns:
            The stored LogEntry, or None if it could not be written
        """
        event_type = EventType(event_type).value
        account = account or "unknown"
        context = context or RequestContext()

        extra = {
            "type": "audit",
            "event_type": event_type,
            "account": account.lower(),
            "success": success,
        }
        if content_id:
            extra["content_id"] = content_id

        if success:
            log.info(f"audit: {event_type} success", extra=extra)
        else:
            log.warning(f"audit: {event_type} failed: {error}", extra=extra)

        entry = LogEntry(
            event_type=event_type,
            account=account,
            credential_ref=credential_ref,
            content_id=content_id,
            content_hash=content_hash,
            ledger_txn_id=ledger_txn_id,
            details=details,
            success=success,
            error=error,
            ip_address=context.ip_address,
            user_agent=context.user_agent,
        )
        self.db.add(entry)
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            log.error(f"Failed to write {event_type} log entry: {e}")
            return None
        self.db.refresh(entry)
        return entry

    def recent(
        self,
        account: Optional[str] = None,
        event_type: Optional[str] = None,
        limit: int = 100,
    ) -> list[LogEntry]:
        """Get recent entries, newest first.

        Args:
            account: Filter by actor account (any case)
            event_type: Filter by event type
            limit: Max entries to return
        """
        query = self.db.query(LogEntry)
        if account:
            query = query.filter(LogEntry.account == account.lower())
        if event_type:
            query = query.filter(LogEntry.event_type == event_type)
        return query.order_by(LogEntry.timestamp.desc(), LogEntry.id.desc()).limit(limit).all()
