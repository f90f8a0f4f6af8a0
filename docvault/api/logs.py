"""Event log API endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from docvault.api.models import LogEntryResponse, LogListResponse
from docvault.audit.log import EventLog
from docvault.db.session import get_db

router = APIRouter(prefix="/logs", tags=["logs"])


@router.get("", response_model=LogListResponse)
def list_logs(
    account: Optional[str] = None,
    event_type: Optional[str] = Query(None, alias="eventType"),
    limit: int = Query(100, ge=1, le=1000),
    db: Session = Depends(get_db),
) -> LogListResponse:
    """Recent event log entries, newest first."""
    entries = EventLog(db).recent(account=account, event_type=event_type, limit=limit)
    return LogListResponse(
        count=len(entries),
        data=[LogEntryResponse.model_validate(e.to_dict()) for e in entries],
    )
