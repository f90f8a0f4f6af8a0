"""Tests for the credential record store and the event log."""
import logging
from datetime import datetime, timedelta

import pytest

from docvault.audit.log import EventLog, RequestContext
from docvault.core.exceptions import DuplicateCredentialError
from docvault.credentials.store import CredentialStore
from docvault.db.models import Credential, EventType, LogEntry

ISSUER = "0xAbCdEf0123456789aBCDEF0123456789abcdef01"
OWNER = "0x1111111111111111111111111111111111111111"


def _create(store: CredentialStore, n: int, **overrides) -> Credential:
    fields = dict(
        content_id=f"QmContent{n}",
        content_hash=f"{n:064x}",
        issuer=ISSUER,
        owner=OWNER,
        title=f"Document {n}",
    )
    fields.update(overrides)
    return store.create(**fields)


# =============================================================================
# CredentialStore
# =============================================================================


def test_create_normalizes_accounts(in_memory_db):
    store = CredentialStore(in_memory_db)
    credential = _create(store, 1, content_hash="AB" * 32)

    assert credential.issuer == ISSUER.lower()
    assert credential.content_hash == "ab" * 32
    assert credential.status == "active"
    assert credential.verified is False
    assert credential.category == "other"
    assert len(credential.id) == 36


def test_lookups(in_memory_db):
    store = CredentialStore(in_memory_db)
    credential = _create(store, 1, ledger_txn_id="0xtx1")

    assert store.find_by_id(credential.id) is credential
    assert store.find_by_hash(f"{1:064X}") is credential
    assert store.find_by_content_id("QmContent1") is credential
    assert store.find_by_txn_id("0xtx1") is credential
    assert store.find_by_hash("ff" * 32) is None


@pytest.mark.parametrize(
    "duplicate",
    [
        {"content_hash": f"{1:064x}"},
        {"content_id": "QmContent1"},
        {"credential_id": 42},
    ],
)
def test_duplicates_rejected(in_memory_db, duplicate):
    store = CredentialStore(in_memory_db)
    _create(store, 1, credential_id=42)

    with pytest.raises(DuplicateCredentialError):
        _create(store, 2, **duplicate)

    assert in_memory_db.query(Credential).count() == 1


def test_null_credential_ids_are_not_duplicates(in_memory_db):
    store = CredentialStore(in_memory_db)
    _create(store, 1)
    _create(store, 2)
    assert store.count_by_owner(OWNER) == 2


def test_list_by_owner_newest_first(in_memory_db):
    store = CredentialStore(in_memory_db)
    base = datetime(2024, 1, 1)
    for n in range(3):
        credential = _create(store, n)
        credential.created_at = base + timedelta(days=n)
    in_memory_db.commit()

    listed = store.list_by_owner(OWNER.upper().replace("0X", "0x"))
    assert [c.title for c in listed] == ["Document 2", "Document 1", "Document 0"]
    assert len(store.list_by_owner(OWNER, limit=2)) == 2
    assert store.list_by_owner(ISSUER) == []


def test_count_by_owner_filters(in_memory_db):
    store = CredentialStore(in_memory_db)
    _create(store, 1, verified=True)
    _create(store, 2, verified=True)
    revoked = _create(store, 3, verified=True)
    _create(store, 4)
    store.mark_revoked(revoked)

    assert store.count_by_owner(OWNER) == 4
    assert store.count_by_owner(OWNER, status="active") == 3
    assert store.count_by_owner(OWNER, status="active", verified=True) == 2


def test_mark_revoked_is_idempotent(in_memory_db):
    store = CredentialStore(in_memory_db)
    credential = _create(store, 1)

    store.mark_revoked(credential)
    store.mark_revoked(credential)

    assert store.find_by_hash(f"{1:064x}").status == "revoked"


# =============================================================================
# EventLog
# =============================================================================


def test_record_writes_entry(in_memory_db):
    events = EventLog(in_memory_db)
    entry = events.record(
        EventType.CREDENTIAL_ISSUED,
        ISSUER,
        content_id="QmCid",
        details={"title": "Diploma"},
        context=RequestContext(ip_address="10.0.0.1", user_agent="pytest"),
    )

    assert entry.account == ISSUER.lower()
    assert entry.success is True
    assert entry.to_dict()["eventType"] == "credential_issued"
    assert entry.to_dict()["details"] == {"title": "Diploma"}
    assert entry.ip_address == "10.0.0.1"


def test_record_defaults_account_to_unknown(in_memory_db):
    entry = EventLog(in_memory_db).record("credential_verified", None, success=False)
    assert entry.account == "unknown"
    assert entry.success is False


def test_record_rejects_unknown_event_type(in_memory_db):
    with pytest.raises(ValueError):
        EventLog(in_memory_db).record("did_deleted", ISSUER)


def test_record_mirrors_to_audit_logger(in_memory_db, caplog):
    with caplog.at_level(logging.INFO, logger="audit"):
        EventLog(in_memory_db).record(
            EventType.CREDENTIAL_REVOKED, ISSUER, success=False, error="Credential not found"
        )

    record = next(r for r in caplog.records if r.name == "audit")
    assert record.levelno == logging.WARNING
    assert record.event_type == "credential_revoked"
    assert record.success is False


def test_recent_filters_and_orders(in_memory_db):
    events = EventLog(in_memory_db)
    events.record(EventType.CONTENT_UPLOADED, ISSUER)
    events.record(EventType.CREDENTIAL_ISSUED, ISSUER)
    events.record(EventType.CREDENTIAL_ISSUED, OWNER)

    assert in_memory_db.query(LogEntry).count() == 3
    assert [e.event_type for e in events.recent(account=ISSUER)] == [
        "credential_issued",
        "content_uploaded",
    ]
    assert len(events.recent(event_type="credential_issued")) == 2
    assert len(events.recent(limit=1)) == 1
