"""Pytest fixtures for DocVault tests."""
import os
import tempfile
from typing import AsyncGenerator

# Environment must be set before any docvault module is imported
_TEST_DIR = tempfile.mkdtemp(prefix="docvault-test-")
os.environ["DOCVAULT_DATA_DIR"] = _TEST_DIR
os.environ["DOCVAULT_DATABASE_URL"] = "sqlite:///:memory:"
os.environ["DOCVAULT_LOG_FILE"] = os.path.join(_TEST_DIR, "docvault.log")
os.environ["DOCVAULT_PINATA_API_KEY"] = ""
os.environ["DOCVAULT_PINATA_SECRET_KEY"] = ""
os.environ["DOCVAULT_USE_LOCAL_IPFS"] = "false"
os.environ["DOCVAULT_CREDENTIAL_STORE_ADDRESS"] = ""
os.environ["DOCVAULT_DID_REGISTRY_ADDRESS"] = ""

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from docvault.audit.log import EventLog  # noqa: E402
from docvault.config import PUBLIC_GATEWAYS  # noqa: E402
from docvault.credentials.orchestrator import VerificationOrchestrator  # noqa: E402
from docvault.credentials.store import CredentialStore  # noqa: E402
from docvault.db.session import create_db_engine, init_database  # noqa: E402
from docvault.ipfs.backends import MockBackend  # noqa: E402
from docvault.ipfs.client import ContentStoreClient  # noqa: E402
from docvault.ledger.client import LedgerClient  # noqa: E402

GATEWAYS = list(PUBLIC_GATEWAYS)


@pytest.fixture
def in_memory_db():
    """Create an in-memory SQLite database for testing."""
    engine = create_db_engine("sqlite:///:memory:")
    init_database(bind=engine, url="sqlite:///:memory:")
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
        engine.dispose()


@pytest.fixture
def content_store() -> ContentStoreClient:
    """Content store with only the mock backend and no reachable gateways."""
    return ContentStoreClient(
        mock=MockBackend(),
        gateway_url="https://gateway.pinata.cloud/ipfs/",
        public_gateways=list(GATEWAYS),
    )


@pytest.fixture
def ledger() -> LedgerClient:
    """Ledger client in placeholder mode."""
    return LedgerClient()


@pytest.fixture
def orchestrator(in_memory_db, content_store, ledger) -> VerificationOrchestrator:
    return VerificationOrchestrator(
        store=CredentialStore(in_memory_db),
        content_store=content_store,
        ledger=ledger,
        events=EventLog(in_memory_db),
    )


@pytest.fixture
async def client(in_memory_db, content_store, ledger) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client against the app with test collaborators injected."""
    from docvault.db.session import get_db
    from docvault.ipfs.client import get_content_store
    from docvault.ledger.client import get_ledger_client
    from docvault.main import app

    def _get_db():
        yield in_memory_db

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_content_store] = lambda: content_store
    app.dependency_overrides[get_ledger_client] = lambda: ledger

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as async_client:
        yield async_client

    app.dependency_overrides.clear()
