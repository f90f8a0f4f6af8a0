"""DocVault FastAPI application."""
import logging
import os
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from docvault import __version__
from docvault.api import content, credential, health, identity, logs, user
from docvault.config import FRONTEND_URL
from docvault.core.logging import configure_logging
from docvault.ipfs.client import get_content_store
from docvault.ledger.client import get_ledger_client

configure_logging()
log = logging.getLogger("docvault")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    log.info("Starting DocVault service...")

    try:
        from docvault.db.session import init_database
        init_database()

        content_store = get_content_store()
        log.info(f"Content store backends: {[b.name for b in content_store.backends]}")

        ledger = get_ledger_client()
        if ledger.configured:
            log.info("Ledger contracts configured")
        else:
            log.warning("Ledger not configured: writes use placeholder identifiers")

        log.info("DocVault service started")
    except Exception as e:
        log.error(f"Failed to initialize service: {e}")
        raise

    yield

    log.info("DocVault service stopped")


app = FastAPI(
    title="DocVault",
    version=__version__,
    description="Document credentialing over IPFS and a blockchain ledger",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[FRONTEND_URL],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/version")
def version():
    """Return service version and build commit."""
    git_sha = os.getenv("GIT_SHA", "unknown")
    result = {"version": __version__, "git_sha": git_sha}
    if git_sha != "unknown":
        result["short_sha"] = git_sha[:7]
    return result


app.include_router(health.router)
app.include_router(credential.router)
app.include_router(content.router)
app.include_router(identity.router)
app.include_router(user.router)
app.include_router(logs.router)


@app.middleware("http")
async def request_logging(request: Request, call_next):
    """Log all requests with timing."""
    start = time.time()
    response = await call_next(request)
    duration_ms = int((time.time() - start) * 1000)

    log.info(
        f"request_complete status={response.status_code} duration_ms={duration_ms}",
        extra={
            "route": request.url.path,
            "method": request.method,
            "status": response.status_code,
        },
    )
    return response
