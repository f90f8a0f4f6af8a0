"""DocVault configuration constants.

Environment-based configuration grouped by concern:
- PERSISTENCE: data directory and database URL
- LEDGER: RPC endpoint, signer and contract addresses
- CONTENT STORE: local IPFS node, Pinata credentials and gateways
- UPLOADS: size and type limits
- OPERATIONAL: CORS origin, port, logging

Every integration is optional. When a value is unset the matching client
degrades to its fallback implementation.
"""
import os
from pathlib import Path


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() == "true"


# =============================================================================
# PERSISTENCE CONFIGURATION
# =============================================================================

def _get_data_dir() -> Path:
    """Determine data directory based on environment.

    Priority:
    1. DOCVAULT_DATA_DIR env var (explicit override)
    2. /data/docvault if it exists (Docker volume mount)
    3. ~/.docvault (local development)
    4. /tmp/docvault (container fallback when home unavailable)
    """
    env_path = os.getenv("DOCVAULT_DATA_DIR")
    if env_path:
        return Path(env_path)

    docker_path = Path("/data/docvault")
    if docker_path.exists():
        return docker_path

    try:
        home_path = Path.home() / ".docvault"
        home_path.mkdir(parents=True, exist_ok=True)
        return home_path
    except (OSError, PermissionError):
        return Path("/tmp/docvault")


DATA_DIR: Path = _get_data_dir()


def _get_database_url() -> str:
    """Get database URL from environment.

    Priority:
    1. DOCVAULT_DATABASE_URL - explicit full connection string
    2. DOCVAULT_POSTGRES_* - construct PostgreSQL URL from components
    3. SQLite fallback for local development
    """
    if url := os.getenv("DOCVAULT_DATABASE_URL"):
        return url

    host = os.getenv("DOCVAULT_POSTGRES_HOST")
    if host:
        user = os.getenv("DOCVAULT_POSTGRES_USER", "docvault")
        password = os.getenv("DOCVAULT_POSTGRES_PASSWORD", "")
        db = os.getenv("DOCVAULT_POSTGRES_DB", "docvault")
        return f"postgresql+psycopg://{user}:{password}@{host}/{db}?sslmode=require"

    return f"sqlite:///{DATA_DIR}/docvault.db"


DATABASE_URL: str = _get_database_url()


# =============================================================================
# LEDGER CONFIGURATION
# =============================================================================

RPC_URL: str = os.getenv("DOCVAULT_RPC_URL", "http://localhost:8545")
NETWORK_ID: int = int(os.getenv("DOCVAULT_NETWORK_ID", "1337"))

# Hex private key used to sign transactions locally. When empty, writes are
# sent with a node-managed "from" account instead.
PRIVATE_KEY: str = os.getenv("DOCVAULT_PRIVATE_KEY", "")

# An empty address selects the fallback (placeholder) ledger for that contract
DID_REGISTRY_ADDRESS: str = os.getenv("DOCVAULT_DID_REGISTRY_ADDRESS", "")
CREDENTIAL_STORE_ADDRESS: str = os.getenv("DOCVAULT_CREDENTIAL_STORE_ADDRESS", "")

# Seconds to wait for a transaction receipt
LEDGER_RECEIPT_TIMEOUT: float = float(os.getenv("DOCVAULT_LEDGER_RECEIPT_TIMEOUT", "120"))


# =============================================================================
# CONTENT STORE CONFIGURATION
# =============================================================================

USE_LOCAL_IPFS: bool = _env_bool("DOCVAULT_USE_LOCAL_IPFS")
IPFS_HOST: str = os.getenv("DOCVAULT_IPFS_HOST", "127.0.0.1")
IPFS_PORT: int = int(os.getenv("DOCVAULT_IPFS_PORT", "5001"))

PINATA_API_KEY: str = os.getenv("DOCVAULT_PINATA_API_KEY", "")
PINATA_SECRET_KEY: str = os.getenv("DOCVAULT_PINATA_SECRET_KEY", "")
PINATA_API_URL: str = os.getenv("DOCVAULT_PINATA_API_URL", "https://api.pinata.cloud")

IPFS_GATEWAY_URL: str = os.getenv("DOCVAULT_IPFS_GATEWAY_URL", "https://gateway.pinata.cloud/ipfs/")

# Public gateways tried in order on download
PUBLIC_GATEWAYS: list[str] = [
    "https://ipfs.io/ipfs/",
    "https://gateway.pinata.cloud/ipfs/",
    "https://cloudflare-ipfs.com/ipfs/",
    "https://dweb.link/ipfs/",
]

# Per-attempt timeout for gateway downloads (seconds)
GATEWAY_TIMEOUT_SECONDS: float = float(os.getenv("DOCVAULT_GATEWAY_TIMEOUT", "10.0"))

# Timeout for uploads to the local node or the pinning service (seconds)
UPLOAD_TIMEOUT_SECONDS: float = float(os.getenv("DOCVAULT_UPLOAD_TIMEOUT", "60.0"))


# =============================================================================
# UPLOAD LIMITS
# =============================================================================

MAX_UPLOAD_BYTES: int = int(os.getenv("DOCVAULT_MAX_UPLOAD_BYTES", str(10 * 1024 * 1024)))

ALLOWED_UPLOAD_TYPES: frozenset[str] = frozenset(
    t.strip()
    for t in os.getenv(
        "DOCVAULT_ALLOWED_UPLOAD_TYPES",
        "image/jpeg,image/png,application/pdf,text/plain",
    ).split(",")
    if t.strip()
)


# =============================================================================
# OPERATIONAL
# =============================================================================

FRONTEND_URL: str = os.getenv("DOCVAULT_FRONTEND_URL", "http://localhost:3000")
SERVICE_PORT: int = int(os.getenv("DOCVAULT_PORT", "8000"))
