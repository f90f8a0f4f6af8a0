"""Content store client with backend fallback and multi-gateway retrieval.

Uploads try backends in a fixed preference order (local node, Pinata, mock).
Downloads try the local node, then each public gateway with a bounded
timeout. Gateway URL helpers are pure formatting.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

import httpx

from docvault import config
from docvault.core.exceptions import ContentStoreError
from docvault.ipfs.backends import (
    ContentBackend,
    LocalNodeBackend,
    MockBackend,
    PinataBackend,
    StoredContent,
    UploadMetadata,
)

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ContentStoreConfig:
    """Settings used to select and build content store backends."""

    use_local_node: bool = False
    ipfs_host: str = "127.0.0.1"
    ipfs_port: int = 5001
    pinata_api_key: str = ""
    pinata_secret_key: str = ""
    pinata_api_url: str = "https://api.pinata.cloud"
    gateway_url: str = "https://gateway.pinata.cloud/ipfs/"
    public_gateways: tuple[str, ...] = ()
    gateway_timeout: float = 10.0
    upload_timeout: float = 60.0

    @property
    def pinata_configured(self) -> bool:
        return bool(self.pinata_api_key and self.pinata_secret_key)

    @classmethod
    def from_env(cls) -> "ContentStoreConfig":
        return cls(
            use_local_node=config.USE_LOCAL_IPFS,
            ipfs_host=config.IPFS_HOST,
            ipfs_port=config.IPFS_PORT,
            pinata_api_key=config.PINATA_API_KEY,
            pinata_secret_key=config.PINATA_SECRET_KEY,
            pinata_api_url=config.PINATA_API_URL,
            gateway_url=config.IPFS_GATEWAY_URL,
            public_gateways=tuple(config.PUBLIC_GATEWAYS),
            gateway_timeout=config.GATEWAY_TIMEOUT_SECONDS,
            upload_timeout=config.UPLOAD_TIMEOUT_SECONDS,
        )


@dataclass
class GatewayAttempt:
    """Outcome of a single retrieval attempt."""

    source: str
    success: bool
    error: Optional[str] = None
    response_time_ms: Optional[int] = None


@dataclass
class GatewayUrls:
    """Every known URL for a CID."""

    primary: str
    public: list[str] = field(default_factory=list)
    protocol_uri: str = ""

    def to_dict(self) -> dict:
        return {
            "primary": self.primary,
            "public": list(self.public),
            "protocolUri": self.protocol_uri,
        }


class ContentStoreClient:
    """Uploads and retrieves blobs across content store backends.

    Backends are chosen once at construction:
    - local node first, when configured
    - Pinata next, when credentials are configured; if a local node is the
      primary, Pinata also receives a best-effort mirror of each upload
    - mock last, only when no pinning service is configured
    """

    def __init__(
        self,
        local: Optional[LocalNodeBackend] = None,
        pinata: Optional[PinataBackend] = None,
        mock: Optional[MockBackend] = None,
        gateway_url: str = config.IPFS_GATEWAY_URL,
        public_gateways: Optional[list[str]] = None,
        gateway_timeout: float = config.GATEWAY_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._local = local
        self._pinata = pinata
        self._mock = mock
        self._gateway_url = gateway_url
        self._public_gateways = list(
            public_gateways if public_gateways is not None else config.PUBLIC_GATEWAYS
        )
        self._gateway_timeout = gateway_timeout
        self._transport = transport

    @classmethod
    def from_config(
        cls,
        settings: ContentStoreConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "ContentStoreClient":
        """Build a client, selecting backends from configuration."""
        local = None
        if settings.use_local_node:
            local = LocalNodeBackend(
                host=settings.ipfs_host,
                port=settings.ipfs_port,
                timeout=settings.upload_timeout,
                transport=transport,
            )

        pinata = None
        if settings.pinata_configured:
            pinata = PinataBackend(
                api_key=settings.pinata_api_key,
                secret_key=settings.pinata_secret_key,
                api_url=settings.pinata_api_url,
                timeout=settings.upload_timeout,
                transport=transport,
            )

        mock = None if pinata else MockBackend()
        if mock:
            log.warning("No pinning service configured: uploads may use the mock IPFS backend")

        return cls(
            local=local,
            pinata=pinata,
            mock=mock,
            gateway_url=settings.gateway_url,
            public_gateways=list(settings.public_gateways),
            gateway_timeout=settings.gateway_timeout,
            transport=transport,
        )

    @property
    def backends(self) -> list[ContentBackend]:
        """Upload backends in preference order."""
        return [b for b in (self._local, self._pinata, self._mock) if b is not None]

    @property
    def pinning_configured(self) -> bool:
        return self._pinata is not None

    async def upload(self, data: bytes, metadata: Optional[UploadMetadata] = None) -> StoredContent:
        """Store bytes, trying each backend in order.

        Raises:
            ContentStoreError: If every configured backend fails
        """
        metadata = metadata or UploadMetadata()
        errors: list[str] = []

        for backend in self.backends:
            try:
                stored = await backend.add(data, metadata)
            except ContentStoreError as e:
                log.warning(f"Upload via {backend.name} failed, trying next backend: {e}")
                errors.append(f"{backend.name}: {e}")
                continue

            log.info(f"Uploaded {len(data)} bytes via {backend.name}: {stored.cid}")
            if backend is self._local and self._pinata is not None:
                await self._mirror(data, metadata)
            return stored

        raise ContentStoreError(
            "Failed to upload to IPFS: " + ("; ".join(errors) or "no backend configured")
        )

    async def _mirror(self, data: bytes, metadata: UploadMetadata) -> None:
        """Best-effort backup pin of a local upload to Pinata."""
        try:
            await self._pinata.add(data, metadata)
            log.info("Also pinned to Pinata as backup")
        except ContentStoreError as e:
            log.warning(f"Pinata backup failed, local IPFS upload succeeded: {e}")

    async def download(self, cid: str) -> bytes:
        """Retrieve bytes by CID from the local node or any public gateway.

        Raises:
            ContentStoreError: If the local node and all gateways fail
        """
        data, attempts = await self.download_with_attempts(cid)
        return data

    async def download_with_attempts(self, cid: str) -> tuple[bytes, list[GatewayAttempt]]:
        """Retrieve bytes and report every attempt made."""
        attempts: list[GatewayAttempt] = []

        if self._local is not None:
            try:
                data = await self._local.cat(cid)
                attempts.append(GatewayAttempt(source="local", success=True))
                return data, attempts
            except ContentStoreError as e:
                log.warning(f"Local IPFS retrieval failed, trying gateways: {e}")
                attempts.append(GatewayAttempt(source="local", success=False, error=str(e)))

        async with httpx.AsyncClient(
            timeout=self._gateway_timeout,
            transport=self._transport,
            follow_redirects=True,
        ) as client:
            for gateway in self._public_gateways:
                url = f"{gateway}{cid}"
                start = datetime.now(timezone.utc)
                try:
                    response = await client.get(url)
                    response.raise_for_status()
                except httpx.TimeoutException:
                    log.warning(f"Gateway {gateway} timed out, trying next...")
                    attempts.append(GatewayAttempt(source=gateway, success=False, error="Timeout"))
                    continue
                except httpx.HTTPError as e:
                    log.warning(f"Gateway {gateway} failed, trying next...: {e}")
                    attempts.append(GatewayAttempt(source=gateway, success=False, error=str(e)))
                    continue

                elapsed_ms = int((datetime.now(timezone.utc) - start).total_seconds() * 1000)
                attempts.append(
                    GatewayAttempt(source=gateway, success=True, response_time_ms=elapsed_ms)
                )
                log.info(f"Retrieved {cid} from {gateway} ({elapsed_ms}ms)")
                return response.content, attempts

        raise ContentStoreError(f"Failed to retrieve {cid}: all IPFS gateways failed")

    async def pin_existing(self, cid: str, name: Optional[str] = None) -> str:
        """Pin a CID that is already on the network.

        Raises:
            ContentStoreError: If Pinata is not configured or the call fails
        """
        if self._pinata is None:
            raise ContentStoreError("Pinata credentials not configured")
        return await self._pinata.pin_hash(cid, name=name)

    def gateway_url(self, cid: str) -> str:
        """Primary gateway URL for a CID."""
        return f"{self._gateway_url}{cid}"

    def all_gateway_urls(self, cid: str) -> GatewayUrls:
        """All gateway URLs for a CID; the primary is always among the public ones."""
        primary = self.gateway_url(cid)
        public = [f"{gateway}{cid}" for gateway in self._public_gateways]
        if primary not in public:
            public.append(primary)
        return GatewayUrls(primary=primary, public=public, protocol_uri=f"ipfs://{cid}")


# Module-level singleton
_content_store: Optional[ContentStoreClient] = None


def get_content_store() -> ContentStoreClient:
    """Get or create the content store client singleton."""
    global _content_store
    if _content_store is None:
        _content_store = ContentStoreClient.from_config(ContentStoreConfig.from_env())
    return _content_store


def reset_content_store() -> None:
    """Reset the singleton (for testing)."""
    global _content_store
    _content_store = None
