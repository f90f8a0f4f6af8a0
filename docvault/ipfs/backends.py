"""Content store backends.

Each backend implements the same capability interface so the client can try
them in a fixed preference order:

- LocalNodeBackend: an IPFS node's HTTP RPC API (``/api/v0/add``, ``/api/v0/cat``)
- PinataBackend: the Pinata pinning service
- MockBackend: development stand-in that synthesizes CIDv0-shaped identifiers
"""
import hashlib
import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

import base58
import httpx

from docvault.core.exceptions import ContentStoreError

log = logging.getLogger(__name__)

# sha2-256 multihash prefix: function code 0x12, digest length 0x20
_SHA256_MULTIHASH_PREFIX = b"\x12\x20"


@dataclass
class UploadMetadata:
    """Descriptive metadata attached to an upload."""

    name: str = "file"
    content_type: str = "application/octet-stream"
    category: str = "document"
    uploaded_by: str = "unknown"
    extra: dict = field(default_factory=dict)


@dataclass
class StoredContent:
    """Result of storing a blob in a backend."""

    cid: str
    size: int
    backend: str


def make_mock_cid(data: bytes) -> str:
    """Build a CIDv0-shaped identifier (``Qm...``) from the bytes' SHA-256."""
    digest = hashlib.sha256(data).digest()
    return base58.b58encode(_SHA256_MULTIHASH_PREFIX + digest).decode("ascii")


class ContentBackend(ABC):
    """Capability interface for a content-addressed store."""

    name: str = "backend"

    @abstractmethod
    async def add(self, data: bytes, metadata: UploadMetadata) -> StoredContent:
        """Store bytes and return their CID."""

    async def cat(self, cid: str) -> bytes:
        """Retrieve bytes by CID."""
        raise ContentStoreError(f"{self.name} backend does not support retrieval")


class LocalNodeBackend(ContentBackend):
    """IPFS node reached through its HTTP RPC API."""

    name = "local"

    def __init__(
        self,
        host: str,
        port: int,
        timeout: float,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._base_url = f"http://{host}:{port}/api/v0"
        self._timeout = timeout
        self._transport = transport

    async def add(self, data: bytes, metadata: UploadMetadata) -> StoredContent:
        files = {"file": (metadata.name, data, metadata.content_type)}
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(
                    f"{self._base_url}/add",
                    params={"pin": "true", "cid-version": "0"},
                    files=files,
                )
                response.raise_for_status()
                body = response.json()
                cid = body["Hash"]
        except (httpx.HTTPError, ValueError, KeyError) as e:
            raise ContentStoreError(f"Local IPFS add failed: {e!r}") from e

        return StoredContent(
            cid=cid,
            size=int(body.get("Size") or len(data)),
            backend=self.name,
        )

    async def cat(self, cid: str) -> bytes:
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(f"{self._base_url}/cat", params={"arg": cid})
                response.raise_for_status()
                return response.content
        except httpx.HTTPError as e:
            raise ContentStoreError(f"Local IPFS cat failed: {e}") from e


class PinataBackend(ContentBackend):
    """Pinata pinning service.

    Uploads are replicated across two regions; files are retrieved through
    public gateways rather than this backend.
    """

    name = "pinata"

    def __init__(
        self,
        api_key: str,
        secret_key: str,
        api_url: str,
        timeout: float,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._api_url = api_url.rstrip("/")
        self._headers = {
            "pinata_api_key": api_key,
            "pinata_secret_api_key": secret_key,
        }
        self._timeout = timeout
        self._transport = transport

    async def add(self, data: bytes, metadata: UploadMetadata) -> StoredContent:
        pinata_metadata = {
            "name": metadata.name or "Document",
            "keyvalues": {
                "category": metadata.category,
                "uploadedBy": metadata.uploaded_by,
                "timestamp": datetime.now(timezone.utc).isoformat(),
                **metadata.extra,
            },
        }
        pinata_options = {
            "cidVersion": 0,
            "customPinPolicy": {
                "regions": [
                    {"id": "FRA1", "desiredReplicationCount": 1},
                    {"id": "NYC1", "desiredReplicationCount": 1},
                ]
            },
        }
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(
                    f"{self._api_url}/pinning/pinFileToIPFS",
                    headers=self._headers,
                    files={"file": (metadata.name, data, metadata.content_type)},
                    data={
                        "pinataMetadata": json.dumps(pinata_metadata),
                        "pinataOptions": json.dumps(pinata_options),
                    },
                )
                response.raise_for_status()
                body = response.json()
                cid = body["IpfsHash"]
        except (httpx.HTTPError, ValueError, KeyError) as e:
            raise ContentStoreError(f"Pinata upload failed: {e!r}") from e

        return StoredContent(
            cid=cid,
            size=int(body.get("PinSize") or len(data)),
            backend=self.name,
        )

    async def pin_hash(self, cid: str, name: Optional[str] = None) -> str:
        """Pin an existing CID (already on the network) to Pinata."""
        payload = {
            "hashToPin": cid,
            "pinataMetadata": {"name": name or cid},
        }
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(
                    f"{self._api_url}/pinning/pinByHash",
                    headers=self._headers,
                    json=payload,
                )
                response.raise_for_status()
                body = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise ContentStoreError(f"Pinata pinByHash failed: {e}") from e

        return body.get("ipfsHash") or cid


class MockBackend(ContentBackend):
    """Development backend that stores nothing.

    The returned CID is derived from the bytes so identical uploads get the
    same identifier.
    """

    name = "mock"

    async def add(self, data: bytes, metadata: UploadMetadata) -> StoredContent:
        cid = make_mock_cid(data)
        log.debug(f"Mock IPFS add: {cid} ({len(data)} bytes)")
        return StoredContent(cid=cid, size=len(data), backend=self.name)
