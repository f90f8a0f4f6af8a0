"""IPFS content store access for DocVault."""

from docvault.ipfs.backends import StoredContent, UploadMetadata
from docvault.ipfs.client import (
    ContentStoreClient,
    ContentStoreConfig,
    GatewayUrls,
    get_content_store,
    reset_content_store,
)

__all__ = [
    "ContentStoreClient",
    "ContentStoreConfig",
    "GatewayUrls",
    "StoredContent",
    "UploadMetadata",
    "get_content_store",
    "reset_content_store",
]
