"""Tests for the content store client and its backends.

HTTP backends are exercised through httpx.MockTransport.
"""
import hashlib
import json

import base58
import httpx
import pytest

from docvault.config import PUBLIC_GATEWAYS as GATEWAYS
from docvault.core.exceptions import ContentStoreError
from docvault.ipfs.backends import (
    LocalNodeBackend,
    MockBackend,
    PinataBackend,
    UploadMetadata,
    make_mock_cid,
)
from docvault.ipfs.client import ContentStoreClient, ContentStoreConfig


def _local(transport):
    return LocalNodeBackend(host="127.0.0.1", port=5001, timeout=5, transport=transport)


def _pinata(transport):
    return PinataBackend(
        api_key="key",
        secret_key="secret",
        api_url="https://api.pinata.cloud",
        timeout=5,
        transport=transport,
    )


class Recorder:
    """MockTransport handler that records requests and routes by path."""

    def __init__(self, routes: dict):
        self.routes = routes
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        for prefix, responder in self.routes.items():
            if str(request.url).startswith(prefix) or request.url.path.startswith(prefix):
                return responder(request)
        return httpx.Response(404)

    def paths(self) -> list[str]:
        return [r.url.path for r in self.requests]


# =============================================================================
# Mock CIDs
# =============================================================================


def test_mock_cid_decodes_to_sha256_multihash():
    raw = base58.b58decode(make_mock_cid(b"hello-test"))
    assert raw == b"\x12\x20" + hashlib.sha256(b"hello-test").digest()


def test_mock_cid_is_cidv0_shaped_and_deterministic():
    cid = make_mock_cid(b"hello-test")
    assert cid.startswith("Qm")
    assert len(cid) == 46
    assert cid == make_mock_cid(b"hello-test")
    assert cid != make_mock_cid(b"hello-test!")


# =============================================================================
# Upload
# =============================================================================


@pytest.mark.asyncio
async def test_upload_mock_only():
    client = ContentStoreClient(mock=MockBackend(), public_gateways=GATEWAYS)
    stored = await client.upload(b"hello-test")
    assert stored.backend == "mock"
    assert stored.size == 10
    assert stored.cid == make_mock_cid(b"hello-test")


@pytest.mark.asyncio
async def test_upload_falls_back_from_local_to_pinata():
    recorder = Recorder({
        "/api/v0/add": lambda r: httpx.Response(500),
        "/pinning/pinFileToIPFS": lambda r: httpx.Response(
            200, json={"IpfsHash": "QmPinataHash", "PinSize": 10}
        ),
    })
    transport = httpx.MockTransport(recorder)
    client = ContentStoreClient(
        local=_local(transport), pinata=_pinata(transport), public_gateways=GATEWAYS
    )

    stored = await client.upload(b"hello-test", UploadMetadata(name="a.txt"))

    assert stored.cid == "QmPinataHash"
    assert stored.backend == "pinata"
    assert recorder.paths() == ["/api/v0/add", "/pinning/pinFileToIPFS"]


@pytest.mark.asyncio
async def test_local_upload_is_mirrored_to_pinata():
    recorder = Recorder({
        "/api/v0/add": lambda r: httpx.Response(200, json={"Hash": "QmLocalHash", "Size": "10"}),
        "/pinning/pinFileToIPFS": lambda r: httpx.Response(
            200, json={"IpfsHash": "QmLocalHash", "PinSize": 10}
        ),
    })
    transport = httpx.MockTransport(recorder)
    client = ContentStoreClient(
        local=_local(transport), pinata=_pinata(transport), public_gateways=GATEWAYS
    )

    stored = await client.upload(b"hello-test")

    assert stored.cid == "QmLocalHash"
    assert stored.backend == "local"
    assert "/pinning/pinFileToIPFS" in recorder.paths()


@pytest.mark.asyncio
async def test_mirror_failure_does_not_fail_upload():
    recorder = Recorder({
        "/api/v0/add": lambda r: httpx.Response(200, json={"Hash": "QmLocalHash", "Size": 10}),
        "/pinning/pinFileToIPFS": lambda r: httpx.Response(401, json={"error": "bad key"}),
    })
    transport = httpx.MockTransport(recorder)
    client = ContentStoreClient(
        local=_local(transport), pinata=_pinata(transport), public_gateways=GATEWAYS
    )

    stored = await client.upload(b"hello-test")
    assert stored.cid == "QmLocalHash"


@pytest.mark.asyncio
async def test_pinata_upload_sends_credentials_and_metadata():
    recorder = Recorder({
        "/pinning/pinFileToIPFS": lambda r: httpx.Response(
            200, json={"IpfsHash": "QmX", "PinSize": 3}
        ),
    })
    client = ContentStoreClient(
        pinata=_pinata(httpx.MockTransport(recorder)), public_gateways=GATEWAYS
    )

    await client.upload(b"abc", UploadMetadata(name="doc.pdf", uploaded_by="0xabc"))

    request = recorder.requests[0]
    assert request.headers["pinata_api_key"] == "key"
    assert request.headers["pinata_secret_api_key"] == "secret"
    body = request.content.decode("latin-1")
    assert "pinataMetadata" in body
    assert "doc.pdf" in body


@pytest.mark.asyncio
async def test_upload_fails_when_every_backend_fails():
    transport = httpx.MockTransport(lambda r: httpx.Response(503))
    client = ContentStoreClient(
        local=_local(transport), pinata=_pinata(transport), public_gateways=GATEWAYS
    )

    with pytest.raises(ContentStoreError):
        await client.upload(b"hello-test")


@pytest.mark.asyncio
async def test_response_without_cid_falls_through_to_next_backend():
    recorder = Recorder({
        "/api/v0/add": lambda r: httpx.Response(200, json={"Name": "a.txt"}),
        "/pinning/pinFileToIPFS": lambda r: httpx.Response(200, json={"PinSize": 10}),
    })
    transport = httpx.MockTransport(recorder)
    client = ContentStoreClient(
        local=_local(transport),
        pinata=_pinata(transport),
        mock=MockBackend(),
        public_gateways=GATEWAYS,
    )

    stored = await client.upload(b"hello-test", UploadMetadata(name="a.txt"))

    assert stored.backend == "mock"
    assert recorder.paths() == ["/api/v0/add", "/pinning/pinFileToIPFS"]


@pytest.mark.asyncio
async def test_pinata_response_without_cid_raises():
    transport = httpx.MockTransport(lambda r: httpx.Response(200, json={}))
    with pytest.raises(ContentStoreError, match="IpfsHash"):
        await _pinata(transport).add(b"hello-test", UploadMetadata())


@pytest.mark.asyncio
async def test_upload_with_no_backends_fails():
    client = ContentStoreClient(public_gateways=GATEWAYS)
    with pytest.raises(ContentStoreError, match="no backend configured"):
        await client.upload(b"x")


def test_from_config_uses_mock_only_without_pinning():
    client = ContentStoreClient.from_config(ContentStoreConfig(public_gateways=tuple(GATEWAYS)))
    assert [b.name for b in client.backends] == ["mock"]
    assert client.pinning_configured is False


def test_from_config_orders_backends():
    settings = ContentStoreConfig(
        use_local_node=True,
        pinata_api_key="k",
        pinata_secret_key="s",
        public_gateways=tuple(GATEWAYS),
    )
    client = ContentStoreClient.from_config(settings)
    assert [b.name for b in client.backends] == ["local", "pinata"]
    assert client.pinning_configured is True


# =============================================================================
# Download
# =============================================================================


@pytest.mark.asyncio
async def test_download_tries_gateways_in_order():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.host == "ipfs.io":
            return httpx.Response(504)
        if request.url.host == "gateway.pinata.cloud":
            raise httpx.ConnectTimeout("timed out", request=request)
        return httpx.Response(200, content=b"payload")

    client = ContentStoreClient(
        mock=MockBackend(),
        public_gateways=GATEWAYS,
        transport=httpx.MockTransport(handler),
    )

    data, attempts = await client.download_with_attempts("QmCid")

    assert data == b"payload"
    assert [a.success for a in attempts] == [False, False, True]
    assert attempts[1].error == "Timeout"
    assert attempts[2].source == "https://cloudflare-ipfs.com/ipfs/"


@pytest.mark.asyncio
async def test_download_prefers_local_node():
    recorder = Recorder({"/api/v0/cat": lambda r: httpx.Response(200, content=b"local-bytes")})
    transport = httpx.MockTransport(recorder)
    client = ContentStoreClient(
        local=_local(transport), public_gateways=GATEWAYS, transport=transport
    )

    assert await client.download("QmCid") == b"local-bytes"
    assert recorder.requests[0].url.params["arg"] == "QmCid"


@pytest.mark.asyncio
async def test_download_fails_after_all_gateways():
    client = ContentStoreClient(
        public_gateways=GATEWAYS,
        transport=httpx.MockTransport(lambda r: httpx.Response(404)),
    )
    with pytest.raises(ContentStoreError, match="all IPFS gateways failed"):
        await client.download("QmMissing")


# =============================================================================
# Gateway URLs and pinning
# =============================================================================


def test_gateway_urls():
    client = ContentStoreClient(
        gateway_url="https://gateway.pinata.cloud/ipfs/", public_gateways=GATEWAYS
    )
    urls = client.all_gateway_urls("QmCid")

    assert urls.primary == client.gateway_url("QmCid")
    assert urls.primary in urls.public
    assert len(urls.public) == len(GATEWAYS)
    assert urls.protocol_uri == "ipfs://QmCid"
    assert all(u.endswith("/QmCid") for u in urls.public)


def test_custom_primary_gateway_is_added_to_public_list():
    client = ContentStoreClient(
        gateway_url="https://my.gateway.example/ipfs/", public_gateways=GATEWAYS
    )
    urls = client.all_gateway_urls("QmCid")
    assert urls.public[-1] == "https://my.gateway.example/ipfs/QmCid"
    assert urls.to_dict()["protocolUri"] == "ipfs://QmCid"


@pytest.mark.asyncio
async def test_pin_existing_requires_pinata():
    client = ContentStoreClient(mock=MockBackend(), public_gateways=GATEWAYS)
    with pytest.raises(ContentStoreError, match="not configured"):
        await client.pin_existing("QmCid")


@pytest.mark.asyncio
async def test_pin_existing_calls_pin_by_hash():
    recorder = Recorder({
        "/pinning/pinByHash": lambda r: httpx.Response(200, json={"ipfsHash": "QmCid"}),
    })
    client = ContentStoreClient(
        pinata=_pinata(httpx.MockTransport(recorder)), public_gateways=GATEWAYS
    )

    assert await client.pin_existing("QmCid", name="backup") == "QmCid"
    payload = json.loads(recorder.requests[0].content)
    assert payload["hashToPin"] == "QmCid"
    assert payload["pinataMetadata"]["name"] == "backup"
