import hashlib

import httpx
import pytest

from catalog_api.config import Settings
from catalog_api.exceptions import DependencyError, UnsupportedMediaError
from catalog_api.services.image_ingestion import store_image
from catalog_api.services.storage_service import (
    CloudinaryStorage,
    LocalStorage,
    build_storage,
)
from tests.conftest import FakeStorage


@pytest.fixture
def anyio_backend():
    return "asyncio"


def make_storage(handler) -> CloudinaryStorage:
    return CloudinaryStorage(
        cloud_name="demo",
        api_key="key-123",
        api_secret="s3cr3t",
        folder="products",
        transport=httpx.MockTransport(handler),
    )


def test_sign_uses_sorted_params_and_secret():
    storage = make_storage(lambda request: httpx.Response(200))
    expected = hashlib.sha1(b"folder=products&timestamp=1700000000s3cr3t").hexdigest()
    assert storage.sign({"timestamp": "1700000000", "folder": "products"}) == expected


def test_sign_matches_cloudinary_documented_example():
    """Example from Cloudinary's "Generating authentication signatures" guide."""
    storage = CloudinaryStorage(cloud_name="demo", api_key="1234", api_secret="abcd")
    params = {
        "timestamp": 1315060510,
        "public_id": "sample_image",
        "eager": "w_400,h_300,c_pad|w_260,h_200,c_crop",
    }
    assert storage.sign(params) == "bfd09f95f331f558cbd1320e67aa8d488770583e"


@pytest.mark.anyio
async def test_cloudinary_upload_returns_secure_url():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["body"] = request.read()
        return httpx.Response(200, json={"secure_url": "https://res.cloudinary.com/demo/image/upload/a.png"})

    url = await make_storage(handler).upload(b"png-bytes", "image/png", "a.png")

    assert url == "https://res.cloudinary.com/demo/image/upload/a.png"
    assert seen["url"] == "https://api.cloudinary.com/v1_1/demo/image/upload"
    for field in (b'name="api_key"', b'name="signature"', b'name="timestamp"', b'name="folder"'):
        assert field in seen["body"]
    assert b"png-bytes" in seen["body"]
    assert b"Content-Type: image/png" in seen["body"]


@pytest.mark.anyio
async def test_cloudinary_error_status_raises_dependency_error():
    storage = make_storage(lambda request: httpx.Response(401, json={"error": {"message": "Invalid Signature"}}))

    with pytest.raises(DependencyError) as exc_info:
        await storage.upload(b"png-bytes", "image/png")
    assert "HTTP 401" in exc_info.value.message


@pytest.mark.anyio
async def test_cloudinary_transport_failure_raises_dependency_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(DependencyError):
        await make_storage(handler).upload(b"png-bytes", "image/png")


@pytest.mark.anyio
async def test_cloudinary_malformed_response_raises_dependency_error():
    storage = make_storage(lambda request: httpx.Response(200, json={"public_id": "a"}))

    with pytest.raises(DependencyError):
        await storage.upload(b"png-bytes", "image/png")


@pytest.mark.anyio
async def test_local_storage_writes_file(tmp_path):
    storage = LocalStorage(str(tmp_path / "media"), "http://localhost:3335/")

    url = await storage.upload(b"jpeg-bytes", "image/jpeg", "photo.jpg")

    assert url.startswith("http://localhost:3335/media/")
    assert url.endswith(".jpg")
    stored = tmp_path / "media" / url.rsplit("/", 1)[1]
    assert stored.read_bytes() == b"jpeg-bytes"


def test_build_storage_selects_backend():
    assert isinstance(build_storage(Settings(storage_backend="local")), LocalStorage)
    assert isinstance(build_storage(Settings(storage_backend="cloudinary")), CloudinaryStorage)
    with pytest.raises(ValueError):
        build_storage(Settings(storage_backend="ftp"))


class _Upload:
    """Minimal stand-in for starlette's UploadFile."""

    def __init__(self, filename, content_type, content=b"data"):
        self.filename = filename
        self.content_type = content_type
        self._content = content
        self.closed = False

    async def read(self):
        return self._content

    async def close(self):
        self.closed = True


@pytest.mark.anyio
async def test_store_image_is_a_noop_without_file():
    storage = FakeStorage()
    assert await store_image(None, storage, timeout=1) is None
    assert await store_image(_Upload("", "application/octet-stream"), storage, timeout=1) is None
    assert storage.uploads == []


@pytest.mark.anyio
async def test_store_image_rejects_disallowed_type():
    storage = FakeStorage()
    with pytest.raises(UnsupportedMediaError):
        await store_image(_Upload("a.webp", "image/webp"), storage, timeout=1)
    assert storage.uploads == []


@pytest.mark.anyio
async def test_store_image_forwards_bytes_and_closes_upload():
    storage = FakeStorage(url="https://cdn.example/a.png")
    upload = _Upload("a.png", "image/png", b"bytes")

    assert await store_image(upload, storage, timeout=1) == "https://cdn.example/a.png"
    assert storage.uploads == [{"content": b"bytes", "content_type": "image/png", "filename": "a.png"}]
    assert upload.closed


@pytest.mark.anyio
async def test_store_image_times_out():
    storage = FakeStorage(delay=1.0)

    with pytest.raises(DependencyError) as exc_info:
        await store_image(_Upload("a.png", "image/png"), storage, timeout=0.01)
    assert "timed out" in exc_info.value.message
