import asyncio
import logging
import os
from pathlib import Path

import pytest

TEST_DB = Path(__file__).parent / "test_catalog.db"

# Must be set before the app (and its engine) is imported
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{TEST_DB}"
os.environ["STORAGE_BACKEND"] = "cloudinary"
os.environ["FRONTEND_URL"] = "*"
os.environ["CREATE_TABLES"] = "true"

from fastapi.testclient import TestClient  # noqa: E402

from catalog_api.database import Base, engine  # noqa: E402
from catalog_api.main import app  # noqa: E402
from catalog_api.services.email_service import get_mailer  # noqa: E402
from catalog_api.services.storage_service import get_storage  # noqa: E402

logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
logging.getLogger("catalog_api").setLevel(logging.WARNING)

UPLOADED_URL = "https://res.cloudinary.com/demo/image/upload/v1/products/widget.png"


class FakeStorage:
    """Records uploads and answers with a fixed URL."""

    def __init__(self, url=UPLOADED_URL, error=None, delay=0.0):
        self.url = url
        self.error = error
        self.delay = delay
        self.uploads = []

    async def upload(self, content, content_type, filename=None):
        self.uploads.append({"content": content, "content_type": content_type, "filename": filename})
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return self.url


class FakeMailer:
    """Records every notification instead of talking to SMTP."""

    def __init__(self, error=None):
        self.error = error
        self.sent = []

    async def send(self, subject, text, html_body):
        self.sent.append({"subject": subject, "text": text, "html": html_body})
        if self.error:
            raise self.error


async def _drop_tables():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
def client(storage, mailer):
    """Client on a fresh schema with fake storage and mail capabilities."""
    asyncio.run(_drop_tables())
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_mailer] = lambda: mailer

    # Startup creates the tables, shutdown disposes the engine
    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture(scope="session", autouse=True)
def remove_test_database():
    yield
    if TEST_DB.exists():
        TEST_DB.unlink()


def png_upload(name="widget.png"):
    return {"productImage": (name, b"\x89PNG\r\n\x1a\nfake-image-bytes", "image/png")}
