"""
Cookbook Backend — Test Configuration (conftest.py)
=====================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy (all function-scoped, fresh for each test):
    ├── uploads_dir: Temporary uploads directory (not created up front)
    ├── test_settings: Settings pointing at uploads_dir
    ├── store: Empty RecordStore
    ├── upload_service: UploadService over uploads_dir
    ├── app: FastAPI app from create_app(test_settings, store)
    ├── test_client: HTTPX AsyncClient bound to app
    ├── sample_image_bytes: Tiny PNG payload
    ├── recipe_payload: Valid recipe JSON body (camelCase, as the frontend sends it)
    ├── make_recipe: Factory for RecipeCreate values used by store tests
    └── make_upload: Factory for UploadFile objects over in-memory bytes
"""

import io
import os
import tempfile

# Keep the module-level app (cookbook.main:app) away from the working directory
os.environ.setdefault("UPLOADS_DIR", tempfile.mkdtemp(prefix="cookbook_test_"))
os.environ["LOG_LEVEL"] = "WARNING"

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from fastapi import UploadFile  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from starlette.datastructures import Headers  # noqa: E402

from cookbook.config import Settings  # noqa: E402
from cookbook.main import create_app  # noqa: E402
from cookbook.schemas.recipe import RecipeCreate  # noqa: E402
from cookbook.services.upload_service import UploadService  # noqa: E402
from cookbook.store import RecordStore  # noqa: E402


@pytest.fixture
def uploads_dir(tmp_path):
    """Path for uploaded images; the code under test creates it on demand."""
    return tmp_path / "uploads"


@pytest.fixture
def test_settings(uploads_dir):
    return Settings(uploads_dir=str(uploads_dir), log_level="WARNING")


@pytest.fixture
def store():
    return RecordStore()


@pytest.fixture
def upload_service(uploads_dir):
    return UploadService(uploads_dir=str(uploads_dir), url_prefix="/uploads")


@pytest.fixture
def app(test_settings, store):
    return create_app(config=test_settings, store=store)


@pytest_asyncio.fixture
async def test_client(app):
    """
    HTTPX AsyncClient routed straight into the app via ASGITransport.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def sample_image_bytes():
    """
    PNG signature plus an IHDR chunk header.

    Not a decodable image; uploads are accepted on their declared
    content type, so this is enough for every upload path.
    """
    return (
        b"\x89PNG\r\n\x1a\n"
        b"\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01\x08\x06\x00\x00\x00"
        b"\x1f\x15\xc4\x89"
    )


@pytest.fixture
def recipe_payload():
    return {
        "title": "Fluffy Pancakes",
        "description": "Weekend breakfast classic",
        "category": "breakfast",
        "cookTimeMinutes": 20,
        "ingredients": ["200g flour", "2 Eggs", "300ml milk"],
        "steps": ["Whisk everything together", "Fry ladlefuls in a hot pan"],
        "notes": "Rest the batter for 10 minutes",
    }


@pytest.fixture
def make_recipe():
    """
    Factory for RecipeCreate values with sensible defaults.

    Usage:
        recipe = store.create_recipe(make_recipe(title="Toast", created_at="2024-01-01T00:00:00.000Z"))
    """

    def _make(**overrides) -> RecipeCreate:
        fields = {
            "title": "Tomato Soup",
            "description": "Simple and warming",
            "category": "lunch",
            "cook_time_minutes": 30,
            "ingredients": ["6 tomatoes", "1 onion", "Salt"],
            "steps": ["Chop", "Simmer", "Blend"],
            "notes": None,
            "image_url": None,
            "created_at": "2024-01-15T12:00:00.000Z",
        }
        fields.update(overrides)
        return RecipeCreate(**fields)

    return _make


@pytest.fixture
def make_upload():
    """
    Factory for FastAPI UploadFile objects over in-memory bytes.

    Usage:
        upload = make_upload(sample_image_bytes, filename="dish.png", content_type="image/png")
    """

    def _make(content: bytes, filename: str = "dish.png", content_type: str = "image/png") -> UploadFile:
        return UploadFile(
            file=io.BytesIO(content),
            filename=filename,
            headers=Headers({"content-type": content_type}),
        )

    return _make
