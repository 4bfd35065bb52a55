"""
Cookbook Backend — HTTP API Tests
===================================

What:  End-to-end tests for /api/recipes, /uploads, / and /health.
How:   HTTPX AsyncClient over ASGITransport against a fresh app per test
       (fresh store, tmp uploads directory). Multipart bodies are built the
       way the frontend sends them: a `recipe` JSON string plus an optional
       `image` file.

Test Strategy:
    ✅ Create → get → delete round trip, including the image file
    ✅ Status codes: 201 / 200 / 204 / 400 / 404 / 500
    ✅ Error envelope shape and field-level validation details
    ✅ Query precedence (category over search)
    ✅ Serving uploaded images, 404 for unknown files
"""

import json
from unittest.mock import patch

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from cookbook.config import Settings
from cookbook.main import create_app


def uploaded_names(directory) -> list:
    if not directory.exists():
        return []
    return sorted(path.name for path in directory.iterdir())


def image_part(content: bytes, filename: str = "dish.png", content_type: str = "image/png") -> dict:
    return {"image": (filename, content, content_type)}


async def post_recipe(client, payload, files=None):
    return await client.post("/api/recipes", data={"recipe": json.dumps(payload)}, files=files)


class TestRecipeRoundTrip:
    """Create, read and delete through HTTP."""

    @pytest.mark.asyncio
    async def test_create_get_delete_with_image(
        self, test_client, recipe_payload, uploads_dir, sample_image_bytes
    ):
        """The full life of a recipe with an image, file included."""
        created = await post_recipe(test_client, recipe_payload, image_part(sample_image_bytes))
        assert created.status_code == 201
        body = created.json()

        assert body["id"] == 1
        assert body["title"] == recipe_payload["title"]
        assert body["cookTimeMinutes"] == 20
        assert body["imageUrl"].startswith("/uploads/recipe-")
        assert body["imageUrl"].endswith(".png")
        assert body["createdAt"].endswith("Z")
        file_name = body["imageUrl"].rsplit("/", 1)[1]
        assert uploaded_names(uploads_dir) == [file_name]

        fetched = await test_client.get(f"/api/recipes/{body['id']}")
        assert fetched.status_code == 200
        assert fetched.json() == body

        deleted = await test_client.delete(f"/api/recipes/{body['id']}")
        assert deleted.status_code == 204
        assert deleted.content == b""

        gone = await test_client.get(f"/api/recipes/{body['id']}")
        assert gone.status_code == 404
        assert uploaded_names(uploads_dir) == []

    @pytest.mark.asyncio
    async def test_create_without_image(self, test_client, recipe_payload):
        """The image part is optional; imageUrl stays null."""
        response = await post_recipe(test_client, recipe_payload)

        assert response.status_code == 201
        assert response.json()["imageUrl"] is None
        assert response.json()["notes"] == recipe_payload["notes"]

    @pytest.mark.asyncio
    async def test_ids_keep_increasing_after_delete(self, test_client, recipe_payload):
        first = (await post_recipe(test_client, recipe_payload)).json()
        await test_client.delete(f"/api/recipes/{first['id']}")

        second = (await post_recipe(test_client, recipe_payload)).json()
        assert second["id"] == first["id"] + 1

    @pytest.mark.asyncio
    async def test_uploaded_image_is_served(self, test_client, recipe_payload, sample_image_bytes):
        """The imageUrl of a recipe can be fetched from the same server."""
        body = (await post_recipe(test_client, recipe_payload, image_part(sample_image_bytes))).json()

        image = await test_client.get(body["imageUrl"])

        assert image.status_code == 200
        assert image.content == sample_image_bytes
        assert image.headers["content-type"] == "image/png"


class TestCreateValidation:
    """POST /api/recipes rejections."""

    @pytest.mark.asyncio
    async def test_unknown_category_rejected_without_leftovers(
        self, test_client, store, recipe_payload, uploads_dir, sample_image_bytes
    ):
        """'snack' → 400, nothing stored, no file left in the uploads dir."""
        recipe_payload["category"] = "snack"

        response = await post_recipe(test_client, recipe_payload, image_part(sample_image_bytes))

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "validation_error"
        assert body["message"] == "Invalid recipe data"
        assert [error["field"] for error in body["details"]["errors"]] == ["category"]
        assert store.list_recipes() == []
        assert uploaded_names(uploads_dir) == []

    @pytest.mark.asyncio
    async def test_missing_recipe_field(self, test_client):
        response = await test_client.post("/api/recipes", data={})

        assert response.status_code == 400
        assert response.json()["message"] == "Missing recipe data"

    @pytest.mark.asyncio
    async def test_malformed_json(self, test_client):
        response = await test_client.post("/api/recipes", data={"recipe": "{not json"})

        assert response.status_code == 400
        assert response.json()["details"]["field"] == "recipe"

    @pytest.mark.asyncio
    async def test_non_image_upload_rejected(self, test_client, recipe_payload, uploads_dir):
        """Only image/* uploads are accepted."""
        response = await post_recipe(
            test_client, recipe_payload, image_part(b"%PDF-1.4", "menu.pdf", "application/pdf")
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Only image files are allowed"
        assert uploaded_names(uploads_dir) == []

    @pytest.mark.asyncio
    async def test_oversized_image_rejected(self, store, recipe_payload, uploads_dir):
        """Images over max_image_size are refused before anything is written."""
        config = Settings(uploads_dir=str(uploads_dir), max_image_size=1024)
        app = create_app(config=config, store=store)

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            response = await post_recipe(client, recipe_payload, image_part(b"x" * 2048))

        assert response.status_code == 400
        assert "exceeds" in response.json()["message"]
        assert store.list_recipes() == []
        assert uploaded_names(uploads_dir) == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("cook_time", [True, "45"])
    async def test_non_integer_cook_time_rejected(
        self, test_client, store, recipe_payload, cook_time
    ):
        """cookTimeMinutes must be a JSON integer; nothing is coerced or stored."""
        recipe_payload["cookTimeMinutes"] = cook_time

        response = await post_recipe(test_client, recipe_payload)

        assert response.status_code == 400
        fields = [error["field"] for error in response.json()["details"]["errors"]]
        assert fields == ["cookTimeMinutes"]
        assert store.list_recipes() == []

    @pytest.mark.asyncio
    async def test_empty_ingredient_reports_index(self, test_client, recipe_payload):
        recipe_payload["ingredients"] = ["flour", ""]

        response = await post_recipe(test_client, recipe_payload)

        assert response.status_code == 400
        errors = response.json()["details"]["errors"]
        assert errors[0]["field"] == "ingredients.1"


class TestGetAndDelete:
    """Id handling on GET and DELETE."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method", ["get", "delete"])
    async def test_non_numeric_id_is_bad_request(self, test_client, method):
        response = await getattr(test_client, method)("/api/recipes/abc")

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid recipe ID"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("raw_id", ["5abc", "%201", "1.5", "1e3"])
    async def test_ids_must_be_whole_integers(self, test_client, recipe_payload, raw_id):
        """Numeric prefixes and padded ids are refused, even when a recipe 1 or 5 exists."""
        for _ in range(5):
            await post_recipe(test_client, recipe_payload)

        response = await test_client.get(f"/api/recipes/{raw_id}")

        assert response.status_code == 400
        assert response.json()["details"]["value"] == raw_id.replace("%20", " ")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method", ["get", "delete"])
    async def test_unknown_id_is_not_found(self, test_client, method):
        response = await getattr(test_client, method)("/api/recipes/999")

        assert response.status_code == 404
        body = response.json()
        assert body["error"] == "not_found"
        assert body["message"] == "Recipe not found"
        assert body["request_id"]


class TestUpdateRecipe:
    """PUT /api/recipes/{id}."""

    @pytest.mark.asyncio
    async def test_partial_update(self, test_client, recipe_payload):
        """Only the fields sent change; the rest is returned as stored."""
        created = (await post_recipe(test_client, recipe_payload)).json()

        response = await test_client.put(
            f"/api/recipes/{created['id']}",
            data={"recipe": json.dumps({"title": "Buttermilk Pancakes", "steps": ["Mix", "Fry"]})},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["title"] == "Buttermilk Pancakes"
        assert body["steps"] == ["Mix", "Fry"]
        assert body["ingredients"] == created["ingredients"]
        assert body["createdAt"] == created["createdAt"]

    @pytest.mark.asyncio
    async def test_new_image_replaces_old_file(
        self, test_client, recipe_payload, uploads_dir, sample_image_bytes
    ):
        created = (await post_recipe(test_client, recipe_payload, image_part(sample_image_bytes))).json()

        response = await test_client.put(
            f"/api/recipes/{created['id']}",
            data={"recipe": "{}"},
            files=image_part(sample_image_bytes, "better.jpg", "image/jpeg"),
        )

        assert response.status_code == 200
        new_url = response.json()["imageUrl"]
        assert new_url != created["imageUrl"]
        assert uploaded_names(uploads_dir) == [new_url.rsplit("/", 1)[1]]

    @pytest.mark.asyncio
    async def test_unknown_id_with_image_leaves_no_file(
        self, test_client, uploads_dir, sample_image_bytes
    ):
        response = await test_client.put(
            "/api/recipes/42",
            data={"recipe": json.dumps({"title": "Ghost"})},
            files=image_part(sample_image_bytes),
        )

        assert response.status_code == 404
        assert uploaded_names(uploads_dir) == []

    @pytest.mark.asyncio
    async def test_invalid_patch_rejected(self, test_client, recipe_payload):
        """Bad values and unknown fields are refused; the recipe is unchanged."""
        created = (await post_recipe(test_client, recipe_payload)).json()

        response = await test_client.put(
            f"/api/recipes/{created['id']}",
            data={"recipe": json.dumps({"cookTimeMinutes": 0, "rating": 5})},
        )

        assert response.status_code == 400
        fields = {error["field"] for error in response.json()["details"]["errors"]}
        assert fields == {"cookTimeMinutes", "rating"}

        unchanged = await test_client.get(f"/api/recipes/{created['id']}")
        assert unchanged.json() == created

    @pytest.mark.asyncio
    async def test_bad_id(self, test_client):
        response = await test_client.put("/api/recipes/1.5", data={"recipe": "{}"})
        assert response.status_code == 400


@pytest_asyncio.fixture
async def seeded(test_client, recipe_payload):
    """Three recipes created a month apart: fried rice, lemonade, eggnog."""
    stamps = iter(
        [
            "2024-01-01T00:00:00.000Z",
            "2024-02-01T00:00:00.000Z",
            "2024-03-01T00:00:00.000Z",
        ]
    )
    recipes = [
        dict(recipe_payload, title="Egg fried rice", category="dinner", ingredients=["rice", "2 eggs"]),
        dict(recipe_payload, title="Lemonade", category="drinks", ingredients=["lemons", "sugar"]),
        dict(recipe_payload, title="Eggnog", category="drinks", ingredients=["milk", "egg yolks"]),
    ]
    with patch("cookbook.services.recipe_service.utc_timestamp", side_effect=lambda: next(stamps)):
        for recipe in recipes:
            response = await post_recipe(test_client, recipe)
            assert response.status_code == 201


class TestListRecipes:
    """GET /api/recipes with and without filters."""

    @staticmethod
    def titles(response) -> list:
        return [recipe["title"] for recipe in response.json()]

    @pytest.mark.asyncio
    async def test_empty_store(self, test_client):
        response = await test_client.get("/api/recipes")

        assert response.status_code == 200
        assert response.json() == []

    @pytest.mark.asyncio
    async def test_all_newest_first(self, test_client, seeded):
        response = await test_client.get("/api/recipes")
        assert self.titles(response) == ["Eggnog", "Lemonade", "Egg fried rice"]

    @pytest.mark.asyncio
    async def test_category_filter(self, test_client, seeded):
        response = await test_client.get("/api/recipes", params={"category": "drinks"})
        assert self.titles(response) == ["Eggnog", "Lemonade"]

    @pytest.mark.asyncio
    async def test_search_in_store_order(self, test_client, seeded):
        response = await test_client.get("/api/recipes", params={"search": "EGG"})
        assert self.titles(response) == ["Egg fried rice", "Eggnog"]

    @pytest.mark.asyncio
    async def test_category_takes_precedence_over_search(self, test_client, seeded):
        """With both parameters the search text is ignored."""
        response = await test_client.get("/api/recipes", params={"category": "drinks", "search": "rice"})
        assert self.titles(response) == ["Eggnog", "Lemonade"]

    @pytest.mark.asyncio
    async def test_empty_parameters_are_ignored(self, test_client, seeded):
        response = await test_client.get("/api/recipes?category=&search=")
        assert self.titles(response) == ["Eggnog", "Lemonade", "Egg fried rice"]


class TestUploadsRoute:
    """GET /uploads/{name} for files that were never stored."""

    @pytest.mark.asyncio
    async def test_unknown_file(self, test_client):
        response = await test_client.get("/uploads/recipe-1-1.png")

        assert response.status_code == 404
        assert response.json()["message"] == "File not found"


class TestServiceRoutes:
    """Root welcome message, health check and cross-cutting headers."""

    @pytest.mark.asyncio
    async def test_welcome(self, test_client):
        response = await test_client.get("/")

        assert response.status_code == 200
        assert response.json() == {
            "message": "Welcome to the API! Use /api for API routes.",
            "status": "ok",
        }

    @pytest.mark.asyncio
    async def test_health(self, test_client, recipe_payload):
        await post_recipe(test_client, recipe_payload)

        response = await test_client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["recipes"] == 1
        assert body["uploads_dir"] == "writable"
        assert body["version"] == "1.0.0"

    @pytest.mark.asyncio
    async def test_request_id_is_echoed(self, test_client):
        """A client-supplied X-Request-ID comes back unchanged."""
        response = await test_client.get("/", headers={"X-Request-ID": "abc123"})
        assert response.headers["X-Request-ID"] == "abc123"

    @pytest.mark.asyncio
    async def test_malformed_request_id_is_replaced(self, test_client):
        """Client IDs with spaces or over 64 characters are swapped for a generated one."""
        for supplied in ["two words", "x" * 65]:
            response = await test_client.get("/", headers={"X-Request-ID": supplied})
            assert response.headers["X-Request-ID"] != supplied
            assert len(response.headers["X-Request-ID"]) == 8

    @pytest.mark.asyncio
    async def test_request_id_is_generated(self, test_client):
        response = await test_client.get("/api/recipes")
        assert response.headers.get("X-Request-ID")


class TestUnexpectedErrors:
    """Failures outside the application exception hierarchy."""

    @pytest.mark.asyncio
    async def test_unexpected_exception_becomes_500(self, app, store):
        """The catch-all handler returns the failure's message in the envelope."""
        transport = ASGITransport(app=app, raise_app_exceptions=False)

        with patch.object(store, "list_recipes", side_effect=RuntimeError("store exploded")):
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                response = await client.get("/api/recipes")

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "internal_server_error"
        assert body["message"] == "store exploded"
