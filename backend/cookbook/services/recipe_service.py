"""
Cookbook Backend — Recipe Service (Business Logic Orchestrator)
=================================================================

What:  Coordinates the record store, payload validation and image uploads for
       every recipe operation.
How:   Composes RecordStore and UploadService, both injected at construction.
Who:   Called by the recipe route handlers; one instance per app, created by
       cookbook.main.create_app and kept on app.state.

Orchestration Flow (POST /api/recipes):
    ┌──────────┐    ┌─────────────┐    ┌──────────────┐    ┌──────────┐
    │  Upload  │───▶│ Decode JSON │───▶│  Validate    │───▶│  Store   │
    │ (acquire)│    │ + inject    │    │  (pydantic)  │    │ (create) │
    └──────────┘    │ imageUrl,   │    └──────────────┘    └──────────┘
                    │ createdAt   │
                    └─────────────┘

    On failure at any step after the upload was written, leaving the
    acquire() block without commit() deletes the file before the exception
    reaches the error handler.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from fastapi import UploadFile

from cookbook.exceptions import FileStorageError, NotFoundError
from cookbook.schemas.recipe import Recipe
from cookbook.services.upload_service import UploadService
from cookbook.services.validation import (
    decode_recipe_field,
    validate_new_recipe,
    validate_recipe_patch,
)
from cookbook.store import RecordStore

logger = logging.getLogger(__name__)


def utc_timestamp() -> str:
    """Current UTC time as YYYY-MM-DDTHH:MM:SS.mmmZ."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def take_client_image_url(data: dict) -> Tuple[bool, Optional[str]]:
    """
    Remove any client-supplied image URL (either spelling) from the payload.

    Returns (sent, value). A recipe's imageUrl only ever names a file stored
    by this server for that recipe; the one client value honoured is an
    explicit null on update.
    """
    urls = [data.pop(key) for key in ("imageUrl", "image_url") if key in data]
    return bool(urls), next((url for url in urls if url is not None), None)


class RecipeService:
    """
    Business logic layer for recipe operations.

    Responsibilities:
        - list_recipes(): category filter, search, or full newest-first list
        - get_recipe(): single lookup with not-found handling
        - create_recipe(): upload → validate → create
        - update_recipe(): upload → validate patch → update → drop old image
        - delete_recipe(): drop image → delete record

    Error Handling Strategy:
        The store reports absence with None/False; this layer converts it to
        NotFoundError. Validation and upload problems surface as
        ValidationError, filesystem problems as FileStorageError.
    """

    def __init__(self, store: RecordStore, uploads: UploadService):
        self.store = store
        self.uploads = uploads

    def list_recipes(
        self,
        category: Optional[str] = None,
        search: Optional[str] = None,
    ) -> List[Recipe]:
        """
        Category wins when both filters are given; search is only consulted
        without a category. Empty strings count as absent.
        """
        if category:
            return self.store.recipes_by_category(category)
        if search:
            return self.store.search_recipes(search)
        return self.store.list_recipes()

    def get_recipe(self, recipe_id: int) -> Recipe:
        recipe = self.store.get_recipe(recipe_id)
        if recipe is None:
            raise NotFoundError(resource="recipe", resource_id=str(recipe_id))
        return recipe

    async def create_recipe(
        self,
        raw_recipe: Optional[str],
        image: Optional[UploadFile] = None,
    ) -> Recipe:
        """
        Create a recipe from the multipart `recipe` field and optional image.

        Workflow Steps:
            1. Validate and write the image (if any)
            2. Decode the JSON payload
            3. Inject imageUrl (when an image was stored) and createdAt
            4. Validate with RecipeCreate and store
            5. Commit the image

        Raises:
            ValidationError: bad image, malformed JSON or invalid fields
            FileStorageError: the image could not be written
        """
        async with self.uploads.acquire(image) as stored:
            data = decode_recipe_field(raw_recipe)

            take_client_image_url(data)
            if stored is not None:
                data["imageUrl"] = stored.url

            data.pop("created_at", None)
            data["createdAt"] = utc_timestamp()

            recipe = self.store.create_recipe(validate_new_recipe(data))

            if stored is not None:
                stored.commit()

        logger.info("Recipe %d created (image=%s)", recipe.id, recipe.image_url or "none")
        return recipe

    async def update_recipe(
        self,
        recipe_id: int,
        raw_recipe: Optional[str],
        image: Optional[UploadFile] = None,
    ) -> Recipe:
        """
        Apply a partial update, optionally replacing the recipe's image.

        Workflow Steps:
            1. Unknown id → NotFoundError before anything is written
            2. Validate and write the new image (if any)
            3. Decode and validate the patch (imageUrl injected for new images;
               a client imageUrl is ignored unless it is null, which clears it)
            4. Apply the patch and commit the new image
            5. Remove the previous image file, if it was replaced or cleared

        The previous image is only removed once the update has been applied,
        so a rejected update leaves the stored recipe and its image intact.
        """
        existing = self.get_recipe(recipe_id)

        async with self.uploads.acquire(image) as stored:
            data = decode_recipe_field(raw_recipe)

            sent_url, client_url = take_client_image_url(data)
            if stored is not None:
                data["imageUrl"] = stored.url
            elif sent_url and client_url is None:
                # explicit null clears the image
                data["imageUrl"] = None

            patch = validate_recipe_patch(data)

            updated = self.store.update_recipe(recipe_id, patch)
            if updated is None:
                # Deleted while the image was being written
                raise NotFoundError(resource="recipe", resource_id=str(recipe_id))

            if stored is not None:
                stored.commit()

        if existing.image_url and existing.image_url != updated.image_url:
            try:
                await self.uploads.remove_by_url(existing.image_url)
            except FileStorageError as e:
                logger.warning(
                    "Recipe %d updated but old image %s was not removed: %s",
                    recipe_id,
                    existing.image_url,
                    e.message,
                )

        logger.info("Recipe %d updated: %s", recipe_id, sorted(patch.changes()))
        return updated

    async def delete_recipe(self, recipe_id: int) -> None:
        """
        Delete a recipe and its image file.

        The image goes first; if removing it fails the record is kept and the
        FileStorageError propagates (→ 500).
        """
        existing = self.get_recipe(recipe_id)

        if existing.image_url:
            await self.uploads.remove_by_url(existing.image_url)

        if not self.store.delete_recipe(recipe_id):
            raise NotFoundError(resource="recipe", resource_id=str(recipe_id))

        logger.info("Recipe %d deleted", recipe_id)
