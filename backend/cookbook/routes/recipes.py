"""
Cookbook Backend — Recipe Route Handlers
==========================================

What:  The /api/recipes surface: list (with category/search), get, create,
       update and delete.
How:   Coerces the path id, pulls the multipart fields, delegates to
       RecipeService and shapes status codes. Errors are raised as
       application exceptions and formatted by the global handlers.
Who:   Called by the recipe catalog frontend.

Route Inventory:
    GET    /api/recipes              200 list (category > search > all)
    GET    /api/recipes/{id}         200 | 400 bad id | 404
    POST   /api/recipes              201 | 400 invalid payload or image
    PUT    /api/recipes/{id}         200 | 400 | 404
    DELETE /api/recipes/{id}         204 | 400 | 404
"""

import logging
import re
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, Request, Response, UploadFile

from cookbook.exceptions import ValidationError
from cookbook.schemas.common import ErrorResponse
from cookbook.schemas.recipe import Recipe
from cookbook.services.recipe_service import RecipeService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Recipes"])

_RECIPE_ID_RE = re.compile(r"[+-]?\d+", re.ASCII)


def get_recipe_service(request: Request) -> RecipeService:
    """Dependency: the RecipeService built by the app factory."""
    return request.app.state.recipe_service


def parse_recipe_id(raw: str) -> int:
    """
    Coerce a path segment to a recipe id.

    The whole segment must be an optionally signed run of ASCII digits:
    "5abc", " 1" and "1.5" are rejected rather than read as a numeric prefix.

    Raises:  ValidationError (→ 400) when the segment is not an integer.
    """
    if not _RECIPE_ID_RE.fullmatch(raw):
        raise ValidationError(
            message="Invalid recipe ID",
            field="id",
            context={"value": raw},
        )
    return int(raw)


@router.get(
    "/recipes",
    response_model=List[Recipe],
    responses={
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="List recipes",
    description=(
        "Returns all recipes, newest first. With `category`, only recipes of that "
        "category (newest first). Otherwise with `search`, recipes whose title, "
        "description or any ingredient contains the text (case-insensitive). "
        "When both are given, `category` wins."
    ),
)
async def list_recipes(
    category: Optional[str] = Query(default=None, description="Exact category to filter by"),
    search: Optional[str] = Query(default=None, description="Case-insensitive text to search for"),
    service: RecipeService = Depends(get_recipe_service),
) -> List[Recipe]:
    return service.list_recipes(category=category, search=search)


@router.get(
    "/recipes/{recipe_id}",
    response_model=Recipe,
    responses={
        400: {"description": "Invalid recipe ID", "model": ErrorResponse},
        404: {"description": "Recipe not found", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Get a single recipe by ID",
)
async def get_recipe(
    recipe_id: str,
    service: RecipeService = Depends(get_recipe_service),
) -> Recipe:
    return service.get_recipe(parse_recipe_id(recipe_id))


@router.post(
    "/recipes",
    status_code=201,
    response_model=Recipe,
    responses={
        201: {"description": "Recipe created", "model": Recipe},
        400: {"description": "Invalid recipe data or image", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Create a recipe",
    description=(
        "Multipart form with `recipe` (JSON string of the recipe fields) and an "
        "optional `image` file (image/*, max 5MB). `createdAt` is set by the server."
    ),
)
async def create_recipe(
    recipe: Optional[str] = Form(default=None, description="Recipe fields as a JSON string"),
    image: Optional[UploadFile] = File(default=None, description="Optional recipe image"),
    service: RecipeService = Depends(get_recipe_service),
) -> Recipe:
    logger.info(
        "Received create request: image=%s",
        image.filename if image is not None and image.filename else "none",
    )
    return await service.create_recipe(recipe, image)


@router.put(
    "/recipes/{recipe_id}",
    response_model=Recipe,
    responses={
        400: {"description": "Invalid recipe ID, data or image", "model": ErrorResponse},
        404: {"description": "Recipe not found", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Update a recipe",
    description=(
        "Partial update. Only the fields present in the `recipe` JSON change; "
        "`ingredients` and `steps` are replaced wholesale. A new `image` replaces "
        "the previous one, whose file is deleted."
    ),
)
async def update_recipe(
    recipe_id: str,
    recipe: Optional[str] = Form(default=None, description="Changed fields as a JSON string"),
    image: Optional[UploadFile] = File(default=None, description="Optional replacement image"),
    service: RecipeService = Depends(get_recipe_service),
) -> Recipe:
    parsed_id = parse_recipe_id(recipe_id)
    return await service.update_recipe(parsed_id, recipe, image)


@router.delete(
    "/recipes/{recipe_id}",
    status_code=204,
    response_class=Response,
    responses={
        400: {"description": "Invalid recipe ID", "model": ErrorResponse},
        404: {"description": "Recipe not found", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Delete a recipe and its image",
)
async def delete_recipe(
    recipe_id: str,
    service: RecipeService = Depends(get_recipe_service),
) -> Response:
    await service.delete_recipe(parse_recipe_id(recipe_id))
    return Response(status_code=204)
