"""
Cookbook Backend — Recipe Payload Validation
==============================================

What:  Turns the raw `recipe` form field into validated pydantic models, or
       into a ValidationError carrying every field-level violation.
How:   json.loads → RecipeCreate / RecipePatch.model_validate; pydantic's
       error list is flattened into {"field", "message", "type"} entries.
Who:   Called by RecipeService on create and update.
"""

import json
from typing import Any, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from cookbook.exceptions import ValidationError
from cookbook.schemas.recipe import RecipeCreate, RecipePatch


def decode_recipe_field(raw: Optional[str]) -> Dict[str, Any]:
    """
    Decode the multipart `recipe` field.

    Raises:
        ValidationError: field missing, not JSON, or not a JSON object
    """
    if raw is None:
        raise ValidationError(message="Missing recipe data", field="recipe")

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValidationError(
            message="Recipe data is not valid JSON",
            field="recipe",
            context={"position": e.pos},
        )

    if not isinstance(data, dict):
        raise ValidationError(
            message="Recipe data must be a JSON object",
            field="recipe",
            context={"received": type(data).__name__},
        )
    return data


def format_errors(exc: PydanticValidationError) -> List[Dict[str, Any]]:
    """One entry per violation; `field` is the dotted wire path, e.g. "ingredients.1"."""
    return [
        {
            "field": ".".join(str(part) for part in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]


def validate_new_recipe(data: Dict[str, Any]) -> RecipeCreate:
    try:
        return RecipeCreate.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(
            message="Invalid recipe data",
            field="recipe",
            errors=format_errors(e),
        )


def validate_recipe_patch(data: Dict[str, Any]) -> RecipePatch:
    try:
        return RecipePatch.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(
            message="Invalid recipe data",
            field="recipe",
            errors=format_errors(e),
        )
