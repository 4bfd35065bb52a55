"""
Cookbook Backend — Recipe & Account Schemas
=============================================

What:  Pydantic models for the two entity kinds (Recipe, Account) and for the
       inbound recipe payloads (create and partial update).
How:   FastAPI serializes Recipe responses through these models; the
       validation layer parses raw payloads with RecipeCreate / RecipePatch.
Who:   Used by the record store (entity shape), the validation layer and the
       recipe routes (response_model).

Wire format:
    Fields are snake_case in Python and camelCase on the wire
    (cook_time_minutes ↔ cookTimeMinutes, image_url ↔ imageUrl,
    created_at ↔ createdAt). Both spellings are accepted on input.
"""

from typing import Annotated, Any, List, Literal, Optional, get_args

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


RecipeCategory = Literal["breakfast", "lunch", "dinner", "desserts", "drinks", "other"]

RECIPE_CATEGORIES = get_args(RecipeCategory)

# Ingredient and step entries: any string except the empty one (no trimming)
NonEmptyStr = Annotated[str, Field(min_length=1)]

# Cook time: a JSON integer of at least one minute; bools and numeric strings are refused
Minutes = Annotated[int, Field(strict=True, ge=1)]


class CamelModel(BaseModel):
    """Base model exposing camelCase aliases while accepting field names too."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ══════════════════════════════════════════════════════════════════════════
# Recipe
# ══════════════════════════════════════════════════════════════════════════


class RecipeCreate(CamelModel):
    """
    What:  A complete, validated recipe without its id.
    Who:   Produced by the validation layer on POST /api/recipes; consumed by
           RecordStore.create_recipe().

    Constraints:
        - category must be one of RECIPE_CATEGORIES
        - cook_time_minutes is a JSON integer >= 1 (booleans and numeric
          strings are rejected, not coerced)
        - every ingredient and step must be a non-empty string
        - unknown fields are rejected
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    title: str = Field(json_schema_extra={"example": "Fluffy Pancakes"})
    description: str = Field(json_schema_extra={"example": "Weekend breakfast classic"})
    category: RecipeCategory
    cook_time_minutes: Minutes = Field(description="Cooking time in whole minutes (at least 1)")
    ingredients: List[NonEmptyStr] = Field(
        json_schema_extra={"example": ["200g flour", "2 eggs", "300ml milk"]},
    )
    steps: List[NonEmptyStr] = Field(
        json_schema_extra={"example": ["Whisk everything", "Fry in a hot pan"]},
    )
    notes: Optional[str] = None
    image_url: Optional[str] = Field(
        default=None,
        description="Relative URL of the uploaded image, e.g. /uploads/recipe-1700000000000-42.jpg",
    )
    created_at: str = Field(description="ISO-8601 creation timestamp")


class Recipe(RecipeCreate):
    """A stored recipe, as returned by every recipe endpoint."""

    id: int = Field(description="Store-assigned identifier (starts at 1, never reused)")


class RecipePatch(CamelModel):
    """
    What:  Partial recipe update for PUT /api/recipes/{id}.
    How:   Only fields present in the payload are applied (exclude_unset);
           arrays replace the stored arrays wholesale.

    `notes` and `image_url` may be set to null to clear them; every other
    field, when present, must carry a valid value.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[RecipeCategory] = None
    cook_time_minutes: Optional[Minutes] = None
    ingredients: Optional[List[NonEmptyStr]] = None
    steps: Optional[List[NonEmptyStr]] = None
    notes: Optional[str] = None
    image_url: Optional[str] = None
    created_at: Optional[str] = None

    @field_validator(
        "title",
        "description",
        "category",
        "cook_time_minutes",
        "ingredients",
        "steps",
        "created_at",
    )
    @classmethod
    def reject_null(cls, v: Any) -> Any:
        if v is None:
            raise ValueError("Field cannot be null")
        return v

    def changes(self) -> dict:
        """Returns only the fields the client actually sent, keyed by field name."""
        return self.model_dump(exclude_unset=True)


# ══════════════════════════════════════════════════════════════════════════
# Account
# ══════════════════════════════════════════════════════════════════════════


class AccountCreate(BaseModel):
    """Username/password pair; the password is stored as given."""

    username: str = Field(min_length=1)
    password: str


class Account(AccountCreate):
    id: int
