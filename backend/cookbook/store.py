"""
Cookbook Backend — In-Memory Record Store
===========================================

What:  CRUD backing for the two entity kinds (accounts and recipes), plus the
       recipe-specific queries (newest-first listing, search, category filter).
How:   One Table per entity kind: a dict keyed by integer id with its own id
       counter. RecordStore composes the two tables.
Who:   Constructed once by the app factory (cookbook.main.create_app) and
       handed to RecipeService; tests construct their own.
When:  Lives for the lifetime of the process. Nothing is persisted.

Contract:
    - Ids start at 1 and increase on every create; deleted ids are never reused.
    - Lookups signal absence with None (get/find/update) or False (delete);
      nothing here raises for "not found".
    - Not thread-safe. Mutations are synchronous and run on the event loop
      thread, so two handlers never interleave inside a mutation.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Generic, List, Mapping, Optional, Type, TypeVar

from pydantic import BaseModel

from cookbook.schemas.recipe import (
    Account,
    AccountCreate,
    Recipe,
    RecipeCreate,
    RecipePatch,
)

logger = logging.getLogger(__name__)

EntityT = TypeVar("EntityT", bound=BaseModel)

# Sort position for createdAt values that are not parseable ISO-8601
_UNPARSEABLE = datetime.min.replace(tzinfo=timezone.utc)


class Table(Generic[EntityT]):
    """
    In-memory table for a single entity kind.

    Entities are pydantic models with an integer `id` field. The table owns
    id assignment; payloads passed to create() must not carry an id.
    """

    def __init__(self, entity_type: Type[EntityT], name: str):
        self.entity_type = entity_type
        self.name = name
        self._rows: Dict[int, EntityT] = {}
        self._next_id = 1

    def __len__(self) -> int:
        return len(self._rows)

    def get(self, entity_id: int) -> Optional[EntityT]:
        return self._rows.get(entity_id)

    def list(self) -> List[EntityT]:
        """All entities in insertion order."""
        return list(self._rows.values())

    def find(self, predicate: Callable[[EntityT], bool]) -> Optional[EntityT]:
        """First entity (in insertion order) satisfying predicate, or None."""
        return next((entity for entity in self._rows.values() if predicate(entity)), None)

    def create(self, payload: BaseModel) -> EntityT:
        entity_id = self._next_id
        self._next_id += 1

        entity = self.entity_type.model_validate({**payload.model_dump(), "id": entity_id})
        self._rows[entity_id] = entity
        logger.debug("Created %s %d", self.name, entity_id)
        return entity

    def update(self, entity_id: int, changes: Mapping[str, Any]) -> Optional[EntityT]:
        """
        Shallow-merge `changes` over the stored entity.

        Each key replaces the stored field wholesale (lists included). The id
        itself is not patchable. Returns the updated entity, or None if the id
        is unknown.

        Raises:
            ValueError: a key does not name a field of this entity kind.
        """
        existing = self._rows.get(entity_id)
        if existing is None:
            return None

        fields = set(self.entity_type.model_fields) - {"id"}
        unknown = set(changes) - fields
        if unknown:
            raise ValueError(f"Unknown {self.name} fields: {sorted(unknown)}")

        updated = existing.model_copy(update=dict(changes))
        self._rows[entity_id] = updated
        logger.debug("Updated %s %d: %s", self.name, entity_id, sorted(changes))
        return updated

    def delete(self, entity_id: int) -> bool:
        if self._rows.pop(entity_id, None) is None:
            return False
        logger.debug("Deleted %s %d", self.name, entity_id)
        return True


def created_at_key(recipe: Recipe) -> datetime:
    """Sort key for newest-first ordering; accepts a trailing 'Z' for UTC."""
    value = recipe.created_at
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return _UNPARSEABLE
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def newest_first(recipes: List[Recipe]) -> List[Recipe]:
    # sorted() is stable with reverse=True, so equal timestamps keep insertion order
    return sorted(recipes, key=created_at_key, reverse=True)


class RecordStore:
    """
    The process-wide record store: an accounts table and a recipes table.

    Account operations:
        get_account, find_account_by_username, create_account (unique usernames)

    Recipe operations:
        list_recipes (newest first), get_recipe, create_recipe,
        update_recipe (partial), delete_recipe, search_recipes (store order),
        recipes_by_category (newest first)
    """

    def __init__(self):
        self.accounts: Table[Account] = Table(Account, "account")
        self.recipes: Table[Recipe] = Table(Recipe, "recipe")

    # ── Accounts ──────────────────────────────────────────────────────────

    def get_account(self, account_id: int) -> Optional[Account]:
        return self.accounts.get(account_id)

    def find_account_by_username(self, username: str) -> Optional[Account]:
        return self.accounts.find(lambda account: account.username == username)

    def create_account(self, account: AccountCreate) -> Optional[Account]:
        """Usernames are unique: returns None, creating nothing, if one is taken."""
        if self.find_account_by_username(account.username) is not None:
            logger.debug("Account username already taken: %s", account.username)
            return None
        return self.accounts.create(account)

    # ── Recipes ───────────────────────────────────────────────────────────

    def list_recipes(self) -> List[Recipe]:
        return newest_first(self.recipes.list())

    def get_recipe(self, recipe_id: int) -> Optional[Recipe]:
        return self.recipes.get(recipe_id)

    def create_recipe(self, recipe: RecipeCreate) -> Recipe:
        return self.recipes.create(recipe)

    def update_recipe(self, recipe_id: int, patch: RecipePatch) -> Optional[Recipe]:
        return self.recipes.update(recipe_id, patch.changes())

    def delete_recipe(self, recipe_id: int) -> bool:
        return self.recipes.delete(recipe_id)

    def search_recipes(self, query: str) -> List[Recipe]:
        """
        Case-insensitive substring search over title, description and ingredients.

        A recipe matches if any of the three checks succeeds. Results come back
        in store iteration order; no recency sort is applied.
        """
        needle = query.lower()

        def matches(recipe: Recipe) -> bool:
            if needle in recipe.title.lower():
                return True
            if needle in recipe.description.lower():
                return True
            return any(needle in ingredient.lower() for ingredient in recipe.ingredients)

        return [recipe for recipe in self.recipes.list() if matches(recipe)]

    def recipes_by_category(self, category: str) -> List[Recipe]:
        return newest_first(
            [recipe for recipe in self.recipes.list() if recipe.category == category]
        )
