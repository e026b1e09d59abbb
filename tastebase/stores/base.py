"""
Storage interfaces shared by the database and demo backends.

Routers and services only talk to UserStore / RecipeStore; the backend is
chosen from settings.DATA_BACKEND (see tastebase.stores).
"""

import uuid
from abc import ABC, abstractmethod

from tastebase.errors import InvalidIdentifier
from tastebase.schemas.auth import AuthUser
from tastebase.schemas.recipe import RecipeDraft, RecipeView, StoredRecipe
from tastebase.services.recipe_view import build_recipe_view

SEARCH_LIMIT = 50


def parse_id(value: str, label: str = "recipe") -> uuid.UUID:
    try:
        return uuid.UUID(str(value))
    except (ValueError, TypeError):
        raise InvalidIdentifier(f"Invalid {label} ID")


class UserStore(ABC):

    @abstractmethod
    def get_by_email(self, email: str) -> tuple[AuthUser, str | None] | None:
        """Return (user, password_hash) for a lower-cased email."""

    @abstractmethod
    def get_by_id(self, user_id: str) -> AuthUser | None:
        ...

    @abstractmethod
    def username_taken(self, username: str, exclude_user_id: str | None = None) -> bool:
        ...

    @abstractmethod
    def create(
        self, email: str, password_hash: str,
        full_name: str | None, username: str,
    ) -> AuthUser:
        ...

    @abstractmethod
    def update_profile(self, user_id: str, updates: dict) -> AuthUser | None:
        ...


class RecipeStore(ABC):

    # ── reads ────────────────────────────────────────────────────

    @abstractmethod
    def list_published(self, ascending: bool = False, limit: int | None = None) -> list[RecipeView]:
        ...

    @abstractmethod
    def get_published(self, recipe_id: str) -> RecipeView | None:
        ...

    @abstractmethod
    def get(self, recipe_id: str) -> StoredRecipe | None:
        """Fetch a recipe regardless of publish state (owner operations)."""

    @abstractmethod
    def search(self, query: str) -> list[RecipeView]:
        ...

    @abstractmethod
    def list_by_author(self, author_id: str) -> list[RecipeView]:
        ...

    @abstractmethod
    def list_saved(self, user_id: str) -> list[RecipeView]:
        ...

    @abstractmethod
    def saved_ids(self, user_id: str) -> list[str]:
        ...

    @abstractmethod
    def is_saved(self, user_id: str, recipe_id: str) -> bool:
        ...

    @abstractmethod
    def count_saves(self, recipe_id: str) -> int:
        ...

    @abstractmethod
    def author_profile(self, author_id: str):
        """Return an object with full_name/username/avatar_url, or None."""

    # ── writes ───────────────────────────────────────────────────

    @abstractmethod
    def create(self, author_id: str, draft: RecipeDraft) -> RecipeView:
        ...

    @abstractmethod
    def replace(self, recipe_id: str, draft: RecipeDraft) -> RecipeView | None:
        ...

    @abstractmethod
    def delete(self, recipe_id: str) -> bool:
        """Delete a recipe and every save record referencing it."""

    @abstractmethod
    def save(self, user_id: str, recipe_id: str) -> bool:
        """Wishlist a recipe. Returns False when the pair was already saved."""

    @abstractmethod
    def unsave(self, user_id: str, recipe_id: str) -> None:
        ...

    # ── shaping ──────────────────────────────────────────────────

    def to_view(self, recipe) -> RecipeView:
        stored = recipe if isinstance(recipe, StoredRecipe) else StoredRecipe.model_validate(recipe)
        return build_recipe_view(
            stored,
            author=self.author_profile(stored.author_id),
            save_count=self.count_saves(stored.id),
        )

    def to_views(self, recipes) -> list[RecipeView]:
        return [self.to_view(r) for r in recipes]
