"""SQLAlchemy-backed stores (DATA_BACKEND=database)."""

import logging
import re

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from tastebase.database import utcnow
from tastebase.errors import AlreadyExists, InvalidIdentifier, UsernameTaken
from tastebase.models.recipe import (
    Recipe, RecipeIngredient, RecipeSave, RecipeStep, RecipeTag,
)
from tastebase.models.user import User
from tastebase.schemas.auth import AuthUser
from tastebase.schemas.recipe import RecipeDraft, RecipeView, StoredRecipe
from tastebase.services.recipe_view import build_recipe_view
from tastebase.stores.base import SEARCH_LIMIT, RecipeStore, UserStore, parse_id

logger = logging.getLogger(__name__)

_USERNAME_CONSTRAINT = re.compile(r"users\.username|ix_users_username|Key \(username\)")


def _violates_username(error: IntegrityError) -> bool:
    # sqlite names the column, Postgres the ix_users_username index
    return _USERNAME_CONSTRAINT.search(str(error.orig)) is not None


def _like_pattern(query: str) -> str:
    escaped = query.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class SqlUserStore(UserStore):

    def __init__(self, db: Session):
        self.db = db

    def _get(self, user_id: str) -> User | None:
        try:
            uid = parse_id(user_id, "user")
        except InvalidIdentifier:
            return None
        return self.db.get(User, uid)

    def get_by_email(self, email: str):
        user = self.db.query(User).filter(User.email == email.lower()).first()
        if not user:
            return None
        return AuthUser.model_validate(user), user.password_hash

    def get_by_id(self, user_id: str) -> AuthUser | None:
        user = self._get(user_id)
        return AuthUser.model_validate(user) if user else None

    def username_taken(self, username: str, exclude_user_id: str | None = None) -> bool:
        q = self.db.query(User.id).filter(User.username == username)
        if exclude_user_id:
            q = q.filter(User.id != parse_id(exclude_user_id, "user"))
        return q.first() is not None

    def create(self, email, password_hash, full_name, username) -> AuthUser:
        user = User(
            email=email.lower(),
            password_hash=password_hash,
            full_name=full_name,
            username=username,
        )
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            if _violates_username(e):
                raise UsernameTaken("Username is already taken")
            raise AlreadyExists("User with this email already exists. Try logging in instead.")
        self.db.refresh(user)
        return AuthUser.model_validate(user)

    def update_profile(self, user_id: str, updates: dict) -> AuthUser | None:
        user = self._get(user_id)
        if not user:
            return None
        for k, v in updates.items():
            setattr(user, k, v)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            if _violates_username(e):
                raise UsernameTaken("Username is already taken")
            raise
        self.db.refresh(user)
        return AuthUser.model_validate(user)


class SqlRecipeStore(RecipeStore):

    def __init__(self, db: Session):
        self.db = db

    def _query(self):
        return self.db.query(Recipe).options(
            selectinload(Recipe.recipe_ingredients),
            selectinload(Recipe.recipe_steps),
            selectinload(Recipe.recipe_tags),
        )

    def _published(self):
        return self._query().filter(Recipe.is_published.is_(True))

    # ── reads ────────────────────────────────────────────────────

    def list_published(self, ascending: bool = False, limit: int | None = None) -> list[RecipeView]:
        order = Recipe.published_at.asc() if ascending else Recipe.published_at.desc()
        q = self._published().order_by(order)
        if limit:
            q = q.limit(limit)
        return self.to_views(q.all())

    def get_published(self, recipe_id: str) -> RecipeView | None:
        recipe = self._published().filter(Recipe.id == parse_id(recipe_id)).first()
        return self.to_view(recipe) if recipe else None

    def get(self, recipe_id: str) -> StoredRecipe | None:
        recipe = self._query().filter(Recipe.id == parse_id(recipe_id)).first()
        return StoredRecipe.model_validate(recipe) if recipe else None

    def search(self, query: str) -> list[RecipeView]:
        query = query.strip()
        if not query:
            return self.list_published(limit=SEARCH_LIMIT)
        pattern = _like_pattern(query)
        recipes = self._published().filter(or_(
            Recipe.title.ilike(pattern, escape="\\"),
            Recipe.description.ilike(pattern, escape="\\"),
            Recipe.difficulty.ilike(pattern, escape="\\"),
            Recipe.recipe_tags.any(RecipeTag.name.ilike(pattern, escape="\\")),
            Recipe.recipe_ingredients.any(RecipeIngredient.name.ilike(pattern, escape="\\")),
        )).order_by(Recipe.published_at.desc()).limit(SEARCH_LIMIT).all()
        return self.to_views(recipes)

    def list_by_author(self, author_id: str) -> list[RecipeView]:
        recipes = self._query().filter(
            Recipe.author_id == parse_id(author_id, "author"),
        ).order_by(Recipe.created_at.desc()).all()
        return self.to_views(recipes)

    def list_saved(self, user_id: str) -> list[RecipeView]:
        # Inner join drops saves whose recipe is gone
        recipes = self._published().join(
            RecipeSave, RecipeSave.recipe_id == Recipe.id,
        ).filter(
            RecipeSave.user_id == parse_id(user_id, "user"),
        ).order_by(RecipeSave.created_at.desc()).all()
        return self.to_views(recipes)

    def saved_ids(self, user_id: str) -> list[str]:
        rows = self.db.query(RecipeSave.recipe_id).join(
            Recipe, Recipe.id == RecipeSave.recipe_id,
        ).filter(
            RecipeSave.user_id == parse_id(user_id, "user"),
        ).order_by(RecipeSave.created_at.desc()).all()
        return [str(r.recipe_id) for r in rows]

    def is_saved(self, user_id: str, recipe_id: str) -> bool:
        return self.db.query(RecipeSave.id).filter(
            RecipeSave.user_id == parse_id(user_id, "user"),
            RecipeSave.recipe_id == parse_id(recipe_id),
        ).first() is not None

    def count_saves(self, recipe_id: str) -> int:
        return self.db.query(RecipeSave).filter(
            RecipeSave.recipe_id == parse_id(recipe_id),
        ).count()

    def author_profile(self, author_id: str):
        return self.db.get(User, parse_id(author_id, "author"))

    def to_views(self, recipes) -> list[RecipeView]:
        """Batch the author and save-count lookups for a whole listing."""
        if not recipes:
            return []
        recipe_ids = [r.id for r in recipes]
        author_ids = {r.author_id for r in recipes}
        authors = {
            u.id: u for u in self.db.query(User).filter(User.id.in_(author_ids)).all()
        }
        counts = dict(
            self.db.query(RecipeSave.recipe_id, func.count(RecipeSave.id))
            .filter(RecipeSave.recipe_id.in_(recipe_ids))
            .group_by(RecipeSave.recipe_id)
            .all()
        )
        return [
            build_recipe_view(r, authors.get(r.author_id), counts.get(r.id, 0))
            for r in recipes
        ]

    # ── writes ───────────────────────────────────────────────────

    def _apply_draft(self, recipe: Recipe, draft: RecipeDraft) -> None:
        recipe.title = draft.title
        recipe.description = draft.description
        recipe.servings = draft.servings
        recipe.prep_minutes = draft.prep_minutes
        recipe.cook_minutes = draft.cook_minutes
        recipe.difficulty = draft.difficulty.value
        recipe.hero_image_url = draft.hero_image_url
        recipe.recipe_ingredients = [
            RecipeIngredient(**entry.model_dump()) for entry in draft.recipe_ingredients
        ]
        recipe.recipe_steps = [
            RecipeStep(**entry.model_dump()) for entry in draft.recipe_steps
        ]
        recipe.recipe_tags = [
            RecipeTag(position=i, name=name) for i, name in enumerate(draft.tags)
        ]

    def create(self, author_id: str, draft: RecipeDraft) -> RecipeView:
        recipe = Recipe(
            author_id=parse_id(author_id, "author"),
            is_published=True,
            published_at=utcnow(),
        )
        self._apply_draft(recipe, draft)
        self.db.add(recipe)
        self.db.commit()
        logger.info(f"Recipe {recipe.id} created by {author_id}")
        return self.to_view(recipe)

    def replace(self, recipe_id: str, draft: RecipeDraft) -> RecipeView | None:
        recipe = self._query().filter(Recipe.id == parse_id(recipe_id)).first()
        if not recipe:
            return None
        self._apply_draft(recipe, draft)
        self.db.commit()
        return self.to_view(recipe)

    def delete(self, recipe_id: str) -> bool:
        recipe = self.db.get(Recipe, parse_id(recipe_id))
        if not recipe:
            return False
        removed = self.db.query(RecipeSave).filter(
            RecipeSave.recipe_id == recipe.id,
        ).delete(synchronize_session="fetch")
        self.db.delete(recipe)
        self.db.commit()
        logger.info(f"Recipe {recipe_id} deleted along with {removed} saves")
        return True

    def save(self, user_id: str, recipe_id: str) -> bool:
        if self.is_saved(user_id, recipe_id):
            return False
        self.db.add(RecipeSave(
            user_id=parse_id(user_id, "user"),
            recipe_id=parse_id(recipe_id),
        ))
        try:
            self.db.commit()
        except IntegrityError:
            # Lost a race with a concurrent save of the same pair
            self.db.rollback()
            return False
        return True

    def unsave(self, user_id: str, recipe_id: str) -> None:
        self.db.query(RecipeSave).filter(
            RecipeSave.user_id == parse_id(user_id, "user"),
            RecipeSave.recipe_id == parse_id(recipe_id),
        ).delete(synchronize_session=False)
        self.db.commit()
