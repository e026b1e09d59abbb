"""
Demo stores (DATA_BACKEND=demo).

Keeps users, recipes and saves as JSON blobs under fixed keys in a local
key/value file, so the app runs without a database. The same uniqueness and
ownership rules as the SQL stores apply.
"""

import json
import logging
import os
import threading
import uuid
from collections import Counter
from datetime import datetime, timedelta, timezone
from pathlib import Path

from tastebase.errors import AlreadyExists, UsernameTaken
from tastebase.schemas.auth import AuthUser
from tastebase.schemas.recipe import RecipeDraft, RecipeView, StoredRecipe
from tastebase.services.ingredients import build_step_entries, parse_ingredient_lines
from tastebase.services.recipe_view import build_recipe_view
from tastebase.stores.base import SEARCH_LIMIT, RecipeStore, UserStore, parse_id

logger = logging.getLogger(__name__)

DEMO_USERS_KEY = "tastebase-demo-users"
DEMO_RECIPES_KEY = "tastebase-demo-recipes"
DEMO_RECIPE_SAVES_KEY = "tastebase-demo-recipe-saves"

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _aware(value: datetime | None) -> datetime:
    if value is None:
        return _EPOCH
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


class LocalStorage:
    """String key/value storage persisted as one JSON file."""

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._lock = threading.RLock()

    def locked(self):
        """Hold the storage lock across several reads and updates."""
        return self._lock

    def _read(self) -> dict:
        if not self.path.exists():
            return {}
        with open(self.path, encoding="utf-8") as f:
            return json.load(f)

    def _write(self, data: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False)
        os.replace(tmp, self.path)

    def get_item(self, key: str) -> str | None:
        with self._lock:
            return self._read().get(key)

    def set_item(self, key: str, value: str) -> None:
        with self._lock:
            data = self._read()
            data[key] = value
            self._write(data)

    def remove_item(self, key: str) -> None:
        with self._lock:
            data = self._read()
            if data.pop(key, None) is not None:
                self._write(data)

    @staticmethod
    def _decode_list(key: str, raw: str | None) -> list[dict]:
        if not raw:
            return []
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(f"Discarding unreadable demo data under {key}")
            return []

    @staticmethod
    def _encode_list(items: list[dict]) -> str:
        return json.dumps(items, ensure_ascii=False, default=str)

    def load_list(self, key: str) -> list[dict]:
        return self._decode_list(key, self.get_item(key))

    def save_list(self, key: str, items: list[dict]) -> None:
        self.set_item(key, self._encode_list(items))

    def update(self, key: str, fn):
        """Load the list under key, let fn change it in place, write it back.

        The lock is held from load to write, so concurrent updates never
        overwrite each other. Returns whatever fn returns.
        """
        with self._lock:
            data = self._read()
            items = self._decode_list(key, data.get(key))
            result = fn(items)
            data[key] = self._encode_list(items)
            self._write(data)
            return result


class DemoUserStore(UserStore):

    def __init__(self, storage: LocalStorage):
        self.storage = storage

    def _users(self) -> list[dict]:
        return self.storage.load_list(DEMO_USERS_KEY)

    def get_by_email(self, email: str):
        email = email.lower()
        for u in self._users():
            if u["email"] == email:
                return AuthUser.model_validate(u), u.get("password_hash")
        return None

    def get_by_id(self, user_id: str) -> AuthUser | None:
        for u in self._users():
            if u["id"] == user_id:
                return AuthUser.model_validate(u)
        return None

    def username_taken(self, username: str, exclude_user_id: str | None = None) -> bool:
        return any(
            u.get("username") == username and u["id"] != exclude_user_id
            for u in self._users()
        )

    def create(self, email, password_hash, full_name, username) -> AuthUser:
        email = email.lower()
        user = {
            "id": str(uuid.uuid4()),
            "email": email,
            "full_name": full_name,
            "username": username,
            "avatar_url": None,
            "bio": None,
            "password_hash": password_hash,
            "created_at": _now_iso(),
        }

        def insert(users: list[dict]) -> None:
            if any(u["email"] == email for u in users):
                raise AlreadyExists("User with this email already exists. Try logging in instead.")
            if any(u.get("username") == username for u in users):
                raise UsernameTaken("Username is already taken")
            users.append(user)

        self.storage.update(DEMO_USERS_KEY, insert)
        return AuthUser.model_validate(user)

    def update_profile(self, user_id: str, updates: dict) -> AuthUser | None:
        def apply(users: list[dict]) -> dict | None:
            username = updates.get("username")
            if username and any(
                u.get("username") == username and u["id"] != user_id for u in users
            ):
                raise UsernameTaken("Username is already taken")
            for u in users:
                if u["id"] == user_id:
                    u.update(updates)
                    return u
            return None

        user = self.storage.update(DEMO_USERS_KEY, apply)
        return AuthUser.model_validate(user) if user else None


class DemoRecipeStore(RecipeStore):

    def __init__(self, storage: LocalStorage):
        self.storage = storage

    def _raw_recipes(self) -> list[dict]:
        return self.storage.load_list(DEMO_RECIPES_KEY)

    def _recipes(self) -> list[StoredRecipe]:
        return [StoredRecipe.model_validate(r) for r in self._raw_recipes()]

    def _published(self) -> list[StoredRecipe]:
        return [r for r in self._recipes() if r.is_published]

    def _saves(self) -> list[dict]:
        return self.storage.load_list(DEMO_RECIPE_SAVES_KEY)

    # ── reads ────────────────────────────────────────────────────

    def list_published(self, ascending: bool = False, limit: int | None = None) -> list[RecipeView]:
        recipes = sorted(
            self._published(), key=lambda r: _aware(r.published_at), reverse=not ascending,
        )
        if limit:
            recipes = recipes[:limit]
        return self.to_views(recipes)

    def get_published(self, recipe_id: str) -> RecipeView | None:
        recipe = self.get(recipe_id)
        if recipe is None or not recipe.is_published:
            return None
        return self.to_view(recipe)

    def get(self, recipe_id: str) -> StoredRecipe | None:
        recipe_id = str(parse_id(recipe_id))
        for r in self._recipes():
            if r.id == recipe_id:
                return r
        return None

    def search(self, query: str) -> list[RecipeView]:
        needle = query.strip().lower()
        if not needle:
            return self.list_published(limit=SEARCH_LIMIT)

        def matches(r: StoredRecipe) -> bool:
            fields = [r.title, r.description or "", r.difficulty or ""]
            fields += r.tags or []
            fields += [i.name for i in r.recipe_ingredients]
            return any(needle in f.lower() for f in fields)

        recipes = sorted(
            (r for r in self._published() if matches(r)),
            key=lambda r: _aware(r.published_at), reverse=True,
        )
        return self.to_views(recipes[:SEARCH_LIMIT])

    def list_by_author(self, author_id: str) -> list[RecipeView]:
        recipes = sorted(
            (r for r in self._recipes() if r.author_id == author_id),
            key=lambda r: _aware(r.created_at), reverse=True,
        )
        return self.to_views(recipes)

    def _user_saves(self, user_id: str) -> list[dict]:
        saves = [s for s in self._saves() if s["user_id"] == user_id]
        return sorted(saves, key=lambda s: s["created_at"], reverse=True)

    def list_saved(self, user_id: str) -> list[RecipeView]:
        published = {r.id: r for r in self._published()}
        return self.to_views(
            published[s["recipe_id"]] for s in self._user_saves(user_id)
            if s["recipe_id"] in published
        )

    def saved_ids(self, user_id: str) -> list[str]:
        existing = {r["id"] for r in self._raw_recipes()}
        return [s["recipe_id"] for s in self._user_saves(user_id) if s["recipe_id"] in existing]

    def is_saved(self, user_id: str, recipe_id: str) -> bool:
        recipe_id = str(parse_id(recipe_id))
        return any(
            s["user_id"] == user_id and s["recipe_id"] == recipe_id for s in self._saves()
        )

    def count_saves(self, recipe_id: str) -> int:
        recipe_id = str(parse_id(recipe_id))
        return sum(1 for s in self._saves() if s["recipe_id"] == recipe_id)

    def author_profile(self, author_id: str):
        for u in self.storage.load_list(DEMO_USERS_KEY):
            if u["id"] == author_id:
                return u
        return None

    def to_views(self, recipes) -> list[RecipeView]:
        """Read users and saves once for a whole listing."""
        recipes = [
            r if isinstance(r, StoredRecipe) else StoredRecipe.model_validate(r)
            for r in recipes
        ]
        if not recipes:
            return []
        authors = {u["id"]: u for u in self.storage.load_list(DEMO_USERS_KEY)}
        counts = Counter(s["recipe_id"] for s in self._saves())
        return [
            build_recipe_view(r, authors.get(r.author_id), counts[r.id])
            for r in recipes
        ]

    def to_view(self, recipe) -> RecipeView:
        return self.to_views([recipe])[0]

    # ── writes ───────────────────────────────────────────────────

    @staticmethod
    def _draft_fields(draft: RecipeDraft) -> dict:
        return {
            "title": draft.title,
            "description": draft.description,
            "servings": draft.servings,
            "prep_minutes": draft.prep_minutes,
            "cook_minutes": draft.cook_minutes,
            "tags": list(draft.tags),
            "difficulty": draft.difficulty.value,
            "hero_image_url": draft.hero_image_url,
            "recipe_ingredients": [e.model_dump() for e in draft.recipe_ingredients],
            "recipe_steps": [e.model_dump() for e in draft.recipe_steps],
        }

    def create(self, author_id: str, draft: RecipeDraft) -> RecipeView:
        now = _now_iso()
        recipe = {
            "id": str(uuid.uuid4()),
            "author_id": author_id,
            "is_published": True,
            "published_at": now,
            "created_at": now,
            **self._draft_fields(draft),
        }
        self.storage.update(DEMO_RECIPES_KEY, lambda recipes: recipes.append(recipe))
        logger.info(f"Demo recipe {recipe['id']} created by {author_id}")
        return self.to_view(recipe)

    def replace(self, recipe_id: str, draft: RecipeDraft) -> RecipeView | None:
        recipe_id = str(parse_id(recipe_id))

        def apply(recipes: list[dict]) -> dict | None:
            for r in recipes:
                if r["id"] == recipe_id:
                    r.update(self._draft_fields(draft))
                    return r
            return None

        recipe = self.storage.update(DEMO_RECIPES_KEY, apply)
        return self.to_view(recipe) if recipe else None

    def delete(self, recipe_id: str) -> bool:
        recipe_id = str(parse_id(recipe_id))

        def remove(recipes: list[dict]) -> bool:
            before = len(recipes)
            recipes[:] = [r for r in recipes if r["id"] != recipe_id]
            return len(recipes) != before

        def drop_saves(saves: list[dict]) -> None:
            saves[:] = [s for s in saves if s["recipe_id"] != recipe_id]

        with self.storage.locked():
            if not self.storage.update(DEMO_RECIPES_KEY, remove):
                return False
            self.storage.update(DEMO_RECIPE_SAVES_KEY, drop_saves)
        return True

    def save(self, user_id: str, recipe_id: str) -> bool:
        recipe_id = str(parse_id(recipe_id))

        def insert(saves: list[dict]) -> bool:
            if any(s["user_id"] == user_id and s["recipe_id"] == recipe_id for s in saves):
                return False
            saves.append({
                "id": str(uuid.uuid4()),
                "user_id": user_id,
                "recipe_id": recipe_id,
                "created_at": _now_iso(),
            })
            return True

        return self.storage.update(DEMO_RECIPE_SAVES_KEY, insert)

    def unsave(self, user_id: str, recipe_id: str) -> None:
        recipe_id = str(parse_id(recipe_id))

        def remove(saves: list[dict]) -> None:
            saves[:] = [
                s for s in saves
                if not (s["user_id"] == user_id and s["recipe_id"] == recipe_id)
            ]

        self.storage.update(DEMO_RECIPE_SAVES_KEY, remove)


# ── Sample data ───────────────────────────────────────────────────

SAMPLE_PROFILES = [
    {"full_name": "Sarah Chen", "username": "sarahcooks", "email": "sarah@tastebase.demo"},
    {"full_name": "Marco Rossi", "username": "marco-kitchen", "email": "marco@tastebase.demo"},
]

SAMPLE_RECIPES = [
    {
        "author": 0,
        "title": "Classic Margherita Pizza",
        "description": "A simple, authentic Italian pizza with fresh mozzarella, basil and tomato sauce.",
        "servings": 4,
        "prep_minutes": 20,
        "cook_minutes": 15,
        "tags": ["Italian", "Vegetarian", "Pizza"],
        "difficulty": "Intermediate",
        "ingredients": [
            "500 g pizza dough",
            "200 g fresh mozzarella, sliced",
            "1 cup tomato sauce",
            "2 tbsp olive oil",
            "fresh basil – torn",
        ],
        "steps": [
            "Preheat the oven as hot as it goes with a stone inside.",
            "Stretch the dough into a thin round.",
            "Spread sauce, add mozzarella and bake for 10 to 12 minutes.",
            "Finish with basil and a drizzle of olive oil.",
        ],
    },
    {
        "author": 1,
        "title": "Garlic Butter Shrimp",
        "description": "Quick weeknight shrimp in a lemony garlic butter sauce.",
        "servings": 2,
        "prep_minutes": 10,
        "cook_minutes": 8,
        "tags": ["Seafood", "Quick"],
        "difficulty": "Easy",
        "ingredients": [
            "300 g shrimp, peeled",
            "4 cloves garlic, minced",
            "2 tbsp butter",
            "1 lemon — juiced",
            "salt to taste",
        ],
        "steps": [
            "Melt the butter and soften the garlic.",
            "Add shrimp and cook until pink, about 2 minutes a side.",
            "Finish with lemon juice and salt.",
        ],
    },
]


def seed_demo_data(storage: LocalStorage) -> bool:
    """Populate an empty demo storage with sample authors and recipes."""
    with storage.locked():
        if storage.get_item(DEMO_RECIPES_KEY) is not None:
            return False

        base = datetime.now(timezone.utc)
        users = []
        for profile in SAMPLE_PROFILES:
            users.append({
                "id": str(uuid.uuid4()),
                "avatar_url": None,
                "bio": None,
                "password_hash": None,
                "created_at": base.isoformat(),
                **profile,
            })

        recipes = []
        for offset, sample in enumerate(SAMPLE_RECIPES):
            stamp = (base - timedelta(days=offset + 1)).isoformat()
            recipes.append({
                "id": str(uuid.uuid4()),
                "author_id": users[sample["author"]]["id"],
                "title": sample["title"],
                "description": sample["description"],
                "hero_image_url": None,
                "servings": sample["servings"],
                "prep_minutes": sample["prep_minutes"],
                "cook_minutes": sample["cook_minutes"],
                "tags": sample["tags"],
                "difficulty": sample["difficulty"],
                "is_published": True,
                "published_at": stamp,
                "created_at": stamp,
                "recipe_ingredients": [e.model_dump() for e in parse_ingredient_lines(sample["ingredients"])],
                "recipe_steps": [e.model_dump() for e in build_step_entries(sample["steps"])],
            })

        existing = storage.load_list(DEMO_USERS_KEY)
        storage.save_list(DEMO_USERS_KEY, existing + users)
        storage.save_list(DEMO_RECIPES_KEY, recipes)
        logger.info(f"Seeded demo storage at {storage.path} with {len(recipes)} recipes")
        return True
