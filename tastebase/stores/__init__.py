from functools import lru_cache

from fastapi import Depends
from sqlalchemy.orm import Session

from tastebase.config import get_settings
from tastebase.database import get_db
from tastebase.stores.base import RecipeStore, UserStore
from tastebase.stores.demo import DemoRecipeStore, DemoUserStore, LocalStorage, seed_demo_data
from tastebase.stores.sql import SqlRecipeStore, SqlUserStore

__all__ = [
    "RecipeStore", "UserStore",
    "SqlRecipeStore", "SqlUserStore",
    "DemoRecipeStore", "DemoUserStore", "LocalStorage",
    "get_demo_storage", "get_user_store", "get_recipe_store",
]


def uses_demo_backend() -> bool:
    return get_settings().DATA_BACKEND == "demo"


@lru_cache
def get_demo_storage() -> LocalStorage:
    settings = get_settings()
    storage = LocalStorage(settings.DEMO_STORAGE_PATH)
    if settings.DEMO_SEED:
        seed_demo_data(storage)
    return storage


def get_user_store(db: Session = Depends(get_db)) -> UserStore:
    if uses_demo_backend():
        return DemoUserStore(get_demo_storage())
    return SqlUserStore(db)


def get_recipe_store(db: Session = Depends(get_db)) -> RecipeStore:
    if uses_demo_backend():
        return DemoRecipeStore(get_demo_storage())
    return SqlRecipeStore(db)
