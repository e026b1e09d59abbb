import json
import uuid
from concurrent.futures import ThreadPoolExecutor

import pytest
from fastapi.testclient import TestClient

from tastebase.errors import AlreadyExists, InvalidIdentifier, UsernameTaken
from tastebase.main import app
from tastebase.schemas.recipe import RecipeForm
from tastebase.services.recipes import validate_recipe_form
from tastebase.sessions import MemorySessionStore, get_session_store
from tastebase.stores import (
    DemoRecipeStore, DemoUserStore, LocalStorage, get_recipe_store, get_user_store,
)
from tastebase.stores.demo import (
    DEMO_RECIPE_SAVES_KEY, DEMO_RECIPES_KEY, DEMO_USERS_KEY, seed_demo_data,
)


@pytest.fixture
def storage(tmp_path):
    return LocalStorage(tmp_path / "demo.json")


@pytest.fixture
def users(storage):
    return DemoUserStore(storage)


@pytest.fixture
def recipes(storage):
    return DemoRecipeStore(storage)


def _draft(title="Miso Soup"):
    draft, errors = validate_recipe_form(RecipeForm(
        title=title,
        description="Five minute comfort.",
        servings=2,
        prep_minutes=5,
        cook_minutes=5,
        tags="Japanese",
        difficulty="Easy",
        ingredients=["2 tbsp white miso", "100 g tofu, cubed"],
        steps=["Whisk miso into hot dashi.", "Add tofu."],
    ))
    assert not errors
    return draft


def test_local_storage_round_trips_under_fixed_keys(storage):
    storage.save_list(DEMO_USERS_KEY, [{"id": "1"}])
    assert storage.load_list(DEMO_USERS_KEY) == [{"id": "1"}]
    assert json.loads(storage.path.read_text())[DEMO_USERS_KEY] == '[{"id": "1"}]'

    storage.remove_item(DEMO_USERS_KEY)
    assert storage.get_item(DEMO_USERS_KEY) is None
    assert storage.load_list(DEMO_RECIPES_KEY) == []


def test_unreadable_blob_is_treated_as_empty(storage):
    storage.set_item(DEMO_RECIPES_KEY, "{not json")
    assert storage.load_list(DEMO_RECIPES_KEY) == []


def test_duplicate_email_rejected(users):
    users.create("a@example.com", "hash", None, "a")
    with pytest.raises(AlreadyExists):
        users.create("A@example.com", "hash", None, "a-1")


def test_wishlist_scenario(users, recipes):
    author = users.create("a@example.com", "hash", "Author", "author")
    fan = users.create("b@example.com", "hash", None, "fan")
    view = recipes.create(author.id, _draft())

    assert view.is_published
    assert view.profiles.username == "author"
    assert [i.name for i in view.recipe_ingredients] == ["white miso", "tofu"]

    assert recipes.save(fan.id, view.id) is True
    assert recipes.save(fan.id, view.id) is False
    assert recipes.count_saves(view.id) == 1
    assert [r.id for r in recipes.list_saved(fan.id)] == [view.id]

    recipes.unsave(fan.id, view.id)
    assert recipes.count_saves(view.id) == 0

    recipes.save(fan.id, view.id)
    assert recipes.delete(view.id) is True
    assert recipes.list_saved(fan.id) == []
    assert recipes.saved_ids(fan.id) == []
    assert recipes.get_published(view.id) is None


def test_replace_keeps_publish_time(users, recipes):
    author = users.create("a@example.com", "hash", None, "author")
    view = recipes.create(author.id, _draft())
    updated = recipes.replace(view.id, _draft("Better Miso Soup"))
    assert updated.title == "Better Miso Soup"
    assert updated.published_at == view.published_at


def test_search_and_ordering(users, recipes):
    author = users.create("a@example.com", "hash", None, "author")
    older = recipes.create(author.id, _draft("Older Soup"))
    newer = recipes.create(author.id, _draft("Newer Soup"))

    assert [r.id for r in recipes.list_published()] == [newer.id, older.id]
    assert [r.id for r in recipes.list_published(ascending=True, limit=1)] == [older.id]
    assert [r.id for r in recipes.search("TOFU")] == [newer.id, older.id]
    assert [r.id for r in recipes.search("older")] == [older.id]
    assert recipes.search("pizza") == []


def test_malformed_ids_rejected(recipes):
    with pytest.raises(InvalidIdentifier):
        recipes.get("nope")


def test_seed_runs_once(storage, recipes):
    assert seed_demo_data(storage) is True
    assert seed_demo_data(storage) is False

    feed = recipes.list_published()
    assert len(feed) == 2
    assert all(r.profiles is not None for r in feed)
    assert storage.load_list(DEMO_RECIPE_SAVES_KEY) == []


def test_api_runs_on_demo_backend(storage):
    app.dependency_overrides[get_user_store] = lambda: DemoUserStore(storage)
    app.dependency_overrides[get_recipe_store] = lambda: DemoRecipeStore(storage)
    sessions = MemorySessionStore()
    app.dependency_overrides[get_session_store] = lambda: sessions
    try:
        author = TestClient(app)
        author.post("/api/auth/signup", json={"email": "a@example.com", "password": "pw123456"})
        created = author.post("/api/recipes", json={
            "title": "Toast", "description": "Bread, heated.", "servings": 1,
            "prep_minutes": 0, "cook_minutes": 3, "difficulty": "Easy",
            "ingredients": ["1 slice bread"], "steps": ["Toast it."],
        })
        assert created.status_code == 201, created.text
        recipe_id = created.json()["data"]["id"]

        fan = TestClient(app)
        fan.post("/api/auth/signup", json={"email": "b@example.com", "password": "pw123456"})
        fan.post(f"/api/recipes/{recipe_id}/save")
        assert fan.get("/api/recipes/saved-ids").json() == {"data": [recipe_id]}

        assert author.delete(f"/api/recipes/{recipe_id}").status_code == 200
        assert fan.get("/api/recipes/saved").json() == {"data": []}
    finally:
        app.dependency_overrides.clear()


def test_concurrent_saves_are_all_kept(users, recipes):
    author = users.create("a@example.com", "hash", None, "author")
    recipe = recipes.create(author.id, _draft())
    fans = [str(uuid.uuid4()) for _ in range(40)]

    with ThreadPoolExecutor(max_workers=16) as pool:
        created = list(pool.map(lambda fan: recipes.save(fan, recipe.id), fans))
        repeated = list(pool.map(lambda fan: recipes.save(fans[0], recipe.id), range(10)))

    assert all(created)
    assert not any(repeated)
    assert recipes.count_saves(recipe.id) == 40


def test_concurrent_signups_keep_every_user(users):
    def create(n):
        return users.create(f"user{n}@example.com", "hash", None, f"user{n}")

    with ThreadPoolExecutor(max_workers=16) as pool:
        list(pool.map(create, range(30)))

    assert len(users._users()) == 30
    with pytest.raises(UsernameTaken):
        users.create("late@example.com", "hash", None, "user7")


def test_listing_reads_users_and_saves_once(storage, users, recipes, monkeypatch):
    author = users.create("a@example.com", "hash", None, "author")
    for n in range(5):
        recipes.create(author.id, _draft(f"Soup {n}"))

    reads = []
    original = storage.get_item
    monkeypatch.setattr(storage, "get_item", lambda key: reads.append(key) or original(key))

    feed = recipes.list_published()
    assert len(feed) == 5
    assert all(r.profiles.username == "author" for r in feed)
    assert reads.count(DEMO_USERS_KEY) == 1
    assert reads.count(DEMO_RECIPE_SAVES_KEY) == 1
