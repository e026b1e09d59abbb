import uuid
from datetime import datetime, timezone

from tastebase.services.recipe_view import build_recipe_view


def _stored(**overrides):
    recipe = {
        "id": uuid.uuid4(),
        "author_id": uuid.uuid4(),
        "title": "Shakshuka",
        "description": "Eggs in spiced tomato sauce.",
        "servings": 2,
        "prep_minutes": 10,
        "cook_minutes": 20,
        "tags": ["Breakfast"],
        "difficulty": "Easy",
        "is_published": True,
        "published_at": datetime(2024, 5, 1, tzinfo=timezone.utc),
        "created_at": datetime(2024, 5, 1, tzinfo=timezone.utc),
        "recipe_ingredients": [
            {"position": 2, "name": "eggs", "quantity": "4"},
            {"position": 0, "name": "olive oil", "quantity": "2", "unit": "tbsp"},
            {"position": 1, "name": "tomatoes", "quantity": "400", "unit": "g"},
        ],
        "recipe_steps": [
            {"position": 1, "instruction": "Crack in the eggs."},
            {"position": 0, "instruction": "Simmer the sauce."},
        ],
    }
    recipe.update(overrides)
    return recipe


def test_children_are_ordered_by_position():
    view = build_recipe_view(_stored())
    assert [i.name for i in view.recipe_ingredients] == ["olive oil", "tomatoes", "eggs"]
    assert [s.instruction for s in view.recipe_steps] == ["Simmer the sauce.", "Crack in the eggs."]


def test_ids_are_strings_and_save_count_is_wrapped():
    recipe = _stored()
    view = build_recipe_view(recipe, save_count=3)
    assert view.id == str(recipe["id"])
    assert view.author_id == str(recipe["author_id"])
    assert [s.count for s in view.recipe_saves] == [3]


def test_author_profile_joined_or_null():
    author = {"full_name": "Ana Cook", "username": "ana", "avatar_url": None, "email": "a@x.io"}
    view = build_recipe_view(_stored(), author=author)
    assert view.profiles.username == "ana"
    assert "email" not in view.profiles.model_dump()

    assert build_recipe_view(_stored()).profiles is None
