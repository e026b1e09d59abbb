import math

from tastebase.schemas.recipe import Difficulty, RecipeDraft, RecipeForm
from tastebase.services.ingredients import build_step_entries, parse_ingredient_lines

FORM_ERROR_MESSAGE = "Please fix the highlighted fields."


def parse_number(value) -> int | None:
    """Whole, non-negative number from a form value; None when absent or invalid."""
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number) or number < 0 or not number.is_integer():
        return None
    return int(number)


def parse_tags(value) -> list[str]:
    if not value:
        return []
    items = value.split(",") if isinstance(value, str) else value
    return [t.strip() for t in items if t and t.strip()]


def validate_recipe_form(
    form: RecipeForm, current_hero_image_url: str | None = None,
) -> tuple[RecipeDraft | None, dict[str, str]]:
    """Check a create/edit submission. Returns (draft, {}) or (None, errors)."""
    title = (form.title or "").strip()
    description = (form.description or "").strip()
    servings = parse_number(form.servings)
    prep_minutes = parse_number(form.prep_minutes)
    cook_minutes = parse_number(form.cook_minutes)
    difficulty = (form.difficulty or "").strip()
    ingredients = parse_ingredient_lines(form.ingredients)
    steps = build_step_entries(form.steps)

    errors: dict[str, str] = {}
    if not title:
        errors["title"] = "Title is required."
    if not description:
        errors["description"] = "Description is required."
    if not servings:
        errors["servings"] = "Servings must be a positive number."
    if prep_minutes is None:
        errors["prep_minutes"] = "Prep minutes must be zero or more."
    if cook_minutes is None:
        errors["cook_minutes"] = "Cook minutes must be zero or more."
    if not ingredients:
        errors["ingredients"] = "Add at least one ingredient."
    if not steps:
        errors["steps"] = "Add at least one step."
    if difficulty not in {d.value for d in Difficulty}:
        errors["difficulty"] = "Select a difficulty level."

    if errors:
        return None, errors

    hero_image_url = (form.hero_image_url or "").strip() or current_hero_image_url
    return RecipeDraft(
        title=title,
        description=description,
        servings=servings,
        prep_minutes=prep_minutes,
        cook_minutes=cook_minutes,
        tags=parse_tags(form.tags),
        difficulty=Difficulty(difficulty),
        hero_image_url=hero_image_url,
        recipe_ingredients=ingredients,
        recipe_steps=steps,
    ), {}
