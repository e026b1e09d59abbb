"""
Recipe aggregate builder.

Every read path (published feed, detail, search, by author, saved by user)
in both storage backends shapes its results through build_recipe_view.
"""

from tastebase.schemas.recipe import (
    AuthorProfile, RecipeView, SaveCount, StoredRecipe,
)


def build_recipe_view(recipe, author=None, save_count: int = 0) -> RecipeView:
    """Join a stored recipe with its author's public profile and save count.

    `recipe` may be an ORM row, a dict from the demo store, or a StoredRecipe.
    `author` is anything carrying full_name/username/avatar_url, or None when
    the author could not be found.
    """
    stored = recipe if isinstance(recipe, StoredRecipe) else StoredRecipe.model_validate(recipe)
    profile = AuthorProfile.model_validate(author) if author is not None else None

    return RecipeView(
        id=stored.id,
        author_id=stored.author_id,
        title=stored.title,
        description=stored.description,
        hero_image_url=stored.hero_image_url,
        servings=stored.servings,
        prep_minutes=stored.prep_minutes,
        cook_minutes=stored.cook_minutes,
        tags=stored.tags,
        difficulty=stored.difficulty,
        is_published=stored.is_published,
        published_at=stored.published_at,
        created_at=stored.created_at,
        profiles=profile,
        recipe_ingredients=sorted(stored.recipe_ingredients, key=lambda i: i.position),
        recipe_steps=sorted(stored.recipe_steps, key=lambda s: s.position),
        recipe_saves=[SaveCount(count=save_count)],
    )
