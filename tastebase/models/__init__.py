from tastebase.models.user import User
from tastebase.models.recipe import Recipe, RecipeIngredient, RecipeStep, RecipeSave, RecipeTag

__all__ = [
    "User", "Recipe", "RecipeIngredient", "RecipeStep", "RecipeSave", "RecipeTag",
]
