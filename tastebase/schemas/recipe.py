from datetime import datetime
from enum import Enum

from pydantic import BaseModel, field_validator


class Difficulty(str, Enum):
    easy = "Easy"
    intermediate = "Intermediate"
    advanced = "Advanced"


class IngredientEntry(BaseModel):
    position: int
    quantity: str | None = None
    unit: str | None = None
    name: str
    note: str | None = None

    model_config = {"from_attributes": True}


class StepEntry(BaseModel):
    position: int
    instruction: str

    model_config = {"from_attributes": True}


class StoredRecipe(BaseModel):
    """A recipe as either storage backend hands it to the view builder."""
    id: str
    author_id: str
    title: str
    description: str | None = None
    hero_image_url: str | None = None
    servings: int | None = None
    prep_minutes: int | None = None
    cook_minutes: int | None = None
    tags: list[str] | None = None
    difficulty: str | None = None
    is_published: bool = False
    published_at: datetime | None = None
    created_at: datetime
    recipe_ingredients: list[IngredientEntry] = []
    recipe_steps: list[StepEntry] = []

    model_config = {"from_attributes": True}

    @field_validator("id", "author_id", mode="before")
    @classmethod
    def _stringify_ids(cls, value):
        return str(value)


class AuthorProfile(BaseModel):
    full_name: str | None = None
    username: str | None = None
    avatar_url: str | None = None

    model_config = {"from_attributes": True}


class SaveCount(BaseModel):
    count: int


class RecipeView(BaseModel):
    """The one response shape every recipe read path returns."""
    id: str
    author_id: str
    title: str
    description: str | None
    hero_image_url: str | None
    servings: int | None
    prep_minutes: int | None
    cook_minutes: int | None
    tags: list[str] | None
    difficulty: str | None
    is_published: bool
    published_at: datetime | None
    created_at: datetime
    profiles: AuthorProfile | None
    recipe_ingredients: list[IngredientEntry]
    recipe_steps: list[StepEntry]
    recipe_saves: list[SaveCount]


class RecipeListResponse(BaseModel):
    data: list[RecipeView]


class RecipeDetailResponse(BaseModel):
    data: RecipeView


class RecipeEditResponse(BaseModel):
    data: RecipeView
    ingredient_lines: list[str]
    step_lines: list[str]


class RecipeForm(BaseModel):
    """Raw create/edit submission; validated by services.recipes.validate_recipe_form."""
    title: str | None = None
    description: str | None = None
    servings: int | float | str | None = None
    prep_minutes: int | float | str | None = None
    cook_minutes: int | float | str | None = None
    tags: str | list[str] | None = None
    difficulty: str | None = None
    hero_image_url: str | None = None
    ingredients: list[str] = []
    steps: list[str] = []


class RecipeDraft(BaseModel):
    """A validated submission, ready for a store to persist."""
    title: str
    description: str
    servings: int
    prep_minutes: int
    cook_minutes: int
    tags: list[str] = []
    difficulty: Difficulty
    hero_image_url: str | None = None
    recipe_ingredients: list[IngredientEntry]
    recipe_steps: list[StepEntry]


class SaveStatusResponse(BaseModel):
    saved: bool


class SavedIdsResponse(BaseModel):
    data: list[str]
