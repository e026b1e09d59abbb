from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse

from tastebase.schemas.auth import AuthUser
from tastebase.schemas.recipe import (
    RecipeDetailResponse, RecipeEditResponse, RecipeForm, RecipeListResponse,
    SavedIdsResponse, SaveStatusResponse, StoredRecipe,
)
from tastebase.services.ingredients import format_ingredient
from tastebase.services.recipes import FORM_ERROR_MESSAGE, validate_recipe_form
from tastebase.stores import RecipeStore, get_recipe_store
from tastebase.utils.auth import get_current_user, get_optional_user

router = APIRouter()


def _form_errors(errors: dict[str, str]) -> JSONResponse:
    return JSONResponse(status_code=400, content={"errors": errors, "message": FORM_ERROR_MESSAGE})


def _get_owned_recipe(store: RecipeStore, recipe_id: str, user: AuthUser) -> StoredRecipe:
    recipe = store.get(recipe_id)
    if not recipe or recipe.author_id != user.id:
        raise HTTPException(status_code=404, detail="Recipe not found")
    return recipe


@router.get("", response_model=RecipeListResponse)
def list_recipes(
    order_by: str = Query("published_at", alias="orderBy"),
    order_direction: str = Query("desc", alias="orderDirection"),
    limit: int | None = Query(None, ge=1, le=100),
    store: RecipeStore = Depends(get_recipe_store),
):
    if order_by != "published_at":
        raise HTTPException(status_code=400, detail=f"Unsupported orderBy: {order_by}")
    ascending = order_direction.lower() == "asc"
    return RecipeListResponse(data=store.list_published(ascending=ascending, limit=limit))


@router.post("", response_model=RecipeDetailResponse, status_code=201)
def create_recipe(
    form: RecipeForm,
    store: RecipeStore = Depends(get_recipe_store),
    current_user: AuthUser = Depends(get_current_user),
):
    draft, errors = validate_recipe_form(form)
    if errors:
        return _form_errors(errors)
    return RecipeDetailResponse(data=store.create(current_user.id, draft))


@router.get("/search", response_model=RecipeListResponse)
def search_recipes(q: str = "", store: RecipeStore = Depends(get_recipe_store)):
    return RecipeListResponse(data=store.search(q))


@router.get("/my-recipes", response_model=RecipeListResponse)
def my_recipes(
    store: RecipeStore = Depends(get_recipe_store),
    current_user: AuthUser = Depends(get_current_user),
):
    return RecipeListResponse(data=store.list_by_author(current_user.id))


@router.get("/saved", response_model=RecipeListResponse)
def saved_recipes(
    store: RecipeStore = Depends(get_recipe_store),
    current_user: AuthUser = Depends(get_current_user),
):
    return RecipeListResponse(data=store.list_saved(current_user.id))


@router.get("/saved-ids", response_model=SavedIdsResponse)
def saved_recipe_ids(
    store: RecipeStore = Depends(get_recipe_store),
    user: AuthUser | None = Depends(get_optional_user),
):
    if user is None:
        return SavedIdsResponse(data=[])
    return SavedIdsResponse(data=store.saved_ids(user.id))


@router.get("/{recipe_id}", response_model=RecipeDetailResponse)
def get_recipe(recipe_id: str, store: RecipeStore = Depends(get_recipe_store)):
    recipe = store.get_published(recipe_id)
    if not recipe:
        raise HTTPException(status_code=404, detail="Recipe not found")
    return RecipeDetailResponse(data=recipe)


@router.get("/{recipe_id}/edit", response_model=RecipeEditResponse)
def get_recipe_for_edit(
    recipe_id: str,
    store: RecipeStore = Depends(get_recipe_store),
    current_user: AuthUser = Depends(get_current_user),
):
    recipe = _get_owned_recipe(store, recipe_id, current_user)
    view = store.to_view(recipe)
    return RecipeEditResponse(
        data=view,
        ingredient_lines=[format_ingredient(i) for i in view.recipe_ingredients],
        step_lines=[s.instruction for s in view.recipe_steps],
    )


@router.put("/{recipe_id}", response_model=RecipeDetailResponse)
def update_recipe(
    recipe_id: str,
    form: RecipeForm,
    store: RecipeStore = Depends(get_recipe_store),
    current_user: AuthUser = Depends(get_current_user),
):
    recipe = _get_owned_recipe(store, recipe_id, current_user)
    draft, errors = validate_recipe_form(form, current_hero_image_url=recipe.hero_image_url)
    if errors:
        return _form_errors(errors)
    updated = store.replace(recipe.id, draft)
    if not updated:
        raise HTTPException(status_code=404, detail="Recipe not found")
    return RecipeDetailResponse(data=updated)


@router.delete("/{recipe_id}")
def delete_recipe(
    recipe_id: str,
    store: RecipeStore = Depends(get_recipe_store),
    current_user: AuthUser = Depends(get_current_user),
):
    recipe = _get_owned_recipe(store, recipe_id, current_user)
    store.delete(recipe.id)
    return {"success": True}


@router.get("/{recipe_id}/save", response_model=SaveStatusResponse)
def get_save_status(
    recipe_id: str,
    store: RecipeStore = Depends(get_recipe_store),
    current_user: AuthUser = Depends(get_current_user),
):
    return SaveStatusResponse(saved=store.is_saved(current_user.id, recipe_id))


@router.post("/{recipe_id}/save", response_model=SaveStatusResponse)
def save_recipe(
    recipe_id: str,
    store: RecipeStore = Depends(get_recipe_store),
    current_user: AuthUser = Depends(get_current_user),
):
    if not store.get_published(recipe_id):
        raise HTTPException(status_code=404, detail="Recipe not found")
    store.save(current_user.id, recipe_id)
    return SaveStatusResponse(saved=True)


@router.post("/{recipe_id}/unsave", response_model=SaveStatusResponse)
def unsave_recipe(
    recipe_id: str,
    store: RecipeStore = Depends(get_recipe_store),
    current_user: AuthUser = Depends(get_current_user),
):
    store.unsave(current_user.id, recipe_id)
    return SaveStatusResponse(saved=False)
