from sqlalchemy import (
    Column, String, Integer, Boolean, Text, DateTime, ForeignKey, Uuid,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from tastebase.database import Base, BaseMixin


class Recipe(BaseMixin, Base):
    __tablename__ = "recipes"

    author_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(Text)
    hero_image_url = Column(String)
    servings = Column(Integer)
    prep_minutes = Column(Integer)
    cook_minutes = Column(Integer)
    difficulty = Column(String)
    is_published = Column(Boolean, default=False, nullable=False, index=True)
    published_at = Column(DateTime(timezone=True), index=True)

    author = relationship("User", back_populates="recipes")
    recipe_ingredients = relationship(
        "RecipeIngredient", back_populates="recipe", cascade="all, delete-orphan",
    )
    recipe_steps = relationship(
        "RecipeStep", back_populates="recipe", cascade="all, delete-orphan",
    )
    recipe_tags = relationship(
        "RecipeTag", back_populates="recipe", cascade="all, delete-orphan",
        order_by="RecipeTag.position",
    )
    saves = relationship("RecipeSave", back_populates="recipe", cascade="all, delete-orphan")

    @property
    def tags(self) -> list[str]:
        return [t.name for t in self.recipe_tags]


class RecipeIngredient(BaseMixin, Base):
    __tablename__ = "recipe_ingredients"

    recipe_id = Column(Uuid(as_uuid=True), ForeignKey("recipes.id"), nullable=False, index=True)
    position = Column(Integer, nullable=False)
    quantity = Column(String)
    unit = Column(String)
    name = Column(String, nullable=False, index=True)
    note = Column(String)

    recipe = relationship("Recipe", back_populates="recipe_ingredients")


class RecipeTag(BaseMixin, Base):
    __tablename__ = "recipe_tags"

    recipe_id = Column(Uuid(as_uuid=True), ForeignKey("recipes.id"), nullable=False, index=True)
    position = Column(Integer, nullable=False)
    name = Column(String, nullable=False, index=True)

    recipe = relationship("Recipe", back_populates="recipe_tags")


class RecipeStep(BaseMixin, Base):
    __tablename__ = "recipe_steps"

    recipe_id = Column(Uuid(as_uuid=True), ForeignKey("recipes.id"), nullable=False, index=True)
    position = Column(Integer, nullable=False)
    instruction = Column(Text, nullable=False)

    recipe = relationship("Recipe", back_populates="recipe_steps")


class RecipeSave(BaseMixin, Base):
    __tablename__ = "recipe_saves"
    __table_args__ = (UniqueConstraint("user_id", "recipe_id", name="uq_recipe_saves_user_recipe"),)

    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    recipe_id = Column(Uuid(as_uuid=True), ForeignKey("recipes.id"), nullable=False, index=True)

    user = relationship("User", back_populates="saves")
    recipe = relationship("Recipe", back_populates="saves")
