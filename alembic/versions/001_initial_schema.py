"""Initial schema: users, recipes, ingredients, tags, steps, saves

Revision ID: 001
Revises:
Create Date: 2026-10-18 00:00:00.000000
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    # --- users ---
    op.create_table(
        "users",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("email", sa.String, unique=True, index=True, nullable=False),
        sa.Column("full_name", sa.String),
        sa.Column("username", sa.String, unique=True, index=True),
        sa.Column("avatar_url", sa.String),
        sa.Column("bio", sa.Text),
        sa.Column("password_hash", sa.String),
        *_timestamps(),
    )

    # --- recipes ---
    op.create_table(
        "recipes",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("author_id", UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False, index=True),
        sa.Column("title", sa.String, nullable=False),
        sa.Column("description", sa.Text),
        sa.Column("hero_image_url", sa.String),
        sa.Column("servings", sa.Integer),
        sa.Column("prep_minutes", sa.Integer),
        sa.Column("cook_minutes", sa.Integer),
        sa.Column("difficulty", sa.String),
        sa.Column("is_published", sa.Boolean, nullable=False, server_default=sa.false(), index=True),
        sa.Column("published_at", sa.DateTime(timezone=True), index=True),
        *_timestamps(),
    )

    # --- recipe_ingredients ---
    op.create_table(
        "recipe_ingredients",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("recipe_id", UUID(as_uuid=True), sa.ForeignKey("recipes.id"), nullable=False, index=True),
        sa.Column("position", sa.Integer, nullable=False),
        sa.Column("quantity", sa.String),
        sa.Column("unit", sa.String),
        sa.Column("name", sa.String, nullable=False, index=True),
        sa.Column("note", sa.String),
        *_timestamps(),
    )

    # --- recipe_tags ---
    op.create_table(
        "recipe_tags",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("recipe_id", UUID(as_uuid=True), sa.ForeignKey("recipes.id"), nullable=False, index=True),
        sa.Column("position", sa.Integer, nullable=False),
        sa.Column("name", sa.String, nullable=False, index=True),
        *_timestamps(),
    )

    # --- recipe_steps ---
    op.create_table(
        "recipe_steps",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("recipe_id", UUID(as_uuid=True), sa.ForeignKey("recipes.id"), nullable=False, index=True),
        sa.Column("position", sa.Integer, nullable=False),
        sa.Column("instruction", sa.Text, nullable=False),
        *_timestamps(),
    )

    # --- recipe_saves ---
    op.create_table(
        "recipe_saves",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False, index=True),
        sa.Column("recipe_id", UUID(as_uuid=True), sa.ForeignKey("recipes.id"), nullable=False, index=True),
        *_timestamps(),
        sa.UniqueConstraint("user_id", "recipe_id", name="uq_recipe_saves_user_recipe"),
    )


def downgrade() -> None:
    op.drop_table("recipe_saves")
    op.drop_table("recipe_steps")
    op.drop_table("recipe_tags")
    op.drop_table("recipe_ingredients")
    op.drop_table("recipes")
    op.drop_table("users")
