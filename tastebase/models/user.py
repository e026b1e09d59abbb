from sqlalchemy import Column, String, Text
from sqlalchemy.orm import relationship

from tastebase.database import Base, BaseMixin


class User(BaseMixin, Base):
    __tablename__ = "users"

    email = Column(String, unique=True, index=True, nullable=False)
    full_name = Column(String)
    username = Column(String, unique=True, index=True)
    avatar_url = Column(String)
    bio = Column(Text)
    password_hash = Column(String)

    recipes = relationship("Recipe", back_populates="author", cascade="all, delete-orphan")
    saves = relationship("RecipeSave", back_populates="user", cascade="all, delete-orphan")
