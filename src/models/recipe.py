"""Recipe, RecipeIngredient and RecipeInstruction models."""

from sqlalchemy import JSON, Column, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from src.database import Base
from src.models.mixins import SoftDeleteMixin, TimestampMixin


class Recipe(Base, TimestampMixin, SoftDeleteMixin):
    """A saved recipe. References at most one committed image."""

    __tablename__ = "recipes"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(50), nullable=False)
    tags = Column(JSON, nullable=False, default=list)
    cooking_time = Column(Integer, nullable=False, default=0)  # minutes
    servings = Column(Integer, nullable=False, default=0)
    difficulty = Column(String(50), nullable=True)
    source_url = Column(String(2048), nullable=True)
    image_url = Column(String(2048), nullable=True)

    # Relationships
    user = relationship("User", back_populates="recipes")
    ingredients = relationship(
        "RecipeIngredient",
        back_populates="recipe",
        cascade="all, delete-orphan",
        order_by="RecipeIngredient.position",
    )
    instructions = relationship(
        "RecipeInstruction",
        back_populates="recipe",
        cascade="all, delete-orphan",
        order_by="RecipeInstruction.step_number",
    )


class RecipeIngredient(Base, TimestampMixin):
    """Ingredient within a recipe, optionally grouped by component."""

    __tablename__ = "recipe_ingredients"

    id = Column(Integer, primary_key=True, index=True)
    recipe_id = Column(Integer, ForeignKey("recipes.id"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    name = Column(String(255), nullable=False)
    amount = Column(Float, nullable=True)
    unit = Column(String(50), nullable=True)
    notes = Column(String(500), nullable=True)
    component = Column(String(100), nullable=True)  # e.g. "Teig", "Füllung"

    recipe = relationship("Recipe", back_populates="ingredients")


class RecipeInstruction(Base, TimestampMixin):
    """A numbered preparation step."""

    __tablename__ = "recipe_instructions"

    id = Column(Integer, primary_key=True, index=True)
    recipe_id = Column(Integer, ForeignKey("recipes.id"), nullable=False, index=True)
    step_number = Column(Integer, nullable=False)
    description = Column(Text, nullable=False)

    recipe = relationship("Recipe", back_populates="instructions")
