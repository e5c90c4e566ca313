"""Recipe schemas.

``RecipeDraft`` is the untrusted shape produced by one extraction attempt or
edited by the user before confirming. Its scalar fields accept anything so
that bad values reach the validator, which reports them, instead of failing
to parse. ``ValidatedRecipe`` is the enforced shape.
"""

from datetime import datetime
from typing import Any

from pydantic import ConfigDict, Field

from src.models.enums import Difficulty, RecipeCategory, RecipeTag
from src.schemas.base import CamelModel

# Column sizes of the recipe tables
TITLE_MAX = 255
NAME_MAX = 255
UNIT_MAX = 50
NOTES_MAX = 500
COMPONENT_MAX = 100
URL_MAX = 2048

# --- Draft (untrusted) ---


class IngredientDraft(CamelModel):
    """Ingredient as emitted by the extraction capability."""

    model_config = ConfigDict(extra="ignore")

    name: Any = None
    amount: Any = None
    unit: Any = None
    notes: Any = None
    component: Any = None


class InstructionDraft(CamelModel):
    """Instruction step as emitted; the step number is advisory."""

    model_config = ConfigDict(extra="ignore")

    step_number: Any = None
    description: Any = None


class RecipeDraft(CamelModel):
    """Unvalidated structured output of one extraction attempt."""

    model_config = ConfigDict(extra="ignore")

    title: Any = None
    description: Any = None
    category: Any = None
    tags: list[Any] = Field(default_factory=list)
    cooking_time: Any = None
    servings: Any = None
    difficulty: Any = None
    source_url: Any = None
    image_url: Any = None
    ingredients: list[IngredientDraft] = Field(default_factory=list)
    instructions: list[InstructionDraft] = Field(default_factory=list)


# --- Validated ---


class ValidatedIngredient(CamelModel):
    name: str = Field(..., min_length=1, max_length=NAME_MAX)
    amount: float | None = Field(None, ge=0)
    unit: str | None = Field(None, max_length=UNIT_MAX)
    notes: str | None = Field(None, max_length=NOTES_MAX)
    component: str | None = Field(None, max_length=COMPONENT_MAX)


class ValidatedInstruction(CamelModel):
    step_number: int = Field(..., ge=1)
    description: str = Field(..., min_length=1)


class ValidatedRecipe(CamelModel):
    """Recipe after schema enforcement and instruction renumbering."""

    title: str = Field(..., min_length=1, max_length=TITLE_MAX)
    description: str = ""
    category: RecipeCategory
    tags: list[RecipeTag] = Field(default_factory=list)
    cooking_time: int = Field(0, ge=0)
    servings: int = Field(0, ge=0)
    difficulty: Difficulty | None = None
    source_url: str | None = Field(None, max_length=URL_MAX)
    image_url: str | None = Field(None, max_length=URL_MAX)
    ingredients: list[ValidatedIngredient] = Field(default_factory=list)
    instructions: list[ValidatedInstruction] = Field(default_factory=list)


# --- Persisted ---


class RecipeIngredientResponse(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    amount: float | None
    unit: str | None
    notes: str | None
    component: str | None


class RecipeInstructionResponse(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    step_number: int
    description: str


class RecipeResponse(CamelModel):
    """Saved recipe with ingredients and instructions."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    title: str
    description: str | None
    category: RecipeCategory
    tags: list[RecipeTag]
    cooking_time: int
    servings: int
    difficulty: Difficulty | None
    source_url: str | None
    image_url: str | None
    ingredients: list[RecipeIngredientResponse]
    instructions: list[RecipeInstructionResponse]
    created_at: datetime
    updated_at: datetime


class RecipeListResponse(CamelModel):
    """Recipe list item (without ingredients and instructions)."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    category: RecipeCategory
    tags: list[RecipeTag]
    cooking_time: int
    difficulty: Difficulty | None
    image_url: str | None
    created_at: datetime
