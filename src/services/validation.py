"""Schema validation and normalization of extracted recipe drafts.

Enumerated fields are checked against their closed sets and unknown values
are rejected rather than dropped, so drift in the extractor's output shows up
as a validation error. Counts and amounts are coerced, and instructions are
renumbered 1..N in input order; the extractor's step numbers are advisory.
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from fractions import Fraction
from typing import Any

from pydantic import ValidationError

from src.errors import RecipeValidationError
from src.models.enums import Difficulty, RecipeCategory, RecipeTag
from src.schemas.recipe import (
    COMPONENT_MAX,
    NAME_MAX,
    NOTES_MAX,
    TITLE_MAX,
    UNIT_MAX,
    URL_MAX,
    IngredientDraft,
    RecipeDraft,
    ValidatedIngredient,
    ValidatedInstruction,
    ValidatedRecipe,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValidationIssue:
    """One violation of the recipe contract."""

    field: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"field": self.field, "message": self.message}


def _clean_text(value: Any) -> str | None:
    """Trim a value to text, mapping blanks and non-scalars to None."""
    if value is None or isinstance(value, (dict, list)):
        return None
    text = str(value).strip()
    return text or None


def _clip(value: Any, limit: int) -> str | None:
    text = _clean_text(value)
    return text[:limit].rstrip() if text else None


def _issues_from(error: ValidationError, prefix: str = "") -> list[ValidationIssue]:
    return [
        ValidationIssue(prefix + ".".join(str(p) for p in err["loc"]), err["msg"])
        for err in error.errors()
    ]


def _coerce_count(value: Any) -> int:
    """Coerce to a non-negative int, 0 when absent or unparseable."""
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        try:
            number = float(str(value).strip().replace(",", "."))
        except ValueError:
            return 0
    if math.isnan(number) or math.isinf(number):
        return 0
    return max(int(number), 0)


def parse_amount(value: Any) -> float | None:
    """Parse an ingredient amount. Returns None for blank or unreadable input.

    Accepts numbers, decimal strings with either separator ("1.5", "1,5")
    and simple fractions ("1/2").
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).strip().replace(",", ".")
        if not text:
            return None
        try:
            number = float(Fraction(text)) if "/" in text else float(text)
        except (ValueError, ZeroDivisionError):
            return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def _check_enum(
    enum_cls: type[Enum], value: Any, field: str, issues: list[ValidationIssue]
) -> Enum | None:
    if isinstance(value, enum_cls):
        return value
    text = _clean_text(value)
    if text is None:
        return None
    try:
        return enum_cls(text)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        issues.append(ValidationIssue(field, f"'{text}' is not one of: {allowed}"))
        return None


def _validate_ingredients(
    drafts: list[IngredientDraft], issues: list[ValidationIssue]
) -> list[ValidatedIngredient]:
    ingredients = []
    for index, draft in enumerate(drafts):
        name = _clip(draft.name, NAME_MAX)
        if name is None:
            continue
        amount = parse_amount(draft.amount)
        if amount is not None and amount < 0:
            issues.append(
                ValidationIssue(f"ingredients.{index}.amount", "amount must not be negative")
            )
            continue
        try:
            ingredient = ValidatedIngredient(
                name=name,
                amount=amount,
                unit=_clip(draft.unit, UNIT_MAX),
                notes=_clip(draft.notes, NOTES_MAX),
                component=_clip(draft.component, COMPONENT_MAX),
            )
        except ValidationError as e:
            issues.extend(_issues_from(e, f"ingredients.{index}."))
            continue
        ingredients.append(ingredient)
    return ingredients


def renumber_instructions(descriptions: list[Any]) -> list[ValidatedInstruction]:
    """Drop empty steps and number the rest 1..N, keeping their order."""
    steps = [text for text in (_clean_text(d) for d in descriptions) if text]
    return [
        ValidatedInstruction(step_number=number, description=text)
        for number, text in enumerate(steps, start=1)
    ]


def parse_draft(payload: dict[str, Any]) -> RecipeDraft:
    """Load raw extractor output into a draft.

    Only structural problems fail here (e.g. ``ingredients`` not a list);
    bad values are left for ``validate_recipe`` to report.
    """
    try:
        return RecipeDraft.model_validate(payload)
    except ValidationError as e:
        raise RecipeValidationError(_issues_from(e)) from e


def validate_recipe(draft: RecipeDraft | dict[str, Any]) -> ValidatedRecipe:
    """Enforce the recipe contract on an untrusted draft.

    Raises:
        RecipeValidationError: with every issue found, never a partial result.
    """
    if not isinstance(draft, RecipeDraft):
        draft = parse_draft(draft)

    issues: list[ValidationIssue] = []

    title = _clip(draft.title, TITLE_MAX)
    if title is None:
        issues.append(ValidationIssue("title", "title is required"))

    category = _check_enum(RecipeCategory, draft.category, "category", issues)
    if category is None and _clean_text(draft.category) is None:
        issues.append(ValidationIssue("category", "category is required"))

    difficulty = _check_enum(Difficulty, draft.difficulty, "difficulty", issues)

    tags: list[RecipeTag] = []
    for index, raw_tag in enumerate(draft.tags):
        tag = _check_enum(RecipeTag, raw_tag, f"tags.{index}", issues)
        if tag is not None and tag not in tags:
            tags.append(tag)

    ingredients = _validate_ingredients(draft.ingredients, issues)
    instructions = renumber_instructions([step.description for step in draft.instructions])

    source_url = _clean_text(draft.source_url)
    image_url = _clean_text(draft.image_url)
    for field, url in (("sourceUrl", source_url), ("imageUrl", image_url)):
        if url and len(url) > URL_MAX:
            issues.append(ValidationIssue(field, f"must be at most {URL_MAX} characters"))

    if issues:
        logger.info(f"Recipe draft rejected with {len(issues)} issue(s)")
        raise RecipeValidationError(issues)

    try:
        return ValidatedRecipe(
            title=title,
            description=_clean_text(draft.description) or "",
            category=category,
            tags=tags,
            cooking_time=_coerce_count(draft.cooking_time),
            servings=_coerce_count(draft.servings),
            difficulty=difficulty,
            source_url=source_url,
            image_url=image_url,
            ingredients=ingredients,
            instructions=instructions,
        )
    except ValidationError as e:
        logger.info(f"Recipe draft rejected: {e.error_count()} field(s) out of range")
        raise RecipeValidationError(_issues_from(e)) from e


def revalidate(recipe: ValidatedRecipe) -> ValidatedRecipe:
    """Run an already validated recipe through validation again."""
    return validate_recipe(recipe.model_dump(mode="json"))


def group_ingredients(
    ingredients: list[ValidatedIngredient],
) -> dict[str | None, list[ValidatedIngredient]]:
    """Group ingredients by component in first-seen order.

    Ingredients without a component land in the implicit default group,
    keyed by None.
    """
    groups: dict[str | None, list[ValidatedIngredient]] = {}
    for ingredient in ingredients:
        groups.setdefault(ingredient.component, []).append(ingredient)
    return groups
