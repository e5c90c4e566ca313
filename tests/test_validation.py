"""Tests for recipe draft validation and normalization."""

import pytest

from src.errors import RecipeValidationError
from src.models.enums import Difficulty, RecipeCategory, RecipeTag
from src.services.validation import (
    group_ingredients,
    parse_amount,
    renumber_instructions,
    revalidate,
    validate_recipe,
)


def _fields(exc_info) -> list[str]:
    return [issue.field for issue in exc_info.value.issues]


class TestValidateRecipe:
    def test_valid_draft(self, recipe_payload):
        recipe = validate_recipe(recipe_payload)

        assert recipe.title == "Spaghetti Carbonara"
        assert recipe.category == RecipeCategory.MAIN
        assert recipe.tags == [RecipeTag.QUICK]
        assert recipe.difficulty == Difficulty.MEDIUM
        assert recipe.cooking_time == 25
        assert recipe.servings == 4
        assert [i.name for i in recipe.ingredients] == ["Spaghetti", "Eier", "Guanciale"]
        assert recipe.ingredients[1].amount == 4.0
        assert recipe.ingredients[2].notes == "gewürfelt"

    def test_instructions_renumbered_in_input_order(self, recipe_payload):
        recipe = validate_recipe(recipe_payload)

        assert [s.step_number for s in recipe.instructions] == [1, 2, 3]
        assert recipe.instructions[0].description == "Pasta kochen."
        assert recipe.instructions[2].description == "Alles vermengen."

    def test_missing_title_and_category_reported_together(self, recipe_payload):
        recipe_payload["title"] = "   "
        del recipe_payload["category"]

        with pytest.raises(RecipeValidationError) as exc_info:
            validate_recipe(recipe_payload)

        assert set(_fields(exc_info)) == {"title", "category"}

    def test_unknown_category_rejected_not_dropped(self, recipe_payload):
        recipe_payload["category"] = "Main Course"

        with pytest.raises(RecipeValidationError) as exc_info:
            validate_recipe(recipe_payload)

        assert _fields(exc_info) == ["category"]
        assert "Hauptspeise" in exc_info.value.issues[0].message

    def test_unknown_tag_and_difficulty_rejected(self, recipe_payload):
        recipe_payload["tags"] = ["Schnell", "Keto"]
        recipe_payload["difficulty"] = "Hard"

        with pytest.raises(RecipeValidationError) as exc_info:
            validate_recipe(recipe_payload)

        assert set(_fields(exc_info)) == {"tags.1", "difficulty"}

    def test_duplicate_tags_collapsed(self, recipe_payload):
        recipe_payload["tags"] = ["Vegetarisch", "Schnell", "Vegetarisch"]

        recipe = validate_recipe(recipe_payload)

        assert recipe.tags == [RecipeTag.VEGETARIAN, RecipeTag.QUICK]

    def test_counts_coerced(self, recipe_payload):
        recipe_payload["cookingTime"] = "45"
        recipe_payload["servings"] = None

        recipe = validate_recipe(recipe_payload)

        assert recipe.cooking_time == 45
        assert recipe.servings == 0

    def test_negative_count_clamped(self, recipe_payload):
        recipe_payload["servings"] = -2

        assert validate_recipe(recipe_payload).servings == 0

    def test_unparseable_amount_becomes_none(self, recipe_payload):
        recipe_payload["ingredients"][0]["amount"] = "eine Prise"

        recipe = validate_recipe(recipe_payload)

        assert recipe.ingredients[0].amount is None

    def test_negative_amount_rejected(self, recipe_payload):
        recipe_payload["ingredients"][2]["amount"] = -1

        with pytest.raises(RecipeValidationError) as exc_info:
            validate_recipe(recipe_payload)

        assert _fields(exc_info) == ["ingredients.2.amount"]

    def test_long_ingredient_text_clipped_to_column_size(self, recipe_payload):
        recipe_payload["ingredients"][0].update(
            {"name": "S" * 300, "unit": "u" * 60, "notes": "n" * 600, "component": "c" * 120}
        )

        ingredient = validate_recipe(recipe_payload).ingredients[0]

        assert ingredient.name == "S" * 255
        assert ingredient.unit == "u" * 50
        assert ingredient.notes == "n" * 500
        assert ingredient.component == "c" * 100

    def test_long_title_clipped(self, recipe_payload):
        recipe_payload["title"] = "Carbonara " * 40

        recipe = validate_recipe(recipe_payload)

        assert len(recipe.title) <= 255
        assert recipe.title.startswith("Carbonara")

    def test_overlong_source_url_rejected(self, recipe_payload):
        recipe_payload["sourceUrl"] = "https://recipes.example.com/" + "a" * 2100

        with pytest.raises(RecipeValidationError) as exc_info:
            validate_recipe(recipe_payload)

        assert _fields(exc_info) == ["sourceUrl"]

    def test_blank_ingredients_and_steps_dropped(self, recipe_payload):
        recipe_payload["ingredients"].append({"name": "  ", "amount": 1})
        recipe_payload["instructions"].insert(1, {"description": ""})

        recipe = validate_recipe(recipe_payload)

        assert len(recipe.ingredients) == 3
        assert [s.step_number for s in recipe.instructions] == [1, 2, 3]

    def test_structural_error_reported(self, recipe_payload):
        recipe_payload["ingredients"] = "Spaghetti, Eier"

        with pytest.raises(RecipeValidationError) as exc_info:
            validate_recipe(recipe_payload)

        assert exc_info.value.issues[0].field.startswith("ingredients")

    def test_error_details_are_serializable(self, recipe_payload):
        recipe_payload["category"] = "Other"

        with pytest.raises(RecipeValidationError) as exc_info:
            validate_recipe(recipe_payload)

        body = exc_info.value.to_dict()
        assert body["error"]["code"] == "VALIDATION_FAILED"
        assert body["error"]["details"][0]["field"] == "category"

    def test_revalidate_is_stable(self, recipe_payload):
        recipe = validate_recipe(recipe_payload)

        assert revalidate(recipe) == recipe


class TestParseAmount:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (2, 2.0),
            ("1.5", 1.5),
            ("1,5", 1.5),
            ("1/2", 0.5),
            ("", None),
            (None, None),
            ("etwas", None),
            ("1/0", None),
            (float("nan"), None),
        ],
    )
    def test_parse_amount(self, value, expected):
        assert parse_amount(value) == expected


def test_renumber_instructions():
    steps = renumber_instructions(["Erst", None, "  ", "Dann"])

    assert [(s.step_number, s.description) for s in steps] == [(1, "Erst"), (2, "Dann")]


def test_group_ingredients_by_component(recipe_payload):
    recipe_payload["ingredients"] = [
        {"name": "Mehl", "component": "Teig"},
        {"name": "Salz"},
        {"name": "Butter", "component": "Teig"},
        {"name": "Zucker", "component": "Füllung"},
    ]
    recipe = validate_recipe(recipe_payload)

    groups = group_ingredients(recipe.ingredients)

    assert list(groups) == ["Teig", None, "Füllung"]
    assert [i.name for i in groups["Teig"]] == ["Mehl", "Butter"]
