"""LLM prompt templates and tool schema for recipe extraction and image enhancement."""

from src.models.enums import Difficulty, RecipeCategory, RecipeTag, enum_values

RECIPE_TOOL_NAME = "record_recipe"

_NULLABLE_STRING = {"type": ["string", "null"]}

RECIPE_TOOL = {
    "name": RECIPE_TOOL_NAME,
    "description": "Record the structured recipe extracted from the source.",
    "input_schema": {
        "type": "object",
        "properties": {
            "title": {"type": "string"},
            "description": {"type": "string"},
            "category": {"type": "string", "enum": enum_values(RecipeCategory)},
            "tags": {
                "type": "array",
                "items": {"type": "string", "enum": enum_values(RecipeTag)},
            },
            "cookingTime": {"type": "integer", "minimum": 0, "description": "Total minutes"},
            "servings": {"type": "integer", "minimum": 0},
            "difficulty": {"type": "string", "enum": enum_values(Difficulty)},
            "imageUrl": {
                **_NULLABLE_STRING,
                "description": "Absolute URL of a photo of the finished dish, if one exists",
            },
            "sourceUrl": _NULLABLE_STRING,
            "ingredients": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {
                        "name": {"type": "string"},
                        "amount": {"type": ["number", "null"], "minimum": 0},
                        "unit": {**_NULLABLE_STRING, "description": "e.g. 'g', 'ml', 'Tasse'"},
                        "notes": {
                            **_NULLABLE_STRING,
                            "description": "e.g. 'optional', 'nach Geschmack'",
                        },
                        "component": {
                            **_NULLABLE_STRING,
                            "description": "Part of the dish, e.g. 'Teig', 'Füllung'",
                        },
                    },
                    "required": ["name", "amount", "unit", "notes", "component"],
                },
            },
            "instructions": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {
                        "stepNumber": {"type": "integer", "minimum": 1},
                        "description": {"type": "string"},
                    },
                    "required": ["stepNumber", "description"],
                },
            },
        },
        "required": [
            "title",
            "description",
            "category",
            "tags",
            "cookingTime",
            "servings",
            "difficulty",
            "ingredients",
            "instructions",
        ],
    },
}

_EXTRACTION_GUIDELINES = f"""You are a recipe expert. Extract structured recipe data and record it with the {RECIPE_TOOL_NAME} tool.

Guidelines:
- Capture ingredients and their amounts exactly; amounts are plain numbers, units go in "unit"
- Group ingredients by component (e.g. "Teig", "Füllung") only when the source does
- Estimate cooking time (minutes) and servings realistically when not stated
- Write title, description and instructions in German, as clear step-by-step instructions
- Use only these categories: {", ".join(enum_values(RecipeCategory))}
- Use only these tags: {", ".join(enum_values(RecipeTag))}
- Use only these difficulties: {", ".join(enum_values(Difficulty))}
- Do not include citations or reference markers in any text"""

LOCATOR_SYSTEM_PROMPT = f"""{_EXTRACTION_GUIDELINES}
- If the page shows a photo of the dish, set "imageUrl" to its absolute URL, preferring the listed image candidates
- Set "sourceUrl" to the page URL given in the request"""

IMAGE_SYSTEM_PROMPT = f"""{_EXTRACTION_GUIDELINES}
- The recipe may be handwritten, printed or a screenshot
- Set "imageUrl" and "sourceUrl" to null; they cannot be read from an image
- If the image does not contain a recipe, record an empty title and no ingredients or instructions"""

IMAGE_USER_PROMPT = "Extract the recipe from this image."


def get_locator_prompt(uri: str, page_text: str, image_candidates: list[str]) -> str:
    """Generate the user prompt for extracting a recipe from a fetched page."""
    images = "\n".join(f"- {url}" for url in image_candidates) or "- none found"
    return f"""Extract the best-matching recipe from this page.

Page URL: {uri}

Image candidates:
{images}

Page content:
{page_text}"""


ENHANCEMENT_INSTRUCTIONS = """You are a food photographer creating recipe images for cookbooks and blogs.
- Improve the image for an appealing presentation
- Use high-quality lighting and an attractive composition
- Add relevant ingredients and garnishes
- If the image is a photo of a cookbook page, isolate the dish from the page (no text)"""


def get_enhancement_prompt(title: str | None = None, ingredients: list[str] | None = None) -> str:
    """Generate the prompt for re-rendering a recipe image."""
    prompt = f"{ENHANCEMENT_INSTRUCTIONS}\n\nImprove the following image."
    if title:
        prompt += f' The dish is called "{title}".'
    names = [name.strip() for name in ingredients or [] if name and name.strip()]
    if names:
        prompt += f" The ingredients are: {', '.join(names)}."
    return prompt
