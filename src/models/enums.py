"""Closed enumerations for recipe fields.

The values are the labels the extraction capability is instructed to emit and
the UI displays, so they stay in German.
"""

from enum import Enum


class RecipeCategory(str, Enum):
    """Course a recipe belongs to."""

    MAIN = "Hauptspeise"
    SALAD = "Salat"
    DESSERT = "Dessert"
    SOUP = "Suppe"
    SIDE = "Beilage"
    BREAKFAST = "Frühstück"
    SNACK = "Snack"


class RecipeTag(str, Enum):
    """Dietary and character tags."""

    VEGETARIAN = "Vegetarisch"
    VEGAN = "Vegan"
    GLUTEN_FREE = "Glutenfrei"
    LACTOSE_FREE = "Laktosefrei"
    QUICK = "Schnell"
    HEALTHY = "Gesund"
    SPICY = "Würzig"
    SWEET = "Süß"


class Difficulty(str, Enum):
    """Preparation difficulty."""

    EASY = "Einfach"
    MEDIUM = "Mittel"
    HARD = "Schwer"


def enum_values(enum_cls: type[Enum]) -> list[str]:
    """List the wire values of an enumeration in declaration order."""
    return [member.value for member in enum_cls]
