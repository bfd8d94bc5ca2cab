"""
Ingredient Availability Service

Answers "can this recipe be cooked right now?" by comparing each recipe
ingredient against a snapshot of the household inventory. Results are
recomputed on every call because stock can change between reads.
"""

from dataclasses import dataclass
from typing import Optional

from constants import reasons
from models import InventoryItem, Recipe
from .errors import NotFoundError
from .quantities import is_sufficient, shortfall, units_match


@dataclass
class AvailabilityRecord:
    """Verdict for one recipe ingredient. Derived, never persisted."""
    ingredient_id: str
    name: str
    required: float
    available: float
    unit: str
    sufficient: bool
    linked: bool
    inventory_item_id: Optional[str] = None
    inventory_unit: Optional[str] = None
    unit_mismatch: bool = False
    notes: Optional[str] = None

    @property
    def in_stock(self):
        """Linked and the inventory row exists."""
        return self.inventory_unit is not None

    @property
    def shortfall(self):
        return shortfall(self.required, self.available)

    def to_dict(self):
        return {
            'ingredientId': self.ingredient_id,
            'name': self.name,
            'required': self.required,
            'available': self.available,
            'unit': self.unit,
            'sufficient': self.sufficient,
            'shortfall': self.shortfall,
            'linked': self.linked,
            'unlinked': not self.linked,
            'inventoryItemId': self.inventory_item_id,
            'inventoryUnit': self.inventory_unit,
            'unitMismatch': self.unit_mismatch,
            'notes': self.notes,
        }


def load_inventory_snapshot(household_id):
    """Map inventory item id -> row for every item the household owns."""
    items = InventoryItem.query.filter_by(household_id=household_id).all()
    return {item.id: item for item in items}


def _ingredient_name(ingredient, row):
    if row is not None:
        return row.name
    linked_item = ingredient.inventory_item if ingredient.inventory_item_id else None
    if linked_item is not None:
        return linked_item.name
    return ingredient.notes or ''


def evaluate_ingredient(ingredient, snapshot):
    """Build the availability record for a single ingredient line."""
    if ingredient.inventory_item_id is None:
        return AvailabilityRecord(
            ingredient_id=ingredient.id,
            name=_ingredient_name(ingredient, None),
            required=ingredient.quantity,
            available=0.0,
            unit=ingredient.unit,
            sufficient=False,
            linked=False,
            notes=ingredient.notes,
        )

    row = snapshot.get(ingredient.inventory_item_id)
    available = row.quantity if row is not None else 0.0
    # The recipe's declared unit is the one reported and compared against;
    # a differing inventory unit is flagged, not converted.
    return AvailabilityRecord(
        ingredient_id=ingredient.id,
        name=_ingredient_name(ingredient, row),
        required=ingredient.quantity,
        available=available,
        unit=ingredient.unit,
        sufficient=is_sufficient(ingredient.quantity, available),
        linked=True,
        inventory_item_id=ingredient.inventory_item_id,
        inventory_unit=row.unit if row is not None else None,
        unit_mismatch=row is not None and not units_match(ingredient.unit, row.unit),
        notes=ingredient.notes,
    )


def evaluate_ingredients(ingredients, snapshot):
    """Availability records in ingredient order."""
    return [evaluate_ingredient(ingredient, snapshot) for ingredient in ingredients]


def summarize(records):
    """Roll a list of availability records up into the recipe-level verdict."""
    total = len(records)
    sufficient_count = sum(1 for r in records if r.sufficient)
    return {
        'totalIngredients': total,
        'availableCount': sum(1 for r in records if r.in_stock),
        'sufficientCount': sufficient_count,
        'canCookRecipe': sufficient_count == total,
        'missingCount': sum(1 for r in records if not r.sufficient),
        'unitMismatchCount': sum(1 for r in records if r.unit_mismatch),
    }


def check_recipe_availability(household_id, recipe_id):
    """
    Evaluate a stored recipe against the household's current inventory.

    Raises NotFoundError if the recipe does not exist in the household.
    Being short on ingredients is reported in the result, never raised.
    """
    recipe = Recipe.query.filter_by(id=recipe_id, household_id=household_id).first()
    if recipe is None:
        raise NotFoundError('Recipe not found', reasons.RECIPE_NOT_FOUND)

    records = evaluate_ingredients(recipe.ingredients, load_inventory_snapshot(household_id))
    return {
        'recipe': recipe.to_summary(),
        'householdId': household_id,
        'summary': summarize(records),
        'ingredients': [r.to_dict() for r in records],
        'missingIngredients': [r.to_dict() for r in records if not r.sufficient],
    }
