"""
Week Aggregation Service

Merges ingredient demand across a meal plan's uncooked meals, keyed by the
linked inventory item, and compares the totals with current stock.
This is a pure read: nothing is written to the database.
"""

from dataclasses import dataclass, field
from typing import Optional

from constants import reasons
from models import InventoryItem, MealPlan, MealPlanItem
from .errors import NotFoundError
from .quantities import UnitMismatchError, combine, is_sufficient, shortfall, units_match


@dataclass
class Requirement:
    """Total demand for one inventory item across the week."""
    inventory_item_id: str
    name: str
    category: Optional[str]
    unit: str
    total_required: float = 0.0
    unit_mismatch: bool = False
    meals: list = field(default_factory=list)


@dataclass
class RequirementReport:
    requirement: Requirement
    available: float
    sufficient: bool
    shortfall: float
    inventory_unit: Optional[str] = None

    @property
    def inventory_unit_mismatch(self):
        return self.inventory_unit is not None and not units_match(self.requirement.unit, self.inventory_unit)

    def to_dict(self):
        req = self.requirement
        return {
            'inventoryItemId': req.inventory_item_id,
            'name': req.name,
            'category': req.category,
            'unit': req.unit,
            'totalRequired': req.total_required,
            'unitMismatch': req.unit_mismatch or self.inventory_unit_mismatch,
            'inventoryUnit': self.inventory_unit,
            'inventoryUnitMismatch': self.inventory_unit_mismatch,
            'meals': list(req.meals),
            'available': self.available,
            'sufficient': self.sufficient,
            'shortfall': self.shortfall,
        }


def pending_meals(meal_plan_id):
    """Meals still to be cooked that have a recipe assigned."""
    return (MealPlanItem.query
            .filter(MealPlanItem.meal_plan_id == meal_plan_id,
                    MealPlanItem.cooked.is_(False),
                    MealPlanItem.recipe_id.isnot(None))
            .order_by(MealPlanItem.date, MealPlanItem.meal_type)
            .all())


def aggregate_requirements(meals):
    """
    Accumulate linked ingredient demand across meals.

    Returns (requirements keyed by inventory item id, unlinked count).
    Cooked meals and meals without a recipe are ignored even if passed in.
    Unlinked ingredients cannot be priced against stock, so they are left
    out of the totals; only their number is reported.
    """
    requirements = {}
    unlinked = 0

    for meal in meals:
        if meal.cooked or meal.recipe is None:
            continue
        recipe = meal.recipe
        for ingredient in recipe.ingredients:
            if ingredient.inventory_item_id is None:
                unlinked += 1
                continue

            key = ingredient.inventory_item_id
            req = requirements.get(key)
            if req is None:
                item = ingredient.inventory_item
                req = Requirement(
                    inventory_item_id=key,
                    name=item.name if item is not None else '',
                    category=item.category if item is not None else None,
                    unit=ingredient.unit,
                )
                requirements[key] = req

            try:
                req.total_required, _ = combine(req.total_required, req.unit,
                                                ingredient.quantity, ingredient.unit)
            except UnitMismatchError:
                # Summed anyway, flagged as unreliable
                req.unit_mismatch = True
                req.total_required += ingredient.quantity

            req.meals.append({
                'mealId': meal.id,
                'date': meal.date.isoformat(),
                'mealType': meal.meal_type,
                'recipeName': recipe.name,
                'quantity': ingredient.quantity,
            })

    return requirements, unlinked


def build_report(requirements, inventory_lookup):
    """
    Compare each requirement with current stock.

    inventory_lookup(inventory_item_id) returns the household's row or None.
    """
    report = []
    for req in requirements.values():
        row = inventory_lookup(req.inventory_item_id)
        available = row.quantity if row is not None else 0.0
        report.append(RequirementReport(
            requirement=req,
            available=available,
            sufficient=is_sufficient(req.total_required, available),
            shortfall=shortfall(req.total_required, available),
            inventory_unit=row.unit if row is not None else None,
        ))
    return report


def household_inventory_lookup(household_id):
    def lookup(inventory_item_id):
        return InventoryItem.query.filter_by(id=inventory_item_id, household_id=household_id).first()
    return lookup


def get_meal_plan(household_id, meal_plan_id):
    plan = MealPlan.query.filter_by(id=meal_plan_id, household_id=household_id).first()
    if plan is None:
        raise NotFoundError('Meal plan not found', reasons.MEAL_PLAN_NOT_FOUND)
    return plan


def week_shortfall_report(household_id, meal_plan_id):
    """Aggregate the plan's uncooked meals and price them against stock."""
    plan = get_meal_plan(household_id, meal_plan_id)
    requirements, unlinked = aggregate_requirements(pending_meals(plan.id))
    report = build_report(requirements, household_inventory_lookup(household_id))
    return plan, report, unlinked


def check_meal_plan_availability(household_id, meal_plan_id):
    """Ingredient availability for every uncooked meal in a weekly plan."""
    plan, report, unlinked = week_shortfall_report(household_id, meal_plan_id)
    sufficient = sum(1 for r in report if r.sufficient)
    return {
        'mealPlanId': plan.id,
        'weekStart': plan.week_start.isoformat(),
        'weekEnd': plan.week_end.isoformat(),
        'ingredientAvailability': [r.to_dict() for r in report],
        'summary': {
            'totalIngredients': len(report),
            'sufficientIngredients': sufficient,
            'insufficientIngredients': len(report) - sufficient,
            'unlinkedIngredients': unlinked,
            # Unlinked ingredients are missing from the totals above
            'unlinkedExcluded': unlinked > 0,
        },
    }
