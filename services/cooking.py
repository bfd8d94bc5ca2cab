"""
Cook Transaction Service

Marks a planned meal as cooked and debits its linked ingredients from
inventory, all or nothing.

The read-check-write sequence runs inside one database transaction:
the touched inventory rows are locked (SELECT ... FOR UPDATE), every debit
is a compare-and-set against the quantity that was validated, and the
cooked flag only flips if it is still false. If any guard misses because
another request got there first, the transaction is rolled back and the
whole cook is validated again against the committed state.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from flask import current_app
from sqlalchemy import update

from constants import INVENTORY_UPDATED, MEAL_PLAN_UPDATED, reasons
from models import db, utcnow, InventoryItem, MealPlan, MealPlanItem
from .availability import evaluate_ingredients
from .errors import ConcurrentModificationError, NotFoundError, PreconditionError
from .notifier import emit
from .quantities import floor_debit, is_sufficient

logger = logging.getLogger(__name__)


class StaleInventoryError(Exception):
    """A guarded write found the row changed since it was validated."""


@dataclass
class CookOutcome:
    cooked: bool
    meal: Optional[dict] = None
    inventory_update_count: int = 0
    reason: Optional[str] = None
    insufficient_ingredients: list = field(default_factory=list)
    updated_items: list = field(default_factory=list)
    unit_mismatches: list = field(default_factory=list)

    def to_dict(self):
        if self.cooked:
            return {
                'meal': self.meal,
                'inventoryUpdates': self.inventory_update_count,
                'unitMismatches': list(self.unit_mismatches),
            }
        return {'insufficientIngredients': list(self.insufficient_ingredients)}


def _load_meal(household_id, meal_plan_id, meal_id):
    plan = MealPlan.query.filter_by(id=meal_plan_id, household_id=household_id).first()
    if plan is None:
        raise NotFoundError('Meal plan not found', reasons.MEAL_PLAN_NOT_FOUND)

    meal = MealPlanItem.query.filter_by(id=meal_id, meal_plan_id=plan.id).first()
    if meal is None:
        raise NotFoundError('Meal not found', reasons.MEAL_NOT_FOUND)
    if meal.cooked:
        raise PreconditionError('Meal is already marked as cooked', reasons.MEAL_ALREADY_COOKED)
    if meal.recipe is None:
        raise PreconditionError('Cannot cook meal without a recipe', reasons.NO_RECIPE_ASSIGNED)
    return meal


def _lock_inventory(household_id, item_ids):
    """Lock the household's rows in id order so concurrent cooks cannot deadlock."""
    if not item_ids:
        return {}
    rows = (InventoryItem.query
            .filter(InventoryItem.id.in_(item_ids),
                    InventoryItem.household_id == household_id)
            .order_by(InventoryItem.id)
            .with_for_update()
            .populate_existing()
            .all())
    return {row.id: row for row in rows}


def _demand_by_item(records):
    """
    Sum the demand of linked records per inventory item.

    A recipe listing the same item on two lines needs both amounts at once.
    """
    demand = {}
    for record in records:
        entry = demand.get(record.inventory_item_id)
        if entry is None:
            demand[record.inventory_item_id] = {
                'name': record.name,
                'required': record.required,
                'available': record.available,
                'unit': record.unit,
                'in_stock': record.in_stock,
                'inventory_unit': record.inventory_unit,
                'unit_mismatch': record.unit_mismatch,
            }
        else:
            entry['required'] += record.required
            if record.unit_mismatch or record.unit != entry['unit']:
                entry['unit_mismatch'] = True
    return demand


def _attempt_cook(household_id, meal_plan_id, meal_id):
    meal = _load_meal(household_id, meal_plan_id, meal_id)

    linked = [i for i in meal.recipe.ingredients if i.inventory_item_id is not None]
    locked = _lock_inventory(household_id, sorted({i.inventory_item_id for i in linked}))
    demand = _demand_by_item(evaluate_ingredients(linked, locked))

    insufficient = [
        {
            'name': entry['name'],
            'required': entry['required'],
            'available': entry['available'],
            'unit': entry['unit'],
            'unitMismatch': entry['unit_mismatch'],
        }
        for entry in demand.values()
        if not entry['in_stock'] or not is_sufficient(entry['required'], entry['available'])
    ]
    if insufficient:
        db.session.rollback()
        logger.info("Refused to cook meal %s: %d ingredient(s) short", meal_id, len(insufficient))
        return CookOutcome(
            cooked=False,
            reason=reasons.INSUFFICIENT_INGREDIENTS,
            insufficient_ingredients=insufficient,
        )

    # Debited as written; units are never converted, only reported
    mismatches = [
        {
            'inventoryItemId': item_id,
            'name': entry['name'],
            'unit': entry['unit'],
            'inventoryUnit': entry['inventory_unit'],
        }
        for item_id, entry in demand.items()
        if entry['unit_mismatch']
    ]

    debits = {
        item_id: (locked[item_id].quantity, floor_debit(locked[item_id].quantity, entry['required']))
        for item_id, entry in demand.items()
    }

    for item_id, (observed, new_quantity) in debits.items():
        result = db.session.execute(
            update(InventoryItem)
            .where(InventoryItem.id == item_id, InventoryItem.quantity == observed)
            .values(quantity=new_quantity)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise StaleInventoryError(item_id)

    result = db.session.execute(
        update(MealPlanItem)
        .where(MealPlanItem.id == meal.id, MealPlanItem.cooked.is_(False))
        .values(cooked=True, cooked_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise StaleInventoryError(meal.id)

    db.session.commit()

    updated_items = [
        row.to_dict()
        for row in InventoryItem.query.filter(InventoryItem.id.in_(list(debits))).all()
    ]
    cooked_meal = MealPlanItem.query.filter_by(id=meal_id).first()
    return CookOutcome(
        cooked=True,
        meal=cooked_meal.to_dict(),
        inventory_update_count=len(debits),
        updated_items=updated_items,
        unit_mismatches=mismatches,
    )


def cook_meal(household_id, meal_plan_id, meal_id, notifier=None, max_attempts=None):
    """
    Cook a planned meal.

    Returns a CookOutcome. When any linked ingredient is short the outcome has
    cooked=False, reason INSUFFICIENT_INGREDIENTS and every short ingredient
    listed; nothing is written in that case.

    Raises NotFoundError / PreconditionError for a missing plan or meal, a meal
    already cooked, or a meal with no recipe, and ConcurrentModificationError
    if the cook lost the race to other writers on every attempt.
    """
    if max_attempts is None:
        max_attempts = current_app.config.get('COOK_MAX_ATTEMPTS', 3)

    for attempt in range(1, max_attempts + 1):
        try:
            outcome = _attempt_cook(household_id, meal_plan_id, meal_id)
        except StaleInventoryError as e:
            db.session.rollback()
            logger.warning("Cook of meal %s raced on %s (attempt %d/%d), re-validating",
                           meal_id, e, attempt, max_attempts)
            continue
        except Exception:
            db.session.rollback()
            raise

        if outcome.cooked:
            for item in outcome.updated_items:
                emit(notifier, household_id, INVENTORY_UPDATED, {
                    'householdId': household_id,
                    'item': item,
                })
            emit(notifier, household_id, MEAL_PLAN_UPDATED, {
                'householdId': household_id,
                'mealPlanId': meal_plan_id,
                'meal': outcome.meal,
                'action': 'cooked',
            })
            logger.info("Cooked meal %s, debited %d inventory item(s)",
                        meal_id, outcome.inventory_update_count)
            if outcome.unit_mismatches:
                logger.warning("Cooked meal %s with unit mismatches on %s", meal_id,
                               ", ".join(m['name'] for m in outcome.unit_mismatches))
        return outcome

    raise ConcurrentModificationError(details={'mealId': meal_id, 'attempts': max_attempts})
