"""
Shopping List Service

Turns a meal plan's shortfall into shopping list entries without
duplicating entries that are still open.
"""

import logging

from constants import SHOPPING_LIST_ITEM_ADDED
from models import db, ShoppingListItem
from .notifier import emit
from .week import week_shortfall_report

logger = logging.getLogger(__name__)


def find_open_item(household_id, name):
    """Incomplete shopping entry with exactly this name, or None."""
    return ShoppingListItem.query.filter_by(
        household_id=household_id, name=name, completed=False
    ).first()


def synthesize_shopping_list(household_id, meal_plan_id, notifier=None):
    """
    Add every item the plan is short of to the shopping list.

    Shortfall is recomputed against current stock on each call. An item that
    already has an open entry of the same name is skipped; the open entry is
    not topped up. Running this twice without buying anything adds nothing
    the second time.

    Returns {'itemsAdded', 'items', 'skipped'}.
    """
    _, report, _ = week_shortfall_report(household_id, meal_plan_id)

    added = []
    skipped = []
    try:
        for line in report:
            if line.shortfall <= 0:
                continue
            req = line.requirement
            if line.inventory_unit_mismatch:
                logger.warning("Shortfall for %s is in %s but stock is kept in %s",
                               req.name, req.unit, line.inventory_unit)

            # Autoflush makes entries added earlier in this loop visible here
            if find_open_item(household_id, req.name) is not None:
                skipped.append(req.name)
                continue

            item = ShoppingListItem(
                household_id=household_id,
                name=req.name,
                quantity=line.shortfall,
                unit=req.unit,
                category=req.category,
                completed=False,
            )
            db.session.add(item)
            added.append(item)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    items = [item.to_dict() for item in added]
    for item in items:
        emit(notifier, household_id, SHOPPING_LIST_ITEM_ADDED, {
            'householdId': household_id,
            'item': item,
        })

    logger.info("Shopping list for plan %s: added %d, already open %d",
                meal_plan_id, len(items), len(skipped))
    return {'itemsAdded': len(items), 'items': items, 'skipped': skipped}
