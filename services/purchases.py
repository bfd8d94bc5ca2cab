"""
Purchase Reconciliation Service

Moves completed shopping list entries into inventory. Each entry is handled
on its own: merged into an existing item with the same name (ignoring case)
and unit, created as a new item, or skipped with a reason. One entry failing
never stops the rest of the batch.
"""

import logging

from flask import current_app
from sqlalchemy import update

from constants import INVENTORY_UPDATED, reasons
from models import db, InventoryItem, ShoppingListItem
from utils import clean_item_name, clean_unit
from .errors import InvalidRequestError
from .notifier import emit
from .quantities import units_match

logger = logging.getLogger(__name__)


def _requested_ids(household_id, item_ids, convert_all_completed):
    if item_ids is not None:
        if isinstance(item_ids, (str, bytes)) or not isinstance(item_ids, (list, tuple, set)):
            raise InvalidRequestError('Item IDs must be a list', reasons.INVALID_ITEM_IDS)
        if not all(isinstance(item_id, str) for item_id in item_ids):
            raise InvalidRequestError('All item IDs must be strings', reasons.INVALID_ITEM_IDS)
        return list(item_ids)

    if convert_all_completed:
        rows = (ShoppingListItem.query
                .with_entities(ShoppingListItem.id)
                .filter(ShoppingListItem.household_id == household_id,
                        ShoppingListItem.completed.is_(True))
                .all())
        return [row.id for row in rows]

    raise InvalidRequestError(
        'Either provide itemIds or set convertAllCompleted to true',
        reasons.INVALID_CONVERSION_REQUEST,
    )


def find_inventory_by_name(household_id, name, lock=False):
    """
    Existing inventory item whose name matches ignoring case, or None.

    Names are compared with str.casefold() rather than SQL lower(), which
    SQLite only applies to ASCII letters. With lock=True the matched row is
    then locked for update.
    """
    wanted = name.casefold()
    candidates = (InventoryItem.query
                  .with_entities(InventoryItem.id, InventoryItem.name)
                  .filter(InventoryItem.household_id == household_id)
                  .order_by(InventoryItem.id)
                  .all())
    match_id = next((row.id for row in candidates if row.name.casefold() == wanted), None)
    if match_id is None:
        return None

    query = InventoryItem.query.filter(InventoryItem.id == match_id)
    if lock:
        query = query.with_for_update().populate_existing()
    return query.first()


def _convert_one(household_id, entry):
    """
    Convert a single completed entry inside its own transaction.

    Returns ('created' | 'updated', inventory item id) on success or
    ('skipped', reason). The caller commits or rolls back.
    """
    name = clean_item_name(entry.name)
    unit = clean_unit(entry.unit)
    existing = find_inventory_by_name(household_id, name, lock=True)

    if existing is None:
        item = InventoryItem(
            household_id=household_id,
            name=name,
            quantity=entry.quantity if entry.quantity is not None else 1.0,
            unit=unit or current_app.config.get('DEFAULT_INVENTORY_UNIT', 'item'),
            category=entry.category or current_app.config.get('DEFAULT_CATEGORY', 'Uncategorized'),
        )
        db.session.add(item)
        db.session.flush()
        outcome = ('created', item.id)
    elif entry.quantity is None:
        # Stock quantity is never null; a row at 0 still takes the credit
        return 'skipped', reasons.SKIP_CANNOT_COMBINE
    elif unit is not None and not units_match(unit, existing.unit):
        return 'skipped', reasons.SKIP_UNIT_MISMATCH
    else:
        # Increment in the database so two conversions cannot lose a credit
        db.session.execute(
            update(InventoryItem)
            .where(InventoryItem.id == existing.id)
            .values(quantity=InventoryItem.quantity + entry.quantity)
            .execution_options(synchronize_session=False)
        )
        outcome = ('updated', existing.id)

    db.session.delete(entry)
    return outcome


def convert_purchases(household_id, item_ids=None, convert_all_completed=False, notifier=None):
    """
    Convert completed shopping list entries into inventory.

    Pass either explicit item_ids or convert_all_completed=True. Requested
    entries that are not completed are quietly left out.

    Returns a dict with 'converted', 'skipped', 'errors' and 'summary'.
    Raises InvalidRequestError for a malformed request or when nothing
    completed was found to convert.
    """
    requested = _requested_ids(household_id, item_ids, convert_all_completed)
    if not requested:
        raise InvalidRequestError('No items to convert', reasons.NO_ITEMS_TO_CONVERT)

    order = {item_id: index for index, item_id in enumerate(requested)}
    entries = (ShoppingListItem.query
               .filter(ShoppingListItem.id.in_(list(order)),
                       ShoppingListItem.household_id == household_id,
                       ShoppingListItem.completed.is_(True))
               .all())
    entries.sort(key=lambda e: order[e.id])
    if not entries:
        raise InvalidRequestError(
            'No completed shopping list items found to convert',
            reasons.NO_COMPLETED_ITEMS_FOUND,
        )

    snapshots = [entry.to_dict() for entry in entries]
    converted = []
    skipped = []
    errors = []

    for entry, shopping_item in zip(entries, snapshots):
        try:
            kind, detail = _convert_one(household_id, entry)
            if kind == 'skipped':
                db.session.rollback()
                skipped.append({'shoppingItem': shopping_item, 'reason': detail})
                continue
            db.session.commit()
        except Exception as e:
            db.session.rollback()
            logger.exception("Error converting shopping item %s", shopping_item['id'])
            errors.append({
                'shoppingItemId': shopping_item['id'],
                'name': shopping_item['name'],
                'message': f'Failed to convert "{shopping_item["name"]}": {e}',
            })
            continue

        inventory_item = InventoryItem.query.filter_by(id=detail).first().to_dict()
        converted.append({
            'type': kind,
            'inventoryItem': inventory_item,
            'shoppingItem': shopping_item,
        })
        emit(notifier, household_id, INVENTORY_UPDATED, {
            'householdId': household_id,
            'item': inventory_item,
        })

    logger.info("Converted %d shopping item(s) for household %s (%d skipped, %d failed)",
                len(converted), household_id, len(skipped), len(errors))
    return {
        'converted': converted,
        'skipped': skipped,
        'errors': errors,
        'summary': {
            'totalRequested': len(requested),
            'totalFound': len(entries),
            'totalConverted': len(converted),
            'totalSkipped': len(skipped),
            'totalErrors': len(errors),
        },
    }
