"""
Constants Package

Exports validation whitelists, change event names and reason codes.
"""

from .validation import VALID_MEAL_TYPES, MAX_LENGTHS
from .events import (
    INVENTORY_UPDATED,
    MEAL_PLAN_UPDATED,
    SHOPPING_LIST_ITEM_ADDED,
)
from . import reasons

__all__ = [
    'VALID_MEAL_TYPES',
    'MAX_LENGTHS',
    'INVENTORY_UPDATED',
    'MEAL_PLAN_UPDATED',
    'SHOPPING_LIST_ITEM_ADDED',
    'reasons',
]
