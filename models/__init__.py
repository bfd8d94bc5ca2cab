"""
Models Package

Exports all database models and the db instance for use throughout the application.
"""

from .base import db, new_id, utcnow

from .household import Household
from .inventory import InventoryItem
from .recipe import Recipe, RecipeIngredient
from .mealplan import MealPlan, MealPlanItem
from .shopping import ShoppingListItem

__all__ = [
    'db',
    'new_id',
    'utcnow',
    'Household',
    'InventoryItem',
    'Recipe',
    'RecipeIngredient',
    'MealPlan',
    'MealPlanItem',
    'ShoppingListItem',
]
