"""
Household Model

The tenant boundary. Every inventory row, recipe, meal plan and shopping
entry is scoped to exactly one household.
"""

from .base import db, new_id


class Household(db.Model):
    """A household sharing one inventory, meal plan and shopping list."""
    id = db.Column(db.String(32), primary_key=True, default=new_id)
    name = db.Column(db.String(100), nullable=False)
