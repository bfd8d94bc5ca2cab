"""
Shopping Model

Contains the ShoppingListItem model. Entries are created by users or by
the shopping list synthesizer and removed once converted into inventory.
"""

from .base import db, new_id


class ShoppingListItem(db.Model):
    """Shopping list entry; quantity and unit are optional."""
    id = db.Column(db.String(32), primary_key=True, default=new_id)
    household_id = db.Column(db.String(32), db.ForeignKey('household.id', ondelete='CASCADE'), nullable=False, index=True)
    name = db.Column(db.String(200), nullable=False, index=True)
    quantity = db.Column(db.Float, nullable=True)
    unit = db.Column(db.String(20), nullable=True)
    category = db.Column(db.String(50), nullable=True)
    completed = db.Column(db.Boolean, nullable=False, default=False, index=True)

    def to_dict(self):
        return {
            'id': self.id,
            'householdId': self.household_id,
            'name': self.name,
            'quantity': self.quantity,
            'unit': self.unit,
            'category': self.category,
            'completed': self.completed,
        }
