"""
Inventory Model

Contains the InventoryItem model. Quantity is the only column the
provisioning engine ever writes: cooking debits it and purchase
reconciliation credits it (or creates the row).
"""

from .base import db, new_id


class InventoryItem(db.Model):
    """Stock of one ingredient held by a household."""
    id = db.Column(db.String(32), primary_key=True, default=new_id)
    household_id = db.Column(db.String(32), db.ForeignKey('household.id', ondelete='CASCADE'), nullable=False, index=True)
    name = db.Column(db.String(200), nullable=False, index=True)
    quantity = db.Column(db.Float, nullable=False, default=0.0)
    unit = db.Column(db.String(20), nullable=False)
    category = db.Column(db.String(50), nullable=False, default='Uncategorized')

    __table_args__ = (
        db.CheckConstraint('quantity >= 0', name='ck_inventory_item_quantity_non_negative'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'householdId': self.household_id,
            'name': self.name,
            'quantity': self.quantity,
            'unit': self.unit,
            'category': self.category,
        }
