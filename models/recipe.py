"""
Recipe Models

Contains the Recipe and RecipeIngredient models. The engine only reads
these; an ingredient optionally links to the inventory item it consumes.
"""

from .base import db, new_id


class Recipe(db.Model):
    """Recipe with its ordered ingredient lines."""
    id = db.Column(db.String(32), primary_key=True, default=new_id)
    household_id = db.Column(db.String(32), db.ForeignKey('household.id', ondelete='CASCADE'), nullable=False, index=True)
    name = db.Column(db.String(200), nullable=False, index=True)
    servings = db.Column(db.Integer, nullable=True)
    ingredients = db.relationship(
        'RecipeIngredient', backref='recipe', lazy=True,
        cascade='all, delete-orphan', order_by='RecipeIngredient.position'
    )

    def to_summary(self):
        return {'id': self.id, 'name': self.name, 'servings': self.servings}


class RecipeIngredient(db.Model):
    """One ingredient line. Unlinked lines (no inventory_item_id) never match stock."""
    id = db.Column(db.String(32), primary_key=True, default=new_id)
    recipe_id = db.Column(db.String(32), db.ForeignKey('recipe.id', ondelete='CASCADE'), nullable=False, index=True)
    position = db.Column(db.Integer, nullable=False, default=0)
    quantity = db.Column(db.Float, nullable=False)
    unit = db.Column(db.String(20), nullable=False)
    notes = db.Column(db.String(500), nullable=True)
    # Weak reference: deleting the inventory row unlinks the ingredient
    inventory_item_id = db.Column(db.String(32), db.ForeignKey('inventory_item.id', ondelete='SET NULL'), nullable=True, index=True)
    inventory_item = db.relationship('InventoryItem')

    __table_args__ = (
        db.CheckConstraint('quantity > 0', name='ck_recipe_ingredient_quantity_positive'),
    )
