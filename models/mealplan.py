"""
Meal Plan Models

Contains the MealPlan (one week) and MealPlanItem (one slot) models.
A slot flips cooked=False -> True exactly once, through the cook transaction.
"""

from sqlalchemy.orm import validates

from constants import VALID_MEAL_TYPES
from .base import db, new_id


class MealPlan(db.Model):
    """Weekly meal plan for a household."""
    id = db.Column(db.String(32), primary_key=True, default=new_id)
    household_id = db.Column(db.String(32), db.ForeignKey('household.id', ondelete='CASCADE'), nullable=False, index=True)
    week_start = db.Column(db.Date, nullable=False)
    week_end = db.Column(db.Date, nullable=False)
    meals = db.relationship('MealPlanItem', backref='meal_plan', lazy=True, cascade='all, delete-orphan')


class MealPlanItem(db.Model):
    """A single (date, meal type) slot in a meal plan."""
    id = db.Column(db.String(32), primary_key=True, default=new_id)
    meal_plan_id = db.Column(db.String(32), db.ForeignKey('meal_plan.id', ondelete='CASCADE'), nullable=False, index=True)
    date = db.Column(db.Date, nullable=False)
    meal_type = db.Column(db.String(20), nullable=False)  # BREAKFAST, LUNCH, DINNER, SNACK
    recipe_id = db.Column(db.String(32), db.ForeignKey('recipe.id', ondelete='SET NULL'), nullable=True, index=True)
    cooked = db.Column(db.Boolean, nullable=False, default=False)
    cooked_at = db.Column(db.DateTime(timezone=True), nullable=True)
    notes = db.Column(db.String(500), nullable=True)
    recipe = db.relationship('Recipe')

    __table_args__ = (
        db.UniqueConstraint('meal_plan_id', 'date', 'meal_type', name='uq_meal_plan_item_slot'),
    )

    @validates('meal_type')
    def validate_meal_type(self, key, value):
        if value not in VALID_MEAL_TYPES:
            raise ValueError(f"Invalid meal type: {value}")
        return value

    def to_dict(self):
        return {
            'id': self.id,
            'mealPlanId': self.meal_plan_id,
            'date': self.date.isoformat(),
            'mealType': self.meal_type,
            'recipeId': self.recipe_id,
            'recipe': self.recipe.to_summary() if self.recipe is not None else None,
            'cooked': self.cooked,
            'cookedAt': self.cooked_at.isoformat() if self.cooked_at else None,
            'notes': self.notes,
        }
