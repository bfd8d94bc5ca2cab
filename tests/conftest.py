"""
Pytest configuration and fixtures for the provisioning engine tests.
"""

import datetime

import pytest

from app import create_app
from models import (
    db,
    Household,
    InventoryItem,
    MealPlan,
    MealPlanItem,
    Recipe,
    RecipeIngredient,
    ShoppingListItem,
)
from services import ChangeNotifier

WEEK_START = datetime.date(2026, 10, 19)


class RecordingNotifier(ChangeNotifier):
    """Keeps every event so tests can assert on what was announced."""

    def __init__(self):
        self.events = []

    def notify(self, household_id, event, payload):
        self.events.append((household_id, event, payload))

    def names(self):
        return [event for _, event, _ in self.events]


class Factory:
    """Creates committed rows with sensible defaults."""

    def household(self, name='Test Household'):
        return self._save(Household(name=name))

    def inventory(self, household, name, quantity, unit, category='Pantry'):
        return self._save(InventoryItem(
            household_id=household.id, name=name, quantity=quantity,
            unit=unit, category=category,
        ))

    def recipe(self, household, name, ingredients=()):
        """ingredients: (quantity, unit, inventory item or None[, notes]) tuples."""
        recipe = Recipe(household_id=household.id, name=name, servings=4)
        for position, line in enumerate(ingredients):
            quantity, unit, item = line[:3]
            notes = line[3] if len(line) > 3 else None
            recipe.ingredients.append(RecipeIngredient(
                position=position, quantity=quantity, unit=unit, notes=notes,
                inventory_item_id=item.id if item is not None else None,
            ))
        return self._save(recipe)

    def meal_plan(self, household, week_start=WEEK_START):
        return self._save(MealPlan(
            household_id=household.id,
            week_start=week_start,
            week_end=week_start + datetime.timedelta(days=6),
        ))

    def meal(self, plan, recipe=None, day=0, meal_type='DINNER', cooked=False):
        return self._save(MealPlanItem(
            meal_plan_id=plan.id,
            date=plan.week_start + datetime.timedelta(days=day),
            meal_type=meal_type,
            recipe_id=recipe.id if recipe is not None else None,
            cooked=cooked,
        ))

    def shopping(self, household, name, quantity=None, unit=None, category=None, completed=False):
        return self._save(ShoppingListItem(
            household_id=household.id, name=name, quantity=quantity,
            unit=unit, category=category, completed=completed,
        ))

    def _save(self, row):
        db.session.add(row)
        db.session.commit()
        return row


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def app(notifier):
    app = create_app('testing', notifier=notifier)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def factory(app):
    return Factory()


@pytest.fixture
def household(factory):
    return factory.household()


def reload(model, row_id):
    """Fetch a fresh copy of a row, bypassing anything cached in the session."""
    db.session.expire_all()
    return db.session.get(model, row_id)
