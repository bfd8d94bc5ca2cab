"""
Tests for the cook transaction.

Tests cover:
- Debiting stock and flipping the cooked flag together
- Refusing the whole cook when any linked ingredient is short
- Preconditions (missing meal, already cooked, no recipe)
- Re-validation after losing a race on an inventory row
"""

import pytest
from sqlalchemy import update

from conftest import reload
from constants import INVENTORY_UPDATED, MEAL_PLAN_UPDATED, reasons
from models import db, InventoryItem, MealPlanItem
from services import (
    ConcurrentModificationError,
    NotFoundError,
    PreconditionError,
    cook_meal,
)
import services.cooking as cooking


@pytest.fixture
def kitchen(factory, household):
    """A plan with one dinner needing 400 g of the 500 g of flour in stock."""
    flour = factory.inventory(household, 'Flour', 500, 'g')
    recipe = factory.recipe(household, 'Bread', [(400, 'g', flour)])
    plan = factory.meal_plan(household)
    meal = factory.meal(plan, recipe)
    return household, plan, meal, flour


class TestCookSuccess:

    def test_debits_exact_amount(self, kitchen, notifier):
        household, plan, meal, flour = kitchen

        outcome = cook_meal(household.id, plan.id, meal.id, notifier=notifier)

        assert outcome.cooked is True
        assert outcome.inventory_update_count == 1
        assert outcome.meal['cooked'] is True
        assert outcome.meal['cookedAt'] is not None
        assert reload(InventoryItem, flour.id).quantity == 100
        assert reload(MealPlanItem, meal.id).cooked is True

    def test_using_all_stock_leaves_zero(self, factory, household):
        eggs = factory.inventory(household, 'Eggs', 2, 'pieces')
        recipe = factory.recipe(household, 'Omelette', [(2, 'pieces', eggs)])
        plan = factory.meal_plan(household)
        meal = factory.meal(plan, recipe)

        cook_meal(household.id, plan.id, meal.id)

        assert reload(InventoryItem, eggs.id).quantity == 0

    def test_unlinked_ingredients_do_not_block(self, factory, household):
        flour = factory.inventory(household, 'Flour', 500, 'g')
        recipe = factory.recipe(household, 'Bread', [(400, 'g', flour), (1, 'pinch', None, 'salt')])
        plan = factory.meal_plan(household)
        meal = factory.meal(plan, recipe)

        outcome = cook_meal(household.id, plan.id, meal.id)

        assert outcome.cooked is True
        assert outcome.inventory_update_count == 1

    def test_same_item_on_two_lines_is_debited_once_for_both(self, factory, household):
        butter = factory.inventory(household, 'Butter', 250, 'g')
        recipe = factory.recipe(household, 'Shortbread', [(100, 'g', butter), (50, 'g', butter)])
        plan = factory.meal_plan(household)
        meal = factory.meal(plan, recipe)

        outcome = cook_meal(household.id, plan.id, meal.id)

        assert outcome.inventory_update_count == 1
        assert reload(InventoryItem, butter.id).quantity == 100

    def test_reports_unit_mismatch_but_still_debits(self, factory, household):
        flour = factory.inventory(household, 'Flour', 2, 'kg')
        recipe = factory.recipe(household, 'Bread', [(1, 'g', flour)])
        plan = factory.meal_plan(household)
        meal = factory.meal(plan, recipe)

        outcome = cook_meal(household.id, plan.id, meal.id)

        assert outcome.cooked is True
        assert outcome.to_dict()['unitMismatches'] == [
            {'inventoryItemId': flour.id, 'name': 'Flour', 'unit': 'g', 'inventoryUnit': 'kg'},
        ]
        assert reload(InventoryItem, flour.id).quantity == 1

    def test_matching_units_report_no_mismatch(self, kitchen):
        household, plan, meal, _ = kitchen

        outcome = cook_meal(household.id, plan.id, meal.id)

        assert outcome.to_dict()['unitMismatches'] == []

    def test_announces_inventory_and_meal_changes(self, kitchen, notifier):
        household, plan, meal, flour = kitchen

        cook_meal(household.id, plan.id, meal.id, notifier=notifier)

        assert notifier.names() == [INVENTORY_UPDATED, MEAL_PLAN_UPDATED]
        _, _, inventory_payload = notifier.events[0]
        assert inventory_payload['item']['quantity'] == 100
        _, _, meal_payload = notifier.events[1]
        assert meal_payload['action'] == 'cooked'
        assert meal_payload['mealPlanId'] == plan.id

    def test_broken_notifier_does_not_undo_cook(self, kitchen):
        household, plan, meal, flour = kitchen

        class Broken:
            def notify(self, household_id, event, payload):
                raise RuntimeError('socket closed')

        outcome = cook_meal(household.id, plan.id, meal.id, notifier=Broken())

        assert outcome.cooked is True
        assert reload(InventoryItem, flour.id).quantity == 100


class TestCookRefused:

    def test_insufficient_stock_leaves_everything_unchanged(self, factory, household, notifier):
        flour = factory.inventory(household, 'Flour', 300, 'g')
        recipe = factory.recipe(household, 'Bread', [(400, 'g', flour)])
        plan = factory.meal_plan(household)
        meal = factory.meal(plan, recipe)

        outcome = cook_meal(household.id, plan.id, meal.id, notifier=notifier)

        assert outcome.cooked is False
        assert outcome.reason == reasons.INSUFFICIENT_INGREDIENTS
        assert outcome.insufficient_ingredients == [
            {'name': 'Flour', 'required': 400, 'available': 300, 'unit': 'g', 'unitMismatch': False},
        ]
        assert reload(InventoryItem, flour.id).quantity == 300
        assert reload(MealPlanItem, meal.id).cooked is False
        assert notifier.events == []

    def test_all_or_nothing_across_ingredients(self, factory, household):
        flour = factory.inventory(household, 'Flour', 500, 'g')
        sugar = factory.inventory(household, 'Sugar', 50, 'g')
        recipe = factory.recipe(household, 'Cake', [(400, 'g', flour), (200, 'g', sugar)])
        plan = factory.meal_plan(household)
        meal = factory.meal(plan, recipe)

        outcome = cook_meal(household.id, plan.id, meal.id)

        assert outcome.cooked is False
        assert [i['name'] for i in outcome.insufficient_ingredients] == ['Sugar']
        assert reload(InventoryItem, flour.id).quantity == 500
        assert reload(InventoryItem, sugar.id).quantity == 50
        assert reload(MealPlanItem, meal.id).cooked is False

    def test_short_ingredient_in_another_unit_is_flagged(self, factory, household):
        milk = factory.inventory(household, 'Milk', 1, 'liters')
        recipe = factory.recipe(household, 'Custard', [(500, 'ml', milk)])
        plan = factory.meal_plan(household)
        meal = factory.meal(plan, recipe)

        outcome = cook_meal(household.id, plan.id, meal.id)

        assert outcome.cooked is False
        [short] = outcome.insufficient_ingredients
        assert short['unit'] == 'ml'
        assert short['unitMismatch'] is True

    def test_reports_every_short_ingredient(self, factory, household):
        flour = factory.inventory(household, 'Flour', 1, 'g')
        sugar = factory.inventory(household, 'Sugar', 1, 'g')
        recipe = factory.recipe(household, 'Cake', [(400, 'g', flour), (200, 'g', sugar)])
        plan = factory.meal_plan(household)
        meal = factory.meal(plan, recipe)

        outcome = cook_meal(household.id, plan.id, meal.id)

        assert sorted(i['name'] for i in outcome.insufficient_ingredients) == ['Flour', 'Sugar']

    def test_item_from_another_household_is_missing(self, factory, household):
        other = factory.household('Neighbours')
        their_flour = factory.inventory(other, 'Flour', 1000, 'g')
        recipe = factory.recipe(household, 'Bread', [(400, 'g', their_flour)])
        plan = factory.meal_plan(household)
        meal = factory.meal(plan, recipe)

        outcome = cook_meal(household.id, plan.id, meal.id)

        assert outcome.cooked is False
        assert outcome.insufficient_ingredients[0]['available'] == 0
        assert reload(InventoryItem, their_flour.id).quantity == 1000


class TestCookPreconditions:

    def test_unknown_plan(self, kitchen):
        household, plan, meal, _ = kitchen
        with pytest.raises(NotFoundError) as exc:
            cook_meal(household.id, 'nope', meal.id)
        assert exc.value.code == reasons.MEAL_PLAN_NOT_FOUND

    def test_meal_in_another_plan(self, kitchen, factory):
        household, plan, _, _ = kitchen
        other_plan = factory.meal_plan(household)
        stray = factory.meal(other_plan, None)
        with pytest.raises(NotFoundError) as exc:
            cook_meal(household.id, plan.id, stray.id)
        assert exc.value.code == reasons.MEAL_NOT_FOUND

    def test_cannot_cook_twice(self, kitchen):
        household, plan, meal, flour = kitchen
        cook_meal(household.id, plan.id, meal.id)

        with pytest.raises(PreconditionError) as exc:
            cook_meal(household.id, plan.id, meal.id)

        assert exc.value.code == reasons.MEAL_ALREADY_COOKED
        assert reload(InventoryItem, flour.id).quantity == 100

    def test_meal_without_recipe(self, factory, household):
        plan = factory.meal_plan(household)
        meal = factory.meal(plan, None)
        with pytest.raises(PreconditionError) as exc:
            cook_meal(household.id, plan.id, meal.id)
        assert exc.value.code == reasons.NO_RECIPE_ASSIGNED


def interfere_with(item_id, times):
    """Wrap the row lock so another writer changes the row right after it is read."""
    original = cooking._lock_inventory
    calls = []

    def lock_then_interfere(household_id, item_ids):
        rows = original(household_id, item_ids)
        calls.append(item_ids)
        if len(calls) <= times:
            db.session.execute(
                update(InventoryItem)
                .where(InventoryItem.id == item_id)
                .values(quantity=InventoryItem.quantity - 1)
                .execution_options(synchronize_session=False)
            )
        return rows

    return lock_then_interfere, calls


class TestCookConcurrency:

    def test_revalidates_after_losing_a_race(self, kitchen, monkeypatch):
        household, plan, meal, flour = kitchen
        wrapper, calls = interfere_with(flour.id, times=1)
        monkeypatch.setattr(cooking, '_lock_inventory', wrapper)

        outcome = cook_meal(household.id, plan.id, meal.id)

        assert outcome.cooked is True
        assert len(calls) == 2
        assert reload(InventoryItem, flour.id).quantity == 100

    def test_meal_cooked_by_another_request_after_lock(self, kitchen, monkeypatch):
        household, plan, meal, flour = kitchen
        original = cooking._lock_inventory
        calls = []

        def lock_then_cook_elsewhere(household_id, item_ids):
            rows = original(household_id, item_ids)
            calls.append(item_ids)
            if len(calls) == 1:
                db.session.execute(
                    update(MealPlanItem)
                    .where(MealPlanItem.id == meal.id)
                    .values(cooked=True)
                    .execution_options(synchronize_session=False)
                )
                db.session.commit()
            return rows

        monkeypatch.setattr(cooking, '_lock_inventory', lock_then_cook_elsewhere)

        with pytest.raises(PreconditionError) as exc:
            cook_meal(household.id, plan.id, meal.id)

        assert exc.value.code == reasons.MEAL_ALREADY_COOKED
        assert len(calls) == 1
        assert reload(InventoryItem, flour.id).quantity == 500
        assert reload(MealPlanItem, meal.id).cooked is True

    def test_gives_up_after_max_attempts(self, kitchen, monkeypatch):
        household, plan, meal, flour = kitchen
        wrapper, calls = interfere_with(flour.id, times=10)
        monkeypatch.setattr(cooking, '_lock_inventory', wrapper)

        with pytest.raises(ConcurrentModificationError) as exc:
            cook_meal(household.id, plan.id, meal.id, max_attempts=2)

        assert exc.value.code == reasons.CONCURRENT_MODIFICATION
        assert len(calls) == 2
        assert reload(InventoryItem, flour.id).quantity == 500
        assert reload(MealPlanItem, meal.id).cooked is False
