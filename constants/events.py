"""
Change Event Constants

Event names handed to the change notifier. Subscribers branch on these
strings, so they must not change.
"""

INVENTORY_UPDATED = 'inventory:updated'
# Payload carries an "action": added, updated, deleted or cooked
MEAL_PLAN_UPDATED = 'meal-plan:updated'
SHOPPING_LIST_ITEM_ADDED = 'shopping-list:item-added'
