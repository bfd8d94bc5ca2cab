"""
Services Package

Provisioning logic: availability checks, weekly aggregation, cooking,
shopping list synthesis and purchase reconciliation.
"""

from .errors import (
    ProvisioningError,
    NotFoundError,
    PreconditionError,
    InvalidRequestError,
    ConcurrentModificationError,
)

from .notifier import ChangeNotifier, LoggingNotifier, emit

from .quantities import (
    UnitMismatchError,
    is_sufficient,
    shortfall,
    units_match,
    combine,
    floor_debit,
)

from .availability import (
    AvailabilityRecord,
    load_inventory_snapshot,
    evaluate_ingredients,
    summarize,
    check_recipe_availability,
)

from .week import (
    aggregate_requirements,
    build_report,
    check_meal_plan_availability,
)

from .cooking import CookOutcome, cook_meal

from .shopping import synthesize_shopping_list

from .purchases import convert_purchases

__all__ = [
    # Errors
    'ProvisioningError',
    'NotFoundError',
    'PreconditionError',
    'InvalidRequestError',
    'ConcurrentModificationError',
    # Notifier
    'ChangeNotifier',
    'LoggingNotifier',
    'emit',
    # Quantities
    'UnitMismatchError',
    'is_sufficient',
    'shortfall',
    'units_match',
    'combine',
    'floor_debit',
    # Availability
    'AvailabilityRecord',
    'load_inventory_snapshot',
    'evaluate_ingredients',
    'summarize',
    'check_recipe_availability',
    # Week
    'aggregate_requirements',
    'build_report',
    'check_meal_plan_availability',
    # Cooking
    'CookOutcome',
    'cook_meal',
    # Shopping
    'synthesize_shopping_list',
    # Purchases
    'convert_purchases',
]
