"""
Reason Codes

Stable machine-readable codes returned to callers alongside human
messages. UI layers branch on these, never on the message text.
"""

# Not found
MEAL_PLAN_NOT_FOUND = 'MEAL_PLAN_NOT_FOUND'
MEAL_NOT_FOUND = 'MEAL_NOT_FOUND'
RECIPE_NOT_FOUND = 'RECIPE_NOT_FOUND'

# Cook preconditions and outcome
MEAL_ALREADY_COOKED = 'MEAL_ALREADY_COOKED'
NO_RECIPE_ASSIGNED = 'NO_RECIPE_ASSIGNED'
INSUFFICIENT_INGREDIENTS = 'INSUFFICIENT_INGREDIENTS'
CONCURRENT_MODIFICATION = 'CONCURRENT_MODIFICATION'

# Purchase conversion requests
INVALID_CONVERSION_REQUEST = 'INVALID_CONVERSION_REQUEST'
INVALID_ITEM_IDS = 'INVALID_ITEM_IDS'
NO_ITEMS_TO_CONVERT = 'NO_ITEMS_TO_CONVERT'
NO_COMPLETED_ITEMS_FOUND = 'NO_COMPLETED_ITEMS_FOUND'

# Units
UNIT_MISMATCH = 'UNIT_MISMATCH'

# Generic
INVALID_REQUEST = 'INVALID_REQUEST'
INTERNAL_ERROR = 'INTERNAL_ERROR'

# Human-readable reasons recorded on skipped purchase conversions
SKIP_UNIT_MISMATCH = 'Unit mismatch with existing inventory item'
SKIP_CANNOT_COMBINE = 'Inventory item already exists and quantity cannot be combined'
