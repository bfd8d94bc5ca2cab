"""
Validation Constants

Contains whitelist values and limits for validating data that enters
the provisioning engine.
"""

# Valid meal types for meal plan slots
VALID_MEAL_TYPES = {'BREAKFAST', 'LUNCH', 'DINNER', 'SNACK'}

# Maximum field lengths, mirrored by the model columns
MAX_LENGTHS = {
    'item_name': 200,
    'unit': 20,
}
