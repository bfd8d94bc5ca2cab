"""
Input Sanitization Module

Cleans free-text names before they are stored, so that names typed into
the shopping list become well-formed inventory names.
"""

import re

from constants import MAX_LENGTHS


def clean_item_name(name, max_length=MAX_LENGTHS['item_name']):
    """
    Normalize an item name for storage and name matching.

    Args:
        name: The raw name (can be None)
        max_length: Maximum allowed length

    Returns:
        The cleaned name, or an empty string if nothing is left
    """
    if name is None:
        return ''

    if not isinstance(name, str):
        name = str(name)

    # Remove control characters and null bytes
    name = re.sub(r'[\x00-\x1f\x7f-\x9f]', '', name)

    # Collapse runs of whitespace and strip the ends
    name = re.sub(r'\s+', ' ', name).strip()

    # Truncate if too long
    if len(name) > max_length:
        name = name[:max_length].rstrip()

    return name


def clean_unit(unit, max_length=MAX_LENGTHS['unit']):
    """Strip a unit label; blank units become None. Case is preserved."""
    if unit is None:
        return None
    unit = str(unit).strip()[:max_length]
    return unit or None
