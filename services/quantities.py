"""
Quantity Comparison Service

Decides what "sufficient" and "shortfall" mean for a (quantity, unit)
pair. Units are compared as plain strings: there is no conversion between
unit systems, so "CUP" never reconciles with "L".
"""

from constants import reasons


class UnitMismatchError(ValueError):
    """Raised when two quantities with different units are combined."""
    code = reasons.UNIT_MISMATCH

    def __init__(self, unit_a, unit_b):
        super().__init__(f"unit mismatch: {unit_a!r} vs {unit_b!r}")
        self.unit_a = unit_a
        self.unit_b = unit_b


def is_sufficient(required, available):
    """True when what is available covers what is required."""
    return available >= required


def shortfall(required, available):
    """How much more is needed; never negative."""
    return max(0.0, required - available)


def units_match(unit_a, unit_b):
    """Units are combinable only when they are identical strings."""
    return unit_a == unit_b


def combine(quantity_a, unit_a, quantity_b, unit_b):
    """Sum two quantities, refusing to mix units."""
    if not units_match(unit_a, unit_b):
        raise UnitMismatchError(unit_a, unit_b)
    return quantity_a + quantity_b, unit_a


def floor_debit(current, required):
    """Stock left after taking `required` from `current`, floored at zero."""
    return max(0.0, current - required)
