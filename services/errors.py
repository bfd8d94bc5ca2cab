"""
Provisioning Errors

Exceptions raised by the provisioning services for structural problems.
Each carries a stable machine-readable code next to the human message.
Running short of ingredients is not an error: it is returned as a normal
result by the availability and cook services.
"""

from constants import reasons


class ProvisioningError(Exception):
    """Base class for failures surfaced to the caller."""
    status_code = 400

    def __init__(self, message, code=reasons.INVALID_REQUEST, status_code=None, details=None):
        super().__init__(message)
        self.message = message
        self.code = code
        if status_code is not None:
            self.status_code = status_code
        self.details = details

    def to_dict(self):
        body = {'success': False, 'error': self.message, 'code': self.code}
        if self.details:
            body['details'] = self.details
        return body


class NotFoundError(ProvisioningError):
    """Meal, plan or recipe absent or not owned by the household."""
    status_code = 404


class PreconditionError(ProvisioningError):
    """Meal already cooked, or no recipe assigned."""


class InvalidRequestError(ProvisioningError):
    """Malformed conversion request."""


class ConcurrentModificationError(ProvisioningError):
    """Cook kept losing races against other writers."""
    status_code = 409

    def __init__(self, message='Inventory changed while cooking; please retry', details=None):
        super().__init__(message, reasons.CONCURRENT_MODIFICATION, details=details)
