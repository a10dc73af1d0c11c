"""
services/errors.py
------------------
Exceptions raised by the service layer and mapped to HTTP codes by the handlers.
"""


class ValidationError(ValueError):
    """Rejected form input. The message is shown to the user as-is."""


class NotFoundError(LookupError):
    """The requested record does not exist or belongs to another user."""
