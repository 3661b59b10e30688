"""
Error taxonomy shared by every service.

Services raise these instead of bare ValueError so the API
layer can map each kind to its own status code. Every message
names the offending id.
"""


class FinanceError(Exception):
    """Base class for all domain errors."""

    status_code = 400


class NotFoundError(FinanceError):
    """Referenced entity is absent or not owned by the caller."""

    status_code = 404


class InvalidArgumentError(FinanceError, ValueError):
    """Unknown enum value, bad amount, malformed or inconsistent dates."""

    status_code = 400


class ConstraintViolationError(FinanceError):
    """The store rejected a write (foreign key, unique, check)."""

    status_code = 409


class InfrastructureError(FinanceError):
    """The store is unreachable or aborted the unit of work."""

    status_code = 503
