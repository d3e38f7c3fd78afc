"""Error kinds shared by the budget components.

The HTTP layer maps each kind to a status code (see ``restapi.router``);
nothing here is fatal to the process.
"""


class BudgetError(Exception):
    """Base class for budget errors."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(BudgetError):
    """A referenced user, state row or transaction does not exist."""

    status_code = 404


class ValidationError(BudgetError):
    """Malformed amount, unknown category/token or a rejected plan."""

    status_code = 422


class PersistenceError(BudgetError):
    """The store failed on read or write."""

    status_code = 503


class AuthenticationError(BudgetError):
    """No active user session."""

    status_code = 401
