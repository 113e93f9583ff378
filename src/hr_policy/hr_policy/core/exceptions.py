class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class NotFoundError(DomainError):
    """Raised when a referenced employee/order/request does not exist."""


class InsufficientBalanceError(DomainError):
    """Raised when a points or leave-day balance cannot cover a debit."""


class ConflictError(DomainError):
    """Raised when a transition is attempted from an invalid source state."""


class AuthenticationError(DomainError):
    """Raised when no caller identity is available."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""
