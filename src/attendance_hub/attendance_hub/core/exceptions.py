class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class DuplicateNameError(ValidationError):
    """Raised when a department or leave type name is already taken."""


class ProtectedEntryError(ValidationError):
    """Raised when removing a default department or leave type."""


class ClockStateError(ValidationError):
    """Raised when a clock action does not follow the latest event of the day."""


class RequestAlreadyReviewedError(ValidationError):
    """Raised when approving or rejecting a request that is no longer pending."""


class NotFoundError(DomainError):
    """Raised when a referenced record does not exist."""


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid."""


class AccountDisabledError(AuthenticationError):
    """Raised when a deactivated user signs in or holds a session."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class ConcurrentUpdateError(DomainError):
    """Raised when a versioned document changed between read and write."""


class InfrastructureError(Exception):
    """Base exception for storage/transport failures."""


class QueryUnavailableError(InfrastructureError):
    """Raised when a query cannot run because its table or index is missing."""


class NotificationDeliveryError(InfrastructureError):
    """Raised by the mail relay client when a message was not accepted."""
