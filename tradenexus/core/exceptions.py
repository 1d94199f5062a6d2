"""Custom exception hierarchy."""


class AppError(Exception):
    """Base exception for application errors."""
    def __init__(self, message: str, original_error: Exception = None):
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class APIClientError(AppError):
    """Raised when an external API call fails."""
    pass


class APITimeoutError(APIClientError):
    """Raised when an external API call times out."""
    pass


class DatabaseError(AppError):
    """Raised when a database operation fails."""
    pass


class DatabaseUnavailableError(DatabaseError):
    """Raised when the database is running in offline mode."""
    pass


class ValidationError(AppError):
    """Raised when input validation fails."""
    pass


class NotFoundError(AppError):
    """Raised when a requested record does not exist."""
    pass


class JobNotFoundError(NotFoundError):
    """Raised when a job is not found."""
    pass


class SupplierNotFoundError(NotFoundError):
    """Raised when a supplier is not found."""
    pass


class InvalidJobTransitionError(AppError):
    """Raised when a job status change would leave a terminal state."""
    pass


class UnknownMemoryTypeError(ValidationError):
    """Raised when extracted memory carries an unsupported type."""
    pass


class UnknownToolError(ValidationError):
    """Raised when a memory tool call names an unknown tool."""
    pass
