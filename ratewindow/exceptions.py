"""Custom exceptions for the throttler package."""


class ThrottlerError(Exception):
    """Base class for throttler exceptions.
    
    All custom exceptions inherit from this class so callers can catch
    every throttler failure with a single except clause.
    """
    
    def __init__(self, message: str = "Throttler error"):
        self.message = message
        super().__init__(message)


class InvalidConfigurationError(ThrottlerError, ValueError):
    """Raised when a throttler is constructed with invalid limits.
    
    Raised synchronously from the constructor; no partially built
    throttler is ever returned.
    """
    
    def __init__(self, message: str = "Invalid throttler configuration", limit_index: int | None = None):
        self.limit_index = limit_index
        if limit_index is not None:
            message = f"Limit #{limit_index}: {message}"
        super().__init__(message)


class OperationCancelledError(ThrottlerError):
    """Raised when an admission is cancelled before it was granted.
    
    The execution logs are left untouched.
    """
    
    def __init__(self, detail: str = "Admission cancelled before it was granted"):
        self.detail = detail
        super().__init__(detail)
