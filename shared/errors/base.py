"""
Base exception classes for the Article Illustrator system.
"""

class IllustrationError(Exception):
    """
    Base exception class for all illustration pipeline errors.

    This serves as the parent class for all custom exceptions
    raised towards callers of the orchestrator, providing a common
    interface for error handling, logging and HTTP mapping.
    """

    http_status: int = 500
    retryable: bool = False

    def __init__(self, message: str, **kwargs):
        """
        Initialize the IllustrationError.

        Args:
            message: The error message
            **kwargs: Additional context information that subclasses can use
        """
        super().__init__(message)
        self.message = message
        self.context = kwargs

    def __str__(self):
        """Return a string representation of the error."""
        return self.message

    def to_dict(self):
        """
        Convert the exception to a dictionary for logging or API responses.

        Returns:
            dict: A dictionary containing error details
        """
        return {
            'error_type': self.__class__.__name__,
            'message': self.message,
            'retryable': self.retryable,
            'context': self.context
        }


class ValidationError(IllustrationError):
    """Raised when request input such as the article text or profile id is invalid."""

    http_status = 400


class ConfigurationError(IllustrationError):
    """Raised when no usable provider credential is configured."""

    http_status = 500


class QuotaExceededError(IllustrationError):
    """Raised when the daily illustration quota is used up."""

    http_status = 429

    def __init__(self, message: str, remaining: int = 0, seconds_until_reset: int = 0):
        super().__init__(message, remaining=remaining, seconds_until_reset=seconds_until_reset)
        self.remaining = remaining
        self.seconds_until_reset = seconds_until_reset
