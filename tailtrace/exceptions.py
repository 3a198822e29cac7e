"""Custom exception classes for tailtrace.

This module defines the exception classes raised while loading configuration
and reading captured tail stream events. The converter itself never raises
into the hosting invocation.
"""


class TailtraceError(Exception):
    """Base exception class for all tailtrace errors.

    All custom exceptions in the application should inherit from this class.
    This allows for catching all tailtrace-specific errors with a single except clause.
    """

    def __init__(self, message: str, suggestion: str = ""):
        """Initialize the exception.

        Args:
            message: The error message describing what went wrong
            suggestion: Optional suggestion for how to fix the problem
        """
        self.message = message
        self.suggestion = suggestion
        super().__init__(self.message)

    def __str__(self) -> str:
        """Return a formatted error message with suggestion if available."""
        if self.suggestion:
            return f"{self.message}{'.' if not self.message.endswith('.') else ''} {self.suggestion}"
        return self.message


class ConfigurationError(TailtraceError):
    """Raised when there's an error in the configuration.

    This includes invalid configuration values, missing config files that
    were explicitly requested, or improperly formatted YAML.
    """

    pass


class EventParsingError(TailtraceError):
    """Raised when a captured tail stream event cannot be parsed."""

    pass


class ValidationError(TailtraceError):
    """Raised when input validation fails."""

    pass
