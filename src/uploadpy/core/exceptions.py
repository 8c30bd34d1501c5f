"""Custom exception hierarchy for the uploadpy user upload tool."""


class UploadPyError(Exception):
    """Base exception for uploadpy.

    This is the root exception class for all uploadpy-specific errors.
    All other custom exceptions should inherit from this class.
    """

    def __init__(self, message: str, details: str | None = None):
        """Initialize the exception.

        Args:
            message: The main error message
            details: Optional additional details about the error
        """
        self.message = message
        self.details = details
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the complete error message."""
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message


class ConfigError(UploadPyError):
    """Site configuration errors.

    Raised when environment settings are missing or malformed, such as a
    non-numeric local host id or an empty list of enabled auth methods.
    """


class ValidationError(UploadPyError):
    """Input validation errors.

    Raised when operator input fails validation: unknown import modes,
    malformed CSV headers, invalid default values and similar. Per-row
    data problems are reported as row errors, not raised.
    """

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: str | None = None,
        details: str | None = None,
    ):
        """Initialize the validation error.

        Args:
            message: The main error message
            field: The field or option that failed validation
            value: The invalid value
            details: Optional additional details about the error
        """
        self.field = field
        self.value = value
        super().__init__(message, details)

    def _format_message(self) -> str:
        """Format the complete error message with validation context."""
        parts = [self.message]

        if self.field:
            parts.append(f"Field: {self.field}")

        if self.value:
            parts.append(f"Value: {self.value}")

        if self.details:
            parts.append(f"Details: {self.details}")

        return " | ".join(parts)


class FileOperationError(UploadPyError):
    """File operation errors.

    Raised when file operations fail, such as reading the upload file or
    loading and saving the directory file.
    """

    def __init__(
        self,
        message: str,
        file_path: str | None = None,
        operation: str | None = None,
        details: str | None = None,
    ):
        """Initialize the file operation error.

        Args:
            message: The main error message
            file_path: The file path that caused the error
            operation: The file operation that failed (read, write, etc.)
            details: Optional additional details about the error
        """
        self.file_path = file_path
        self.operation = operation
        super().__init__(message, details)

    def _format_message(self) -> str:
        """Format the complete error message with file context."""
        parts = [self.message]

        if self.operation:
            parts.append(f"Operation: {self.operation}")

        if self.file_path:
            parts.append(f"File: {self.file_path}")

        if self.details:
            parts.append(f"Details: {self.details}")

        return " | ".join(parts)


class StoreError(UploadPyError):
    """Backing store errors.

    Raised by directory implementations when a create, update, delete or
    side-effect call cannot be applied. The commit phase converts these
    into row errors so the run can continue.
    """

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        username: str | None = None,
        details: str | None = None,
    ):
        """Initialize the store error.

        Args:
            message: The main error message
            operation: The store operation that failed (create, delete, etc.)
            username: The username the operation was applied to
            details: Optional additional details about the error
        """
        self.operation = operation
        self.username = username
        super().__init__(message, details)

    def _format_message(self) -> str:
        """Format the complete error message with store context."""
        parts = [self.message]

        if self.operation:
            parts.append(f"Operation: {self.operation}")

        if self.username:
            parts.append(f"Username: {self.username}")

        if self.details:
            parts.append(f"Details: {self.details}")

        return " | ".join(parts)


class AuthPluginUnavailableError(UploadPyError):
    """Raised when an authentication method cannot be resolved to a plugin."""

    def __init__(self, method: str, details: str | None = None):
        self.method = method
        super().__init__(f"Authentication plugin not available: {method}", details)


class ContractViolationError(UploadPyError):
    """Programming contract violations.

    Raised when a row is driven through an illegal lifecycle transition,
    for example prepared twice or committed while carrying errors. These
    indicate a controller bug rather than bad input and abort the run.
    """

    def __init__(
        self,
        message: str,
        state: str | None = None,
        operation: str | None = None,
        details: str | None = None,
    ):
        """Initialize the contract violation.

        Args:
            message: The main error message
            state: Lifecycle state the row was in
            operation: The lifecycle operation that was attempted
            details: Optional additional details
        """
        self.state = state
        self.operation = operation
        super().__init__(message, details)

    def _format_message(self) -> str:
        """Format the complete error message with lifecycle context."""
        parts = [self.message]

        if self.operation:
            parts.append(f"Operation: {self.operation}")

        if self.state:
            parts.append(f"State: {self.state}")

        if self.details:
            parts.append(f"Details: {self.details}")

        return " | ".join(parts)
