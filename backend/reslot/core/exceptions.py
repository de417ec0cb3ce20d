class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

class RescheduleError(AppError):
    """Raised when a rescheduling request carries invalid input."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=400, details=details)

class ResourceNotFoundError(AppError):
    """Raised when an explicitly addressed session, group or section does not exist."""
    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            f"{resource_type} with id {resource_id} not found",
            status_code=404,
            details={"resource_type": resource_type, "resource_id": resource_id},
        )

class InvariantViolationError(AppError):
    """Raised when session state breaks a structural invariant. Never recovered from."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=500, details=details)
