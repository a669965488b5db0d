"""
Custom Exceptions for the Hotel Reservation Application

This module defines the exception classes raised by repositories and
services. Every exception carries an error code, a message, structured
details and the HTTP status the API layer should answer with.
"""

from enum import Enum
from typing import Any, Dict, List, Optional


class ErrorCode(str, Enum):
    """Standard error codes for the application"""
    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    CONFLICT = "CONFLICT"

    # Authentication & Authorization
    AUTHENTICATION_FAILED = "AUTHENTICATION_FAILED"
    AUTHORIZATION_FAILED = "AUTHORIZATION_FAILED"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    TOKEN_INVALID = "TOKEN_INVALID"
    EMAIL_NOT_VERIFIED = "EMAIL_NOT_VERIFIED"
    ACCOUNT_LOCKED = "ACCOUNT_LOCKED"
    ACCOUNT_INACTIVE = "ACCOUNT_INACTIVE"

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_DATE_RANGE = "INVALID_DATE_RANGE"

    # Database errors
    DATABASE_ERROR = "DATABASE_ERROR"
    DUPLICATE_ENTRY = "DUPLICATE_ENTRY"
    DEPENDENT_RECORDS = "DEPENDENT_RECORDS"

    # Booking errors
    ROOM_UNAVAILABLE = "ROOM_UNAVAILABLE"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    DUPLICATE_REVIEW = "DUPLICATE_REVIEW"

    # Promotion errors
    PROMOTION_NOT_FOUND = "PROMOTION_NOT_FOUND"
    PROMOTION_EXPIRED = "PROMOTION_EXPIRED"
    PROMOTION_EXHAUSTED = "PROMOTION_EXHAUSTED"
    PROMOTION_INELIGIBLE = "PROMOTION_INELIGIBLE"

    # External service errors
    EXTERNAL_SERVICE_ERROR = "EXTERNAL_SERVICE_ERROR"
    EMAIL_SERVICE_ERROR = "EMAIL_SERVICE_ERROR"
    FILE_STORAGE_ERROR = "FILE_STORAGE_ERROR"


class BaseAppException(Exception):
    """
    Base exception class for all application exceptions.

    Provides consistent error handling across the application with
    structured error information.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: Optional[Dict[str, Any]] = None,
        status_code: int = 500
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.status_code = status_code
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary format"""
        return {
            "error": {
                "code": self.error_code.value,
                "message": self.message,
                "details": self.details,
                "type": self.__class__.__name__
            }
        }

    def __str__(self) -> str:
        return f"{self.error_code.value}: {self.message}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message='{self.message}', error_code='{self.error_code.value}')"


# ========================================
# Validation Exceptions
# ========================================

class ValidationError(BaseAppException):
    """Exception raised when data validation fails"""

    def __init__(
        self,
        message: str = "Validation failed",
        field_errors: Optional[Dict[str, List[str]]] = None,
        error_code: ErrorCode = ErrorCode.VALIDATION_ERROR,
        status_code: int = 422
    ):
        details = {"field_errors": field_errors} if field_errors else {}
        super().__init__(message, error_code, details, status_code)


class InvalidDateRangeError(ValidationError):
    """Exception raised when a stay's date range is invalid"""

    def __init__(
        self,
        message: str = "Check-in date must be before check-out date",
        start_date: Optional[str] = None,
        end_date: Optional[str] = None
    ):
        super().__init__(message, error_code=ErrorCode.INVALID_DATE_RANGE)
        self.details.update({"start_date": start_date, "end_date": end_date})


# ========================================
# Not Found Exceptions
# ========================================

class ResourceNotFoundError(BaseAppException):
    """Exception raised when a requested resource is not found"""

    def __init__(
        self,
        resource_type: str = "Resource",
        resource_id: Optional[str] = None,
        message: Optional[str] = None
    ):
        if not message:
            message = f"{resource_type} not found"
            if resource_id:
                message += f" (ID: {resource_id})"

        details = {
            "resource_type": resource_type,
            "resource_id": resource_id
        }
        super().__init__(message, ErrorCode.RESOURCE_NOT_FOUND, details, 404)


class EntityNotFoundError(ResourceNotFoundError):
    """Raised by repositories when a lookup by key finds nothing"""


# ========================================
# Authentication & Authorization Exceptions
# ========================================

class AuthenticationError(BaseAppException):
    """Exception raised when authentication fails"""

    def __init__(
        self,
        message: str = "Authentication failed",
        error_code: ErrorCode = ErrorCode.AUTHENTICATION_FAILED,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, error_code, details, 401)


class AuthorizationError(BaseAppException):
    """Exception raised when authorization fails"""

    def __init__(
        self,
        message: str = "Access denied",
        required_permission: Optional[str] = None,
        error_code: ErrorCode = ErrorCode.AUTHORIZATION_FAILED
    ):
        details = {"required_permission": required_permission} if required_permission else {}
        super().__init__(message, error_code, details, 403)


# ========================================
# Conflict Exceptions
# ========================================

class ConflictError(BaseAppException):
    """Exception raised when a request conflicts with current state"""

    def __init__(
        self,
        message: str = "Request conflicts with the current state",
        error_code: ErrorCode = ErrorCode.CONFLICT,
        details: Optional[Dict[str, Any]] = None,
        status_code: int = 409
    ):
        super().__init__(message, error_code, details, status_code)


class DuplicateEntryError(ConflictError):
    """Exception raised when trying to create a duplicate entry"""

    def __init__(
        self,
        message: str = "Duplicate entry",
        field: Optional[str] = None,
        value: Optional[str] = None
    ):
        details = {"field": field, "value": value} if field else {}
        super().__init__(message, ErrorCode.DUPLICATE_ENTRY, details)


class DependentRecordsError(ConflictError):
    """Exception raised when a delete is blocked by dependent records"""

    def __init__(
        self,
        message: str,
        resource_type: Optional[str] = None,
        dependent_type: Optional[str] = None
    ):
        details = {"resource_type": resource_type, "dependent_type": dependent_type}
        super().__init__(message, ErrorCode.DEPENDENT_RECORDS, details)


class RoomUnavailableError(ConflictError):
    """Exception raised when room is not available for booking"""

    def __init__(
        self,
        message: str = "Room is not available for the selected dates",
        room_id: Optional[str] = None,
        reason: Optional[str] = None
    ):
        details = {"room_id": room_id}
        if reason:
            details["reason"] = reason
        super().__init__(message, ErrorCode.ROOM_UNAVAILABLE, details)


class InvalidTransitionError(ConflictError):
    """Exception raised when a booking cannot move to the requested status"""

    def __init__(
        self,
        message: Optional[str] = None,
        current_status: Optional[str] = None,
        target_status: Optional[str] = None,
        booking_id: Optional[str] = None
    ):
        if not message:
            message = f"Cannot change booking status from {current_status} to {target_status}"
        details = {
            "booking_id": booking_id,
            "current_status": current_status,
            "target_status": target_status
        }
        super().__init__(message, ErrorCode.INVALID_TRANSITION, details)


class DuplicateReviewError(ConflictError):
    """Exception raised when a booking already has a review"""

    def __init__(self, booking_id: Optional[str] = None):
        super().__init__(
            "You have already reviewed this booking",
            ErrorCode.DUPLICATE_REVIEW,
            {"booking_id": booking_id}
        )


# ========================================
# Promotion Exceptions
# ========================================

class PromotionError(ConflictError):
    """Base class for promotion redemption failures"""

    def __init__(
        self,
        message: str,
        error_code: ErrorCode,
        code: Optional[str] = None,
        status_code: int = 409
    ):
        super().__init__(message, error_code, {"promotion_code": code}, status_code)


class PromotionNotFoundError(PromotionError):
    """No active promotion matches the code"""

    def __init__(self, code: Optional[str] = None):
        super().__init__(
            "Promotion code not found or inactive",
            ErrorCode.PROMOTION_NOT_FOUND,
            code,
            status_code=404
        )


class PromotionExpiredError(PromotionError):
    """The promotion is outside its validity window"""

    def __init__(self, code: Optional[str] = None, message: Optional[str] = None):
        super().__init__(
            message or "Promotion code is not valid at this time",
            ErrorCode.PROMOTION_EXPIRED,
            code
        )


class PromotionExhaustedError(PromotionError):
    """The promotion has reached its maximum number of uses"""

    def __init__(self, code: Optional[str] = None):
        super().__init__(
            "Promotion code has reached its maximum number of uses",
            ErrorCode.PROMOTION_EXHAUSTED,
            code
        )


class PromotionIneligibleError(PromotionError):
    """The booking does not satisfy the promotion's conditions"""

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message, ErrorCode.PROMOTION_INELIGIBLE, code, status_code=422)


# ========================================
# Persistence Exceptions
# ========================================

class RepositoryError(BaseAppException):
    """Exception raised when a database operation fails"""

    def __init__(self, message: str = "Database operation failed"):
        super().__init__(message, ErrorCode.DATABASE_ERROR, None, 500)


# ========================================
# External Service Exceptions
# ========================================

class ExternalServiceError(BaseAppException):
    """Exception raised when external service calls fail"""

    def __init__(
        self,
        message: str = "External service error",
        service_name: Optional[str] = None,
        error_code: ErrorCode = ErrorCode.EXTERNAL_SERVICE_ERROR,
        status_code: int = 503
    ):
        details = {"service_name": service_name} if service_name else {}
        super().__init__(message, error_code, details, status_code)


class EmailServiceError(ExternalServiceError):
    """Exception raised when email delivery fails"""

    def __init__(self, message: str = "Email service error", recipient: Optional[str] = None):
        super().__init__(message, "smtp", ErrorCode.EMAIL_SERVICE_ERROR)
        if recipient:
            self.details["recipient"] = recipient


class FileStorageError(ExternalServiceError):
    """Exception raised when an upload cannot be stored or removed"""

    def __init__(self, message: str = "File storage error"):
        super().__init__(message, "file_storage", ErrorCode.FILE_STORAGE_ERROR)


# ========================================
# Utility Functions
# ========================================

def create_validation_error(field_errors: Dict[str, List[str]]) -> ValidationError:
    """Create a validation error with field-specific errors"""
    total_errors = sum(len(errors) for errors in field_errors.values())
    message = f"Validation failed with {total_errors} error(s)"
    return ValidationError(message, field_errors)


__all__ = [
    'ErrorCode',
    'BaseAppException',
    'ValidationError',
    'InvalidDateRangeError',
    'ResourceNotFoundError',
    'EntityNotFoundError',
    'AuthenticationError',
    'AuthorizationError',
    'ConflictError',
    'DuplicateEntryError',
    'DependentRecordsError',
    'RoomUnavailableError',
    'InvalidTransitionError',
    'DuplicateReviewError',
    'PromotionError',
    'PromotionNotFoundError',
    'PromotionExpiredError',
    'PromotionExhaustedError',
    'PromotionIneligibleError',
    'RepositoryError',
    'ExternalServiceError',
    'EmailServiceError',
    'FileStorageError',
    'create_validation_error',
]
