"""
Custom exceptions for the complaint desk.

Every error raised by the stores and forms derives from ComplaintDeskError so
the HTTP layer can turn it into a JSON body with a stable ``code``.
"""

from typing import Any, Dict, Optional


class ComplaintDeskError(Exception):
    """Base exception for all complaint desk errors"""

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details
        }


# Identity

class AuthenticationError(ComplaintDeskError):
    """Login failed: unknown email or wrong administrator password"""

    def __init__(self, message: str = "Invalid email or password"):
        super().__init__(message, code="AUTH_FAILED")


class DuplicateEmailError(ComplaintDeskError):
    def __init__(self, email: str):
        super().__init__(
            "Email already registered",
            code="DUPLICATE_EMAIL",
            details={"email": email}
        )


class NotAuthenticatedError(ComplaintDeskError):
    def __init__(self, message: str = "User must be logged in"):
        super().__init__(message, code="NOT_AUTHENTICATED")


class NotAuthorizedError(ComplaintDeskError):
    def __init__(self, message: str = "Admins only"):
        super().__init__(message, code="NOT_AUTHORIZED")


# Validation

class ValidationError(ComplaintDeskError):
    """One or more form fields failed validation"""

    def __init__(self, errors: Dict[str, str]):
        self.errors = dict(errors)
        message = next(iter(self.errors.values()), "Validation failed")
        super().__init__(message, code="VALIDATION_FAILED", details={"errors": self.errors})


class FileRejectedError(ComplaintDeskError):
    """Attachment failed the type or size check"""

    def __init__(self, filename: str, reason: str):
        self.filename = filename
        super().__init__(reason, code="FILE_REJECTED", details={"filename": filename})


# Complaints

class ComplaintNotFoundError(ComplaintDeskError):
    def __init__(self, complaint_id: str):
        super().__init__(
            f"Complaint with ID '{complaint_id}' not found",
            code="COMPLAINT_NOT_FOUND",
            details={"complaint_id": complaint_id}
        )


class InvalidTransitionError(ComplaintDeskError):
    """Status may only move forward: pending -> in-progress -> resolved"""

    def __init__(self, current: str, requested: str):
        super().__init__(
            f"Cannot move complaint from '{current}' back to '{requested}'",
            code="INVALID_TRANSITION",
            details={"current": current, "requested": requested}
        )
