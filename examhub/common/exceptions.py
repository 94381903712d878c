"""
Common Exception Classes

This module defines the error taxonomy used throughout the exam backend.
Every error carries a machine-readable ``code`` and the HTTP ``status_code``
the API layer renders it with.
"""

from typing import Any, Dict, List, Optional


class BaseError(Exception):
    """Base class for all custom exceptions."""

    status_code = 500
    code = "internal_error"

    def __init__(
        self,
        message: str,
        original_exception: Optional[Exception] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize the exception.

        Args:
            message: Error message
            original_exception: Original exception that caused this error
            details: Optional structured details for API clients
        """
        super().__init__(message)
        self.message = message
        self.original_exception = original_exception
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert the error to a response-friendly dictionary."""
        return {"code": self.code, "message": self.message, "details": self.details}


class ValidationError(BaseError):
    """Exception raised for invalid input."""

    status_code = 400
    code = "validation_error"

    def __init__(self, message: str, errors: Optional[Dict[str, Any]] = None):
        """
        Initialize the validation error.

        Args:
            message: Error message
            errors: Dictionary of field-level validation errors
        """
        super().__init__(f"Validation error: {message}", details=errors)
        self.errors = errors or {}


class InvalidRosterEntry(ValidationError):
    """A roster student cannot be assigned a set because they have no email."""

    code = "invalid_roster_entry"

    def __init__(self, student_names: List[str]):
        super().__init__(
            "All students must have an email address to be assigned a question set",
            {"students": student_names},
        )
        self.student_names = student_names


class NotFoundError(BaseError):
    """Exception raised when a resource is not found."""

    status_code = 404
    code = "not_found"

    def __init__(self, resource_type: str, resource_id: Any, message: Optional[str] = None):
        """
        Initialize the not found error.

        Args:
            resource_type: Type of resource that wasn't found
            resource_id: ID of the resource that wasn't found
            message: Optional message overriding the default one
        """
        super().__init__(
            message or f"{resource_type} with ID {resource_id} not found",
            details={"resource_type": resource_type, "resource_id": resource_id},
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


class NoAssignedSet(NotFoundError):
    """The student is enrolled but holds no question set for the exam."""

    code = "no_assigned_set"

    def __init__(self, exam_id: str, student_email: str):
        super().__init__(
            "QuestionSet", None,
            f"No question set assigned to {student_email} for exam {exam_id}",
        )
        self.exam_id = exam_id


class NoSetFound(NotFoundError):
    """The referenced question set does not belong to the submitting student."""

    code = "no_set_found"

    def __init__(self, exam_id: str, question_set_id: Optional[str] = None):
        super().__init__(
            "QuestionSet", question_set_id,
            f"No question set found for this student in exam {exam_id}",
        )
        self.exam_id = exam_id


class AuthorizationError(BaseError):
    """Exception raised for authorization-related errors."""

    status_code = 403
    code = "forbidden"

    def __init__(self, message: str, resource: Optional[str] = None, action: Optional[str] = None):
        """
        Initialize the authorization error.

        Args:
            message: Error message
            resource: The resource that was being accessed
            action: The action that was being attempted
        """
        super().__init__(
            f"Authorization error: {message}",
            details={"resource": resource, "action": action},
        )
        self.resource = resource
        self.action = action


class NotEnrolled(AuthorizationError):
    """The student is not on the roster of the class the exam is assigned to."""

    code = "not_enrolled"

    def __init__(self, exam_id: str, student_email: str):
        super().__init__(
            f"{student_email} is not enrolled in the class assigned to this exam",
            resource=f"exam:{exam_id}",
            action="read_questions",
        )


class StateError(BaseError):
    """The resource is not in a state that allows the requested operation."""

    status_code = 409
    code = "invalid_state"

    def __init__(self, message: str, resource_id: Optional[str] = None):
        super().__init__(message, details={"resource_id": resource_id})
        self.resource_id = resource_id


class NotPublished(StateError):
    status_code = 403
    code = "not_published"

    def __init__(self, exam_id: str):
        super().__init__("Exam is not published yet", exam_id)


class NotStarted(StateError):
    status_code = 403
    code = "not_started"

    def __init__(self, exam_id: str):
        super().__init__("Exam has not started yet", exam_id)


class Expired(StateError):
    status_code = 403
    code = "expired"

    def __init__(self, exam_id: str):
        super().__init__("Exam window has expired", exam_id)


class SetCompleted(StateError):
    """The question set was already completed, by submission or by the instructor."""

    status_code = 403
    code = "set_completed"

    def __init__(self, question_set_id: str):
        super().__init__("This question set has already been completed", question_set_id)


class AlreadySubmitted(StateError):
    code = "already_submitted"

    def __init__(self, exam_id: str, student_id: Optional[str] = None):
        super().__init__(f"A submission for exam {exam_id} already exists", exam_id)
        self.student_id = student_id


class ConcurrentRegeneration(StateError):
    code = "concurrent_regeneration"

    def __init__(self, exam_id: str):
        super().__init__(
            f"Question sets for exam {exam_id} were regenerated concurrently, retry the request",
            exam_id,
        )


class RegenerationBlocked(StateError):
    code = "regeneration_blocked"

    def __init__(self, exam_id: str, submission_count: int):
        super().__init__(
            f"Exam {exam_id} already has {submission_count} graded submission(s); "
            "its question sets can no longer be regenerated",
            exam_id,
        )
        self.submission_count = submission_count


class CapacityError(BaseError):
    """The inputs cannot produce the requested number of sets or assignments."""

    status_code = 400
    code = "capacity_error"


class InsufficientQuestions(CapacityError):
    code = "insufficient_questions"

    def __init__(self, available: int, required: int):
        super().__init__(
            "Not enough questions for even one set",
            details={"available": available, "required": required},
        )
        self.available = available
        self.required = required


class EmptyRoster(CapacityError):
    code = "empty_roster"

    def __init__(self, class_id: Optional[str]):
        super().__init__(
            f"Class {class_id} has no students to assign",
            details={"class_id": class_id},
        )


class PersistenceError(BaseError):
    """Exception raised when the store fails."""

    code = "persistence_error"

    def __init__(self, message: str, original_exception: Optional[Exception] = None):
        """
        Initialize the persistence error.

        Args:
            message: Error message
            original_exception: Original database exception
        """
        super().__init__(f"Database error: {message}", original_exception)
