"""
Domain Exceptions

Typed errors raised by the identity resolver, the access engine and the
resource services. They carry a machine-readable code and optional extra
data; mapping them onto HTTP responses is the job of
``api.exceptions.workforce_exception_handler``.

Taxonomy:
- NotFound: missing resource or principal
- AccountInactive: suspended or terminated principal
- Forbidden / InsufficientRole: access denied
- InvalidTransition: a state machine rejected the requested move
- PreconditionFailed: fields required by a transition are missing
- ValidationError: malformed input
- Conflict: duplicate active resource
- InvalidOperation: structurally disallowed operation
- InvalidCredential / ExpiredCredential: rejected bearer tokens
"""

from typing import Any, Dict, List, Optional


class WorkforceError(Exception):
    """
    Base class for every typed domain error.

    Attributes:
        message: Human-readable message
        code: Machine-readable error code
        extra_data: Additional context for the caller
    """

    default_message = "An unexpected error occurred."
    default_code = "ERROR"

    def __init__(
        self,
        message: str = None,
        code: str = None,
        extra_data: Optional[Dict[str, Any]] = None,
    ):
        self.message = message or self.default_message
        self.code = code or self.default_code
        self.extra_data = extra_data or {}
        super().__init__(self.message)

    def __str__(self):
        return self.message


class NotFound(WorkforceError):
    default_message = "The requested resource was not found."
    default_code = "NOT_FOUND"

    def __init__(self, resource_type: str = None, resource_id: Any = None, **kwargs):
        extra_data = kwargs.pop('extra_data', {})
        message = kwargs.pop('message', None)

        if resource_type:
            extra_data['resource_type'] = resource_type
        if resource_id is not None:
            extra_data['resource_id'] = str(resource_id)

        if message is None and resource_type:
            if resource_id is not None:
                message = f"{resource_type} with ID '{resource_id}' not found."
            else:
                message = f"{resource_type} not found."

        super().__init__(message=message, extra_data=extra_data, **kwargs)


class AccountInactive(WorkforceError):
    default_message = "This account is not active."
    default_code = "ACCOUNT_INACTIVE"

    def __init__(self, status: str = None, **kwargs):
        extra_data = kwargs.pop('extra_data', {})
        message = kwargs.pop('message', None)
        if status:
            extra_data['status'] = status
            message = message or f"This account is {status}."
        super().__init__(message=message, extra_data=extra_data, **kwargs)


class Forbidden(WorkforceError):
    default_message = "You do not have permission to perform this action."
    default_code = "FORBIDDEN"

    def __init__(self, message: str = None, action: str = None, resource_type: str = None, **kwargs):
        extra_data = kwargs.pop('extra_data', {})
        if action:
            extra_data['action'] = action
        if resource_type:
            extra_data['resource_type'] = resource_type
        super().__init__(message=message, extra_data=extra_data, **kwargs)


class InsufficientRole(Forbidden):
    default_message = "Your role does not have permission for this action."
    default_code = "INSUFFICIENT_ROLE"


class InvalidTransition(WorkforceError):
    default_message = "This operation cannot be performed in the current state."
    default_code = "INVALID_TRANSITION"

    def __init__(
        self,
        message: str = None,
        current_state: str = None,
        requested_state: str = None,
        allowed_states: List[str] = None,
        **kwargs
    ):
        extra_data = kwargs.pop('extra_data', {})
        if current_state:
            extra_data['current_state'] = current_state
        if requested_state:
            extra_data['requested_state'] = requested_state
        if allowed_states is not None:
            extra_data['allowed_states'] = list(allowed_states)
        if message is None and current_state:
            message = f"Resource is in '{current_state}' state."
            if requested_state:
                message = f"Cannot move from '{current_state}' to '{requested_state}'."
        super().__init__(message=message, extra_data=extra_data, **kwargs)


class PreconditionFailed(WorkforceError):
    default_message = "Required information is missing for this transition."
    default_code = "PRECONDITION_FAILED"

    def __init__(self, message: str = None, missing: List[str] = None, **kwargs):
        extra_data = kwargs.pop('extra_data', {})
        if missing:
            extra_data['missing'] = list(missing)
        super().__init__(message=message, extra_data=extra_data, **kwargs)


class ValidationError(WorkforceError):
    default_message = "Validation failed."
    default_code = "VALIDATION_ERROR"

    def __init__(self, message: str = None, field: str = None, **kwargs):
        extra_data = kwargs.pop('extra_data', {})
        self.field = field
        if field:
            extra_data['field'] = field
        super().__init__(message=message, extra_data=extra_data, **kwargs)


class Conflict(WorkforceError):
    default_message = "A resource with these details already exists."
    default_code = "CONFLICT"


class InvalidOperation(WorkforceError):
    default_message = "This operation is not allowed."
    default_code = "INVALID_OPERATION"


class InvalidCredential(WorkforceError):
    default_message = "Token is invalid."
    default_code = "INVALID_TOKEN"


class ExpiredCredential(InvalidCredential):
    default_message = "Token has expired."
    default_code = "TOKEN_EXPIRED"
