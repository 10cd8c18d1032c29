"""
Shared error handling for the ACL engine.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response format."""

    code: str
    message: str
    details: Dict[str, Any] = {}


class AclException(Exception):
    """Base exception for the ACL engine."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            code=self.code,
            message=self.message,
            details=self.details
        )


class NotFoundError(AclException):
    """Referenced identifier is not registered."""


class ConflictError(AclException):
    """Identifier is already registered."""


class ValidationError(AclException):
    """Argument or rule validation errors."""


class NotSupportedError(AclException):
    """Feature exists in the interface but is not implemented."""


class LoaderError(AclException):
    """Errors raised while loading a permissions description."""


class RoleNotFoundError(NotFoundError):

    def __init__(self, role_id: Any):
        super().__init__("ROLE_NOT_FOUND", f"Role '{role_id}' not found", {"role_id": str(role_id)})


class ResourceNotFoundError(NotFoundError):

    def __init__(self, resource_id: Any):
        super().__init__(
            "RESOURCE_NOT_FOUND",
            f"Resource '{resource_id}' not found",
            {"resource_id": str(resource_id)}
        )


class DuplicateRoleError(ConflictError):

    def __init__(self, role_id: str):
        super().__init__(
            "DUPLICATE_ROLE",
            f"Role id '{role_id}' already exists in the registry",
            {"role_id": role_id}
        )


class DuplicateResourceError(ConflictError):

    def __init__(self, resource_id: str):
        super().__init__(
            "DUPLICATE_RESOURCE",
            f"Resource id '{resource_id}' already exists in the ACL",
            {"resource_id": resource_id}
        )


class InvalidRoleArgumentError(ValidationError):

    def __init__(self, value: Any):
        super().__init__(
            "INVALID_ROLE_ARGUMENT",
            "Role must be given as a Role or a string identifier",
            {"type": type(value).__name__}
        )


class InvalidResourceArgumentError(ValidationError):

    def __init__(self, value: Any):
        super().__init__(
            "INVALID_RESOURCE_ARGUMENT",
            "Resource must be given as a Resource or a string identifier",
            {"type": type(value).__name__}
        )


class InvalidPrivilegeArgumentError(ValidationError):

    def __init__(self, value: Any):
        super().__init__(
            "INVALID_PRIVILEGE_ARGUMENT",
            "Privileges must be given as a string or a list of strings",
            {"type": type(value).__name__}
        )


class UnsupportedRuleTypeError(ValidationError):

    def __init__(self, rule_type: Any):
        super().__init__(
            "UNSUPPORTED_RULE_TYPE",
            "Unsupported rule type; must be either 'allow' or 'deny'",
            {"rule_type": str(rule_type)}
        )


class UnsupportedOperationError(ValidationError):

    def __init__(self, operation: Any):
        super().__init__(
            "UNSUPPORTED_OPERATION",
            "Unsupported operation; must be either 'add' or 'remove'",
            {"operation": str(operation)}
        )


class AssertionNotSupportedError(NotSupportedError):

    def __init__(self, details: Optional[Dict[str, Any]] = None):
        super().__init__("ASSERTION_NOT_SUPPORTED", "ACL assertions are not implemented", details)


class InvalidPermissionsError(LoaderError):

    def __init__(self, message: str = "Permissions must be set", details: Optional[Dict[str, Any]] = None):
        super().__init__("INVALID_PERMISSIONS", message, details)


class CycleDetectedError(LoaderError):

    def __init__(self, names: Any):
        super().__init__(
            "CYCLE_DETECTED",
            "Cycle detected in parent references",
            {"unresolved": sorted(names)}
        )


class UnresolvedParentError(LoaderError):

    def __init__(self, parent: str, name: str):
        super().__init__(
            "UNRESOLVED_PARENT",
            f"Parent '{parent}' does not exist",
            {"parent": parent, "name": name}
        )


class MalformedRuleError(LoaderError):

    def __init__(self, index: int, missing: Any, details: Optional[Dict[str, Any]] = None):
        payload = {"index": index, "fields": list(missing)}
        payload.update(details or {})
        super().__init__(
            "MALFORMED_RULE",
            f"Rule #{index} is malformed: {', '.join(missing) or 'invalid entry'}",
            payload
        )


class UnknownAccessTypeError(LoaderError):

    def __init__(self, access: Any, index: int):
        super().__init__(
            "UNKNOWN_ACCESS_TYPE",
            f"Unknown access '{access}' found",
            {"access": str(access), "index": index}
        )
