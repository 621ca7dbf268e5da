"""
Error taxonomy for the authorization service.

Role Store and Session Context failures are raised as explicit exceptions.
The evaluator and the project-scope filter never raise; they fail closed.
"""

from typing import Optional


class SolulyError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code: int = 400
    code: str = "error"

    def __init__(self, message: str, *, detail: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail or {}


# Permission matrix validation

class ValidationError(SolulyError):
    status_code = 422
    code = "validation_error"


class MatrixValidationError(ValidationError):
    code = "invalid_permission_matrix"

    def __init__(self, message: str, *, resource: Optional[str] = None, action: Optional[str] = None):
        detail = {}
        if resource is not None:
            detail["resource"] = resource
        if action is not None:
            detail["action"] = action
        super().__init__(message, detail=detail)
        self.resource = resource
        self.action = action


class MissingResource(MatrixValidationError):
    code = "missing_resource"


class MissingAction(MatrixValidationError):
    code = "missing_action"


class UnknownKey(MatrixValidationError):
    code = "unknown_key"


class InvalidPermissionValue(MatrixValidationError):
    code = "invalid_permission_value"


# Role Store

class RoleStoreError(SolulyError):
    code = "role_store_error"


class DuplicateName(RoleStoreError):
    status_code = 409
    code = "duplicate_name"


class NotFound(RoleStoreError):
    status_code = 404
    code = "not_found"


class SystemRoleImmutableName(RoleStoreError):
    status_code = 409
    code = "system_role_immutable_name"


class SystemRoleUndeletable(RoleStoreError):
    status_code = 409
    code = "system_role_undeletable"


class UnknownTemplate(RoleStoreError):
    status_code = 404
    code = "unknown_template"


# Session / actor resolution ("authentication degraded")

class SessionError(SolulyError):
    status_code = 503
    code = "authentication_degraded"


class TimedOut(SessionError):
    code = "timed_out"


class ConnectivityError(SessionError):
    code = "connectivity_error"
