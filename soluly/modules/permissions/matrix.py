"""
Permission matrix construction, validation and (de)serialisation.

Writes go through validate_matrix (strict: every schema pair present, nothing
extra). Rows read back from the database go through coerce_matrix, which never
raises and fills anything missing or malformed with DENIED.
"""
import logging
from typing import Any, Dict, Mapping, Optional

from soluly.core.exceptions import (
    InvalidPermissionValue,
    MatrixValidationError,
    MissingAction,
    MissingResource,
    UnknownKey,
)
from soluly.config.permissions_config import OWN
from soluly.modules.permissions.models import (
    Action,
    PermissionMatrix,
    PermissionValue,
    Resource,
    SCHEMA,
)

logger = logging.getLogger(__name__)


def default_matrix() -> PermissionMatrix:
    """All-DENIED matrix for every resource/action in the schema."""
    return {
        resource: {action: PermissionValue.DENIED for action in actions}
        for resource, actions in SCHEMA.items()
    }


def parse_permission_value(value: Any) -> Optional[PermissionValue]:
    """Map a stored JSON value to a PermissionValue; None when malformed."""
    if isinstance(value, PermissionValue):
        return value
    # bool first: True/False are also ints
    if isinstance(value, bool):
        return PermissionValue.ALLOWED if value else PermissionValue.DENIED
    if value == OWN:
        return PermissionValue.OWN_ONLY
    return None


def _key(enum_cls, key):
    if isinstance(key, enum_cls):
        return key
    try:
        return enum_cls(key)
    except ValueError:
        return None


def validate_matrix(raw: Mapping[Any, Any]) -> PermissionMatrix:
    """
    Strictly validate a permission matrix and return its parsed form.

    Raises MissingResource, MissingAction, UnknownKey or InvalidPermissionValue.
    """
    if not isinstance(raw, Mapping):
        raise MatrixValidationError("Permission matrix must be an object")

    parsed: PermissionMatrix = {}
    for raw_resource, raw_actions in raw.items():
        resource = _key(Resource, raw_resource)
        if resource is None:
            raise UnknownKey(f"Unknown resource: {raw_resource}", resource=str(raw_resource))
        if not isinstance(raw_actions, Mapping):
            raise MatrixValidationError(
                f"Permissions for {resource.value} must be an object", resource=resource.value
            )
        allowed_actions = SCHEMA[resource]
        actions: Dict[Action, PermissionValue] = {}
        for raw_action, raw_value in raw_actions.items():
            action = _key(Action, raw_action)
            if action is None or action not in allowed_actions:
                raise UnknownKey(
                    f"Unknown action {raw_action} for resource {resource.value}",
                    resource=resource.value,
                    action=str(raw_action),
                )
            value = parse_permission_value(raw_value)
            if value is None:
                raise InvalidPermissionValue(
                    f"Invalid permission value {raw_value!r} for {resource.value}.{action.value}",
                    resource=resource.value,
                    action=action.value,
                )
            actions[action] = value
        parsed[resource] = actions

    for resource, required_actions in SCHEMA.items():
        if resource not in parsed:
            raise MissingResource(f"Missing resource: {resource.value}", resource=resource.value)
        for action in required_actions:
            if action not in parsed[resource]:
                raise MissingAction(
                    f"Missing action {action.value} for resource {resource.value}",
                    resource=resource.value,
                    action=action.value,
                )
    return parsed


def coerce_matrix(raw: Any) -> PermissionMatrix:
    """Lenient parse for stored rows: anything missing or malformed is DENIED."""
    matrix = default_matrix()
    if not isinstance(raw, Mapping):
        if raw is not None:
            logger.warning("Ignoring malformed permission matrix of type %s", type(raw).__name__)
        return matrix
    for raw_resource, raw_actions in raw.items():
        resource = _key(Resource, raw_resource)
        if resource is None or not isinstance(raw_actions, Mapping):
            logger.warning("Ignoring unknown or malformed resource in stored permissions: %s", raw_resource)
            continue
        for raw_action, raw_value in raw_actions.items():
            action = _key(Action, raw_action)
            value = parse_permission_value(raw_value)
            if action is None or action not in SCHEMA[resource] or value is None:
                logger.warning(
                    "Ignoring stored permission %s.%s=%r", resource.value, raw_action, raw_value
                )
                continue
            matrix[resource][action] = value
    return matrix


def merge_template(base: PermissionMatrix, template: Mapping[Any, Any]) -> PermissionMatrix:
    """
    Apply a role template: a full overwrite of base, never a deep merge.

    base is discarded wholesale; the template is validated so a partial
    template cannot leave holes.
    """
    return validate_matrix(template)


def matrix_to_json(matrix: Mapping[Any, Any]) -> Dict[str, Dict[str, Any]]:
    """Serialise a parsed matrix to the stored JSON shape."""
    result: Dict[str, Dict[str, Any]] = {}
    for resource, actions in matrix.items():
        resource_key = resource.value if isinstance(resource, Resource) else str(resource)
        result[resource_key] = {}
        for action, value in actions.items():
            action_key = action.value if isinstance(action, Action) else str(action)
            parsed = parse_permission_value(value)
            result[resource_key][action_key] = parsed.to_json() if parsed is not None else value
    return result


def permission_for(matrix: Optional[PermissionMatrix], resource: Any, action: Any) -> PermissionValue:
    """Look up a single permission; unknown or missing pairs are DENIED."""
    if not matrix:
        return PermissionValue.DENIED
    resource_key = _key(Resource, resource)
    action_key = _key(Action, action)
    if resource_key is None or action_key is None:
        return PermissionValue.DENIED
    return matrix.get(resource_key, {}).get(action_key, PermissionValue.DENIED)
