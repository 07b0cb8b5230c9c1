"""
GLTF Format Utilities

Helpers for reading pygltflib objects, whose optional fields come back as None
and whose extension blocks arrive as plain dicts.
"""

from typing import Any, Optional


def get_field(obj: Any, field_name: str, default: Any = None) -> Any:
    """
    Get field from either dict or object format

    Args:
        obj: Dict or pygltflib object to extract field from
        field_name: Name of field to extract
        default: Default value if field is missing or None

    Returns:
        Field value or default
    """
    if obj is None:
        return default

    if isinstance(obj, dict):
        value = obj.get(field_name, default)
    else:
        value = getattr(obj, field_name, default)
    return value if value is not None else default


def has_field(obj: Any, field_name: str) -> bool:
    """
    Check if object has a non-None field (either as attribute or dict key)
    """
    return get_field(obj, field_name) is not None


def get_list_field(obj: Any, field_name: str, default: Optional[list] = None) -> list:
    """
    Get list field, handling both dict and object formats

    Returns:
        List value or default (empty list if default is None)
    """
    if default is None:
        default = []

    value = get_field(obj, field_name, default)
    if not isinstance(value, list):
        return default
    return value


def get_extension(obj: Any, name: str) -> Optional[dict]:
    """Return the named extension block of a glTF object, if present."""
    extensions = get_field(obj, 'extensions', {})
    return extensions.get(name) if isinstance(extensions, dict) else None
