"""
String table utilities.

A string table is the flat form of a language JSON document: dotted keys
mapped to their values, in the order they appear in the source file.
"""

from typing import Any, Dict, List, Tuple


def flatten_json(obj: Any, path: str = "", pairs: List[Tuple[str, Any]] = None) -> List[Tuple[str, Any]]:
    """
    Flatten a language JSON document into (dotted key, value) pairs.

    Example:
        >>> flatten_json({"SETTINGS": {"Title": "Settings"}, "Close": "Close"})
        [("SETTINGS.Title", "Settings"), ("Close", "Close")]
    """
    pairs = [] if pairs is None else pairs

    if not isinstance(obj, dict):
        if path:
            pairs.append((path, obj))
        return pairs

    for key, value in obj.items():
        key_path = f"{path}.{key}" if path else str(key)
        if isinstance(value, dict):
            flatten_json(value, key_path, pairs)
        else:
            pairs.append((key_path, value))
    return pairs


def to_string_table(obj: Any) -> Dict[str, Any]:
    """Normalize a (possibly nested) language document into a flat string table."""
    return dict(flatten_json(obj))


def is_nested(obj: Any) -> bool:
    """Whether a language document groups keys in objects instead of using dotted keys."""
    return isinstance(obj, dict) and any(isinstance(value, dict) for value in obj.values())


def is_translatable(key: Any, value: Any) -> bool:
    """A pair is translatable when the key is truthy and the value is a non-blank string."""
    return bool(key) and isinstance(value, str) and bool(value.strip())


def build_json_from_pairs(pairs: List[Tuple[str, Any]]) -> Dict[str, Any]:
    """
    Rebuild a nested language document from (dotted key, value) pairs.

    A later pair that needs an object where an earlier pair left a plain
    value replaces that value.
    """
    document: Dict[str, Any] = {}

    for key_path, value in pairs:
        *parents, leaf = key_path.split(".")
        node = document
        for part in parents:
            child = node.get(part)
            if not isinstance(child, dict):
                child = node[part] = {}
            node = child
        node[leaf] = value

    return document


def missing_keys(base_table: Dict[str, Any], target_table: Dict[str, Any]) -> List[str]:
    """
    Translatable base keys the target table has no usable translation for.

    Returns keys in base table order.
    """
    target_table = target_table or {}
    return [
        key for key, value in base_table.items()
        if is_translatable(key, value) and not is_translatable(key, target_table.get(key))
    ]
