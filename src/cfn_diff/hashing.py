"""Hashing utilities for deterministic resource digests.

This module provides the deep structural hash used to fingerprint resource
contents, plus a plain SHA-256 helper for digest strings.
"""

from typing import Any
import hashlib


def sha256_hex(text: str) -> str:
    """Compute the hex SHA-256 of a UTF-8 string.

    Args:
        text: String to hash

    Returns:
        64-character hex digest
    """
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def _type_name(value: Any) -> str:
    # JSON type names, so that hashes agree for the same parsed document
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    return type(value).__name__


def _string_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def hash_object(obj: Any) -> str:
    """Compute a deterministic SHA-256 over a JSON-like structure.

    Mappings contribute their keys in sorted order, each followed by its
    value. Sequences contribute their elements in order. Primitives
    contribute their JSON type name followed by their string form, and
    None is hashed as the string "null".

    Args:
        obj: Parsed JSON/YAML value

    Returns:
        64-character hex digest

    Example:
        >>> hash_object({"b": 1, "a": [True, None]}) == hash_object({"a": [True, None], "b": 1})
        True
    """
    h = hashlib.sha256()

    def add(value: Any) -> None:
        if value is None:
            add("null")
        elif isinstance(value, dict):
            for key in sorted(value, key=str):
                h.update(str(key).encode("utf-8"))
                add(value[key])
        elif isinstance(value, (list, tuple)):
            for item in value:
                add(item)
        else:
            h.update((_type_name(value) + _string_value(value)).encode("utf-8"))

    add(obj)
    return h.hexdigest()


__all__ = [
    "hash_object",
    "sha256_hex",
]
