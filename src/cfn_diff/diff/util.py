"""Helpers for comparing template values."""

import json
from typing import Any, List, Optional, Set, TypeVar

T = TypeVar("T")


def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _as_id_set(value: Any) -> Optional[Set[str]]:
    if isinstance(value, str):
        return {value}
    if isinstance(value, list) and all(isinstance(v, str) for v in value):
        return set(value)
    return None


def _depends_on_equal(lvalue: Any, rvalue: Any) -> bool:
    """DependsOn accepts a string or a list, and its order has no meaning."""
    left, right = _as_id_set(lvalue), _as_id_set(rvalue)
    if left is None or right is None:
        return deep_equal(lvalue, rvalue)
    return left == right


def deep_equal(lvalue: Any, rvalue: Any) -> bool:
    """Compare two template values.

    CloudFormation passes every scalar through as a string, so ``"true"``
    equals ``True`` and ``"10"`` equals ``10``.
    """
    if lvalue is rvalue:
        return True

    # Booleans first: bool is a subclass of int
    if isinstance(lvalue, bool) or isinstance(rvalue, bool):
        if type(lvalue) is type(rvalue):
            return lvalue == rvalue
        text, flag = (lvalue, rvalue) if isinstance(lvalue, str) else (rvalue, lvalue)
        return isinstance(text, str) and isinstance(flag, bool) and text == ("true" if flag else "false")

    if isinstance(lvalue, str) and isinstance(rvalue, str):
        return lvalue == rvalue

    left_num, right_num = _as_number(lvalue), _as_number(rvalue)
    if left_num is not None and right_num is not None:
        return left_num == right_num

    if isinstance(lvalue, list) and isinstance(rvalue, list):
        if len(lvalue) != len(rvalue):
            return False
        return all(deep_equal(a, b) for a, b in zip(lvalue, rvalue))

    if isinstance(lvalue, dict) and isinstance(rvalue, dict):
        if lvalue.keys() != rvalue.keys():
            return False
        for key in lvalue:
            if key == "DependsOn":
                if not _depends_on_equal(lvalue[key], rvalue[key]):
                    return False
            elif not deep_equal(lvalue[key], rvalue[key]):
                return False
        return True

    return type(lvalue) is type(rvalue) and lvalue == rvalue


def canonical_json(value: Any) -> str:
    """Compact JSON with sorted keys, for set comparison of template fragments."""
    return json.dumps(value, sort_keys=True, separators=(",", ":"), default=str)


def subtract(items: List[T], other: List[T]) -> List[T]:
    """Items not in ``other``, in first-occurrence order, without duplicates."""
    exclude = set(other)
    seen: Set[T] = set()
    ret = []
    for item in items:
        if item in exclude or item in seen:
            continue
        seen.add(item)
        ret.append(item)
    return ret
