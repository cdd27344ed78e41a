"""Recognition of the intrinsic forms that create resource dependencies.

Resource properties are open-ended JSON-like values. Three shapes inside them
point at other resources:

- ``{"Ref": "Id"}``
- ``{"Fn::GetAtt": ["Id", "Attr"]}`` or ``{"Fn::GetAtt": "Id.Attr"}``
- ``"DependsOn": "Id"`` or ``"DependsOn": ["Id", ...]`` (a resource attribute)

Everything else is plain data.
"""

import copy
from typing import Any, Dict, Iterator, List, NamedTuple

from .constants import CONSTRUCT_PATH_KEY, REFERENCE_PLACEHOLDER_KEY

REF = "Ref"
GET_ATT = "Fn::GetAtt"
DEPENDS_ON = "DependsOn"


class Reference(NamedTuple):
    """A dependency-forming reference to another logical ID."""

    kind: str
    target: str


def _get_att_target(value: Any) -> Any:
    if isinstance(value, list):
        return value[0] if value else None
    if isinstance(value, str):
        return value.split(".")[0]
    return None


def as_references(node: Any) -> List[Reference]:
    """Match a single mapping node against the Ref and Fn::GetAtt forms.

    Returns an empty list for anything that is not such a node. Targets that
    are not strings (for example a nested intrinsic) are ignored.
    """
    if not isinstance(node, dict):
        return []
    if REF in node:
        target = node[REF]
        return [Reference(REF, target)] if isinstance(target, str) else []
    if GET_ATT in node:
        target = _get_att_target(node[GET_ATT])
        return [Reference(GET_ATT, target)] if isinstance(target, str) else []
    return []


def _depends_on_targets(value: Any) -> List[str]:
    if isinstance(value, str):
        return [value]
    if isinstance(value, list):
        return [v for v in value if isinstance(v, str)]
    return []


def iter_references(value: Any) -> Iterator[Reference]:
    """Yield every reference in a JSON-like tree.

    Mapping keys are visited in sorted order, so the discovery order is a
    function of the content only.
    """
    if isinstance(value, list):
        for item in value:
            yield from iter_references(item)
        return
    if not isinstance(value, dict):
        return

    refs = as_references(value)
    if refs:
        yield from refs
        return

    for key in sorted(value):
        if key == DEPENDS_ON:
            for target in _depends_on_targets(value[key]):
                yield Reference(DEPENDS_ON, target)
        else:
            yield from iter_references(value[key])


def find_references(value: Any) -> List[Reference]:
    """Return all references in a JSON-like tree, in discovery order."""
    return list(iter_references(value))


def _placeholder(kind: str) -> Dict[str, str]:
    return {REFERENCE_PLACEHOLDER_KEY: kind}


def strip_references(value: Any) -> Any:
    """Replace every reference with an opaque placeholder.

    The surrounding structure is preserved, so sibling values still
    contribute to a hash while the referenced logical IDs do not.
    """
    if isinstance(value, list):
        return [strip_references(item) for item in value]
    if not isinstance(value, dict):
        return value
    if REF in value:
        return _placeholder(REF)
    if GET_ATT in value:
        return _placeholder(GET_ATT)

    result = {}
    for key, item in value.items():
        if key == DEPENDS_ON:
            result[key] = _placeholder(DEPENDS_ON)
        else:
            result[key] = strip_references(item)
    return result


def strip_construct_path(resource: Any, key: str = CONSTRUCT_PATH_KEY) -> Any:
    """Return the resource without its construct path metadata entry."""
    if not isinstance(resource, dict):
        return resource
    metadata = resource.get("Metadata")
    if not isinstance(metadata, dict) or metadata.get(key) is None:
        return resource

    stripped = copy.deepcopy(resource)
    del stripped["Metadata"][key]
    return stripped


def construct_path(resource: Any, key: str = CONSTRUCT_PATH_KEY) -> Any:
    """Return the construct path recorded in resource metadata, if any."""
    if not isinstance(resource, dict):
        return None
    metadata = resource.get("Metadata")
    if not isinstance(metadata, dict):
        return None
    return metadata.get(key)
