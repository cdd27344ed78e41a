"""Content-derived resource digests.

Conceptually, the digest of a resource is::

    d(resource) = hash(type + identifier values)              , if its primary identifier is set
                = hash(type + properties + dependencies.map(d)) , otherwise

If a resource declares its full primary identifier, type plus identifier is
its identity, so it can be renamed and have other properties updated at the
same time and still be recognised. Otherwise the digest covers its own
content (references replaced by placeholders, construct path removed) and the
digests of the resources it depends on.

Because no logical ID ever enters the hash, digests are stable when a
resource or any of its dependencies is renamed.
"""

import json
import logging
from collections import deque
from typing import Any, Dict, List, Mapping, Optional

from .constants import CONSTRUCT_PATH_KEY
from .errors import DependencyCycleError
from .hashing import hash_object, sha256_hex
from .intrinsics import iter_references, strip_construct_path, strip_references
from .resource_models import ResourceModel, ResourceModelRegistry, lookup_resource_model

logger = logging.getLogger(__name__)


class DependencyGraph:
    """Dependencies between the resources of one template.

    ``dependencies[a]`` holds the resources ``a`` refers to, in the order they
    were first discovered. References to anything that is not a resource of
    the template (parameters, pseudo parameters, unknown IDs) and
    self-references are dropped.
    """

    def __init__(self, resources: Mapping[str, Any]):
        self.dependencies: Dict[str, Dict[str, None]] = {rid: {} for rid in resources}
        self.dependents: Dict[str, Dict[str, None]] = {rid: {} for rid in resources}

        for rid, resource in resources.items():
            for ref in iter_references(resource or {}):
                if ref.target in resources and ref.target != rid:
                    self.dependencies[rid][ref.target] = None
                    self.dependents[ref.target][rid] = None

    def dependencies_of(self, logical_id: str) -> List[str]:
        """Dependencies of a resource in discovery order."""
        return list(self.dependencies[logical_id])

    def topological_order(self) -> List[str]:
        """Order resources so that every resource follows its dependencies.

        Kahn's algorithm over out-degree: a resource becomes ready once all
        of its dependencies have been emitted.

        Raises:
            DependencyCycleError: If some resources can never become ready
        """
        remaining = {rid: len(deps) for rid, deps in self.dependencies.items()}
        queue = deque(rid for rid, count in remaining.items() if count == 0)
        order = []

        while queue:
            node = queue.popleft()
            order.append(node)
            for dependent in self.dependents[node]:
                remaining[dependent] -= 1
                if remaining[dependent] == 0:
                    queue.append(dependent)

        if len(order) != len(self.dependencies):
            stuck = [rid for rid, count in remaining.items() if count > 0]
            raise DependencyCycleError(stuck)
        return order


def _identifier_values(properties: Mapping[str, Any], model: Optional[ResourceModel]) -> Optional[List[str]]:
    """Serialized identifier values, or None if the identifier isn't fully set."""
    if model is None or not model.primary_identifier:
        return None
    present = [
        name for name in model.primary_identifier
        if name in properties and properties[name] is not None
    ]
    if len(present) != len(model.primary_identifier):
        return None
    return [json.dumps(properties[name], sort_keys=True, separators=(",", ":")) for name in sorted(present)]


def compute_resource_digests(
    template: Mapping[str, Any],
    registry: Optional[ResourceModelRegistry] = None,
    construct_path_key: str = CONSTRUCT_PATH_KEY,
) -> Dict[str, str]:
    """Compute the digest of every resource in a template.

    Args:
        template: Parsed template (only ``Resources`` is read)
        registry: Resource models to consult for primary identifiers
            (defaults to the bundled catalogue)
        construct_path_key: Metadata key to ignore when hashing

    Returns:
        Mapping from logical ID to 64-character hex digest

    Raises:
        DependencyCycleError: If resources reference each other in a cycle
    """
    resources = template.get("Resources") or {}
    if not resources:
        return {}

    graph = DependencyGraph(resources)
    order = graph.topological_order()

    result: Dict[str, str] = {}
    for rid in order:
        resource = resources[rid] or {}
        resource_type = resource.get("Type", "")
        properties = resource.get("Properties") or {}
        model = lookup_resource_model(resource_type, registry)

        identifier = _identifier_values(properties, model)
        if identifier is not None:
            to_hash = resource_type + "".join(identifier)
        else:
            content = strip_references(strip_construct_path(resource, construct_path_key))
            dep_digests = "".join(result[dep] for dep in graph.dependencies_of(rid))
            to_hash = resource_type + hash_object(content) + dep_digests

        result[rid] = sha256_hex(to_hash)

    logger.debug("Computed digests for %d resources", len(result))
    return result
