"""Detection of moved and renamed resources.

Resources are matched across the "before" and "after" stack sets by digest.
A digest that leaves exactly one location on each side, after discarding
locations that did not move, is a mapping. A digest with several candidates
on either side cannot be resolved, and detection fails for the whole set.
"""

import logging
from typing import Dict, List, Optional, Sequence, Tuple

from ..constants import CONSTRUCT_PATH_KEY, DEFAULT_FETCH_WORKERS
from ..digest import compute_resource_digests
from ..errors import AmbiguityError
from ..resource_models import ResourceModelRegistry
from .exclude import ExcludeList, NeverExclude
from .fetcher import DeployedStackFetcher, get_deployed_stacks
from .model import CloudFormationStack, Environment, ResourceLocation, ResourceMapping

logger = logging.getLogger(__name__)

Movement = Tuple[List[ResourceLocation], List[ResourceLocation]]


def _index(
    stacks: Sequence[CloudFormationStack],
    exclude: ExcludeList,
    registry: Optional[ResourceModelRegistry],
    construct_path_key: str,
) -> Dict[str, List[ResourceLocation]]:
    """Group the locations of all resources by digest."""
    index: Dict[str, List[ResourceLocation]] = {}
    for stack in stacks:
        digests = compute_resource_digests(stack.template, registry, construct_path_key)
        for logical_id, digest in digests.items():
            location = ResourceLocation(stack, logical_id, construct_path_key)
            if exclude.is_excluded(location):
                continue
            index.setdefault(digest, []).append(location)
    return index


def _zip(
    before: Dict[str, List[ResourceLocation]],
    after: Dict[str, List[ResourceLocation]],
) -> Dict[str, Movement]:
    movements: Dict[str, Movement] = {}
    for digest, locations in before.items():
        movements[digest] = (locations, after.get(digest, []))
    for digest, locations in after.items():
        if digest not in before:
            movements[digest] = ([], locations)
    return movements


def _remove_unmoved(movements: Dict[str, Movement]) -> Dict[str, Movement]:
    """Drop locations present on both sides of a movement."""
    result = {}
    for digest, (before, after) in movements.items():
        common = set(before) & set(after)
        result[digest] = (
            [loc for loc in before if loc not in common],
            [loc for loc in after if loc not in common],
        )
    return result


def _is_ambiguous(movement: Movement) -> bool:
    before, after = movement
    return bool(before) and bool(after) and (len(before) > 1 or len(after) > 1)


def compute_mappings(
    before: Sequence[CloudFormationStack],
    after: Sequence[CloudFormationStack],
    exclude: Optional[ExcludeList] = None,
    registry: Optional[ResourceModelRegistry] = None,
    construct_path_key: str = CONSTRUCT_PATH_KEY,
) -> List[ResourceMapping]:
    """
    Compute resource moves and renames between two sets of stacks.

    Args:
        before: Stacks as deployed
        after: Stacks as they will be deployed
        exclude: Locations that never take part in a mapping
        registry: Resource models used for digests
        construct_path_key: Metadata key ignored by digests

    Returns:
        One mapping per resource that moved or was renamed

    Raises:
        AmbiguityError: If any digest has several candidates on one side;
            carries every ambiguous movement
    """
    exclude = exclude or NeverExclude()
    movements = _remove_unmoved(_zip(
        _index(before, exclude, registry, construct_path_key),
        _index(after, exclude, registry, construct_path_key),
    ))

    ambiguous = [m for m in movements.values() if _is_ambiguous(m)]
    if ambiguous:
        logger.warning("Found %d ambiguous resource movement(s)", len(ambiguous))
        raise AmbiguityError(ambiguous)

    mappings = [
        ResourceMapping(b[0], a[0])
        for b, a in movements.values()
        if len(b) == 1 and len(a) == 1 and b[0] != a[0]
    ]
    logger.debug("Computed %d resource mapping(s)", len(mappings))
    return mappings


def detect_refactor_mappings(
    stacks: Sequence[CloudFormationStack],
    fetcher: DeployedStackFetcher,
    exclude: Optional[ExcludeList] = None,
    max_workers: int = DEFAULT_FETCH_WORKERS,
    registry: Optional[ResourceModelRegistry] = None,
    construct_path_key: str = CONSTRUCT_PATH_KEY,
) -> List[ResourceMapping]:
    """
    Detect moves and renames of local stacks against what is deployed.

    Stacks are grouped by environment. Each environment's deployed stacks
    are fetched once and compared only with the local stacks of that
    environment, so nothing is ever mapped across accounts or regions.

    Args:
        stacks: Local ("after") stacks
        fetcher: Source of deployed ("before") stacks
        exclude: Locations that never take part in a mapping
        max_workers: Parallel template fetches per environment
        registry: Resource models used for digests
        construct_path_key: Metadata key ignored by digests

    Returns:
        Mappings of all environments, in order of first appearance

    Raises:
        AmbiguityError: If any environment has an ambiguous movement
    """
    groups: Dict[str, Tuple[Environment, List[CloudFormationStack]]] = {}
    for stack in stacks:
        key = stack.environment.key
        if key not in groups:
            groups[key] = (stack.environment, [])
        groups[key][1].append(stack)

    result: List[ResourceMapping] = []
    for environment, after in groups.values():
        before = get_deployed_stacks(fetcher, environment, max_workers)
        result.extend(compute_mappings(before, after, exclude, registry, construct_path_key))
    logger.info("Detected %d refactor mapping(s) across %d environment(s)", len(result), len(groups))
    return result
