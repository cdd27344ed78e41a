"""Exclusion lists: resource locations that must never be moved."""

import re
from typing import Iterable, List, Protocol, Tuple

from .model import ResourceLocation

# "Stack.LogicalId"; anything else is treated as a construct path
_LOCATION_PATTERN = re.compile(r"^[A-Za-z0-9]+\.[A-Za-z0-9]+$")


class ExcludeList(Protocol):
    """Protocol for deciding whether a location takes part in refactoring."""

    def is_excluded(self, location: ResourceLocation) -> bool:
        ...


class InMemoryExcludeList:
    """
    Exclusions given as strings.

    Entries of the form ``Stack.LogicalId`` match a stack name and logical ID;
    every other entry is compared against the construct path of the resource.
    """

    def __init__(self, items: Iterable[str] = ()):
        self.locations: List[Tuple[str, str]] = []
        self.paths: List[str] = []
        for item in items:
            if _LOCATION_PATTERN.match(item):
                stack_name, logical_id = item.split(".")
                self.locations.append((stack_name, logical_id))
            else:
                self.paths.append(item)

    def is_excluded(self, location: ResourceLocation) -> bool:
        if (location.stack_name, location.logical_resource_id) in self.locations:
            return True
        return bool(self.paths) and location.to_path() in self.paths


class UnionExcludeList:
    """Excludes a location if any of the wrapped lists does."""

    def __init__(self, exclude_lists: Iterable[ExcludeList]):
        self.exclude_lists = list(exclude_lists)

    def is_excluded(self, location: ResourceLocation) -> bool:
        return any(e.is_excluded(location) for e in self.exclude_lists)


class NeverExclude:
    def is_excluded(self, location: ResourceLocation) -> bool:
        return False


class AlwaysExclude:
    def is_excluded(self, location: ResourceLocation) -> bool:
        return True
