"""Refactor detection: resources moved between stacks or renamed."""

from .exclude import AlwaysExclude, ExcludeList, InMemoryExcludeList, NeverExclude, UnionExcludeList
from .fetcher import (
    DeployedStackFetcher,
    DirectoryStackFetcher,
    InMemoryStackFetcher,
    get_deployed_stacks,
)
from .mappings import compute_mappings, detect_refactor_mappings
from .model import (
    CloudFormationStack,
    Environment,
    ResourceLocation,
    ResourceMapping,
    StackSummary,
    TypedMapping,
)

__all__ = [
    "AlwaysExclude",
    "CloudFormationStack",
    "DeployedStackFetcher",
    "DirectoryStackFetcher",
    "Environment",
    "ExcludeList",
    "InMemoryExcludeList",
    "InMemoryStackFetcher",
    "NeverExclude",
    "ResourceLocation",
    "ResourceMapping",
    "StackSummary",
    "TypedMapping",
    "UnionExcludeList",
    "compute_mappings",
    "detect_refactor_mappings",
    "get_deployed_stacks",
]
