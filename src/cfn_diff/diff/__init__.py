"""Template diff engine."""

from .engine import ChangeSetResource, apply_change_set, diff_resource, diff_template, mark_imports
from .iam import IamChanges, ManagedPolicyAttachment, PolicyStatement
from .security_groups import SecurityGroupChanges, SecurityGroupRule
from .types import (
    Difference,
    DifferenceCollection,
    PropertyChange,
    PropertyDifference,
    ResourceChange,
    ResourceDifference,
    ResourceImpact,
    TemplateDiff,
    worst_impact,
)
from .util import deep_equal

__all__ = [
    "ChangeSetResource",
    "Difference",
    "DifferenceCollection",
    "IamChanges",
    "ManagedPolicyAttachment",
    "PolicyStatement",
    "PropertyChange",
    "PropertyDifference",
    "ResourceChange",
    "ResourceDifference",
    "ResourceImpact",
    "SecurityGroupChanges",
    "SecurityGroupRule",
    "TemplateDiff",
    "apply_change_set",
    "deep_equal",
    "diff_resource",
    "diff_template",
    "mark_imports",
    "worst_impact",
]
