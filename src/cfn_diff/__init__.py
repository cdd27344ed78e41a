"""CloudFormation template diffing, resource digests and refactor detection."""

from .constants import CFN_DIFF_VERSION
from .diff import ResourceImpact, TemplateDiff, diff_template
from .digest import compute_resource_digests
from .refactoring import compute_mappings, detect_refactor_mappings

__version__ = CFN_DIFF_VERSION

__all__ = [
    "ResourceImpact",
    "TemplateDiff",
    "compute_mappings",
    "compute_resource_digests",
    "detect_refactor_mappings",
    "diff_template",
]
