"""Custom exceptions for cfn-diff.

This module defines typed exceptions for better error handling and clearer
error messages throughout the library.
"""

from typing import TYPE_CHECKING, List, Sequence, Tuple

if TYPE_CHECKING:
    from .refactoring.model import ResourceLocation


class CfnDiffError(RuntimeError):
    """Base class for all cfn-diff errors."""
    pass


# Template Errors
class TemplateError(CfnDiffError):
    """Template could not be parsed or is structurally invalid."""
    pass


class DependencyCycleError(TemplateError):
    """Resources reference each other in a cycle, so no digest order exists."""

    def __init__(self, logical_ids: Sequence[str]):
        self.logical_ids = sorted(logical_ids)
        shown = ", ".join(self.logical_ids[:5])
        if len(self.logical_ids) > 5:
            shown += f" and {len(self.logical_ids) - 5} more"
        super().__init__(
            f"Dependency cycle between resources: {shown}. "
            f"Digests can only be computed for templates whose references form a DAG."
        )


# Diff Errors
class DiffError(CfnDiffError):
    """Base class for contract violations in the diff model."""
    pass


class EmptyDifferenceError(DiffError, ValueError):
    """A difference was constructed with neither an old nor a new value."""

    def __init__(self):
        super().__init__("old_value and new_value are both absent")


class UnknownLogicalIdError(DiffError, KeyError):
    """No difference is recorded for the requested ID."""

    def __init__(self, logical_id: str):
        self.logical_id = logical_id
        super().__init__(f"No object with logical ID '{logical_id}'")

    def __str__(self) -> str:
        return self.args[0]


class ResourceTypeChangedError(DiffError):
    """A single resource type was requested for a resource whose type changed."""

    def __init__(self, old_type: str, new_type: str):
        self.old_type = old_type
        self.new_type = new_type
        super().__init__(
            f"Cannot get resource type, because the type was changed "
            f"from {old_type} to {new_type}"
        )


# Refactor Errors
class RefactorError(CfnDiffError):
    """Base class for refactor detection errors."""
    pass


class AmbiguityError(RefactorError):
    """Resources with the same digest cannot be paired one-to-one.

    Carries every ambiguous movement found, so callers can present all
    conflicts at once.
    """

    def __init__(self, pairs: List[Tuple[List["ResourceLocation"], List["ResourceLocation"]]]):
        self.pairs = pairs
        super().__init__(f"Ambiguous resource mappings ({len(pairs)} group(s))")

    def paths(self) -> List[Tuple[List[str], List[str]]]:
        """Return the ambiguous groups as (before paths, after paths)."""
        return [
            ([loc.to_path() for loc in before], [loc.to_path() for loc in after])
            for before, after in self.pairs
        ]


class StackNotFoundError(RefactorError):
    """A deployed-state fetcher has no stack with the requested name."""

    def __init__(self, stack_name: str, environment: str):
        self.stack_name = stack_name
        super().__init__(f"Stack '{stack_name}' not found in {environment}")


# Configuration Errors
class ConfigError(CfnDiffError):
    """Invalid configuration."""
    pass


class ResourceModelError(ConfigError):
    """Resource model catalogue is malformed."""

    def __init__(self, source: str, reason: str):
        self.source = source
        super().__init__(f"Invalid resource model catalogue {source}: {reason}")
