"""Semantic differences between two templates.

Difference objects hold the old and new values as given. Only the
interpretation of a resource change (its property and "other" difference
maps) can be replaced after construction, so that change-set information or
security scrutiny can refine impacts without touching the template values.
"""

from enum import Enum
from typing import (
    Any,
    Callable,
    Dict,
    Generic,
    Iterable,
    Iterator,
    List,
    Optional,
    Tuple,
    TypeVar,
)

from pydantic import BaseModel

from ..errors import EmptyDifferenceError, ResourceTypeChangedError, UnknownLogicalIdError
from ..resource_models import PropertyScrutinyType, ResourceScrutinyType, lookup_resource_model
from .util import deep_equal

V = TypeVar("V")
T = TypeVar("T")

PropertyMap = Dict[str, Any]


# ============= Change Impact =============

class ResourceImpact(str, Enum):
    """What will happen to a deployed resource."""

    WILL_UPDATE = "WILL_UPDATE"    # updated in place
    WILL_CREATE = "WILL_CREATE"    # new physical resource
    WILL_REPLACE = "WILL_REPLACE"  # replaced
    MAY_REPLACE = "MAY_REPLACE"    # may be replaced
    WILL_DESTROY = "WILL_DESTROY"  # destroyed
    WILL_ORPHAN = "WILL_ORPHAN"    # removed from the stack, physical resource kept
    WILL_IMPORT = "WILL_IMPORT"    # brought under stack management
    NO_CHANGE = "NO_CHANGE"

    @property
    def badness(self) -> int:
        """Rank in the total order used to pick the worst impact."""
        return _IMPACT_BADNESS[self]


_IMPACT_BADNESS = {
    ResourceImpact.NO_CHANGE: 0,
    ResourceImpact.WILL_IMPORT: 0,
    ResourceImpact.WILL_UPDATE: 1,
    ResourceImpact.WILL_CREATE: 2,
    ResourceImpact.WILL_ORPHAN: 3,
    ResourceImpact.MAY_REPLACE: 4,
    ResourceImpact.WILL_REPLACE: 5,
    ResourceImpact.WILL_DESTROY: 6,
}


def worst_impact(one: ResourceImpact, two: Optional[ResourceImpact]) -> ResourceImpact:
    """Reducer returning the worse of two impacts.

    ``two`` may be None when a property's impact could not be determined.
    On equal rank the second argument wins.
    """
    if two is None:
        return one
    return one if one.badness > two.badness else two


# ============= Differences =============

class Difference(Generic[V]):
    """An entity that changed between two versions of a template."""

    def __init__(self, old_value: Optional[V], new_value: Optional[V]):
        if old_value is None and new_value is None:
            raise EmptyDifferenceError()
        self._old_value = old_value
        self._new_value = new_value
        self.is_different = not deep_equal(old_value, new_value)

    @property
    def old_value(self) -> Optional[V]:
        return self._old_value

    @property
    def new_value(self) -> Optional[V]:
        return self._new_value

    @property
    def is_addition(self) -> bool:
        """The element is new to the template."""
        return self._old_value is None

    @property
    def is_removal(self) -> bool:
        """The element was removed from the template."""
        return self._new_value is None

    @property
    def is_update(self) -> bool:
        """The element was already in the template and is updated."""
        return self._old_value is not None and self._new_value is not None

    def __repr__(self) -> str:
        return f"{type(self).__name__}(old={self._old_value!r}, new={self._new_value!r})"


class PropertyDifference(Difference[V]):
    """A difference on one resource property, with its change impact."""

    def __init__(
        self,
        old_value: Optional[V],
        new_value: Optional[V],
        change_impact: Optional[ResourceImpact] = None,
    ):
        super().__init__(old_value, new_value)
        self.change_impact = change_impact


def only_changes(diffs: Dict[str, T]) -> Dict[str, T]:
    """Filter a map of differences down to the actual changes."""
    return {key: diff for key, diff in diffs.items() if diff.is_different}


class DifferenceCollection(Generic[V, T]):
    """Differences keyed by logical ID, exposing only actual changes."""

    def __init__(self, diffs: Optional[Dict[str, T]] = None):
        self._diffs: Dict[str, T] = dict(diffs or {})

    @property
    def changes(self) -> Dict[str, T]:
        return only_changes(self._diffs)

    @property
    def difference_count(self) -> int:
        return len(self.changes)

    @property
    def logical_ids(self) -> List[str]:
        return list(self.changes)

    def get(self, logical_id: str) -> T:
        """Return the difference recorded for an ID.

        Raises:
            UnknownLogicalIdError: If no difference is recorded for the ID
        """
        try:
            return self._diffs[logical_id]
        except KeyError:
            raise UnknownLogicalIdError(logical_id) from None

    def remove(self, logical_id: str) -> None:
        self._diffs.pop(logical_id, None)

    def filter(self, predicate: Callable[[T], bool]) -> "DifferenceCollection[V, T]":
        """Return a new collection with only the changes matching ``predicate``."""
        return DifferenceCollection({
            logical_id: diff for logical_id, diff in self.changes.items() if predicate(diff)
        })

    def ordered_differences(self) -> List[Tuple[str, T]]:
        """Changes ordered as removals, additions, updates, then anything else.

        Within each group, IDs keep the collection's key order.
        """
        removed, added, updated, others = [], [], [], []
        for logical_id, change in self.changes.items():
            if change.is_addition:
                added.append((logical_id, change))
            elif change.is_removal:
                removed.append((logical_id, change))
            elif change.is_update:
                updated.append((logical_id, change))
            elif change.is_different:
                others.append((logical_id, change))
        return removed + added + updated + others

    def for_each_difference(self, cb: Callable[[str, T], Any]) -> None:
        """Invoke ``cb(logical_id, change)`` in removal, addition, update order."""
        for logical_id, change in self.ordered_differences():
            cb(logical_id, change)

    def __iter__(self) -> Iterator[Tuple[str, T]]:
        return iter(self.ordered_differences())

    def __len__(self) -> int:
        return self.difference_count


# ============= Resources =============

class ResourceDifference:
    """Change to a single resource between two templates.

    The property and "other" difference maps can be replaced after
    construction (see ``set_property_change``); the old and new resource
    values cannot.
    """

    def __init__(
        self,
        old_value: Optional[Dict[str, Any]],
        new_value: Optional[Dict[str, Any]],
        old_type: Optional[str] = None,
        new_type: Optional[str] = None,
        property_diffs: Optional[Dict[str, PropertyDifference]] = None,
        other_diffs: Optional[Dict[str, Difference]] = None,
    ):
        self._old_value = old_value
        self._new_value = new_value
        self._old_type = old_type
        self._new_type = new_type
        self._property_diffs: Dict[str, PropertyDifference] = dict(property_diffs or {})
        self._other_diffs: Dict[str, Difference] = dict(other_diffs or {})
        self.is_import = False

    @property
    def old_value(self) -> Optional[Dict[str, Any]]:
        return self._old_value

    @property
    def new_value(self) -> Optional[Dict[str, Any]]:
        return self._new_value

    @property
    def is_addition(self) -> bool:
        return self._old_value is None

    @property
    def is_removal(self) -> bool:
        return self._new_value is None

    @property
    def old_properties(self) -> Optional[PropertyMap]:
        return self._old_value.get("Properties") if self._old_value else None

    @property
    def new_properties(self) -> Optional[PropertyMap]:
        return self._new_value.get("Properties") if self._new_value else None

    @property
    def old_resource_type(self) -> Optional[str]:
        return self._old_type

    @property
    def new_resource_type(self) -> Optional[str]:
        return self._new_type

    @property
    def is_different(self) -> bool:
        """Whether this resource was modified at all."""
        return self.difference_count > 0 or self._old_type != self._new_type

    @property
    def is_update(self) -> bool:
        """Whether the resource was updated in place."""
        return self.is_different and not self.is_addition and not self.is_removal

    @property
    def resource_type_changed(self) -> bool:
        return (
            self._old_type is not None
            and self._new_type is not None
            and self._old_type != self._new_type
        )

    @property
    def resource_type(self) -> Optional[str]:
        """The resource type, if it did not change.

        Raises:
            ResourceTypeChangedError: If old and new types differ
        """
        if self.resource_type_changed:
            raise ResourceTypeChangedError(self._old_type, self._new_type)
        return self._old_type or self._new_type

    @property
    def property_diffs(self) -> Dict[str, PropertyDifference]:
        return dict(self._property_diffs)

    @property
    def property_updates(self) -> Dict[str, PropertyDifference]:
        """All actual property changes."""
        return only_changes(self._property_diffs)

    @property
    def other_changes(self) -> Dict[str, Difference]:
        """All actual changes to non-property attributes."""
        return only_changes(self._other_diffs)

    def set_property_change(self, property_name: str, change: PropertyDifference) -> None:
        """Replace the difference recorded for one property."""
        self._property_diffs[property_name] = change

    def set_other_change(self, other_name: str, change: Difference) -> None:
        """Replace the difference recorded for one non-property attribute."""
        self._other_diffs[other_name] = change

    @property
    def change_impact(self) -> ResourceImpact:
        if self.is_import:
            return ResourceImpact.WILL_IMPORT

        if self._old_type != self._new_type:
            if self._old_type is None:
                return ResourceImpact.WILL_CREATE
            if self._new_type is None:
                if (self._old_value or {}).get("DeletionPolicy") == "Retain":
                    return ResourceImpact.WILL_ORPHAN
                return ResourceImpact.WILL_DESTROY
            return ResourceImpact.WILL_REPLACE

        impact = ResourceImpact.WILL_UPDATE if self.other_changes else ResourceImpact.NO_CHANGE
        for diff in self._property_diffs.values():
            impact = worst_impact(impact, diff.change_impact)
        return impact

    @property
    def difference_count(self) -> int:
        """Count of actual differences (not of elements)."""
        return len(self.property_updates) + len(self.other_changes)

    def for_each_difference(self, cb: Callable[[str, str, Difference], Any]) -> None:
        """Invoke ``cb(kind, name, diff)`` for properties, then other attributes.

        ``kind`` is ``"Property"`` or ``"Other"``; names are visited in sorted order.
        """
        updates = self.property_updates
        for key in sorted(updates):
            cb("Property", key, updates[key])
        others = self.other_changes
        for key in sorted(others):
            cb("Other", key, others[key])

    def __repr__(self) -> str:
        return (
            f"ResourceDifference(old_type={self._old_type!r}, new_type={self._new_type!r}, "
            f"impact={self.change_impact.value})"
        )


# ============= Scrutiny views =============

class PropertyChange(BaseModel):
    """A change in a scrutinizable property value.

    Not necessarily an update: the resource may have been added or removed,
    so this holds plain values rather than a ``PropertyDifference``.
    """
    resource_logical_id: str
    resource_type: str
    scrutiny_type: PropertyScrutinyType
    property_name: str
    old_value: Any = None
    new_value: Any = None


class ResourceChange(BaseModel):
    """Creation, deletion or update of a scrutinizable resource."""
    resource_logical_id: str
    resource_type: str
    scrutiny_type: ResourceScrutinyType
    old_properties: Optional[Dict[str, Any]] = None
    new_properties: Optional[Dict[str, Any]] = None


# ============= Template =============

class TemplateDiff:
    """Semantic differences between two templates."""

    def __init__(
        self,
        format_version: Optional[Difference[str]] = None,
        description: Optional[Difference[str]] = None,
        transform: Optional[Difference[Any]] = None,
        conditions: Optional[DifferenceCollection] = None,
        mappings: Optional[DifferenceCollection] = None,
        metadata: Optional[DifferenceCollection] = None,
        outputs: Optional[DifferenceCollection] = None,
        parameters: Optional[DifferenceCollection] = None,
        resources: Optional[DifferenceCollection] = None,
        unknown: Optional[DifferenceCollection] = None,
        registry=None,
    ):
        self.format_version = format_version
        self.description = description
        self.transform = transform
        self.conditions = conditions or DifferenceCollection()
        self.mappings = mappings or DifferenceCollection()
        self.metadata = metadata or DifferenceCollection()
        self.outputs = outputs or DifferenceCollection()
        self.parameters = parameters or DifferenceCollection()
        self.resources: DifferenceCollection[Dict[str, Any], ResourceDifference] = (
            resources or DifferenceCollection()
        )
        self.unknown = unknown or DifferenceCollection()
        self._registry = registry

    def _scalar_count(self) -> int:
        count = 0
        for diff in (self.format_version, self.description, self.transform):
            if diff is not None and diff.is_different:
                count += 1
        return count

    @property
    def difference_count(self) -> int:
        return (
            self._scalar_count()
            + self.conditions.difference_count
            + self.mappings.difference_count
            + self.metadata.difference_count
            + self.outputs.difference_count
            + self.parameters.difference_count
            + self.resources.difference_count
            + self.unknown.difference_count
        )

    @property
    def is_empty(self) -> bool:
        return self.difference_count == 0

    @property
    def iam_changes(self):
        """IAM statement and managed policy changes (computed on access)."""
        from .iam import IamChanges
        return IamChanges.from_template_diff(self)

    @property
    def security_group_changes(self):
        """Security group rule changes (computed on access)."""
        from .security_groups import SecurityGroupChanges
        return SecurityGroupChanges.from_template_diff(self)

    @property
    def permissions_broadened(self) -> bool:
        """Any IAM or security group change that grants more access."""
        return self.iam_changes.permissions_broadened or self.security_group_changes.rules_added

    @property
    def permissions_any_changes(self) -> bool:
        return self.iam_changes.has_changes or self.security_group_changes.has_changes

    def scrutinizable_property_changes(
        self, scrutiny_types: Iterable[PropertyScrutinyType]
    ) -> List[PropertyChange]:
        """Changes to properties of the given scrutiny types.

        Additions and removals are included as well as updates. Resources
        whose type changed are handled by ``scrutinizable_resource_changes``.
        """
        wanted = set(scrutiny_types)
        ret: List[PropertyChange] = []
        for logical_id, change in self.resources.changes.items():
            if change.resource_type_changed:
                continue
            resource_type = change.resource_type
            model = lookup_resource_model(resource_type, self._registry)
            if model is None:
                continue
            old_props = change.old_properties or {}
            new_props = change.new_properties or {}
            for name, prop in model.properties.items():
                if prop.scrutinizable in wanted:
                    ret.append(PropertyChange(
                        resource_logical_id=logical_id,
                        resource_type=resource_type,
                        scrutiny_type=prop.scrutinizable,
                        property_name=name,
                        old_value=old_props.get(name),
                        new_value=new_props.get(name),
                    ))
        return ret

    def scrutinizable_resource_changes(
        self, scrutiny_types: Iterable[ResourceScrutinyType]
    ) -> List[ResourceChange]:
        """Added, removed or updated resources of the given scrutiny types.

        A type change counts as removal of the old resource plus addition of
        the new one.
        """
        wanted = set(scrutiny_types)
        ret: List[ResourceChange] = []
        for logical_id, change in self.resources.changes.items():
            if change.resource_type_changed:
                old_model = lookup_resource_model(change.old_resource_type, self._registry)
                if old_model is not None and old_model.scrutinizable in wanted:
                    ret.append(ResourceChange(
                        resource_logical_id=logical_id,
                        resource_type=change.old_resource_type,
                        scrutiny_type=old_model.scrutinizable,
                        old_properties=change.old_properties,
                        new_properties=None,
                    ))
                new_model = lookup_resource_model(change.new_resource_type, self._registry)
                if new_model is not None and new_model.scrutinizable in wanted:
                    ret.append(ResourceChange(
                        resource_logical_id=logical_id,
                        resource_type=change.new_resource_type,
                        scrutiny_type=new_model.scrutinizable,
                        old_properties=None,
                        new_properties=change.new_properties,
                    ))
                continue

            model = lookup_resource_model(change.resource_type, self._registry)
            if model is not None and model.scrutinizable in wanted:
                ret.append(ResourceChange(
                    resource_logical_id=logical_id,
                    resource_type=change.resource_type,
                    scrutiny_type=model.scrutinizable,
                    old_properties=change.old_properties,
                    new_properties=change.new_properties,
                ))
        return ret
