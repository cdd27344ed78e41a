"""Diff computation - turns two template snapshots into a TemplateDiff."""

import logging
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from pydantic import BaseModel, Field

from ..resource_models import ReplacementMode, ResourceModelRegistry, lookup_resource_model
from .types import (
    Difference,
    DifferenceCollection,
    PropertyDifference,
    ResourceDifference,
    ResourceImpact,
    TemplateDiff,
)
from .util import deep_equal

logger = logging.getLogger(__name__)

# Top-level template sections with a dedicated slot in TemplateDiff
SCALAR_SECTIONS = {
    "AWSTemplateFormatVersion": "format_version",
    "Description": "description",
    "Transform": "transform",
}
COLLECTION_SECTIONS = {
    "Conditions": "conditions",
    "Mappings": "mappings",
    "Metadata": "metadata",
    "Outputs": "outputs",
    "Parameters": "parameters",
    "Resources": "resources",
}

_REPLACEMENT_IMPACT = {
    ReplacementMode.ALWAYS: ResourceImpact.WILL_REPLACE,
    ReplacementMode.CONDITIONALLY: ResourceImpact.MAY_REPLACE,
    ReplacementMode.NEVER: ResourceImpact.WILL_UPDATE,
}


def _union_keys(old: Mapping[str, Any], new: Mapping[str, Any]) -> List[str]:
    """Keys of both mappings, old ones first, each once."""
    keys = list(old)
    keys.extend(key for key in new if key not in old)
    return keys


def _diff_keyed(
    old: Optional[Mapping[str, Any]],
    new: Optional[Mapping[str, Any]],
    differ: Callable[[Any, Any, str], Any],
) -> Dict[str, Any]:
    old = old or {}
    new = new or {}
    result = {}
    for key in _union_keys(old, new):
        old_value, new_value = old.get(key), new.get(key)
        if old_value is None and new_value is None:
            continue
        result[key] = differ(old_value, new_value, key)
    return result


def _diff_plain(old_value: Any, new_value: Any, _key: str) -> Difference:
    return Difference(old_value, new_value)


def _diff_attribute(old_value: Any, new_value: Any, key: str) -> Difference:
    diff = Difference(old_value, new_value)
    # Compared under its key so attribute rules apply (DependsOn is a set)
    diff.is_different = not deep_equal({key: old_value}, {key: new_value})
    return diff


def _property_impact(
    resource_type: Optional[str],
    property_name: str,
    old_value: Any,
    new_value: Any,
    registry: Optional[ResourceModelRegistry],
) -> ResourceImpact:
    if deep_equal(old_value, new_value):
        return ResourceImpact.NO_CHANGE
    model = lookup_resource_model(resource_type, registry)
    prop = model.property_model(property_name) if model else None
    if prop is None:
        return ResourceImpact.WILL_UPDATE
    return _REPLACEMENT_IMPACT[prop.replacement]


def diff_resource(
    old: Optional[Mapping[str, Any]],
    new: Optional[Mapping[str, Any]],
    registry: Optional[ResourceModelRegistry] = None,
) -> ResourceDifference:
    """
    Compute the difference between two versions of one resource.

    Property and other-attribute differences are only computed when the
    type is unchanged; a type change is a replacement on its own.

    Args:
        old: Old resource declaration (None if added)
        new: New resource declaration (None if removed)
        registry: Resource models used for replacement impacts

    Returns:
        ResourceDifference for the resource
    """
    old_type = old.get("Type") if old else None
    new_type = new.get("Type") if new else None

    property_diffs: Dict[str, PropertyDifference] = {}
    other_diffs: Dict[str, Difference] = {}

    if old is not None and new is not None and old_type == new_type:
        def diff_property(old_value, new_value, key):
            impact = _property_impact(old_type, key, old_value, new_value, registry)
            return PropertyDifference(old_value, new_value, change_impact=impact)

        property_diffs = _diff_keyed(old.get("Properties"), new.get("Properties"), diff_property)
        other_diffs = _diff_keyed(
            {k: v for k, v in old.items() if k != "Properties"},
            {k: v for k, v in new.items() if k != "Properties"},
            _diff_attribute,
        )

    return ResourceDifference(
        dict(old) if old is not None else None,
        dict(new) if new is not None else None,
        old_type=old_type,
        new_type=new_type,
        property_diffs=property_diffs,
        other_diffs=other_diffs,
    )


def diff_template(
    old: Optional[Mapping[str, Any]],
    new: Optional[Mapping[str, Any]],
    registry: Optional[ResourceModelRegistry] = None,
) -> TemplateDiff:
    """
    Compare two parsed templates section by section.

    Args:
        old: Currently deployed template (None or empty for a new stack)
        new: Template about to be deployed
        registry: Resource models (defaults to the bundled catalogue)

    Returns:
        TemplateDiff with one entry per top-level section; sections that are
        not recognised land in ``unknown``.
    """
    old = old or {}
    new = new or {}

    kwargs: Dict[str, Any] = {}
    unknown: Dict[str, Difference] = {}

    for section in _union_keys(old, new):
        old_value, new_value = old.get(section), new.get(section)
        if old_value is None and new_value is None:
            continue
        if section in SCALAR_SECTIONS:
            kwargs[SCALAR_SECTIONS[section]] = Difference(old_value, new_value)
        elif section == "Resources":
            kwargs["resources"] = DifferenceCollection(_diff_keyed(
                old_value, new_value,
                lambda o, n, _key: diff_resource(o, n, registry),
            ))
        elif section in COLLECTION_SECTIONS:
            kwargs[COLLECTION_SECTIONS[section]] = DifferenceCollection(
                _diff_keyed(old_value, new_value, _diff_plain)
            )
        else:
            unknown[section] = Difference(old_value, new_value)

    diff = TemplateDiff(unknown=DifferenceCollection(unknown), registry=registry, **kwargs)
    logger.debug(
        "Template diff: %d difference(s), %d resource change(s)",
        diff.difference_count, diff.resources.difference_count,
    )
    return diff


# ============= Change sets =============

class ChangeSetResource(BaseModel):
    """What a CloudFormation change set says about one resource."""

    resource_was_replaced: bool = False
    resource_type: Optional[str] = None
    property_replacement_modes: Dict[str, ReplacementMode] = Field(default_factory=dict)


def apply_change_set(diff: TemplateDiff, change_set_resources: Mapping[str, ChangeSetResource]) -> None:
    """Refine property impacts with the replacement modes a change set reports.

    Properties the change set does not mention keep the impact derived from
    the resource model. When the change set says the resource is not
    replaced, conditional replacements become in-place updates.
    """
    for logical_id, change in diff.resources.changes.items():
        change_set = change_set_resources.get(logical_id)
        if change_set is None or not change.is_update:
            continue

        for name, prop_diff in change.property_updates.items():
            mode = change_set.property_replacement_modes.get(name)
            if mode is None:
                continue
            impact = _REPLACEMENT_IMPACT[mode]
            if impact == ResourceImpact.MAY_REPLACE and not change_set.resource_was_replaced:
                impact = ResourceImpact.WILL_UPDATE
            change.set_property_change(
                name, PropertyDifference(prop_diff.old_value, prop_diff.new_value, change_impact=impact)
            )


def mark_imports(diff: TemplateDiff, logical_ids: Iterable[str]) -> List[str]:
    """Flag added resources as imports. Returns the IDs that were flagged."""
    wanted = set(logical_ids)
    marked = []
    for logical_id, change in diff.resources.changes.items():
        if logical_id in wanted and change.is_addition:
            change.is_import = True
            marked.append(logical_id)
    return marked
