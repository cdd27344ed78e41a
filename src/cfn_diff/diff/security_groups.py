"""Security group view of a template diff."""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Iterable, List

from ..resource_models import PropertyScrutinyType, ResourceScrutinyType
from .types import PropertyChange, ResourceChange
from .util import canonical_json, subtract

if TYPE_CHECKING:
    from .types import TemplateDiff

INGRESS = "ingress"
EGRESS = "egress"

# Rule resource properties that are not part of the rule itself
_RULE_RESOURCE_SKIP = ("GroupId", "GroupName", "Description")


@dataclass(frozen=True)
class SecurityGroupRule:
    """One ingress or egress rule of a security group."""

    direction: str
    group: str  # logical ID, or canonical JSON of a GroupId reference
    rule: str  # canonical JSON of the rule body

    @property
    def is_open_to_world(self) -> bool:
        return '"0.0.0.0/0"' in self.rule or '"::/0"' in self.rule


def _inline_rules(direction: str, logical_id: str, value: Any) -> List[SecurityGroupRule]:
    if value is None:
        return []
    rules = value if isinstance(value, list) else [value]
    return [
        SecurityGroupRule(direction, logical_id, canonical_json(_strip_description(rule)))
        for rule in rules
    ]


def _strip_description(rule: Any) -> Any:
    if isinstance(rule, dict):
        return {k: v for k, v in rule.items() if k != "Description"}
    return rule


def _resource_rule(direction: str, properties: Any) -> List[SecurityGroupRule]:
    if properties is None:
        return []
    group = properties.get("GroupId", properties.get("GroupName"))
    body = {k: v for k, v in properties.items() if k not in _RULE_RESOURCE_SKIP}
    return [SecurityGroupRule(direction, canonical_json(group), canonical_json(body))]


@dataclass
class SecurityGroupChanges:
    """Added and removed security group rules, inline or as separate resources."""

    ingress_added: List[SecurityGroupRule] = field(default_factory=list)
    ingress_removed: List[SecurityGroupRule] = field(default_factory=list)
    egress_added: List[SecurityGroupRule] = field(default_factory=list)
    egress_removed: List[SecurityGroupRule] = field(default_factory=list)

    @property
    def rules_added(self) -> bool:
        return bool(self.ingress_added or self.egress_added)

    @property
    def has_changes(self) -> bool:
        return bool(
            self.ingress_added or self.ingress_removed
            or self.egress_added or self.egress_removed
        )

    @classmethod
    def from_changes(
        cls,
        property_changes: Iterable[PropertyChange],
        resource_changes: Iterable[ResourceChange],
    ) -> "SecurityGroupChanges":
        old = {INGRESS: [], EGRESS: []}
        new = {INGRESS: [], EGRESS: []}

        for change in property_changes:
            if change.scrutiny_type == PropertyScrutinyType.INGRESS_RULES:
                direction = INGRESS
            elif change.scrutiny_type == PropertyScrutinyType.EGRESS_RULES:
                direction = EGRESS
            else:
                continue
            old[direction].extend(_inline_rules(direction, change.resource_logical_id, change.old_value))
            new[direction].extend(_inline_rules(direction, change.resource_logical_id, change.new_value))

        for change in resource_changes:
            if change.scrutiny_type == ResourceScrutinyType.INGRESS_RULE_RESOURCE:
                direction = INGRESS
            elif change.scrutiny_type == ResourceScrutinyType.EGRESS_RULE_RESOURCE:
                direction = EGRESS
            else:
                continue
            old[direction].extend(_resource_rule(direction, change.old_properties))
            new[direction].extend(_resource_rule(direction, change.new_properties))

        return cls(
            ingress_added=subtract(new[INGRESS], old[INGRESS]),
            ingress_removed=subtract(old[INGRESS], new[INGRESS]),
            egress_added=subtract(new[EGRESS], old[EGRESS]),
            egress_removed=subtract(old[EGRESS], new[EGRESS]),
        )

    @classmethod
    def from_template_diff(cls, diff: "TemplateDiff") -> "SecurityGroupChanges":
        return cls.from_changes(
            diff.scrutinizable_property_changes(
                [PropertyScrutinyType.INGRESS_RULES, PropertyScrutinyType.EGRESS_RULES]
            ),
            diff.scrutinizable_resource_changes(
                [ResourceScrutinyType.INGRESS_RULE_RESOURCE, ResourceScrutinyType.EGRESS_RULE_RESOURCE]
            ),
        )
