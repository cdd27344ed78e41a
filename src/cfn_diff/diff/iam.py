"""IAM view of a template diff.

Collects policy statements, managed policy attachments and Lambda
permissions on both sides of a diff and reports which were added or removed.
Statements are compared in a canonical form, so reordering actions or
switching between a single string and a one-element list is not a change.
"""

import json
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, Iterable, List

from ..resource_models import PropertyScrutinyType, ResourceScrutinyType
from .types import PropertyChange, ResourceChange
from .util import canonical_json, subtract

if TYPE_CHECKING:
    from .types import TemplateDiff

IAM_PROPERTY_SCRUTINIES = [
    PropertyScrutinyType.INLINE_IDENTITY_POLICIES,
    PropertyScrutinyType.INLINE_RESOURCE_POLICY,
    PropertyScrutinyType.MANAGED_POLICIES,
]
IAM_RESOURCE_SCRUTINIES = [
    ResourceScrutinyType.RESOURCE_POLICY_RESOURCE,
    ResourceScrutinyType.IDENTITY_POLICY_RESOURCE,
    ResourceScrutinyType.LAMBDA_PERMISSION,
]

# Statement keys whose value may be a string or a list with no meaningful order
_LIST_KEYS = ("Action", "NotAction", "Resource", "NotResource")


def _normalize_statement(statement: Any) -> Any:
    if not isinstance(statement, dict):
        return statement
    normalized = dict(statement)
    for key in _LIST_KEYS:
        value = normalized.get(key)
        if isinstance(value, str):
            normalized[key] = [value]
        elif isinstance(value, list) and all(isinstance(v, str) for v in value):
            normalized[key] = sorted(set(value))
    return normalized


@dataclass(frozen=True)
class PolicyStatement:
    """One statement, attributed to the resource that carries it."""

    resource_logical_id: str
    effect: str
    body: str  # canonical JSON of the normalized statement

    @property
    def statement(self) -> Any:
        return json.loads(self.body)

    @property
    def is_allow(self) -> bool:
        # Statements hidden behind intrinsics may allow anything
        return self.effect != "Deny"


@dataclass(frozen=True)
class ManagedPolicyAttachment:
    """A managed policy ARN attached to an identity."""

    identity_logical_id: str
    managed_policy_arn: str  # canonical JSON, ARNs are often intrinsics


def statements_from_document(logical_id: str, document: Any) -> List[PolicyStatement]:
    """Statements of a policy document.

    A document that is not a plain mapping (for example an ``Fn::If``)
    yields a single statement of unknown effect.
    """
    if document is None:
        return []
    if not isinstance(document, dict) or "Statement" not in document:
        return [PolicyStatement(logical_id, "Unknown", canonical_json(document))]

    raw = document["Statement"]
    statements = raw if isinstance(raw, list) else [raw]
    ret = []
    for statement in statements:
        if isinstance(statement, dict):
            effect = statement.get("Effect", "Allow")
            if not isinstance(effect, str):
                effect = "Unknown"
        else:
            effect = "Unknown"
        ret.append(PolicyStatement(logical_id, effect, canonical_json(_normalize_statement(statement))))
    return ret


def _inline_identity_statements(logical_id: str, policies: Any) -> List[PolicyStatement]:
    if policies is None:
        return []
    if not isinstance(policies, list):
        return [PolicyStatement(logical_id, "Unknown", canonical_json(policies))]
    ret = []
    for policy in policies:
        document = policy.get("PolicyDocument") if isinstance(policy, dict) else policy
        ret.extend(statements_from_document(logical_id, document))
    return ret


def _lambda_permission_statement(logical_id: str, properties: Dict[str, Any]) -> PolicyStatement:
    statement: Dict[str, Any] = {
        "Effect": "Allow",
        "Action": properties.get("Action"),
        "Principal": properties.get("Principal"),
        "Resource": properties.get("FunctionName"),
    }
    for key in ("SourceArn", "SourceAccount", "PrincipalOrgID", "EventSourceToken"):
        if key in properties:
            statement[key] = properties[key]
    return PolicyStatement(logical_id, "Allow", canonical_json(_normalize_statement(statement)))


@dataclass
class IamChanges:
    """Added and removed IAM statements, managed policies and Lambda permissions."""

    statements_added: List[PolicyStatement] = field(default_factory=list)
    statements_removed: List[PolicyStatement] = field(default_factory=list)
    managed_policies_added: List[ManagedPolicyAttachment] = field(default_factory=list)
    managed_policies_removed: List[ManagedPolicyAttachment] = field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return bool(
            self.statements_added or self.statements_removed
            or self.managed_policies_added or self.managed_policies_removed
        )

    @property
    def permissions_broadened(self) -> bool:
        """Whether any added statement or attachment can grant access."""
        return any(s.is_allow for s in self.statements_added) or bool(self.managed_policies_added)

    @classmethod
    def from_changes(
        cls,
        property_changes: Iterable[PropertyChange],
        resource_changes: Iterable[ResourceChange],
    ) -> "IamChanges":
        old_statements: List[PolicyStatement] = []
        new_statements: List[PolicyStatement] = []
        old_managed: List[ManagedPolicyAttachment] = []
        new_managed: List[ManagedPolicyAttachment] = []

        for change in property_changes:
            logical_id = change.resource_logical_id
            if change.scrutiny_type == PropertyScrutinyType.INLINE_IDENTITY_POLICIES:
                old_statements.extend(_inline_identity_statements(logical_id, change.old_value))
                new_statements.extend(_inline_identity_statements(logical_id, change.new_value))
            elif change.scrutiny_type == PropertyScrutinyType.INLINE_RESOURCE_POLICY:
                old_statements.extend(statements_from_document(logical_id, change.old_value))
                new_statements.extend(statements_from_document(logical_id, change.new_value))
            elif change.scrutiny_type == PropertyScrutinyType.MANAGED_POLICIES:
                old_managed.extend(_managed_attachments(logical_id, change.old_value))
                new_managed.extend(_managed_attachments(logical_id, change.new_value))

        for change in resource_changes:
            logical_id = change.resource_logical_id
            if change.scrutiny_type == ResourceScrutinyType.LAMBDA_PERMISSION:
                if change.old_properties is not None:
                    old_statements.append(_lambda_permission_statement(logical_id, change.old_properties))
                if change.new_properties is not None:
                    new_statements.append(_lambda_permission_statement(logical_id, change.new_properties))
            else:
                old_statements.extend(
                    statements_from_document(logical_id, (change.old_properties or {}).get("PolicyDocument"))
                )
                new_statements.extend(
                    statements_from_document(logical_id, (change.new_properties or {}).get("PolicyDocument"))
                )

        return cls(
            statements_added=subtract(new_statements, old_statements),
            statements_removed=subtract(old_statements, new_statements),
            managed_policies_added=subtract(new_managed, old_managed),
            managed_policies_removed=subtract(old_managed, new_managed),
        )

    @classmethod
    def from_template_diff(cls, diff: "TemplateDiff") -> "IamChanges":
        return cls.from_changes(
            diff.scrutinizable_property_changes(IAM_PROPERTY_SCRUTINIES),
            diff.scrutinizable_resource_changes(IAM_RESOURCE_SCRUTINIES),
        )


def _managed_attachments(logical_id: str, arns: Any) -> List[ManagedPolicyAttachment]:
    if arns is None:
        return []
    items = arns if isinstance(arns, list) else [arns]
    return [ManagedPolicyAttachment(logical_id, canonical_json(arn)) for arn in items]
