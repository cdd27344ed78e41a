"""Resource type models: identifiers, replacement behaviour and scrutiny tags.

The digest engine needs to know which properties form a resource's physical
identity, the diff engine needs to know which property changes force a
replacement, and the security views need to know which properties and
resources carry IAM or network rules. All of that comes from a per-type
model looked up by type name.

A catalogue of common types ships with the package (``data/resource_models.yaml``).
Callers can merge additional catalogues or register models directly.
"""

import logging
import threading
from enum import Enum
from importlib import resources
from pathlib import Path
from typing import Dict, Iterable, List, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError

from .constants import RESOURCE_MODELS_RESOURCE
from .errors import ResourceModelError

logger = logging.getLogger(__name__)


class ReplacementMode(str, Enum):
    """Whether changing a property replaces the physical resource."""

    ALWAYS = "Always"
    NEVER = "Never"
    CONDITIONALLY = "Conditionally"


class PropertyScrutinyType(str, Enum):
    """Security-relevant property kinds."""

    NONE = "None"
    INLINE_IDENTITY_POLICIES = "InlineIdentityPolicies"
    INLINE_RESOURCE_POLICY = "InlineResourcePolicy"
    MANAGED_POLICIES = "ManagedPolicies"
    INGRESS_RULES = "IngressRules"
    EGRESS_RULES = "EgressRules"


class ResourceScrutinyType(str, Enum):
    """Security-relevant resource kinds."""

    NONE = "None"
    RESOURCE_POLICY_RESOURCE = "ResourcePolicyResource"
    IDENTITY_POLICY_RESOURCE = "IdentityPolicyResource"
    LAMBDA_PERMISSION = "LambdaPermission"
    INGRESS_RULE_RESOURCE = "IngressRuleResource"
    EGRESS_RULE_RESOURCE = "EgressRuleResource"


class PropertyModel(BaseModel):
    """Model of a single resource property."""

    replacement: ReplacementMode = ReplacementMode.NEVER
    scrutinizable: PropertyScrutinyType = PropertyScrutinyType.NONE


class ResourceModel(BaseModel):
    """Model of a resource type."""

    type_name: str
    primary_identifier: List[str] = Field(default_factory=list)
    properties: Dict[str, PropertyModel] = Field(default_factory=dict)
    scrutinizable: ResourceScrutinyType = ResourceScrutinyType.NONE

    def property_model(self, name: str) -> Optional[PropertyModel]:
        """Return the model of a property, or None if the type doesn't declare it."""
        return self.properties.get(name)


class ResourceModelRegistry:
    """Lookup table from resource type name to ResourceModel."""

    def __init__(self, models: Optional[Iterable[ResourceModel]] = None):
        self._models: Dict[str, ResourceModel] = {}
        for model in models or []:
            self.register(model)

    def register(self, model: ResourceModel) -> None:
        """Add or replace the model for ``model.type_name``."""
        self._models[model.type_name] = model

    def lookup(self, type_name: Optional[str]) -> Optional[ResourceModel]:
        """Return the model for a type, or None when the type is unknown."""
        if type_name is None:
            return None
        return self._models.get(type_name)

    def merge(self, other: "ResourceModelRegistry") -> "ResourceModelRegistry":
        """Return a new registry where ``other``'s models win on conflicts."""
        merged = ResourceModelRegistry(self._models.values())
        for model in other._models.values():
            merged.register(model)
        return merged

    def __contains__(self, type_name: str) -> bool:
        return type_name in self._models

    def __len__(self) -> int:
        return len(self._models)

    @classmethod
    def from_mapping(cls, data: Dict, source: str = "<mapping>") -> "ResourceModelRegistry":
        """Build a registry from ``{type_name: {primary_identifier, properties, scrutinizable}}``.

        Raises:
            ResourceModelError: If the catalogue does not match the model schema
        """
        if not isinstance(data, dict):
            raise ResourceModelError(source, "top level must be a mapping of type names")

        models = []
        for type_name, body in data.items():
            try:
                models.append(ResourceModel(type_name=type_name, **(body or {})))
            except (ValidationError, TypeError) as e:
                raise ResourceModelError(source, f"{type_name}: {e}") from e
        return cls(models)

    @classmethod
    def from_yaml(cls, path: Path) -> "ResourceModelRegistry":
        """Load a catalogue from a YAML file."""
        path = Path(path)
        try:
            data = yaml.safe_load(path.read_text()) or {}
        except yaml.YAMLError as e:
            raise ResourceModelError(str(path), str(e)) from e
        registry = cls.from_mapping(data, source=str(path))
        logger.debug("Loaded %d resource models from %s", len(registry), path)
        return registry


_default_registry: Optional[ResourceModelRegistry] = None
_default_lock = threading.Lock()


def default_registry() -> ResourceModelRegistry:
    """Return the registry loaded from the bundled catalogue (loaded once)."""
    global _default_registry
    with _default_lock:
        if _default_registry is None:
            text = resources.files("cfn_diff.data").joinpath(RESOURCE_MODELS_RESOURCE).read_text()
            _default_registry = ResourceModelRegistry.from_mapping(
                yaml.safe_load(text) or {}, source=RESOURCE_MODELS_RESOURCE
            )
        return _default_registry


def lookup_resource_model(
    type_name: Optional[str], registry: Optional[ResourceModelRegistry] = None
) -> Optional[ResourceModel]:
    """Look up a resource model in ``registry`` or the bundled catalogue."""
    return (registry or default_registry()).lookup(type_name)


def load_registry(extra_file: Optional[str] = None) -> ResourceModelRegistry:
    """Bundled catalogue, optionally overlaid with an extra YAML catalogue."""
    registry = default_registry()
    if extra_file:
        registry = registry.merge(ResourceModelRegistry.from_yaml(Path(extra_file)))
    return registry
