"""Data models for refactor detection."""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from ..constants import CONSTRUCT_PATH_KEY
from ..hashing import hash_object
from ..intrinsics import construct_path


class Environment(BaseModel):
    """Deployment environment of a stack (account and region)."""

    account: str
    region: str
    name: Optional[str] = None

    @property
    def key(self) -> str:
        """Stable key of the environment (account and region only)."""
        return hash_object({"account": self.account, "region": self.region})

    def __str__(self) -> str:
        return self.name or f"aws://{self.account}/{self.region}"


class CloudFormationStack(BaseModel):
    """A named stack template in an environment."""

    environment: Environment
    stack_name: str
    template: Dict[str, Any] = Field(default_factory=dict)

    @property
    def resources(self) -> Dict[str, Any]:
        return self.template.get("Resources") or {}


class StackSummary(BaseModel):
    """Entry returned by a deployed-state fetcher's stack listing."""

    stack_name: str
    status: str


class TypedMapping(BaseModel):
    """Mapping reduced to plain data for presentation."""

    type: str
    source_path: str
    destination_path: str


class ResourceLocation:
    """A resource declaration in a specific stack.

    Two locations are equal when stack name and logical ID match, regardless
    of the template contents.
    """

    def __init__(
        self,
        stack: CloudFormationStack,
        logical_resource_id: str,
        construct_path_key: str = CONSTRUCT_PATH_KEY,
    ):
        self.stack = stack
        self.logical_resource_id = logical_resource_id
        self.construct_path_key = construct_path_key

    @property
    def stack_name(self) -> str:
        return self.stack.stack_name

    def _resource(self) -> Dict[str, Any]:
        return self.stack.resources.get(self.logical_resource_id) or {}

    def to_path(self, construct_path_key: Optional[str] = None) -> str:
        """Construct path of the resource, or ``Stack.LogicalId`` without one.

        The path is read from the location's own key unless one is given.
        """
        path = construct_path(self._resource(), construct_path_key or self.construct_path_key)
        if path is not None:
            return str(path)
        return f"{self.stack_name}.{self.logical_resource_id}"

    def get_type(self) -> str:
        return self._resource().get("Type") or "Unknown"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ResourceLocation):
            return NotImplemented
        return (
            self.logical_resource_id == other.logical_resource_id
            and self.stack_name == other.stack_name
        )

    def __hash__(self) -> int:
        return hash((self.stack_name, self.logical_resource_id))

    def __repr__(self) -> str:
        return f"ResourceLocation({self.stack_name}.{self.logical_resource_id})"


class ResourceMapping:
    """A resolved move or rename from ``source`` to ``destination``."""

    def __init__(self, source: ResourceLocation, destination: ResourceLocation):
        self.source = source
        self.destination = destination

    def to_typed_mapping(self) -> TypedMapping:
        # Same digest, so source and destination have the same type
        return TypedMapping(
            type=self.source.get_type(),
            source_path=self.source.to_path(),
            destination_path=self.destination.to_path(),
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ResourceMapping):
            return NotImplemented
        return self.source == other.source and self.destination == other.destination

    def __hash__(self) -> int:
        return hash((self.source, self.destination))

    def __repr__(self) -> str:
        return f"ResourceMapping({self.source!r} -> {self.destination!r})"
