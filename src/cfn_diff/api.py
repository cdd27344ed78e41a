"""Stable API for cfn-diff operations.

A small surface for tools that embed the diff engine and refactor detector
without depending on module layout. Both functions read the project
configuration from ``<root>/.cfn-diff/config.yaml``.
"""

from pathlib import Path
from typing import List, Sequence, Union

from .config import load_config
from .diff import TemplateDiff, diff_template
from .refactoring import (
    CloudFormationStack,
    DeployedStackFetcher,
    InMemoryExcludeList,
    TypedMapping,
    detect_refactor_mappings,
)
from .resource_models import load_registry
from .serialization import load_template


def diff_template_files(
    old_path: Union[str, Path],
    new_path: Union[str, Path],
    root: Union[str, Path] = ".",
) -> TemplateDiff:
    """Diff two template files.

    Args:
        old_path: Deployed template (JSON or YAML)
        new_path: Template about to be deployed
        root: Project directory holding .cfn-diff/config.yaml

    Returns:
        TemplateDiff of the two templates

    Raises:
        TemplateError: If either file cannot be read or parsed
    """
    config = load_config(Path(root))
    registry = load_registry(config.resource_models_file)
    return diff_template(load_template(old_path), load_template(new_path), registry)


def detect_refactors(
    stacks: Sequence[CloudFormationStack],
    fetcher: DeployedStackFetcher,
    root: Union[str, Path] = ".",
) -> List[TypedMapping]:
    """Detect moved and renamed resources using the project configuration.

    Args:
        stacks: Local stacks
        fetcher: Source of deployed stacks
        root: Project directory holding .cfn-diff/config.yaml

    Returns:
        Typed mappings, ready for presentation

    Raises:
        AmbiguityError: If a movement cannot be resolved one-to-one

    Example:
        >>> from cfn_diff.api import detect_refactors
        >>> from cfn_diff.refactoring import DirectoryStackFetcher
        >>> mappings = detect_refactors(stacks, DirectoryStackFetcher("deployed"))
        >>> [(m.source_path, m.destination_path) for m in mappings]
        [('Foo.OldName', 'Foo.NewName')]
    """
    config = load_config(Path(root))
    registry = load_registry(config.resource_models_file)
    mappings = detect_refactor_mappings(
        stacks,
        fetcher,
        exclude=InMemoryExcludeList(config.exclude),
        max_workers=config.fetch_max_workers,
        registry=registry,
        construct_path_key=config.construct_path_key,
    )
    return [m.to_typed_mapping() for m in mappings]
