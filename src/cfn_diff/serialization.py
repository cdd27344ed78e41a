"""Template parsing (JSON or YAML)."""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Union

import yaml

from .errors import TemplateError

logger = logging.getLogger(__name__)


def _key_text(key: Any) -> Any:
    if isinstance(key, bool):
        return "true" if key else "false"
    if isinstance(key, (int, float)):
        return str(key)
    return key


class TemplateLoader(yaml.SafeLoader):
    """Safe loader that keeps timestamps as strings and knows the short-form tags."""

    def construct_mapping(self, node, deep=False):
        mapping = super().construct_mapping(node, deep=deep)
        # Template keys are always strings
        return {_key_text(key): value for key, value in mapping.items()}


# Date-like strings stay strings
TemplateLoader.yaml_implicit_resolvers = {
    key: [r for r in resolvers if r[0] != "tag:yaml.org,2002:timestamp"]
    for key, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


def _construct_node(loader: yaml.SafeLoader, node: yaml.Node) -> Any:
    if isinstance(node, yaml.ScalarNode):
        return loader.construct_scalar(node)
    if isinstance(node, yaml.SequenceNode):
        return loader.construct_sequence(node, deep=True)
    return loader.construct_mapping(node, deep=True)


def _short_form_constructor(loader: yaml.SafeLoader, tag_suffix: str, node: yaml.Node) -> Dict[str, Any]:
    """Expand ``!Ref x`` to ``{"Ref": x}`` and ``!Foo x`` to ``{"Fn::Foo": x}``."""
    value = _construct_node(loader, node)
    if tag_suffix == "Ref":
        return {"Ref": value}
    if tag_suffix == "Condition":
        return {"Condition": value}
    if tag_suffix == "GetAtt" and isinstance(value, str):
        value = value.split(".", 1)
    return {f"Fn::{tag_suffix}": value}


TemplateLoader.add_multi_constructor("!", _short_form_constructor)


def parse_template(text: str) -> Dict[str, Any]:
    """
    Parse a template body.

    JSON is tried first; anything else is read as YAML, including the
    short-form intrinsic tags.

    Args:
        text: Template body

    Returns:
        Template as a dict (empty for an empty body)

    Raises:
        TemplateError: If the body is not valid JSON/YAML or not a mapping
    """
    if not text or not text.strip():
        return {}
    try:
        template = json.loads(text)
    except ValueError:
        try:
            template = yaml.load(text, Loader=TemplateLoader)
        except yaml.YAMLError as e:
            raise TemplateError(f"Template is neither valid JSON nor YAML: {e}") from e

    if template is None:
        return {}
    if not isinstance(template, dict):
        raise TemplateError(f"Template must be a mapping, got {type(template).__name__}")
    return template


def load_template(path: Union[str, Path]) -> Dict[str, Any]:
    """Read and parse a template file."""
    path = Path(path)
    try:
        text = path.read_text()
    except OSError as e:
        raise TemplateError(f"Cannot read template {path}: {e}") from e
    logger.debug("Loading template %s", path)
    return parse_template(text)
