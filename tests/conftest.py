"""Shared test fixtures and utilities."""

import pytest

from cfn_diff.refactoring import CloudFormationStack, Environment
from cfn_diff.resource_models import ResourceModelRegistry


@pytest.fixture
def env():
    """Default deployment environment."""
    return Environment(account="123456789012", region="us-east-1")


@pytest.fixture
def other_env():
    """A second environment in another region."""
    return Environment(account="123456789012", region="eu-west-1")


@pytest.fixture
def make_stack(env):
    """Factory fixture building a stack from a resources mapping."""
    def _make(stack_name, resources, environment=None):
        return CloudFormationStack(
            environment=environment or env,
            stack_name=stack_name,
            template={"Resources": resources},
        )
    return _make


@pytest.fixture
def registry():
    """Small registry with a named test type and a replacement-aware type."""
    return ResourceModelRegistry.from_mapping({
        "Test::Named": {
            "primary_identifier": ["Name"],
            "properties": {"Name": {"replacement": "Always"}},
        },
        "Test::Composite": {
            "primary_identifier": ["Region", "Name"],
        },
        "Test::Plain": {
            "properties": {
                "Size": {"replacement": "Conditionally"},
                "Id": {"replacement": "Always"},
                "Tags": {"replacement": "Never"},
            },
        },
    })
