"""Constants for cfn-diff."""

# Project configuration directory
CFN_DIFF_DIR = ".cfn-diff"

# Configuration file (inside CFN_DIFF_DIR)
CONFIG_FILE = "config.yaml"

# Resource metadata key holding the construct path of a resource
CONSTRUCT_PATH_KEY = "aws:cdk:path"

# Key used for the opaque placeholder that replaces references before hashing
REFERENCE_PLACEHOLDER_KEY = "__cloud_ref__"

# Parallel template fetches per environment
DEFAULT_FETCH_WORKERS = 4

# Stack statuses whose templates describe what is actually deployed
DEPLOYED_STACK_STATUSES = frozenset({
    "CREATE_COMPLETE",
    "UPDATE_COMPLETE",
    "UPDATE_ROLLBACK_COMPLETE",
    "IMPORT_COMPLETE",
    "ROLLBACK_COMPLETE",
})

# Bundled resource model catalogue (package data)
RESOURCE_MODELS_RESOURCE = "resource_models.yaml"

# Version
CFN_DIFF_VERSION = "0.1.0"
