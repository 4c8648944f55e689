"""
Naming and configuration lookups for the GraphQL API stack.

- Region abbreviations used in physical names (orders-api-ue1-dev)
- The resource namer shared by the stack and the provisioning modules
- CDK context / environment lookups (definition path, logging override)
"""

import os
from pathlib import Path
from typing import Any, Callable, Optional

# Short region codes appended to physical names: {name}-{region_abbrev}-{env}
REGION_ABBREVIATIONS: dict[str, str] = {
    "us-east-1": "ue1",
    "us-east-2": "ue2",
    "us-west-1": "uw1",
    "us-west-2": "uw2",
    "eu-west-1": "ew1",
    "eu-west-2": "ew2",
    "eu-west-3": "ew3",
    "eu-central-1": "ec1",
    "eu-north-1": "en1",
    "ap-northeast-1": "ane1",
    "ap-northeast-2": "ane2",
    "ap-northeast-3": "ane3",
    "ap-southeast-1": "ase1",
    "ap-southeast-2": "ase2",
    "ap-south-1": "as1",
    "sa-east-1": "se1",
    "ca-central-1": "cc1",
}

DEFAULT_DEFINITION_FILE = "api.json"

# Maps a base name (e.g. the API name from the definition) to its physical name
ResourceNamer = Callable[..., str]


def get_region() -> str:
    """Deployment region: AWS_REGION, then CDK_DEFAULT_REGION, then us-east-1."""
    return os.getenv("AWS_REGION") or os.getenv("CDK_DEFAULT_REGION") or "us-east-1"


def get_region_abbrev(region: Optional[str] = None) -> str:
    """Short code for a region, falling back to its first three characters.

    Args:
        region: AWS region code; the deployment region when omitted
    """
    region = region or get_region()
    return REGION_ABBREVIATIONS.get(region, region[:3])


def make_resource_namer(region_abbrev: str, env_name: str) -> ResourceNamer:
    """Build the namer used for the API and its other physical names.

    Example:
        rn = make_resource_namer("ue1", "dev")
        rn("orders-api")  # -> "orders-api-ue1-dev"
    """

    def rn(name: str, abbrev: str = region_abbrev, env: str = env_name) -> str:
        return f"{name}-{abbrev}-{env}"

    return rn


def get_context_bool(scope: Any, key: str, default: bool = False) -> bool:
    """Read a boolean CDK context value.

    Strings are treated as True unless they equal "false" (any case).
    """
    value = scope.node.try_get_context(key)
    if value is None:
        return default
    if isinstance(value, str):
        return value.lower() != "false"
    return bool(value)


def get_definition_path(scope: Any) -> Path:
    """Locate the API definition file.

    Checks, in order: the `definition` CDK context value, the
    GRAPHQL_API_DEFINITION environment variable, then api.json.
    """
    path = scope.node.try_get_context("definition") or os.getenv("GRAPHQL_API_DEFINITION") or DEFAULT_DEFINITION_FILE
    return Path(path)


def is_appsync_logging_forced(scope: Any) -> bool:
    """Whether full field-level logging is requested.

    The `enable_appsync_logging` CDK context value wins over the
    ENABLE_APPSYNC_LOGGING environment variable.
    """
    env_default = os.getenv("ENABLE_APPSYNC_LOGGING", "false").lower() == "true"
    return get_context_bool(scope, "enable_appsync_logging", default=env_default)
