"""
Definition and resolved-graph types for the GraphQL API compiler.

Definitions are what a user declares (string references between entities).
Resolved types are what the compiler emits: the same shapes with every
string reference replaced by a validated EntityHandle.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

# Entity kinds, used in handles and error messages
DATASOURCE = "datasource"
FUNCTION = "function"
RESOLVER = "resolver"
PIPELINE_RESOLVER = "pipeline resolver"

DATASOURCE_TYPES = (
    "AMAZON_DYNAMODB",
    "AWS_LAMBDA",
    "HTTP",
    "AMAZON_EVENTBRIDGE",
    "NONE",
)

FIELD_LOG_LEVELS = ("NONE", "ERROR", "INFO", "DEBUG", "ALL")


class AuthType(Enum):
    """Supported AppSync authentication mechanisms (value is the AppSync wire name)."""

    API_KEY = "API_KEY"
    AWS_IAM = "AWS_IAM"
    COGNITO_USER_POOLS = "AMAZON_COGNITO_USER_POOLS"
    OPENID_CONNECT = "OPENID_CONNECT"
    LAMBDA_AUTHORIZER = "AWS_LAMBDA"

    @classmethod
    def parse(cls, value: "str | AuthType") -> "AuthType":
        """Parse a member name or AppSync wire value; raises ValueError otherwise."""
        if isinstance(value, AuthType):
            return value
        if isinstance(value, str):
            if value in cls.__members__:
                return cls[value]
            return cls(value)
        raise ValueError(f"{value!r} is not an authentication type")


# === DEFINITIONS ===


@dataclass(frozen=True)
class DatasourceDefinition:
    """A named backend that functions and unit resolvers read/write through."""

    name: str
    type: str
    backend_locator: str | None = None
    api_id: str | None = None
    service_role_arn: str | None = None
    description: str | None = None


@dataclass(frozen=True)
class FunctionDefinition:
    """A reusable pipeline step bound to one datasource."""

    key: str
    name: str
    datasource_name: str
    request_template: str | None = None
    response_template: str | None = None
    code: str | None = None
    description: str | None = None


@dataclass(frozen=True)
class UnitResolverDefinition:
    """A resolver that talks to exactly one datasource for one field."""

    key: str
    name: str
    field_type: str
    datasource_name: str
    request_template: str | None = None
    response_template: str | None = None
    code: str | None = None


@dataclass(frozen=True)
class PipelineResolverDefinition:
    """A resolver that runs an ordered sequence of functions for one field."""

    key: str
    name: str
    field_type: str
    function_keys: tuple[str, ...]
    request_template: str | None = None
    response_template: str | None = None
    code: str | None = None


@dataclass(frozen=True)
class UserPoolConfig:
    user_pool_id: str
    aws_region: str | None = None
    app_id_client_regex: str | None = None
    default_action: str = "ALLOW"


@dataclass(frozen=True)
class OpenIdConnectConfig:
    issuer: str
    client_id: str | None = None
    auth_ttl: int | None = None
    iat_ttl: int | None = None


@dataclass(frozen=True)
class LambdaAuthorizerConfig:
    authorizer_uri: str
    authorizer_result_ttl_in_seconds: int | None = None
    identity_validation_expression: str | None = None


@dataclass(frozen=True)
class AuthPayloads:
    """At most one configuration payload per non-trivial mechanism."""

    user_pool: UserPoolConfig | None = None
    openid_connect: OpenIdConnectConfig | None = None
    lambda_authorizer: LambdaAuthorizerConfig | None = None


@dataclass(frozen=True)
class LogConfig:
    cloudwatch_logs_role_arn: str
    field_log_level: str = "ERROR"
    exclude_verbose_content: bool = True


@dataclass(frozen=True)
class DomainConfig:
    domain_name: str
    certificate_arn: str | None = None


@dataclass(frozen=True)
class ApiKeyDefinition:
    key: str
    description: str | None = None
    expires_in_days: int = 7


@dataclass(frozen=True)
class ApiSettings:
    """API-level settings passed through to the provisioning layer."""

    name: str
    schema: str = ""
    xray_enabled: bool = False
    log_config: LogConfig | None = None
    domain: DomainConfig | None = None
    api_keys: tuple[ApiKeyDefinition, ...] = ()
    tags: tuple[tuple[str, str], ...] = ()


@dataclass(frozen=True)
class ApiDefinition:
    """Complete declarative input for one GraphQL API."""

    api: ApiSettings
    datasources: tuple[DatasourceDefinition, ...] = ()
    functions: tuple[FunctionDefinition, ...] = ()
    unit_resolvers: tuple[UnitResolverDefinition, ...] = ()
    pipeline_resolvers: tuple[PipelineResolverDefinition, ...] = ()
    auth_types: tuple[Any, ...] = ()
    auth: AuthPayloads = field(default_factory=AuthPayloads)


# === RESOLVED GRAPH ===


@dataclass(frozen=True)
class EntityHandle:
    """Validated reference to an entity declared in an EntityTable."""

    kind: str
    key: str


@dataclass(frozen=True)
class AuthProviderBlock:
    """One authentication provider block, shaped for its mechanism."""

    authentication_type: AuthType
    user_pool_config: dict[str, Any] | None = None
    openid_connect_config: dict[str, Any] | None = None
    lambda_authorizer_config: dict[str, Any] | None = None

    @property
    def payload(self) -> dict[str, Any] | None:
        """The mechanism-specific configuration, or None for API_KEY / AWS_IAM."""
        return self.user_pool_config or self.openid_connect_config or self.lambda_authorizer_config

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"authentication_type": self.authentication_type.value}
        if self.user_pool_config is not None:
            result["user_pool_config"] = dict(self.user_pool_config)
        if self.openid_connect_config is not None:
            result["openid_connect_config"] = dict(self.openid_connect_config)
        if self.lambda_authorizer_config is not None:
            result["lambda_authorizer_config"] = dict(self.lambda_authorizer_config)
        return result


@dataclass(frozen=True)
class ComposedAuth:
    """Primary authentication block plus ordered additional providers."""

    primary: AuthProviderBlock
    additional: tuple[AuthProviderBlock, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "primary": self.primary.to_dict(),
            "additional": [block.to_dict() for block in self.additional],
        }


@dataclass(frozen=True)
class ResolvedFunction:
    key: str
    name: str
    datasource: EntityHandle
    request_template: str | None = None
    response_template: str | None = None
    code: str | None = None
    description: str | None = None


@dataclass(frozen=True)
class ResolvedUnitResolver:
    key: str
    name: str
    field_type: str
    datasource: EntityHandle
    request_template: str | None = None
    response_template: str | None = None
    code: str | None = None


@dataclass(frozen=True)
class ResolvedPipelineResolver:
    key: str
    name: str
    field_type: str
    functions: tuple[EntityHandle, ...]
    request_template: str | None = None
    response_template: str | None = None
    code: str | None = None


@dataclass(frozen=True)
class ResolvedGraph:
    """Validated, fully linked configuration for the provisioning layer."""

    api: ApiSettings
    datasources: dict[str, DatasourceDefinition]
    functions: dict[str, ResolvedFunction]
    unit_resolvers: tuple[ResolvedUnitResolver, ...]
    pipeline_resolvers: tuple[ResolvedPipelineResolver, ...]
    auth: ComposedAuth

    def datasource(self, handle: EntityHandle) -> DatasourceDefinition:
        return self.datasources[handle.key]

    def function(self, handle: EntityHandle) -> ResolvedFunction:
        return self.functions[handle.key]

    def to_dict(self) -> dict[str, Any]:
        """Plain-data view of the graph; identical input yields identical output."""
        return {
            "api": _plain(self.api),
            "datasources": [_plain(ds) for ds in self.datasources.values()],
            "functions": [_plain(fn) for fn in self.functions.values()],
            "resolvers": [_plain(r) for r in self.unit_resolvers],
            "pipeline_resolvers": [_plain(r) for r in self.pipeline_resolvers],
            "auth": self.auth.to_dict(),
        }


def _plain(value: Any) -> Any:
    """Recursively convert dataclasses, handles and tuples into JSON-ready data."""
    if isinstance(value, EntityHandle):
        return value.key
    if isinstance(value, AuthType):
        return value.value
    if hasattr(value, "__dataclass_fields__"):
        return {name: _plain(getattr(value, name)) for name in value.__dataclass_fields__}
    if isinstance(value, (list, tuple)):
        return [_plain(item) for item in value]
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    return value
