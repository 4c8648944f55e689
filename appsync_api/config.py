"""
Loading of declarative GraphQL API definitions.

A definition is a JSON document:

    {
      "api": {"name": "orders-api", "schema_file": "schema.graphql"},
      "datasources": [{"name": "Orders", "type": "AMAZON_DYNAMODB", "backend_locator": "arn:..."}],
      "functions": {"fetchOrder": {"name": "FetchOrderFn", "datasource": "Orders"}},
      "resolvers": {"getOrder": {"name": "getOrder", "type": "Query", "datasource": "Orders"}},
      "pipeline_resolvers": {"placeOrder": {"name": "placeOrder", "type": "Mutation",
                                            "functions": ["checkStock", "putOrder"]}},
      "authentication_types": ["AMAZON_COGNITO_USER_POOLS", "API_KEY"],
      "auth": {"user_pool": {"user_pool_id": "us-east-1_abc"}}
    }

Keys repeated inside the functions / resolvers / pipeline_resolvers maps are
reported as DuplicateKeyError rather than silently overwritten.
"""

import json
from pathlib import Path
from typing import Any, Callable

from .errors import AppError, CompilationError, DuplicateKeyError, InvalidValueError
from .models import (
    DATASOURCE,
    FUNCTION,
    PIPELINE_RESOLVER,
    RESOLVER,
    ApiDefinition,
    ApiKeyDefinition,
    ApiSettings,
    AuthPayloads,
    DatasourceDefinition,
    DomainConfig,
    FunctionDefinition,
    LambdaAuthorizerConfig,
    LogConfig,
    OpenIdConnectConfig,
    PipelineResolverDefinition,
    UnitResolverDefinition,
    UserPoolConfig,
)


class _JsonObject(dict):
    """JSON object that remembers keys repeated in the source document."""

    def __init__(self, pairs: list[tuple[str, Any]]):
        super().__init__()
        self.duplicates: list[str] = []
        for key, value in pairs:
            if key in self:
                self.duplicates.append(key)
            self[key] = value


def load_definition(path: str | Path) -> ApiDefinition:
    """
    Load and parse a definition file.

    Args:
        path: Path to the JSON definition

    Returns:
        Parsed ApiDefinition (not yet compiled)

    Raises:
        DuplicateKeyError: If an entity key is repeated
        CompilationError: With every shape problem found
    """
    path = Path(path)
    with open(path) as f:
        data = json.load(f, object_pairs_hook=_JsonObject)
    return parse_definition(data, base_dir=path.parent)


def parse_definition(data: dict[str, Any], base_dir: str | Path | None = None) -> ApiDefinition:
    """
    Parse definition data into an ApiDefinition.

    Args:
        data: Decoded definition document
        base_dir: Directory that a relative api.schema_file resolves against
    """
    if not isinstance(data, dict):
        raise CompilationError([InvalidValueError("definition", None, "document", "must be a JSON object")])

    errors: list[AppError] = []
    parser = _Parser(errors, Path(base_dir) if base_dir is not None else Path.cwd())

    definition = ApiDefinition(
        api=parser.api(data),
        datasources=tuple(parser.datasources(data.get("datasources") or [])),
        functions=tuple(parser.entity_map(data.get("functions"), FUNCTION, parser.function)),
        unit_resolvers=tuple(parser.entity_map(data.get("resolvers"), RESOLVER, parser.unit_resolver)),
        pipeline_resolvers=tuple(
            parser.entity_map(data.get("pipeline_resolvers"), PIPELINE_RESOLVER, parser.pipeline_resolver)
        ),
        auth_types=parser.auth_types(data.get("authentication_types")),
        auth=parser.auth(data),
    )

    if errors:
        raise CompilationError(errors)
    return definition


class _Parser:
    """Field-level conversion, collecting shape problems into errors."""

    def __init__(self, errors: list[AppError], base_dir: Path):
        self.errors = errors
        self.base_dir = base_dir

    # === FIELD HELPERS ===

    def _str(self, obj: dict[str, Any], field: str, kind: str, key: str | None, required: bool = False) -> Any:
        value = obj.get(field)
        if value is None:
            if required:
                self.errors.append(InvalidValueError(kind, key, field, "is required"))
            return None
        if not isinstance(value, str):
            self.errors.append(InvalidValueError(kind, key, field, "must be a string"))
            return None
        return value

    def _int(self, obj: dict[str, Any], field: str, kind: str, key: str | None, default: Any = None) -> Any:
        value = obj.get(field)
        if value is None:
            return default
        if isinstance(value, bool) or not isinstance(value, int):
            self.errors.append(InvalidValueError(kind, key, field, "must be an integer"))
            return default
        return value

    def _bool(self, obj: dict[str, Any], field: str, kind: str, key: str | None, default: bool) -> bool:
        value = obj.get(field, default)
        if not isinstance(value, bool):
            self.errors.append(InvalidValueError(kind, key, field, "must be true or false"))
            return default
        return value

    def _obj(self, obj: dict[str, Any], field: str, kind: str, key: str | None) -> dict[str, Any] | None:
        value = obj.get(field)
        if value is None:
            return None
        if not isinstance(value, dict):
            self.errors.append(InvalidValueError(kind, key, field, "must be an object"))
            return None
        return value

    # === ENTITIES ===

    def entity_map(self, value: Any, kind: str, build: Callable[[str, dict[str, Any]], Any]) -> list[Any]:
        if value is None:
            return []
        if not isinstance(value, dict):
            self.errors.append(InvalidValueError(kind, None, "definitions", "must be an object keyed by name"))
            return []
        duplicates = getattr(value, "duplicates", [])
        if duplicates:
            raise DuplicateKeyError(kind, duplicates[0])

        entities = []
        for key, body in value.items():
            if not isinstance(body, dict):
                self.errors.append(InvalidValueError(kind, key, "definition", "must be an object"))
                continue
            entities.append(build(key, body))
        return entities

    def datasources(self, value: Any) -> list[DatasourceDefinition]:
        if not isinstance(value, list):
            self.errors.append(InvalidValueError(DATASOURCE, None, "datasources", "must be a list"))
            return []

        result = []
        for index, body in enumerate(value):
            if not isinstance(body, dict):
                self.errors.append(InvalidValueError(DATASOURCE, f"#{index}", "definition", "must be an object"))
                continue
            name = self._str(body, "name", DATASOURCE, f"#{index}", required=True)
            ds_type = self._str(body, "type", DATASOURCE, name or f"#{index}", required=True)
            if name is None or ds_type is None:
                continue
            result.append(
                DatasourceDefinition(
                    name=name,
                    type=ds_type,
                    backend_locator=self._str(body, "backend_locator", DATASOURCE, name),
                    api_id=self._str(body, "api_id", DATASOURCE, name),
                    service_role_arn=self._str(body, "service_role_arn", DATASOURCE, name),
                    description=self._str(body, "description", DATASOURCE, name),
                )
            )
        return result

    def function(self, key: str, body: dict[str, Any]) -> FunctionDefinition:
        return FunctionDefinition(
            key=key,
            name=self._str(body, "name", FUNCTION, key) or key,
            datasource_name=self._str(body, "datasource", FUNCTION, key, required=True) or "",
            request_template=self._str(body, "request_template", FUNCTION, key),
            response_template=self._str(body, "response_template", FUNCTION, key),
            code=self._str(body, "code", FUNCTION, key),
            description=self._str(body, "description", FUNCTION, key),
        )

    def unit_resolver(self, key: str, body: dict[str, Any]) -> UnitResolverDefinition:
        return UnitResolverDefinition(
            key=key,
            name=self._str(body, "name", RESOLVER, key) or key,
            field_type=self._str(body, "type", RESOLVER, key, required=True) or "",
            datasource_name=self._str(body, "datasource", RESOLVER, key, required=True) or "",
            request_template=self._str(body, "request_template", RESOLVER, key),
            response_template=self._str(body, "response_template", RESOLVER, key),
            code=self._str(body, "code", RESOLVER, key),
        )

    def pipeline_resolver(self, key: str, body: dict[str, Any]) -> PipelineResolverDefinition:
        function_keys = body.get("functions", [])
        if not isinstance(function_keys, list) or not all(isinstance(k, str) for k in function_keys):
            self.errors.append(InvalidValueError(PIPELINE_RESOLVER, key, "functions", "must be a list of strings"))
            function_keys = []
        return PipelineResolverDefinition(
            key=key,
            name=self._str(body, "name", PIPELINE_RESOLVER, key) or key,
            field_type=self._str(body, "type", PIPELINE_RESOLVER, key, required=True) or "",
            function_keys=tuple(function_keys),
            request_template=self._str(body, "request_template", PIPELINE_RESOLVER, key),
            response_template=self._str(body, "response_template", PIPELINE_RESOLVER, key),
            code=self._str(body, "code", PIPELINE_RESOLVER, key),
        )

    # === API SETTINGS ===

    def api(self, document: dict[str, Any]) -> ApiSettings:
        body = self._obj(document, "api", "api", None) or {}
        name = self._str(body, "name", "api", None, required=True) or ""

        schema = self._str(body, "schema", "api", name) or ""
        schema_file = self._str(body, "schema_file", "api", name)
        if schema_file:
            schema_path = self.base_dir / schema_file
            try:
                schema = schema_path.read_text()
            except OSError as e:
                self.errors.append(InvalidValueError("api", name, "schema_file", f"cannot be read: {e.strerror}"))

        log_config = None
        log_body = self._obj(body, "log_config", "api", name)
        if log_body is not None:
            role_arn = self._str(log_body, "cloudwatch_logs_role_arn", "api", name, required=True)
            if role_arn is not None:
                log_config = LogConfig(
                    cloudwatch_logs_role_arn=role_arn,
                    field_log_level=self._str(log_body, "field_log_level", "api", name) or "ERROR",
                    exclude_verbose_content=self._bool(log_body, "exclude_verbose_content", "api", name, True),
                )

        domain = None
        domain_body = self._obj(body, "domain", "api", name)
        if domain_body is not None:
            domain_name = self._str(domain_body, "domain_name", "api", name, required=True)
            if domain_name is not None:
                domain = DomainConfig(
                    domain_name=domain_name,
                    certificate_arn=self._str(domain_body, "certificate_arn", "api", name),
                )

        api_keys = []
        for key, key_body in (self._obj(body, "api_keys", "api", name) or {}).items():
            if not isinstance(key_body, dict):
                self.errors.append(InvalidValueError("api key", key, "definition", "must be an object"))
                continue
            api_keys.append(
                ApiKeyDefinition(
                    key=key,
                    description=self._str(key_body, "description", "api key", key),
                    expires_in_days=self._int(key_body, "expires_in_days", "api key", key, default=7),
                )
            )

        tags = self._obj(body, "tags", "api", name) or {}
        return ApiSettings(
            name=name,
            schema=schema,
            xray_enabled=self._bool(body, "xray_enabled", "api", name, False),
            log_config=log_config,
            domain=domain,
            api_keys=tuple(api_keys),
            tags=tuple(sorted((str(k), str(v)) for k, v in tags.items())),
        )

    # === AUTH ===

    def auth_types(self, value: Any) -> tuple[Any, ...]:
        if value is None:
            return ()
        if not isinstance(value, list):
            self.errors.append(InvalidValueError("api", None, "authentication_types", "must be a list"))
            return ()
        return tuple(value)

    def auth(self, document: dict[str, Any]) -> AuthPayloads:
        body = self._obj(document, "auth", "auth", None) or {}
        user_pool = None
        pool = self._obj(body, "user_pool", "auth", None)
        if pool is not None:
            pool_id = self._str(pool, "user_pool_id", "auth", "user_pool", required=True)
            if pool_id is not None:
                user_pool = UserPoolConfig(
                    user_pool_id=pool_id,
                    aws_region=self._str(pool, "aws_region", "auth", "user_pool"),
                    app_id_client_regex=self._str(pool, "app_id_client_regex", "auth", "user_pool"),
                    default_action=self._str(pool, "default_action", "auth", "user_pool") or "ALLOW",
                )

        openid_connect = None
        oidc = self._obj(body, "openid_connect", "auth", None)
        if oidc is not None:
            issuer = self._str(oidc, "issuer", "auth", "openid_connect", required=True)
            if issuer is not None:
                openid_connect = OpenIdConnectConfig(
                    issuer=issuer,
                    client_id=self._str(oidc, "client_id", "auth", "openid_connect"),
                    auth_ttl=self._int(oidc, "auth_ttl", "auth", "openid_connect"),
                    iat_ttl=self._int(oidc, "iat_ttl", "auth", "openid_connect"),
                )

        lambda_authorizer = None
        authorizer = self._obj(body, "lambda_authorizer", "auth", None)
        if authorizer is not None:
            uri = self._str(authorizer, "authorizer_uri", "auth", "lambda_authorizer", required=True)
            if uri is not None:
                lambda_authorizer = LambdaAuthorizerConfig(
                    authorizer_uri=uri,
                    authorizer_result_ttl_in_seconds=self._int(
                        authorizer, "authorizer_result_ttl_in_seconds", "auth", "lambda_authorizer"
                    ),
                    identity_validation_expression=self._str(
                        authorizer, "identity_validation_expression", "auth", "lambda_authorizer"
                    ),
                )

        return AuthPayloads(user_pool=user_pool, openid_connect=openid_connect, lambda_authorizer=lambda_authorizer)
