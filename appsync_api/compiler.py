"""
Compiler from a declarative API definition to a resolved configuration graph.

Compilation runs as a single validation pass:

1. TABLES_BUILT: declare datasources, then functions (each function's
   datasource reference is checked as it is declared), then resolvers
2. REFERENCES_RESOLVED: link unit resolvers to datasources and pipeline
   resolvers to their ordered functions
3. COMPOSED: compose authentication blocks and check API settings

Problems accumulate across all three stages and are raised together as a
CompilationError, so a definition with several independent mistakes is
reported in one go. Duplicate keys are the exception: they are raised as
soon as they are found since the table cannot be trusted afterwards.
"""

import re
from dataclasses import dataclass
from enum import Enum

from .auth import AuthProviderComposer
from .entity_table import EntityTable
from .errors import (
    AppError,
    CompilationError,
    FieldConflictError,
    InvalidValueError,
    UnknownKeyError,
)
from .logging import StructuredLogger
from .models import (
    DATASOURCE,
    DATASOURCE_TYPES,
    FIELD_LOG_LEVELS,
    FUNCTION,
    RESOLVER,
    ApiDefinition,
    ApiSettings,
    ComposedAuth,
    DatasourceDefinition,
    FunctionDefinition,
    PipelineResolverDefinition,
    ResolvedFunction,
    ResolvedGraph,
    ResolvedPipelineResolver,
    ResolvedUnitResolver,
    UnitResolverDefinition,
)
from .pipeline import PipelineLinker
from .references import ReferenceResolver

# AppSync data source names
DATASOURCE_NAME_PATTERN = re.compile(r"^[_A-Za-z][_0-9A-Za-z]*$")

# Backend locator format per datasource type, with the description used in errors
LOCATOR_PATTERNS: dict[str, tuple[re.Pattern[str], str]] = {
    "AMAZON_DYNAMODB": (
        re.compile(r"^arn:aws[\w-]*:dynamodb:[a-z0-9-]+:\d*:table/[\w.-]+$"),
        "a DynamoDB table ARN (arn:aws:dynamodb:<region>:<account>:table/<name>)",
    ),
    "AWS_LAMBDA": (re.compile(r"^arn:aws[\w-]*:lambda:"), "a Lambda function ARN"),
    "AMAZON_EVENTBRIDGE": (re.compile(r"^arn:aws[\w-]*:events:"), "an EventBridge event bus ARN"),
    "HTTP": (re.compile(r"^https?://\S+$"), "an http:// or https:// endpoint"),
}


class CompilerState(Enum):
    INITIAL = "INITIAL"
    TABLES_BUILT = "TABLES_BUILT"
    REFERENCES_RESOLVED = "REFERENCES_RESOLVED"
    COMPOSED = "COMPOSED"
    DONE = "DONE"
    FAILED = "FAILED"


@dataclass
class _Tables:
    """Tables built for one compilation."""

    datasources: EntityTable[DatasourceDefinition]
    declared_functions: EntityTable[FunctionDefinition]
    functions: EntityTable[ResolvedFunction]
    resolvers: EntityTable[UnitResolverDefinition | PipelineResolverDefinition]


class ConfigCompiler:
    """
    Validate and link an ApiDefinition.

    Each call to compile() builds its own tables; nothing is shared between
    compilations. `state` reflects the most recent call and `errors` holds
    what the last failed compile reported.

    Example:
        graph = ConfigCompiler().compile(definition)
        for resolver in graph.pipeline_resolvers:
            steps = [graph.function(handle) for handle in resolver.functions]
    """

    def __init__(self, logger: StructuredLogger | None = None):
        self.logger = logger or StructuredLogger(__name__)
        self.state = CompilerState.INITIAL
        self.errors: list[AppError] = []

    def compile(self, definition: ApiDefinition) -> ResolvedGraph:
        """
        Compile a definition into a ResolvedGraph.

        Raises:
            DuplicateKeyError: As soon as a key is declared twice
            CompilationError: With every accumulated validation error
        """
        self.state = CompilerState.INITIAL
        self.errors = []
        errors: list[AppError] = []

        try:
            tables = self._build_tables(definition, errors)
        except AppError as e:
            self.state = CompilerState.FAILED
            self.errors = [e]
            self.logger.error("GraphQL API definition is invalid", api=definition.api.name, error=e.message)
            raise
        self._transition(CompilerState.TABLES_BUILT, errors)

        unit_resolvers, pipeline_resolvers = self._resolve_references(definition, tables, errors)
        self._transition(CompilerState.REFERENCES_RESOLVED, errors)

        auth = self._compose(definition, errors)
        self._transition(CompilerState.COMPOSED, errors)

        if errors or auth is None:
            self.state = CompilerState.FAILED
            self.errors = errors
            self.logger.error(
                "GraphQL API definition is invalid",
                api=definition.api.name,
                errorCount=len(errors),
                errors=[error.message for error in errors],
            )
            raise CompilationError(errors)

        graph = ResolvedGraph(
            api=definition.api,
            datasources=dict(tables.datasources.items()),
            functions=dict(tables.functions.items()),
            unit_resolvers=tuple(unit_resolvers),
            pipeline_resolvers=tuple(pipeline_resolvers),
            auth=auth,
        )
        self.state = CompilerState.DONE
        self.logger.info(
            "Compiled GraphQL API definition",
            api=definition.api.name,
            datasources=len(graph.datasources),
            functions=len(graph.functions),
            resolvers=len(graph.unit_resolvers),
            pipelineResolvers=len(graph.pipeline_resolvers),
            authentication=graph.auth.primary.authentication_type.value,
        )
        return graph

    def _transition(self, state: CompilerState, errors: list[AppError]) -> None:
        self.state = state
        self.logger.debug("Compiler stage complete", state=state.value, errorCount=len(errors))

    # === TABLES ===

    def _build_tables(self, definition: ApiDefinition, errors: list[AppError]) -> _Tables:
        tables = _Tables(
            datasources=EntityTable(DATASOURCE),
            declared_functions=EntityTable(FUNCTION),
            functions=EntityTable(FUNCTION),
            resolvers=EntityTable(RESOLVER),
        )

        for ds in definition.datasources:
            tables.datasources.declare(ds.name, ds)
            errors.extend(self._check_datasource(ds))

        # A function with a dangling datasource stays in declared_functions so
        # pipelines using it are not reported a second time.
        for fn in definition.functions:
            tables.declared_functions.declare(fn.key, fn)
            try:
                handle = ReferenceResolver(FUNCTION, fn.key).resolve(tables.datasources, fn.datasource_name)
            except UnknownKeyError as e:
                errors.append(e)
                continue
            tables.functions.declare(
                fn.key,
                ResolvedFunction(
                    key=fn.key,
                    name=fn.name,
                    datasource=handle,
                    request_template=fn.request_template,
                    response_template=fn.response_template,
                    code=fn.code,
                    description=fn.description,
                ),
            )

        for resolver in (*definition.unit_resolvers, *definition.pipeline_resolvers):
            tables.resolvers.declare(resolver.key, resolver)

        return tables

    def _check_datasource(self, ds: DatasourceDefinition) -> list[AppError]:
        errors: list[AppError] = []
        if not DATASOURCE_NAME_PATTERN.match(ds.name):
            errors.append(
                InvalidValueError(DATASOURCE, ds.name, "name", f"must match {DATASOURCE_NAME_PATTERN.pattern}")
            )
        if ds.type not in DATASOURCE_TYPES:
            errors.append(
                InvalidValueError(DATASOURCE, ds.name, "type", f"must be one of {', '.join(DATASOURCE_TYPES)}")
            )
        elif ds.type != "NONE" and not ds.backend_locator:
            errors.append(InvalidValueError(DATASOURCE, ds.name, "backend_locator", f"is required for {ds.type}"))
        elif ds.type in LOCATOR_PATTERNS and not LOCATOR_PATTERNS[ds.type][0].match(ds.backend_locator):
            errors.append(
                InvalidValueError(DATASOURCE, ds.name, "backend_locator", f"must be {LOCATOR_PATTERNS[ds.type][1]}")
            )
        return errors

    # === REFERENCES ===

    def _resolve_references(
        self, definition: ApiDefinition, tables: _Tables, errors: list[AppError]
    ) -> tuple[list[ResolvedUnitResolver], list[ResolvedPipelineResolver]]:
        fields: dict[tuple[str, str], str] = {}

        unit_resolvers: list[ResolvedUnitResolver] = []
        for resolver in definition.unit_resolvers:
            self._claim_field(fields, resolver.field_type, resolver.name, resolver.key, errors)
            try:
                handle = ReferenceResolver(RESOLVER, resolver.key).resolve(
                    tables.datasources, resolver.datasource_name
                )
            except UnknownKeyError as e:
                errors.append(e)
                continue
            unit_resolvers.append(
                ResolvedUnitResolver(
                    key=resolver.key,
                    name=resolver.name,
                    field_type=resolver.field_type,
                    datasource=handle,
                    request_template=resolver.request_template,
                    response_template=resolver.response_template,
                    code=resolver.code,
                )
            )

        pipeline_resolvers: list[ResolvedPipelineResolver] = []
        for pipeline in definition.pipeline_resolvers:
            self._claim_field(fields, pipeline.field_type, pipeline.name, pipeline.key, errors)
            try:
                handles = PipelineLinker(pipeline.key).link(tables.declared_functions, pipeline.function_keys)
            except CompilationError as e:
                errors.extend(e.errors)
                continue
            pipeline_resolvers.append(
                ResolvedPipelineResolver(
                    key=pipeline.key,
                    name=pipeline.name,
                    field_type=pipeline.field_type,
                    functions=handles,
                    request_template=pipeline.request_template,
                    response_template=pipeline.response_template,
                    code=pipeline.code,
                )
            )

        return unit_resolvers, pipeline_resolvers

    def _claim_field(
        self, fields: dict[tuple[str, str], str], field_type: str, name: str, key: str, errors: list[AppError]
    ) -> None:
        owner = fields.setdefault((field_type, name), key)
        if owner != key:
            errors.append(FieldConflictError(field_type, name, owner, key))

    # === COMPOSITION ===

    def _compose(self, definition: ApiDefinition, errors: list[AppError]) -> ComposedAuth | None:
        errors.extend(self._check_api(definition.api))
        try:
            return AuthProviderComposer().compose(definition.auth_types, definition.auth)
        except CompilationError as e:
            errors.extend(e.errors)
            return None

    def _check_api(self, api: ApiSettings) -> list[AppError]:
        errors: list[AppError] = []
        if not api.name:
            errors.append(InvalidValueError("api", None, "name", "is required"))
        if api.log_config is not None and api.log_config.field_log_level not in FIELD_LOG_LEVELS:
            errors.append(
                InvalidValueError(
                    "api", api.name, "log_config.field_log_level", f"must be one of {', '.join(FIELD_LOG_LEVELS)}"
                )
            )
        if api.domain is not None and not api.domain.certificate_arn:
            errors.append(
                InvalidValueError("api", api.name, "domain.certificate_arn", "is required for a custom domain")
            )
        for api_key in api.api_keys:
            if not 1 <= api_key.expires_in_days <= 365:
                errors.append(InvalidValueError("api key", api_key.key, "expires_in_days", "must be between 1 and 365"))
        return errors


def compile_definition(definition: ApiDefinition, logger: StructuredLogger | None = None) -> ResolvedGraph:
    """Compile a definition with a fresh compiler."""
    return ConfigCompiler(logger).compile(definition)
