"""Tests for ConfigCompiler."""

import json

import pytest

from appsync_api.compiler import CompilerState, ConfigCompiler, compile_definition
from appsync_api.errors import (
    CompilationError,
    DuplicateKeyError,
    EmptyPipelineError,
    FieldConflictError,
    InvalidValueError,
    MissingPayloadError,
    UnknownKeyError,
)
from appsync_api.models import (
    ApiKeyDefinition,
    ApiSettings,
    AuthPayloads,
    DatasourceDefinition,
    DomainConfig,
    EntityHandle,
    FunctionDefinition,
    LogConfig,
    OpenIdConnectConfig,
    PipelineResolverDefinition,
    UnitResolverDefinition,
)


@pytest.fixture
def compiler(quiet_logger) -> ConfigCompiler:
    return ConfigCompiler(quiet_logger)


class TestSuccessfulCompile:
    """Tests for compiling a valid definition."""

    def test_state_is_done(self, compiler, valid_definition):
        """A valid definition ends in DONE."""
        compiler.compile(valid_definition)

        assert compiler.state is CompilerState.DONE
        assert compiler.errors == []

    def test_graph_contents(self, compiler, valid_definition):
        """Graph holds every declared entity with resolved handles."""
        graph = compiler.compile(valid_definition)

        assert list(graph.datasources) == ["Orders", "Inventory"]
        assert list(graph.functions) == ["checkStock", "putOrder", "notify"]
        assert graph.functions["putOrder"].datasource == EntityHandle("datasource", "Orders")
        assert graph.unit_resolvers[0].datasource == EntityHandle("datasource", "Orders")
        assert graph.pipeline_resolvers[0].functions == (
            EntityHandle("function", "checkStock"),
            EntityHandle("function", "putOrder"),
        )

    def test_handles_dereference(self, compiler, valid_definition):
        """Handles resolve back to entities through the graph."""
        graph = compiler.compile(valid_definition)

        pipeline = graph.pipeline_resolvers[0]
        steps = [graph.function(h) for h in pipeline.functions]
        assert [s.name for s in steps] == ["CheckStockFn", "PutOrderFn"]
        assert graph.datasource(steps[0].datasource).type == "AWS_LAMBDA"

    def test_auth_composed(self, compiler, valid_definition):
        """Auth is composed from the type list and payloads."""
        graph = compiler.compile(valid_definition)

        assert graph.auth.primary.authentication_type.name == "COGNITO_USER_POOLS"
        assert graph.auth.primary.user_pool_config["default_action"] == "ALLOW"
        assert graph.auth.additional[0].authentication_type.name == "API_KEY"

    def test_deterministic(self, compiler, valid_definition):
        """Compiling identical input twice yields byte-identical graphs."""
        first = json.dumps(compiler.compile(valid_definition).to_dict(), sort_keys=True)
        second = json.dumps(ConfigCompiler(compiler.logger).compile(valid_definition).to_dict(), sort_keys=True)

        assert first == second

    def test_pipeline_order_and_duplicates_preserved(self, compiler, make_definition):
        """[a, b, a, c] stays [a, b, a, c]."""
        definition = make_definition(
            pipeline_resolvers=(
                PipelineResolverDefinition(
                    key="placeOrder",
                    name="placeOrder",
                    field_type="Mutation",
                    function_keys=("putOrder", "checkStock", "putOrder", "notify"),
                ),
            )
        )

        graph = compiler.compile(definition)

        assert [h.key for h in graph.pipeline_resolvers[0].functions] == [
            "putOrder",
            "checkStock",
            "putOrder",
            "notify",
        ]

    def test_compile_definition_helper(self, valid_definition, quiet_logger):
        """compile_definition uses a fresh compiler."""
        graph = compile_definition(valid_definition, quiet_logger)

        assert graph.api.name == "orders-api"

    def test_logs_summary(self, capsys, valid_definition, monkeypatch):
        """A successful compile logs a summary line."""
        monkeypatch.setenv("LOG_LEVEL", "INFO")

        ConfigCompiler().compile(valid_definition)

        lines = [json.loads(line) for line in capsys.readouterr().out.splitlines()]
        summary = lines[-1]
        assert summary["message"] == "Compiled GraphQL API definition"
        assert summary["pipelineResolvers"] == 1


class TestReferenceErrors:
    """Tests for accumulated reference errors."""

    def test_function_unknown_datasource(self, compiler, make_definition):
        """A function naming a missing datasource yields exactly one UnknownKeyError."""
        definition = make_definition(
            functions=(FunctionDefinition(key="fetchOrder", name="FetchOrderFn", datasource_name="X"),),
            pipeline_resolvers=(),
        )

        with pytest.raises(CompilationError) as exc_info:
            compiler.compile(definition)

        errors = exc_info.value.errors
        assert len(errors) == 1
        assert isinstance(errors[0], UnknownKeyError)
        assert errors[0].key == "X"
        assert errors[0].referrer_key == "fetchOrder"
        assert compiler.state is CompilerState.FAILED

    def test_independent_errors_reported_together(self, compiler, make_definition, valid_definition):
        """A second unknown reference elsewhere is reported alongside the first."""
        definition = make_definition(
            functions=valid_definition.functions
            + (FunctionDefinition(key="fetchOrder", name="FetchOrderFn", datasource_name="X"),),
            unit_resolvers=(
                UnitResolverDefinition(key="getOrder", name="getOrder", field_type="Query", datasource_name="Y"),
            ),
        )

        with pytest.raises(CompilationError) as exc_info:
            compiler.compile(definition)

        assert [(e.key, e.referrer_key) for e in exc_info.value.errors] == [("X", "fetchOrder"), ("Y", "getOrder")]

    def test_unknown_pipeline_function(self, compiler, make_definition):
        """Pipeline resolvers naming undeclared functions fail."""
        definition = make_definition(
            pipeline_resolvers=(
                PipelineResolverDefinition(
                    key="placeOrder", name="placeOrder", field_type="Mutation", function_keys=("checkStock", "ghost")
                ),
            )
        )

        with pytest.raises(CompilationError) as exc_info:
            compiler.compile(definition)

        error = exc_info.value.errors[0]
        assert isinstance(error, UnknownKeyError)
        assert error.kind == "function"
        assert error.key == "ghost"
        assert error.referrer_key == "placeOrder"

    def test_broken_function_not_reported_twice(self, compiler, make_definition):
        """A pipeline using a declared-but-broken function only reports the function."""
        definition = make_definition(
            functions=(FunctionDefinition(key="checkStock", name="CheckStockFn", datasource_name="X"),),
            pipeline_resolvers=(
                PipelineResolverDefinition(
                    key="placeOrder", name="placeOrder", field_type="Mutation", function_keys=("checkStock",)
                ),
            ),
        )

        with pytest.raises(CompilationError) as exc_info:
            compiler.compile(definition)

        assert len(exc_info.value.errors) == 1
        assert exc_info.value.errors[0].referrer_key == "checkStock"

    def test_empty_pipeline_regardless_of_others(self, compiler, make_definition, valid_definition):
        """An empty pipeline fails even when every other resolver is valid."""
        definition = make_definition(
            pipeline_resolvers=valid_definition.pipeline_resolvers
            + (PipelineResolverDefinition(key="noop", name="noop", field_type="Mutation", function_keys=()),)
        )

        with pytest.raises(CompilationError) as exc_info:
            compiler.compile(definition)

        errors = exc_info.value.errors
        assert len(errors) == 1
        assert isinstance(errors[0], EmptyPipelineError)
        assert errors[0].resolver_key == "noop"

    def test_field_conflict(self, compiler, make_definition):
        """Two resolvers on the same type and field conflict."""
        definition = make_definition(
            pipeline_resolvers=(
                PipelineResolverDefinition(
                    key="getOrderPipeline", name="getOrder", field_type="Query", function_keys=("putOrder",)
                ),
            )
        )

        with pytest.raises(CompilationError) as exc_info:
            compiler.compile(definition)

        error = exc_info.value.errors[0]
        assert isinstance(error, FieldConflictError)
        assert error.details["keys"] == ["getOrder", "getOrderPipeline"]

    def test_errors_span_all_stages(self, compiler, make_definition, valid_definition):
        """Reference, pipeline and auth errors are collected in one pass."""
        definition = make_definition(
            functions=valid_definition.functions
            + (FunctionDefinition(key="broken", name="BrokenFn", datasource_name="X"),),
            pipeline_resolvers=(
                PipelineResolverDefinition(key="noop", name="noop", field_type="Mutation", function_keys=()),
            ),
            auth_types=("OPENID_CONNECT",),
            auth=AuthPayloads(),
        )

        with pytest.raises(CompilationError) as exc_info:
            compiler.compile(definition)

        assert [type(e) for e in exc_info.value.errors] == [UnknownKeyError, EmptyPipelineError, MissingPayloadError]
        assert compiler.errors == exc_info.value.errors


class TestDuplicateKeys:
    """Tests for declaration-time duplicate detection."""

    def test_duplicate_datasource_fails_immediately(self, compiler, make_definition, orders_ds):
        """Two datasources named Orders raise before any resolution runs."""
        definition = make_definition(
            datasources=(orders_ds, orders_ds),
            # Would also fail resolution; must not be reached
            unit_resolvers=(
                UnitResolverDefinition(key="getOrder", name="getOrder", field_type="Query", datasource_name="X"),
            ),
        )

        with pytest.raises(DuplicateKeyError) as exc_info:
            compiler.compile(definition)

        assert exc_info.value.kind == "datasource"
        assert exc_info.value.key == "Orders"
        assert compiler.state is CompilerState.FAILED

    def test_duplicate_resolver_key_across_kinds(self, compiler, make_definition):
        """Unit and pipeline resolvers share one key space."""
        definition = make_definition(
            pipeline_resolvers=(
                PipelineResolverDefinition(
                    key="getOrder", name="otherField", field_type="Query", function_keys=("putOrder",)
                ),
            )
        )

        with pytest.raises(DuplicateKeyError) as exc_info:
            compiler.compile(definition)

        assert exc_info.value.kind == "resolver"


class TestSettingsValidation:
    """Tests for datasource and API setting checks."""

    def test_unsupported_datasource_type(self, compiler, make_definition, orders_ds):
        """Unknown datasource types are rejected."""
        definition = make_definition(
            datasources=(orders_ds, DatasourceDefinition(name="Inventory", type="MAINFRAME", backend_locator="x"))
        )

        with pytest.raises(CompilationError) as exc_info:
            compiler.compile(definition)

        error = exc_info.value.errors[0]
        assert isinstance(error, InvalidValueError)
        assert error.field == "type"

    def test_missing_backend_locator(self, compiler, make_definition, orders_ds):
        """Non-NONE datasources need a backend locator."""
        definition = make_definition(datasources=(orders_ds, DatasourceDefinition(name="Inventory", type="AWS_LAMBDA")))

        with pytest.raises(CompilationError) as exc_info:
            compiler.compile(definition)

        assert exc_info.value.errors[0].field == "backend_locator"

    def test_none_datasource_needs_no_locator(self, compiler, make_definition, valid_definition):
        """NONE datasources are valid without a locator."""
        definition = make_definition(
            datasources=valid_definition.datasources + (DatasourceDefinition(name="NoneDS", type="NONE"),)
        )

        graph = compiler.compile(definition)

        assert "NoneDS" in graph.datasources

    @pytest.mark.parametrize(
        "ds_type,locator",
        [
            ("AMAZON_DYNAMODB", "orders-table"),
            ("AMAZON_DYNAMODB", "arn:aws:dynamodb:us-east-1:123456789012:orders"),
            ("AWS_LAMBDA", "inventory-fn"),
            ("AMAZON_EVENTBRIDGE", "default"),
            ("HTTP", "example.com/api"),
        ],
    )
    def test_malformed_backend_locator(self, compiler, make_definition, valid_definition, ds_type, locator):
        """A locator that does not fit its datasource type is rejected before provisioning."""
        definition = make_definition(
            datasources=valid_definition.datasources
            + (DatasourceDefinition(name="Extra", type=ds_type, backend_locator=locator),)
        )

        with pytest.raises(CompilationError) as exc_info:
            compiler.compile(definition)

        errors = exc_info.value.errors
        assert len(errors) == 1
        assert isinstance(errors[0], InvalidValueError)
        assert (errors[0].key, errors[0].field) == ("Extra", "backend_locator")

    @pytest.mark.parametrize(
        "ds_type,locator",
        [
            ("AMAZON_EVENTBRIDGE", "arn:aws:events:us-east-1:123456789012:event-bus/default"),
            ("HTTP", "https://api.example.com"),
        ],
    )
    def test_well_formed_backend_locator(self, compiler, make_definition, valid_definition, ds_type, locator):
        """Locators in the expected format compile."""
        definition = make_definition(
            datasources=valid_definition.datasources
            + (DatasourceDefinition(name="Extra", type=ds_type, backend_locator=locator),)
        )

        assert "Extra" in compiler.compile(definition).datasources

    def test_invalid_datasource_name(self, compiler, make_definition, valid_definition):
        """Datasource names must be usable as AppSync names."""
        definition = make_definition(
            datasources=valid_definition.datasources + (DatasourceDefinition(name="order-db", type="NONE"),)
        )

        with pytest.raises(CompilationError) as exc_info:
            compiler.compile(definition)

        error = exc_info.value.errors[0]
        assert (error.key, error.field) == ("order-db", "name")

    def test_api_setting_errors(self, compiler, make_definition):
        """Log level, domain and API key problems are all reported."""
        definition = make_definition(
            api=ApiSettings(
                name="orders-api",
                log_config=LogConfig(cloudwatch_logs_role_arn="arn:role", field_log_level="VERBOSE"),
                domain=DomainConfig(domain_name="api.example.com"),
                api_keys=(ApiKeyDefinition(key="public", expires_in_days=400),),
            )
        )

        with pytest.raises(CompilationError) as exc_info:
            compiler.compile(definition)

        assert [e.field for e in exc_info.value.errors] == [
            "log_config.field_log_level",
            "domain.certificate_arn",
            "expires_in_days",
        ]

    def test_openid_payload_supplied_succeeds(self, compiler, make_definition):
        """OPENID_CONNECT + API_KEY with payload compiles."""
        definition = make_definition(
            auth_types=("OPENID_CONNECT", "API_KEY"),
            auth=AuthPayloads(openid_connect=OpenIdConnectConfig(issuer="https://issuer.example.com")),
        )

        graph = compiler.compile(definition)

        assert graph.auth.primary.openid_connect_config == {"issuer": "https://issuer.example.com"}
        assert graph.auth.additional[0].payload is None


class TestIndependence:
    """Tests that compilations share no state."""

    def test_failed_compile_does_not_affect_next(self, compiler, make_definition, valid_definition):
        """A compiler instance can be reused after a failure."""
        broken = make_definition(auth_types=())
        with pytest.raises(CompilationError):
            compiler.compile(broken)

        graph = compiler.compile(valid_definition)

        assert compiler.state is CompilerState.DONE
        assert compiler.errors == []
        assert len(graph.functions) == 3
