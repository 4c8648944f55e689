"""
Test fixtures for definition compiler tests.

Provides a small, valid API definition and builders for variations of it.
"""

from dataclasses import replace
from typing import Any, Callable

import pytest

from appsync_api.compiler import ConfigCompiler
from appsync_api.logging import StructuredLogger
from appsync_api.models import (
    ApiDefinition,
    ApiSettings,
    AuthPayloads,
    DatasourceDefinition,
    FunctionDefinition,
    PipelineResolverDefinition,
    ResolvedGraph,
    UnitResolverDefinition,
    UserPoolConfig,
)


@pytest.fixture
def orders_ds() -> DatasourceDefinition:
    return DatasourceDefinition(
        name="Orders",
        type="AMAZON_DYNAMODB",
        backend_locator="arn:aws:dynamodb:us-east-1:123456789012:table/orders",
    )


@pytest.fixture
def inventory_ds() -> DatasourceDefinition:
    return DatasourceDefinition(
        name="Inventory",
        type="AWS_LAMBDA",
        backend_locator="arn:aws:lambda:us-east-1:123456789012:function:inventory",
    )


@pytest.fixture
def valid_definition(orders_ds: DatasourceDefinition, inventory_ds: DatasourceDefinition) -> ApiDefinition:
    """A definition that compiles cleanly."""
    return ApiDefinition(
        api=ApiSettings(name="orders-api", schema="type Query { getOrder(orderId: ID!): String }"),
        datasources=(orders_ds, inventory_ds),
        functions=(
            FunctionDefinition(key="checkStock", name="CheckStockFn", datasource_name="Inventory"),
            FunctionDefinition(key="putOrder", name="PutOrderFn", datasource_name="Orders"),
            FunctionDefinition(key="notify", name="NotifyFn", datasource_name="Inventory"),
        ),
        unit_resolvers=(
            UnitResolverDefinition(key="getOrder", name="getOrder", field_type="Query", datasource_name="Orders"),
        ),
        pipeline_resolvers=(
            PipelineResolverDefinition(
                key="placeOrder",
                name="placeOrder",
                field_type="Mutation",
                function_keys=("checkStock", "putOrder"),
            ),
        ),
        auth_types=("COGNITO_USER_POOLS", "API_KEY"),
        auth=AuthPayloads(user_pool=UserPoolConfig(user_pool_id="us-east-1_abc", aws_region="us-east-1")),
    )


@pytest.fixture
def make_definition(valid_definition: ApiDefinition) -> Callable[..., ApiDefinition]:
    """Build a variation of the valid definition by overriding fields."""

    def _make(**overrides: Any) -> ApiDefinition:
        return replace(valid_definition, **overrides)

    return _make


@pytest.fixture
def quiet_logger(monkeypatch: pytest.MonkeyPatch) -> StructuredLogger:
    """Logger that only emits errors."""
    monkeypatch.setenv("LOG_LEVEL", "ERROR")
    return StructuredLogger("test", "test-id")


@pytest.fixture
def compiled_graph(valid_definition: ApiDefinition, quiet_logger: StructuredLogger) -> ResolvedGraph:
    """The valid definition compiled into a ResolvedGraph."""
    return ConfigCompiler(quiet_logger).compile(valid_definition)
