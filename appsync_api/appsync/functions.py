"""AppSync function definitions for pipeline resolvers."""

from typing import Any

from aws_cdk import aws_appsync as appsync
from constructs import Construct

from ..models import ResolvedGraph

# VTL functions must declare a template version; JS functions use the runtime
FUNCTION_VERSION = "2018-05-29"
JS_RUNTIME = {"name": "APPSYNC_JS", "runtime_version": "1.0.0"}


def create_appsync_functions(
    scope: Construct,
    api: appsync.CfnGraphQLApi,
    graph: ResolvedGraph,
    datasources: dict[str, appsync.CfnDataSource],
) -> dict[str, appsync.CfnFunctionConfiguration]:
    """
    Create all AppSync functions used by pipeline resolvers.

    Args:
        scope: CDK construct scope
        api: The AppSync GraphQL API
        graph: Compiled definition
        datasources: Dictionary of datasource name to data source

    Returns:
        Dictionary of function key to AppSync function
    """
    functions: dict[str, appsync.CfnFunctionConfiguration] = {}

    for key, fn in graph.functions.items():
        datasource = graph.datasource(fn.datasource)

        kwargs: dict[str, Any]
        if fn.code is not None:
            kwargs = {
                "runtime": appsync.CfnFunctionConfiguration.AppSyncRuntimeProperty(**JS_RUNTIME),
                "code": fn.code,
            }
        else:
            kwargs = {
                "function_version": FUNCTION_VERSION,
                "request_mapping_template": fn.request_template,
                "response_mapping_template": fn.response_template,
            }

        function = appsync.CfnFunctionConfiguration(
            scope,
            f"{key}Fn",
            api_id=api.attr_api_id,
            name=fn.name,
            data_source_name=datasource.name,
            description=fn.description,
            **kwargs,
        )
        function.add_dependency(datasources[datasource.name])
        functions[key] = function

    return functions
