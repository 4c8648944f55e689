"""
Builder for AppSync resolvers.

Creates unit and pipeline resolvers from a compiled definition with
consistent construct IDs, runtimes and dependencies.
"""

from typing import Any

from aws_cdk import aws_appsync as appsync
from constructs import Construct

from ..models import ResolvedGraph, ResolvedPipelineResolver, ResolvedUnitResolver
from .functions import JS_RUNTIME


class ResolverBuilder:
    """
    Builder for AppSync resolvers.

    Provides methods for creating the two resolver kinds:
    - Unit resolvers (one data source)
    - Pipeline resolvers (ordered AppSync functions)

    Either kind may use VTL request/response templates or APPSYNC_JS code.

    Example:
        builder = ResolverBuilder(api, schema, datasources, functions, scope)
        builder.create_resolvers(graph)
    """

    def __init__(
        self,
        api: appsync.CfnGraphQLApi,
        schema: appsync.CfnGraphQLSchema,
        datasources: dict[str, appsync.CfnDataSource],
        functions: dict[str, appsync.CfnFunctionConfiguration],
        scope: Construct,
    ):
        """
        Initialize the resolver builder.

        Args:
            api: AppSync GraphQL API
            schema: Schema the resolvers attach to
            datasources: Dictionary of AppSync data sources (keyed by name)
            functions: Dictionary of AppSync functions (keyed by function key)
            scope: CDK construct scope for creating resources
        """
        self.api = api
        self.schema = schema
        self.datasources = datasources
        self.functions = functions
        self.scope = scope

    def _code_kwargs(self, code: str | None, request: str | None, response: str | None) -> dict[str, Any]:
        """Runtime/code for JS resolvers, mapping templates otherwise."""
        if code is not None:
            return {"runtime": appsync.CfnResolver.AppSyncRuntimeProperty(**JS_RUNTIME), "code": code}
        return {"request_mapping_template": request, "response_mapping_template": response}

    def create_unit_resolver(
        self,
        resolver: ResolvedUnitResolver,
        datasource_name: str,
        id_suffix: str | None = None,
    ) -> appsync.CfnResolver:
        """
        Create a unit resolver bound to one data source.

        Args:
            resolver: Compiled unit resolver
            datasource_name: Name of the data source it resolves against
            id_suffix: Optional custom CDK construct ID

        Returns:
            The created resolver
        """
        resolver_id = id_suffix or f"{resolver.field_type}{resolver.name}Resolver"

        cfn_resolver = appsync.CfnResolver(
            self.scope,
            resolver_id,
            api_id=self.api.attr_api_id,
            type_name=resolver.field_type,
            field_name=resolver.name,
            kind="UNIT",
            data_source_name=datasource_name,
            **self._code_kwargs(resolver.code, resolver.request_template, resolver.response_template),
        )
        cfn_resolver.add_dependency(self.schema)
        cfn_resolver.add_dependency(self.datasources[datasource_name])
        return cfn_resolver

    def create_pipeline_resolver(
        self,
        resolver: ResolvedPipelineResolver,
        id_suffix: str | None = None,
    ) -> appsync.CfnResolver:
        """
        Create a pipeline resolver running its functions in declared order.

        Args:
            resolver: Compiled pipeline resolver
            id_suffix: Optional custom CDK construct ID

        Returns:
            The created resolver
        """
        resolver_id = id_suffix or f"{resolver.field_type}{resolver.name}PipelineResolver"
        steps = [self.functions[handle.key] for handle in resolver.functions]

        cfn_resolver = appsync.CfnResolver(
            self.scope,
            resolver_id,
            api_id=self.api.attr_api_id,
            type_name=resolver.field_type,
            field_name=resolver.name,
            kind="PIPELINE",
            pipeline_config=appsync.CfnResolver.PipelineConfigProperty(
                functions=[step.attr_function_id for step in steps]
            ),
            **self._code_kwargs(resolver.code, resolver.request_template, resolver.response_template),
        )
        cfn_resolver.add_dependency(self.schema)
        for step in dict.fromkeys(steps):
            cfn_resolver.add_dependency(step)
        return cfn_resolver

    def create_resolvers(self, graph: ResolvedGraph) -> dict[str, appsync.CfnResolver]:
        """
        Create every unit and pipeline resolver in a compiled definition.

        Returns:
            Dictionary of resolver key to created resolver
        """
        created: dict[str, appsync.CfnResolver] = {}
        for unit in graph.unit_resolvers:
            created[unit.key] = self.create_unit_resolver(unit, graph.datasource(unit.datasource).name)
        for pipeline in graph.pipeline_resolvers:
            created[pipeline.key] = self.create_pipeline_resolver(pipeline)
        return created
