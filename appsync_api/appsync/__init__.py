"""
AppSync provisioning for a compiled GraphQL API definition.

This module turns a ResolvedGraph into AppSync resources. The implementation
is split across multiple modules:

- api.py: API, schema, API keys and custom domain
- datasources.py: Data source creation (DynamoDB, Lambda, HTTP, EventBridge, NONE)
- functions.py: AppSync functions used by pipeline resolvers
- resolver_builder.py: Unit and pipeline resolver creation
"""

from dataclasses import dataclass

from aws_cdk import aws_appsync as appsync
from constructs import Construct

from ..helpers import ResourceNamer
from ..models import ResolvedGraph
from .api import create_api_keys, create_appsync_api, create_appsync_custom_domain
from .datasources import create_datasources
from .functions import create_appsync_functions
from .resolver_builder import ResolverBuilder


@dataclass
class AppSyncResources:
    """Container for all AppSync resources created by setup_appsync."""

    api: appsync.CfnGraphQLApi
    schema: appsync.CfnGraphQLSchema
    datasources: dict[str, appsync.CfnDataSource]
    functions: dict[str, appsync.CfnFunctionConfiguration]
    resolvers: dict[str, appsync.CfnResolver]
    api_keys: dict[str, appsync.CfnApiKey]
    domain_name: appsync.CfnDomainName | None
    domain_association: appsync.CfnDomainNameApiAssociation | None


def setup_appsync(
    scope: Construct,
    graph: ResolvedGraph,
    resource_name: ResourceNamer,
) -> AppSyncResources:
    """
    Set up the complete AppSync GraphQL API infrastructure.

    Args:
        scope: CDK construct scope
        graph: Compiled, fully linked API definition
        resource_name: Function to generate resource names

    Returns:
        AppSyncResources containing all created resources
    """
    # Create the GraphQL API and schema
    api, schema = create_appsync_api(scope, graph.api, graph.auth, resource_name)

    # Create API keys
    api_keys = create_api_keys(scope, api, graph.api)

    # Create data sources
    datasources = create_datasources(scope, api, graph.datasources)

    # Create AppSync functions
    functions = create_appsync_functions(scope, api, graph, datasources)

    # Create all resolvers
    builder = ResolverBuilder(api, schema, datasources, functions, scope)
    resolvers = builder.create_resolvers(graph)

    # Create custom domain (if configured)
    domain_name, domain_association = create_appsync_custom_domain(scope, api, graph.api)

    return AppSyncResources(
        api=api,
        schema=schema,
        datasources=datasources,
        functions=functions,
        resolvers=resolvers,
        api_keys=api_keys,
        domain_name=domain_name,
        domain_association=domain_association,
    )


__all__ = ["setup_appsync", "AppSyncResources"]
