"""AppSync data source creation."""

from typing import Any

from aws_cdk import aws_appsync as appsync
from constructs import Construct

from ..models import DatasourceDefinition


def backend_config(ds: DatasourceDefinition) -> dict[str, Any]:
    """
    Build the type-specific backend config for a data source.

    The backend locator is a table ARN for DynamoDB, a function ARN for
    Lambda, an endpoint URL for HTTP and a bus ARN for EventBridge.
    """
    if ds.type == "AMAZON_DYNAMODB":
        # arn:aws:dynamodb:<region>:<account>:table/<name>
        return {
            "dynamo_db_config": appsync.CfnDataSource.DynamoDBConfigProperty(
                table_name=ds.backend_locator.split("/")[-1],
                aws_region=ds.backend_locator.split(":")[3],
            )
        }
    if ds.type == "AWS_LAMBDA":
        return {"lambda_config": appsync.CfnDataSource.LambdaConfigProperty(lambda_function_arn=ds.backend_locator)}
    if ds.type == "HTTP":
        return {"http_config": appsync.CfnDataSource.HttpConfigProperty(endpoint=ds.backend_locator)}
    if ds.type == "AMAZON_EVENTBRIDGE":
        return {
            "event_bridge_config": appsync.CfnDataSource.EventBridgeConfigProperty(event_bus_arn=ds.backend_locator)
        }
    return {}


def create_datasources(
    scope: Construct,
    api: appsync.CfnGraphQLApi,
    datasources: dict[str, DatasourceDefinition],
) -> dict[str, appsync.CfnDataSource]:
    """
    Create data sources for the AppSync API.

    Args:
        scope: CDK construct scope
        api: The AppSync GraphQL API
        datasources: Compiled datasource definitions keyed by name

    Returns:
        Dictionary of datasource name to CfnDataSource
    """
    created: dict[str, appsync.CfnDataSource] = {}

    for name, ds in datasources.items():
        created[name] = appsync.CfnDataSource(
            scope,
            f"{name}DataSource",
            api_id=ds.api_id or api.attr_api_id,
            name=name,
            type=ds.type,
            description=ds.description,
            service_role_arn=ds.service_role_arn,
            **backend_config(ds),
        )

    return created
