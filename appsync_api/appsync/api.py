"""AppSync API, schema, API key and custom domain creation."""

from datetime import datetime, timedelta, timezone
from typing import Any

from aws_cdk import CfnOutput, CfnTag, RemovalPolicy
from aws_cdk import aws_appsync as appsync
from constructs import Construct

from ..helpers import ResourceNamer, is_appsync_logging_forced
from ..models import ApiSettings, AuthProviderBlock, ComposedAuth


def _auth_kwargs(block: AuthProviderBlock) -> dict[str, Any]:
    """Primary authentication properties for CfnGraphQLApi."""
    kwargs: dict[str, Any] = {"authentication_type": block.authentication_type.value}
    if block.user_pool_config is not None:
        kwargs["user_pool_config"] = appsync.CfnGraphQLApi.UserPoolConfigProperty(**block.user_pool_config)
    if block.openid_connect_config is not None:
        kwargs["open_id_connect_config"] = appsync.CfnGraphQLApi.OpenIDConnectConfigProperty(
            **block.openid_connect_config
        )
    if block.lambda_authorizer_config is not None:
        kwargs["lambda_authorizer_config"] = appsync.CfnGraphQLApi.LambdaAuthorizerConfigProperty(
            **block.lambda_authorizer_config
        )
    return kwargs


def build_additional_provider(block: AuthProviderBlock) -> Any:
    """Convert an additional auth block into an AdditionalAuthenticationProviderProperty."""
    kwargs: dict[str, Any] = {"authentication_type": block.authentication_type.value}
    if block.user_pool_config is not None:
        kwargs["user_pool_config"] = appsync.CfnGraphQLApi.CognitoUserPoolConfigProperty(**block.user_pool_config)
    if block.openid_connect_config is not None:
        kwargs["open_id_connect_config"] = appsync.CfnGraphQLApi.OpenIDConnectConfigProperty(
            **block.openid_connect_config
        )
    if block.lambda_authorizer_config is not None:
        kwargs["lambda_authorizer_config"] = appsync.CfnGraphQLApi.LambdaAuthorizerConfigProperty(
            **block.lambda_authorizer_config
        )
    return appsync.CfnGraphQLApi.AdditionalAuthenticationProviderProperty(**kwargs)


def build_log_config(settings: ApiSettings, force_full_logging: bool = False) -> Any:
    """Build the API log config, or None when logging is not configured."""
    if settings.log_config is None:
        return None

    field_log_level = "ALL" if force_full_logging else settings.log_config.field_log_level
    return appsync.CfnGraphQLApi.LogConfigProperty(
        cloud_watch_logs_role_arn=settings.log_config.cloudwatch_logs_role_arn,
        field_log_level=field_log_level,
        exclude_verbose_content=settings.log_config.exclude_verbose_content,
    )


def create_appsync_api(
    scope: Construct,
    settings: ApiSettings,
    auth: ComposedAuth,
    resource_name: ResourceNamer,
) -> tuple[appsync.CfnGraphQLApi, appsync.CfnGraphQLSchema]:
    """
    Create the AppSync GraphQL API with authorization and its schema.

    Args:
        scope: CDK construct scope
        settings: API-level settings from the compiled definition
        auth: Composed primary and additional authentication blocks
        resource_name: Function to generate resource names

    Returns:
        Tuple of (api, schema)
    """
    api_name = resource_name(settings.name)
    print(f"Creating AppSync API: {api_name}")

    api = appsync.CfnGraphQLApi(
        scope,
        "Api",
        name=api_name,
        **_auth_kwargs(auth.primary),
        additional_authentication_providers=(
            [build_additional_provider(block) for block in auth.additional] if auth.additional else None
        ),
        log_config=build_log_config(settings, is_appsync_logging_forced(scope)),
        xray_enabled=settings.xray_enabled,
        tags=[CfnTag(key=key, value=value) for key, value in settings.tags] or None,
    )
    api.apply_removal_policy(RemovalPolicy.RETAIN)

    schema = appsync.CfnGraphQLSchema(
        scope,
        "Schema",
        api_id=api.attr_api_id,
        definition=settings.schema,
    )

    CfnOutput(
        scope,
        "GraphQLApiUrl",
        value=api.attr_graph_ql_url,
        description="AppSync GraphQL endpoint",
    )

    return api, schema


def create_api_keys(
    scope: Construct,
    api: appsync.CfnGraphQLApi,
    settings: ApiSettings,
) -> dict[str, appsync.CfnApiKey]:
    """
    Create API keys declared in the settings.

    AppSync requires >=1 and <=365 days validity; the compiler enforces it.

    Returns:
        Dictionary of API key name to CfnApiKey
    """
    api_keys: dict[str, appsync.CfnApiKey] = {}
    for api_key in settings.api_keys:
        expires_epoch = int((datetime.now(timezone.utc) + timedelta(days=api_key.expires_in_days)).timestamp())
        api_keys[api_key.key] = appsync.CfnApiKey(
            scope,
            f"{api_key.key}ApiKey",
            api_id=api.attr_api_id,
            description=api_key.description,
            expires=expires_epoch,
        )
    return api_keys


def create_appsync_custom_domain(
    scope: Construct,
    api: appsync.CfnGraphQLApi,
    settings: ApiSettings,
) -> tuple[appsync.CfnDomainName | None, appsync.CfnDomainNameApiAssociation | None]:
    """
    Create AppSync custom domain and associate it with the API.

    DNS records and certificate issuance are managed outside this stack.

    Returns:
        Tuple of (domain_name, domain_association), both None without a domain
    """
    if settings.domain is None:
        return None, None

    print(f"Creating AppSync custom domain: {settings.domain.domain_name}")

    domain_name = appsync.CfnDomainName(
        scope,
        "ApiDomainName",
        certificate_arn=settings.domain.certificate_arn,
        domain_name=settings.domain.domain_name,
    )
    domain_name.apply_removal_policy(RemovalPolicy.RETAIN)

    domain_association = appsync.CfnDomainNameApiAssociation(
        scope,
        "ApiDomainAssociation",
        api_id=api.attr_api_id,
        domain_name=domain_name.attr_domain_name,
    )
    domain_association.add_dependency(domain_name)

    CfnOutput(
        scope,
        "GraphQLApiDomain",
        value=domain_name.attr_app_sync_domain_name,
        description="Target for the custom domain CNAME record",
    )

    return domain_name, domain_association
