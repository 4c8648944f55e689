"""
Authentication provider composition for the GraphQL API.

The first entry of the authentication type list becomes the API's primary
(default) mechanism; every later entry becomes an additional provider. Each
mechanism gets its own configuration shape:

- API_KEY, AWS_IAM: no configuration
- COGNITO_USER_POOLS: user pool config (primary shape includes default_action,
  the additional-provider shape does not)
- OPENID_CONNECT: OpenID Connect config
- LAMBDA_AUTHORIZER: Lambda authorizer config

One payload per mechanism is supplied; it is shared by whichever placement
the mechanism ends up in.
"""

from dataclasses import asdict
from typing import Any, Sequence

from .errors import (
    AppError,
    CompilationError,
    DuplicateMechanismError,
    EmptyAuthTypesError,
    MissingPayloadError,
    UnsupportedMechanismError,
)
from .models import AuthPayloads, AuthProviderBlock, AuthType, ComposedAuth

# Payload attribute on AuthPayloads required by each mechanism
REQUIRED_PAYLOADS: dict[AuthType, str] = {
    AuthType.COGNITO_USER_POOLS: "user_pool",
    AuthType.OPENID_CONNECT: "openid_connect",
    AuthType.LAMBDA_AUTHORIZER: "lambda_authorizer",
}


def _compact(values: dict[str, Any]) -> dict[str, Any]:
    """Drop unset optional fields."""
    return {k: v for k, v in values.items() if v is not None}


class AuthProviderComposer:
    """
    Build primary and additional authentication blocks.

    Example:
        composer = AuthProviderComposer()
        auth = composer.compose(
            ["OPENID_CONNECT", "API_KEY"],
            AuthPayloads(openid_connect=OpenIdConnectConfig(issuer="https://issuer")),
        )
        auth.primary.authentication_type  # AuthType.OPENID_CONNECT
        auth.additional[0].payload  # None
    """

    def parse_types(self, auth_types: Sequence[Any]) -> tuple[list[AuthType], list[AppError]]:
        """
        Parse and validate the authentication type list.

        Returns:
            Tuple of (parsed mechanisms in order, every problem found)
        """
        errors: list[AppError] = []
        parsed: list[AuthType] = []

        if not auth_types:
            return parsed, [EmptyAuthTypesError()]

        supported = [member.name for member in AuthType]
        for position, raw in enumerate(auth_types):
            try:
                mechanism = AuthType.parse(raw)
            except ValueError:
                errors.append(UnsupportedMechanismError(raw, position, supported))
                continue

            if mechanism in parsed:
                errors.append(DuplicateMechanismError(mechanism.name, position))
                continue
            parsed.append(mechanism)

        return parsed, errors

    def check_payloads(self, mechanisms: Sequence[AuthType], payloads: AuthPayloads) -> list[AppError]:
        """Return a MissingPayloadError for each mechanism lacking its payload."""
        errors: list[AppError] = []
        for mechanism in mechanisms:
            payload_field = REQUIRED_PAYLOADS.get(mechanism)
            if payload_field and getattr(payloads, payload_field) is None:
                errors.append(MissingPayloadError(mechanism.name, payload_field))
        return errors

    def compose(self, auth_types: Sequence[Any], payloads: AuthPayloads) -> ComposedAuth:
        """
        Compose the authentication configuration.

        Raises:
            CompilationError: Listing every type-list and payload problem
        """
        mechanisms, errors = self.parse_types(auth_types)
        errors.extend(self.check_payloads(mechanisms, payloads))
        if errors:
            raise CompilationError(errors)

        primary = self.primary_block(mechanisms[0], payloads)
        additional = tuple(self.additional_block(mechanism, payloads) for mechanism in mechanisms[1:])
        return ComposedAuth(primary=primary, additional=additional)

    def primary_block(self, mechanism: AuthType, payloads: AuthPayloads) -> AuthProviderBlock:
        """Build the default authentication block for the API."""
        if mechanism == AuthType.COGNITO_USER_POOLS:
            return AuthProviderBlock(mechanism, user_pool_config=_compact(asdict(payloads.user_pool)))
        return self._shared_block(mechanism, payloads)

    def additional_block(self, mechanism: AuthType, payloads: AuthPayloads) -> AuthProviderBlock:
        """Build an additional provider entry; Cognito omits default_action here."""
        if mechanism == AuthType.COGNITO_USER_POOLS:
            config = _compact(asdict(payloads.user_pool))
            config.pop("default_action", None)
            return AuthProviderBlock(mechanism, user_pool_config=config)
        return self._shared_block(mechanism, payloads)

    def _shared_block(self, mechanism: AuthType, payloads: AuthPayloads) -> AuthProviderBlock:
        if mechanism == AuthType.OPENID_CONNECT:
            return AuthProviderBlock(mechanism, openid_connect_config=_compact(asdict(payloads.openid_connect)))
        if mechanism == AuthType.LAMBDA_AUTHORIZER:
            return AuthProviderBlock(
                mechanism, lambda_authorizer_config=_compact(asdict(payloads.lambda_authorizer))
            )
        return AuthProviderBlock(mechanism)
