from aws_cdk import Stack
from constructs import Construct

from .appsync import setup_appsync
from .compiler import ConfigCompiler
from .config import load_definition
from .helpers import get_definition_path, get_region_abbrev, make_resource_namer
from .logging import StructuredLogger


class GraphqlApiStack(Stack):
    """
    Managed GraphQL API stack.

    Compiles the declarative API definition and creates:
    - AppSync GraphQL API with primary and additional auth providers
    - Schema, API keys and optional custom domain
    - Data sources, functions, unit and pipeline resolvers

    An invalid definition fails synthesis with every problem listed.
    """

    def __init__(self, scope: Construct, construct_id: str, env_name: str = "dev", **kwargs) -> None:
        super().__init__(scope, construct_id, **kwargs)

        self.env_name = env_name
        self.region_abbrev = get_region_abbrev()

        # Helper for consistent resource naming: {name}-{region}-{env}
        self.resource_name = make_resource_namer(self.region_abbrev, env_name)

        logger = StructuredLogger(__name__)
        definition_path = get_definition_path(self)
        logger.info("Loading GraphQL API definition", path=str(definition_path), environment=env_name)

        definition = load_definition(definition_path)
        self.graph = ConfigCompiler(logger).compile(definition)

        self.appsync = setup_appsync(self, self.graph, self.resource_name)
