"""
Managed GraphQL API definitions for AWS AppSync.

Compiles a declarative definition (datasources, functions, unit and pipeline
resolvers, authentication) into a validated, fully linked graph, and
provisions that graph through the AWS CDK.

- models.py: Definition and resolved-graph types
- entity_table.py: Keyed entity store
- references.py: String reference resolution
- auth.py: Primary / additional authentication composition
- pipeline.py: Pipeline function linking
- compiler.py: Single-pass validation and linking
- config.py: JSON definition loading
- appsync/: CDK resources for a compiled graph
"""

from .compiler import CompilerState, ConfigCompiler, compile_definition
from .config import load_definition, parse_definition
from .errors import AppError, CompilationError, DuplicateKeyError
from .models import ApiDefinition, AuthType, ResolvedGraph

__all__ = [
    "ApiDefinition",
    "AppError",
    "AuthType",
    "CompilationError",
    "CompilerState",
    "ConfigCompiler",
    "DuplicateKeyError",
    "ResolvedGraph",
    "compile_definition",
    "load_definition",
    "parse_definition",
]
