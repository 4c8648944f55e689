"""Linking of pipeline resolvers to their ordered function steps."""

from typing import Any, Sequence

from .entity_table import EntityTable
from .errors import AppError, CompilationError, EmptyPipelineError
from .models import PIPELINE_RESOLVER, EntityHandle
from .references import ReferenceResolver


class PipelineLinker:
    """
    Resolve a pipeline resolver's function keys into function handles.

    The output order is exactly the declared order, duplicates included:
    the execution engine runs the steps in that sequence.
    """

    def __init__(self, resolver_key: str):
        self.resolver_key = resolver_key

    def link(self, function_table: EntityTable[Any], keys: Sequence[str]) -> tuple[EntityHandle, ...]:
        """
        Link function keys.

        Raises:
            CompilationError: With an EmptyPipelineError for an empty list, or
                one UnknownKeyError per unresolvable key
        """
        if not keys:
            raise CompilationError([EmptyPipelineError(self.resolver_key)])

        resolver = ReferenceResolver(PIPELINE_RESOLVER, self.resolver_key)
        handles, errors = resolver.resolve_all(function_table, keys)
        if errors:
            failures: list[AppError] = list(errors)
            raise CompilationError(failures)
        return tuple(handles)
