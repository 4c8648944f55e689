"""
Reference resolution against entity tables.

Turns string keys from the declarative input into validated EntityHandles.
The batched form keeps going after a miss so one compile pass reports every
dangling reference.
"""

from typing import Any, Iterable

from .entity_table import EntityTable
from .errors import UnknownKeyError
from .models import EntityHandle


class ReferenceResolver:
    """
    Resolve string references on behalf of one referencing entity.

    Args:
        referrer_kind: Kind of the entity holding the references (e.g. "function")
        referrer_key: Key of that entity, included in every error
    """

    def __init__(self, referrer_kind: str | None = None, referrer_key: str | None = None):
        self.referrer_kind = referrer_kind
        self.referrer_key = referrer_key

    def resolve(self, table: EntityTable[Any], key: str) -> EntityHandle:
        """
        Resolve a single key.

        Raises:
            UnknownKeyError: If the key is not declared in table
        """
        try:
            table.lookup(key)
        except UnknownKeyError as e:
            if self.referrer_kind and self.referrer_key is not None:
                raise e.with_referrer(self.referrer_kind, self.referrer_key) from None
            raise
        return EntityHandle(table.kind, key)

    def resolve_all(
        self, table: EntityTable[Any], keys: Iterable[str]
    ) -> tuple[list[EntityHandle], list[UnknownKeyError]]:
        """
        Resolve every key, collecting failures instead of stopping.

        Returns:
            Tuple of (handles for resolved keys in input order, errors in input order)
        """
        handles: list[EntityHandle] = []
        errors: list[UnknownKeyError] = []
        for key in keys:
            try:
                handles.append(self.resolve(table, key))
            except UnknownKeyError as e:
                errors.append(e)
        return handles, errors
