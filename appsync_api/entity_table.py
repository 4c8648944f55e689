"""Keyed store for one entity kind (datasources, functions, resolvers)."""

from typing import Generic, Iterator, TypeVar

from .errors import DuplicateKeyError, UnknownKeyError

T = TypeVar("T")


class EntityTable(Generic[T]):
    """
    Keyed store enforcing key uniqueness at declare time.

    Iteration follows declaration order.

    Example:
        table: EntityTable[DatasourceDefinition] = EntityTable("datasource")
        table.declare("Orders", orders_ds)
        table.lookup("Orders")  # -> orders_ds
        table.lookup("Missing")  # raises UnknownKeyError
    """

    def __init__(self, kind: str):
        self.kind = kind
        self._entities: dict[str, T] = {}

    def declare(self, key: str, entity: T) -> None:
        """
        Add an entity under a key.

        Raises:
            DuplicateKeyError: If the key is already declared
        """
        if key in self._entities:
            raise DuplicateKeyError(self.kind, key)
        self._entities[key] = entity

    def lookup(self, key: str) -> T:
        """
        Return the entity declared under key.

        Raises:
            UnknownKeyError: If no entity was declared under key
        """
        try:
            return self._entities[key]
        except KeyError:
            raise UnknownKeyError(self.kind, key) from None

    def keys(self) -> list[str]:
        return list(self._entities)

    def items(self) -> list[tuple[str, T]]:
        return list(self._entities.items())

    def __contains__(self, key: object) -> bool:
        return key in self._entities

    def __iter__(self) -> Iterator[T]:
        return iter(self._entities.values())

    def __len__(self) -> int:
        return len(self._entities)
