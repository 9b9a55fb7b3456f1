# database/metadata_graph.py

import logging
from typing import Any, Dict, List, Mapping, Type, TypeVar, Union

from pydantic import BaseModel, ValidationError

from state.metadata_state import Table, Relationship, RelationshipType
from tools.error_manager import InvalidRequestError, NotFoundError, error_manager

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def parse_descriptor(model: Type[ModelT], descriptor: Union[ModelT, Mapping[str, Any]]) -> ModelT:
    """Validate a registration descriptor, rejecting malformed ones as InvalidRequestError"""
    if isinstance(descriptor, model):
        return descriptor
    try:
        return model.model_validate(descriptor)
    except ValidationError as e:
        raise InvalidRequestError(
            f"Invalid {model.__name__.lower()} descriptor: {e}",
            context={"descriptor_type": model.__name__}
        ) from e


class MetadataGraph:
    """
    In-memory registry of table and relationship descriptors.

    Registries keep registration order: join path search relies on it
    to break ties between equally short paths.
    """

    def __init__(self):
        self._tables: Dict[str, Table] = {}
        self._relationships: Dict[str, Relationship] = {}

    def register_table(self, table: Union[Table, Mapping[str, Any]]) -> None:
        """Insert or fully replace a table descriptor"""
        table = parse_descriptor(Table, table)

        if table.table_name in self._tables:
            logger.info(f"Replacing table metadata for '{table.table_name}'")
        self._tables[table.table_name] = table

    def register_relationship(self, relationship: Union[Relationship, Mapping[str, Any]]) -> None:
        """Insert or fully replace a relationship descriptor"""
        relationship = parse_descriptor(Relationship, relationship)

        if relationship.type == RelationshipType.MANY_TO_MANY and not relationship.join_table:
            logger.warning(f"⚠️ MANY_TO_MANY relationship '{relationship.name}' has no join table")

        if relationship.name in self._relationships:
            logger.info(f"Replacing relationship metadata for '{relationship.name}'")
        self._relationships[relationship.name] = relationship

    def get_table(self, table_name: str) -> Table:
        if table_name not in self._tables:
            raise NotFoundError(
                "table", table_name,
                error_manager.suggest_alternatives(table_name, list(self._tables))
            )
        return self._tables[table_name]

    def get_relationship(self, name: str) -> Relationship:
        if name not in self._relationships:
            raise NotFoundError(
                "relationship", name,
                error_manager.suggest_alternatives(name, list(self._relationships))
            )
        return self._relationships[name]

    def has_table(self, table_name: str) -> bool:
        return table_name in self._tables

    @property
    def tables(self) -> List[Table]:
        return list(self._tables.values())

    @property
    def relationships(self) -> List[Relationship]:
        return list(self._relationships.values())

    def get_related_tables(self, table_name: str) -> List[str]:
        """Tables directly linked to the given one, in registration order"""
        related = []
        for relationship in self._relationships.values():
            if table_name in (relationship.source_table, relationship.target_table):
                other = relationship.other_end(table_name)
                if other not in related:
                    related.append(other)
        return related
