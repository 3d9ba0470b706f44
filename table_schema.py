"""
This module holds the declarative description of the destination tables.
A Table is a named list of Columns plus a list of Relations. Each Relation points at a path inside the
current record and a child Table, so a single delivery stream description is flattened into rows of
several tables linked by their synthetic _cq_id keys.
The tree is plain data: it can be inspected, rendered into the Fivetran schema and tested
without touching AWS.
"""

from dataclasses import dataclass, field  # For the schema description classes
from enum import Enum  # For the semantic column types
from typing import Any, Callable, Dict, Iterator, List, Optional

from path_resolver import path_resolver

# Name of the synthetic identity column carried by every row of every table
CQ_ID_COLUMN = "_cq_id"


class ColumnType(Enum):
    """
    Semantic column types and the Fivetran data type each one is delivered as.
    String arrays are delivered as JSON because the SDK does not accept list values for scalar columns.
    """

    STRING = "string"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    TIMESTAMP = "timestamp"
    FLOAT = "float"
    STRING_ARRAY = "string_array"
    JSON = "json"
    UUID = "uuid"

    @property
    def fivetran_type(self) -> str:
        return _FIVETRAN_TYPES[self]


_FIVETRAN_TYPES = {
    ColumnType.STRING: "STRING",
    ColumnType.INTEGER: "LONG",
    ColumnType.BOOLEAN: "BOOLEAN",
    ColumnType.TIMESTAMP: "UTC_DATETIME",
    ColumnType.FLOAT: "DOUBLE",
    ColumnType.STRING_ARRAY: "JSON",
    ColumnType.JSON: "JSON",
    ColumnType.UUID: "STRING",
}


def default_path(column_name: str) -> str:
    """Map a snake_case column name to the CamelCase field of the API response, e.g. version_id -> VersionId."""
    return "".join(part[:1].upper() + part[1:] for part in column_name.split("_"))


@dataclass
class Column:
    name: str
    type: ColumnType
    # Called as extractor(record, context); defaults to the CamelCase field named after the column
    extractor: Optional[Callable[[Any, Any], Any]] = None
    description: str = ""

    def __post_init__(self):
        if self.extractor is None:
            self.extractor = path_resolver(default_path(self.name))


@dataclass
class Relation:
    # Path resolving to a single sub-record or a list of sub-records in the current record
    path: str
    table: "Table"


@dataclass
class Table:
    name: str
    columns: List[Column]
    relations: List[Relation] = field(default_factory=list)
    # Column holding the parent row's _cq_id; None for the root table
    parent_reference: Optional[str] = None
    # Columns whose values, with the account id and region, make up a root row's identity
    primary_key_columns: List[str] = field(default_factory=list)
    description: str = ""

    def walk(self) -> Iterator["Table"]:
        """Yield this table and every descendant table, depth first."""
        yield self
        for relation in self.relations:
            yield from relation.table.walk()

    def column_types(self) -> Dict[str, str]:
        types = {CQ_ID_COLUMN: ColumnType.UUID.fivetran_type}
        if self.parent_reference:
            types[self.parent_reference] = ColumnType.UUID.fivetran_type
        for column in self.columns:
            types[column.name] = column.type.fivetran_type
        return types


def to_fivetran_schema(root: Table) -> List[Dict[str, Any]]:
    """
    Render the table tree into the list returned by the connector's schema() function.
    Every table uses the synthetic _cq_id column as its primary key.
    Args:
        root: the root table of the tree.
    Returns:
        A list of {"table", "primary_key", "columns"} dictionaries, one per table in the tree.
    """
    return [
        {
            "table": table.name,
            "primary_key": [CQ_ID_COLUMN],
            "columns": table.column_types(),
        }
        for table in root.walk()
    ]
