"""
This module flattens one delivery stream description into rows for every table of the schema tree.
Each row gets a synthetic _cq_id. Child rows also carry their parent's _cq_id in the table's
parent reference column (for example firehose_cq_id), which is how the destination tables are joined back together.
"""

import json  # For serializing values delivered to STRING columns
import uuid  # For the synthetic row identities
from collections.abc import Mapping  # To recognise dict-like relation values
from dataclasses import dataclass  # For the Row and ResolveContext classes
from datetime import datetime, timezone  # For normalizing timestamps to UTC
from typing import Any, Dict, List, Optional

# For enabling Logs in your connector code
from fivetran_connector_sdk import Logging as log

from cancellation import CancellationToken
from errors import SyncCancelledError
from path_resolver import resolve_path, to_json_safe
from table_schema import CQ_ID_COLUMN, Column, ColumnType, Table

# Namespace for root row identities; changing it changes every _cq_id in the destination
_ROW_ID_NAMESPACE = uuid.UUID("5b6f3c0e-93a4-4c1e-9d6e-2f1a8f0c7b41")


@dataclass
class ResolveContext:
    """Everything a column extractor may need besides the record itself."""

    account_id: str
    region: str
    client: Any = None
    cancel_token: Optional[CancellationToken] = None
    tag_page_size: int = 50


@dataclass
class Row:
    table: str
    data: Dict[str, Any]
    cq_id: str
    parent_cq_id: Optional[str] = None


def root_identity(table: Table, data: Dict[str, Any], context: ResolveContext) -> str:
    """
    Derive a root row's _cq_id from the account id, the region and the table's primary key columns.
    The identity is stable across syncs as long as those values do not change.
    Falls back to a random identity when the primary key columns did not resolve.
    """
    key_values = [data.get(name) for name in table.primary_key_columns]
    if not key_values or all(value is None for value in key_values):
        return str(uuid.uuid4())
    parts = [context.account_id or "", context.region or ""] + [str(value) for value in key_values]
    return str(uuid.uuid5(_ROW_ID_NAMESPACE, "|".join(parts)))


def child_identity(parent_id: str, table: Table, index: int) -> str:
    """Derive a child row's _cq_id from its parent's identity, its table and its position in the relation."""
    return str(uuid.uuid5(uuid.UUID(parent_id), f"{table.name}:{index}"))


def materialize(
    record: Any,
    table: Table,
    context: ResolveContext,
    parent_id: Optional[str] = None,
    index: int = 0,
) -> List[Row]:
    """
    Build the rows of table and all of its descendants from one record.
    The row of the current table is built first, so its identity exists before any child is materialized.
    Rows are returned depth first: a parent row always precedes the rows of its children.
    Args:
        record: the current record, the delivery stream description for the root table.
        table: the table definition to build a row for.
        context: account id, region and client shared by the extractors.
        parent_id: the parent row's _cq_id, None for the root table.
        index: position of the record within its parent relation.
    Returns:
        A flat list of rows for table and every table below it.
    Raises:
        SyncCancelledError: if a column extractor observed a cancelled sync.
    """
    rows = []
    _materialize_into(rows, record, table, context, parent_id, index)
    return rows


def _materialize_into(rows, record, table: Table, context: ResolveContext, parent_id, index):
    data = {column.name: _resolve_column(column, record, table, context) for column in table.columns}

    if parent_id is None:
        cq_id = root_identity(table, data, context)
    else:
        cq_id = child_identity(parent_id, table, index)
        data[table.parent_reference] = parent_id
    data[CQ_ID_COLUMN] = cq_id

    row = Row(table=table.name, data=data, cq_id=cq_id, parent_cq_id=parent_id)
    rows.append(row)

    for relation in table.relations:
        elements = relation_elements(record, relation.path, table.name)
        for position, element in enumerate(elements):
            _materialize_into(rows, element, relation.table, context, cq_id, position)


def relation_elements(record: Any, path: str, table_name: str = "") -> List[Any]:
    """
    Resolve a relation path into the list of sub-records to materialize as child rows.
    An absent value gives no rows, a single object gives one row and a list gives one row per element.
    Any other shape is malformed data; it is logged and treated as absent.
    """
    try:
        value = resolve_path(record, path)
    except Exception as exc:
        log.warning(f"Could not resolve relation {path} of {table_name}: {exc}")
        return []

    if value is None:
        return []
    if isinstance(value, Mapping):
        return [value]
    if isinstance(value, (list, tuple)):
        return [element for element in value if element is not None]

    log.warning(
        f"Relation {path} of {table_name} resolved to {type(value).__name__}, expected an object or a list"
    )
    return []


def _resolve_column(column: Column, record: Any, table: Table, context: ResolveContext) -> Any:
    """
    Run the column's extractor and coerce the result to the column type.
    Failures stay local to the column: the value becomes None and the rest of the row is still built.
    """
    try:
        value = column.extractor(record, context)
        if value is None:
            return None
        return coerce_value(column.type, value)
    except SyncCancelledError:
        raise
    except Exception as exc:
        log.warning(f"Could not resolve column {table.name}.{column.name}: {exc}")
        return None


def coerce_value(column_type: ColumnType, value: Any) -> Any:
    """
    Convert a resolved value into the form delivered for column_type.
    Raises:
        TypeError, ValueError: when the value cannot represent the column type.
    """
    if column_type in (ColumnType.STRING, ColumnType.UUID):
        if isinstance(value, str):
            return value
        if isinstance(value, (Mapping, list, tuple)):
            return json.dumps(to_json_safe(value))
        if isinstance(value, datetime):
            return to_json_safe(value)
        return str(value)

    if column_type == ColumnType.INTEGER:
        if isinstance(value, bool) or not isinstance(value, (int, float, str)):
            raise TypeError(f"expected an integer, got {type(value).__name__}")
        return int(value)

    if column_type == ColumnType.FLOAT:
        if isinstance(value, bool) or not isinstance(value, (int, float, str)):
            raise TypeError(f"expected a number, got {type(value).__name__}")
        return float(value)

    if column_type == ColumnType.BOOLEAN:
        if not isinstance(value, bool):
            raise TypeError(f"expected a boolean, got {type(value).__name__}")
        return value

    if column_type == ColumnType.TIMESTAMP:
        if isinstance(value, datetime):
            if value.tzinfo is None:
                value = value.replace(tzinfo=timezone.utc)
            return value.astimezone(timezone.utc).isoformat()
        if isinstance(value, str):
            return value
        raise TypeError(f"expected a timestamp, got {type(value).__name__}")

    if column_type == ColumnType.STRING_ARRAY:
        if not isinstance(value, (list, tuple)):
            raise TypeError(f"expected a list of strings, got {type(value).__name__}")
        return [item if isinstance(item, str) else str(item) for item in value]

    return to_json_safe(value)
