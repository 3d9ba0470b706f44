"""
This module resolves dotted field paths such as "Source.KinesisStreamSourceDescription.RoleARN"
against the nested dictionaries returned by boto3.
Resolution never raises for a missing or mistyped segment and never modifies the record:
any path that cannot be followed resolves to None, which lands in the destination as a null column.
"""

from datetime import date, datetime, timezone  # For rendering timestamps inside JSON values
from collections.abc import Mapping  # To recognise dict-like nodes
from typing import Any, Callable, List, Optional


_SCALAR_TYPES = (str, bytes, int, float, bool, datetime, date)


def resolve_path(record: Any, path: str) -> Any:
    """
    Walk the record one segment at a time and return the value found at the end of the path.
    When a list is met before the last segment, the rest of the path is resolved against every element
    and the non-null results are collected into one flat list, so "Destinations.ExtendedS3DestinationDescription"
    returns the S3 description of every destination that has one.
    Args:
        record: a nested structure of mappings, lists and scalars (or objects with attributes).
        path: dot separated field names, e.g. "BufferingHints.SizeInMBs".
    Returns:
        The value at the path, or None if any segment is missing, None, or cannot be descended into.
    """
    return _resolve(record, path.split("."))


def _resolve(node: Any, segments: List[str]) -> Any:
    for position, segment in enumerate(segments):
        if node is None:
            return None
        if isinstance(node, Mapping):
            node = node.get(segment)
        elif isinstance(node, (list, tuple)):
            return _resolve_each(node, segments[position:])
        elif isinstance(node, _SCALAR_TYPES):
            # Scalars have no named fields to descend into
            return None
        else:
            node = getattr(node, segment, None)
    return node


def _resolve_each(nodes, segments: List[str]) -> Optional[list]:
    values = []
    for node in nodes:
        value = _resolve(node, segments)
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            values.extend(value)
        else:
            values.append(value)
    return values or None


def to_json_safe(value: Any) -> Any:
    """
    Return a JSON serializable deep copy of value.
    Timestamps are converted to ISO 8601 strings and tuples to lists; the input is left untouched.
    """
    if isinstance(value, Mapping):
        return {str(key): to_json_safe(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_json_safe(item) for item in value]
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value


def path_resolver(path: str) -> Callable:
    """Build a column extractor that returns the value at path."""

    def extract(record, context=None):
        return resolve_path(record, path)

    return extract


def json_resolver(path: str) -> Callable:
    """
    Build a column extractor that returns the value at path as a JSON serializable copy.
    Used for columns that keep a raw nested structure, such as the list of processors of a destination.
    """

    def extract(record, context=None):
        value = resolve_path(record, path)
        if value is None:
            return None
        return to_json_safe(value)

    return extract
