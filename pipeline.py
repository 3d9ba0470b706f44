"""
This module wires the list, describe and flatten stages together for one region.
Delivery stream names are listed page by page, described on a bounded worker pool,
and each description is flattened into rows on the calling thread.
"""

from typing import Iterable, Iterator

from detail_fetcher import fetch_details
from errors import FirehoseSyncError, ListingError, SyncCancelledError
from firehose_client import FirehoseClient, is_not_found_error
from materializer import ResolveContext, Row, materialize
from table_schema import Table


def sync_region(client: FirehoseClient, root_table: Table, context: ResolveContext, max_workers: int) -> Iterator[Row]:
    """
    Yield the rows of every delivery stream in the client's region.
    Args:
        client: the Firehose client of the region.
        root_table: the root of the table tree, see firehose_tables.firehoses_table().
        context: account id, region, client and cancellation token shared by the column extractors.
        max_workers: number of concurrent DescribeDeliveryStream calls.
    Yields:
        Rows of every table in the tree; a parent row always precedes its children.
    Raises:
        ListingError: if ListDeliveryStreams fails.
        DetailFetchError: if DescribeDeliveryStream fails with anything other than not-found.
        SyncCancelledError: if the sync is cancelled.
    """
    names = _stage_listing(client.iter_delivery_stream_names(context.cancel_token))
    records = fetch_details(
        names,
        client.describe_delivery_stream,
        is_not_found_error,
        max_workers=max_workers,
        cancel_token=context.cancel_token,
    )
    for record in records:
        yield from materialize(record, root_table, context)


def _stage_listing(names: Iterable[str]) -> Iterator[str]:
    """Re-raise any listing failure as a ListingError so the sync reports the stage it aborted at."""
    try:
        yield from names
    except (SyncCancelledError, FirehoseSyncError):
        raise
    except Exception as exc:
        raise ListingError(f"Failed to list delivery streams: {exc}") from exc
