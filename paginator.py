"""
This module drives the exclusive-start-key pagination used by the Firehose list APIs.
ListDeliveryStreams and ListTagsForDeliveryStream both return a page of items plus a "has more" flag,
and expect the last key of the previous page as the exclusive start of the next request.
"""

from typing import Any, Callable, Dict, Iterator, Optional

# For enabling Logs in your connector code
from fivetran_connector_sdk import Logging as log

from cancellation import CancellationToken


def paginate(
    fetch_page: Callable[..., Dict[str, Any]],
    items_key: str,
    more_key: str,
    cursor_param: str,
    cursor_of: Callable[[Any], Any] = lambda item: item,
    cancel_token: Optional[CancellationToken] = None,
    request_kwargs: Optional[Dict[str, Any]] = None,
) -> Iterator[Any]:
    """
    Lazily yield every item of a cursor paginated listing.
    The loop calls fetch_page with the current cursor, yields each item of the page, stops when the
    more flag of the page is false and otherwise moves the cursor to the key of the last item.
    Errors raised by fetch_page are not caught here; a failed page aborts the whole listing.
    Args:
        fetch_page: the API call, e.g. client.list_delivery_streams.
        items_key: response key holding the items of the page, e.g. "DeliveryStreamNames".
        more_key: response key holding the "has more" flag, e.g. "HasMoreDeliveryStreams".
        cursor_param: request parameter carrying the cursor, e.g. "ExclusiveStartDeliveryStreamName".
        cursor_of: maps the last item of a page to the cursor value for the next request.
        cancel_token: checked before every request and after every response.
        request_kwargs: extra request parameters sent with every page, e.g. {"Limit": 100}.
    Yields:
        The items of every page, in order, exactly once.
    Raises:
        SyncCancelledError: if the token is cancelled. A page that arrives after cancellation is discarded.
    """
    kwargs = dict(request_kwargs or {})
    page_number = 0

    while True:
        if cancel_token is not None:
            cancel_token.raise_if_cancelled()

        page = fetch_page(**kwargs)
        page_number += 1

        # The request may have been in flight when the sync was cancelled; drop the whole page
        if cancel_token is not None:
            cancel_token.raise_if_cancelled()

        items = page.get(items_key) or []
        log.fine(f"Fetched page {page_number} with {len(items)} item(s) from {items_key}")
        for item in items:
            yield item

        if not page.get(more_key, False) or not items:
            break

        kwargs[cursor_param] = cursor_of(items[-1])
