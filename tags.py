"""
This module collects the tags of a delivery stream into a single JSON column.
ListTagsForDeliveryStream pages with the last tag key of the previous page as ExclusiveStartTagKey
until HasMoreTags is false.
"""

from typing import Dict, Optional

from cancellation import CancellationToken
from errors import SyncCancelledError, TagResolutionError
from paginator import paginate
from path_resolver import resolve_path

# ListTagsForDeliveryStream accepts at most 50 tags per page
MAX_TAG_PAGE_SIZE = 50


def list_delivery_stream_tags(
    client,
    delivery_stream_name: str,
    page_size: int = MAX_TAG_PAGE_SIZE,
    cancel_token: Optional[CancellationToken] = None,
) -> Dict[str, str]:
    """
    Fetch every tag of a delivery stream across all pages.
    Args:
        client: a FirehoseClient (or anything exposing list_tags_for_delivery_stream).
        delivery_stream_name: the stream whose tags are listed.
        page_size: tags requested per page.
        cancel_token: checked around every page request.
    Returns:
        An ordered mapping of tag key to tag value, in the order the API returned them.
    """
    tags = {}
    for tag in paginate(
        client.list_tags_for_delivery_stream,
        items_key="Tags",
        more_key="HasMoreTags",
        cursor_param="ExclusiveStartTagKey",
        cursor_of=lambda item: item["Key"],
        cancel_token=cancel_token,
        request_kwargs={"DeliveryStreamName": delivery_stream_name, "Limit": page_size},
    ):
        tags[tag["Key"]] = tag.get("Value")
    return tags


def tags_resolver(record, context):
    """
    Column extractor for the tags column of the delivery stream table.
    A failure while listing tags only affects this stream's tags column, so it is raised as a
    TagResolutionError which the materializer turns into a null value.
    """
    delivery_stream_name = resolve_path(record, "DeliveryStreamName")
    if not delivery_stream_name or context is None or context.client is None:
        return None

    try:
        return list_delivery_stream_tags(
            context.client,
            delivery_stream_name,
            page_size=min(context.tag_page_size, MAX_TAG_PAGE_SIZE),
            cancel_token=context.cancel_token,
        )
    except SyncCancelledError:
        raise
    except Exception as exc:
        raise TagResolutionError(f"Failed to list tags for {delivery_stream_name}: {exc}") from exc
