"""Tests for exclusive-start-key pagination."""

import pytest
from unittest.mock import Mock

from cancellation import CancellationToken
from conftest import FakeBotoFirehose, client_error, make_description
from errors import SyncCancelledError
from paginator import paginate


def list_names(fake, **kwargs):
    return paginate(
        fake.list_delivery_streams,
        items_key="DeliveryStreamNames",
        more_key="HasMoreDeliveryStreams",
        cursor_param="ExclusiveStartDeliveryStreamName",
        **kwargs,
    )


class TestPaginate:
    def test_yields_every_item_across_pages_once(self):
        names = [f"stream-{index:02d}" for index in range(7)]
        fake = FakeBotoFirehose({name: make_description(name) for name in names})

        result = list(list_names(fake, request_kwargs={"Limit": 3}))

        assert result == names
        assert fake.list_calls == [None, "stream-02", "stream-05"]

    def test_stops_when_more_flag_is_false(self):
        fetch_page = Mock(return_value={"DeliveryStreamNames": ["a", "b"], "HasMoreDeliveryStreams": False})

        assert list(list_names(Mock(list_delivery_streams=fetch_page))) == ["a", "b"]
        fetch_page.assert_called_once_with()

    def test_stops_on_empty_page_even_if_more_is_claimed(self):
        fetch_page = Mock(return_value={"DeliveryStreamNames": [], "HasMoreDeliveryStreams": True})

        assert list(list_names(Mock(list_delivery_streams=fetch_page))) == []
        assert fetch_page.call_count == 1

    def test_cursor_of_maps_last_item(self):
        fetch_page = Mock(
            side_effect=[
                {"Tags": [{"Key": "a", "Value": "1"}], "HasMoreTags": True},
                {"Tags": [{"Key": "b", "Value": "2"}], "HasMoreTags": False},
            ]
        )

        items = list(
            paginate(
                fetch_page,
                items_key="Tags",
                more_key="HasMoreTags",
                cursor_param="ExclusiveStartTagKey",
                cursor_of=lambda item: item["Key"],
                request_kwargs={"DeliveryStreamName": "orders", "Limit": 1},
            )
        )

        assert [item["Key"] for item in items] == ["a", "b"]
        assert fetch_page.call_args_list[1].kwargs == {
            "DeliveryStreamName": "orders",
            "Limit": 1,
            "ExclusiveStartTagKey": "a",
        }

    def test_is_lazy(self):
        fetch_page = Mock(return_value={"DeliveryStreamNames": ["a"], "HasMoreDeliveryStreams": False})

        pages = list_names(Mock(list_delivery_streams=fetch_page))

        fetch_page.assert_not_called()
        assert next(pages) == "a"

    def test_transport_error_propagates_unchanged(self):
        error = client_error("ServiceUnavailableException", "ListDeliveryStreams")
        fake = FakeBotoFirehose(list_error=error)

        with pytest.raises(type(error)) as raised:
            list(list_names(fake))

        assert raised.value is error


class TestPaginateCancellation:
    def test_cancelled_before_first_request(self):
        token = CancellationToken()
        token.cancel()
        fetch_page = Mock()

        with pytest.raises(SyncCancelledError):
            list(list_names(Mock(list_delivery_streams=fetch_page), cancel_token=token))

        fetch_page.assert_not_called()

    def test_no_request_after_cancellation_between_pages(self):
        token = CancellationToken()
        fetch_page = Mock(
            side_effect=[
                {"DeliveryStreamNames": ["a", "b"], "HasMoreDeliveryStreams": True},
                {"DeliveryStreamNames": ["c"], "HasMoreDeliveryStreams": False},
            ]
        )
        pages = list_names(Mock(list_delivery_streams=fetch_page), cancel_token=token)

        assert [next(pages), next(pages)] == ["a", "b"]
        token.cancel()

        with pytest.raises(SyncCancelledError):
            next(pages)
        assert fetch_page.call_count == 1

    def test_page_completing_after_cancellation_is_discarded(self):
        token = CancellationToken()

        def fetch_page(**kwargs):
            # The request is in flight when the sync gets cancelled
            token.cancel()
            return {"DeliveryStreamNames": ["a", "b"], "HasMoreDeliveryStreams": False}

        received = []
        with pytest.raises(SyncCancelledError):
            for name in list_names(Mock(list_delivery_streams=fetch_page), cancel_token=token):
                received.append(name)

        assert received == []
