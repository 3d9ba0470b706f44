"""Tests for the concurrent DescribeDeliveryStream stage."""

import threading

import pytest

from cancellation import CancellationToken
from conftest import FakeBotoFirehose, client_error, make_description
from detail_fetcher import fetch_details
from errors import DetailFetchError, STAGE_DETAIL, SyncCancelledError
from firehose_client import is_not_found_error


def describe_with(fake):
    def describe(name):
        return fake.describe_delivery_stream(DeliveryStreamName=name)["DeliveryStreamDescription"]

    return describe


class TestFetchDetails:
    def test_describes_every_identifier(self):
        names = [f"stream-{index}" for index in range(10)]
        fake = FakeBotoFirehose({name: make_description(name) for name in names})

        records = list(fetch_details(names, describe_with(fake), is_not_found_error, max_workers=3))

        assert sorted(record["DeliveryStreamName"] for record in records) == names
        assert sorted(fake.describe_calls) == names

    def test_not_found_is_skipped_while_others_proceed(self):
        fake = FakeBotoFirehose({"a": make_description("a"), "c": make_description("c")})

        records = list(fetch_details(["a", "deleted", "c"], describe_with(fake), is_not_found_error, max_workers=2))

        assert sorted(record["DeliveryStreamName"] for record in records) == ["a", "c"]
        assert "deleted" in fake.describe_calls

    def test_other_error_raises_detail_fetch_error(self):
        failure = client_error("ServiceUnavailableException")
        fake = FakeBotoFirehose(
            {"a": make_description("a"), "b": make_description("b")},
            describe_errors={"b": failure},
        )

        received = []
        with pytest.raises(DetailFetchError) as raised:
            for record in fetch_details(["a", "b"], describe_with(fake), is_not_found_error, max_workers=1):
                received.append(record["DeliveryStreamName"])

        assert raised.value.stage == STAGE_DETAIL
        assert raised.value.identifier == "b"
        assert raised.value.__cause__ is failure
        # With a single worker "a" completes before "b" fails and is still delivered
        assert received == ["a"]

    def test_stops_pulling_identifiers_after_failure(self):
        fake = FakeBotoFirehose(describe_errors={"bad": client_error("InternalFailure")})
        pulled = []

        def identifiers():
            for name in ["bad"] + [f"later-{index}" for index in range(50)]:
                pulled.append(name)
                yield name

        with pytest.raises(DetailFetchError):
            list(fetch_details(identifiers(), describe_with(fake), is_not_found_error, max_workers=1))

        # At most 2 * max_workers identifiers are pulled ahead of the failure being observed
        assert len(pulled) <= 2

    def test_listing_error_propagates_unchanged(self):
        fake = FakeBotoFirehose({"a": make_description("a")})
        failure = RuntimeError("listing broke")

        def identifiers():
            yield "a"
            raise failure

        with pytest.raises(RuntimeError) as raised:
            list(fetch_details(identifiers(), describe_with(fake), is_not_found_error, max_workers=1))

        assert raised.value is failure

    def test_bounded_in_flight_requests(self):
        max_workers = 2
        lock = threading.Lock()
        active = []
        peak = []

        def describe(name):
            with lock:
                active.append(name)
                peak.append(len(active))
            with lock:
                active.remove(name)
            return {"DeliveryStreamName": name}

        names = [f"stream-{index}" for index in range(20)]
        records = list(fetch_details(names, describe, is_not_found_error, max_workers=max_workers))

        assert len(records) == 20
        assert max(peak) <= max_workers


class TestFetchDetailsCancellation:
    def test_cancelled_token_stops_submission(self):
        token = CancellationToken()
        token.cancel()
        fake = FakeBotoFirehose({"a": make_description("a")})

        with pytest.raises(SyncCancelledError):
            list(fetch_details(["a"], describe_with(fake), is_not_found_error, cancel_token=token))

        assert fake.describe_calls == []

    def test_cancellation_while_consuming(self):
        token = CancellationToken()
        names = [f"stream-{index}" for index in range(10)]
        fake = FakeBotoFirehose({name: make_description(name) for name in names})

        records = fetch_details(names, describe_with(fake), is_not_found_error, max_workers=1, cancel_token=token)
        next(records)
        token.cancel()

        with pytest.raises(SyncCancelledError):
            list(records)
        assert len(fake.describe_calls) < len(names)
