"""
This module turns listed delivery stream names into full DescribeDeliveryStream records.
Describe calls are independent of each other, so they run on a bounded thread pool.
At most twice the pool size is outstanding at any time, which keeps the listing generator
from running far ahead of the describe calls.
"""

from concurrent.futures import FIRST_COMPLETED, ThreadPoolExecutor, wait  # For the bounded worker pool
from typing import Any, Callable, Iterable, Iterator, Optional

# For enabling Logs in your connector code
from fivetran_connector_sdk import Logging as log

from cancellation import CancellationToken
from errors import DetailFetchError

# Seconds to wait for a describe call before checking the cancellation token again
_POLL_INTERVAL_SECONDS = 0.5


def fetch_details(
    identifiers: Iterable[Any],
    describe: Callable[[Any], Any],
    is_not_found: Callable[[Exception], bool],
    max_workers: int = 8,
    cancel_token: Optional[CancellationToken] = None,
) -> Iterator[Any]:
    """
    Describe every identifier on a thread pool and yield the records in completion order.
    A not-found error means the resource was deleted between the list and the describe call,
    so the identifier is dropped without raising.
    Any other error stops submitting new work and cancels queued calls. Records that completed
    alongside the failing call are still yielded before DetailFetchError is raised.
    Errors raised while pulling identifiers (listing errors) propagate unchanged.
    Args:
        identifiers: iterable of identifiers, usually the lazy paginator over the listing.
        describe: function returning the detail record for one identifier.
        is_not_found: predicate telling whether an exception means the resource no longer exists.
        max_workers: size of the thread pool.
        cancel_token: checked between submissions and while waiting for results.
    Yields:
        One detail record per identifier that still exists.
    Raises:
        DetailFetchError: when a describe call fails with an error other than not-found.
        SyncCancelledError: when the token is cancelled.
    """
    max_in_flight = max(1, max_workers) * 2
    identifier_iterator = iter(identifiers)
    pending = {}
    exhausted = False

    executor = ThreadPoolExecutor(max_workers=max(1, max_workers))
    try:
        while True:
            while not exhausted and len(pending) < max_in_flight:
                if cancel_token is not None:
                    cancel_token.raise_if_cancelled()
                try:
                    identifier = next(identifier_iterator)
                except StopIteration:
                    exhausted = True
                    break
                pending[executor.submit(describe, identifier)] = identifier

            if not pending:
                break

            done, _ = wait(pending, timeout=_POLL_INTERVAL_SECONDS, return_when=FIRST_COMPLETED)
            if cancel_token is not None:
                cancel_token.raise_if_cancelled()

            failure = None
            for future in done:
                identifier = pending.pop(future)
                try:
                    record = future.result()
                except Exception as exc:
                    if is_not_found(exc):
                        log.fine(f"Skipping {identifier}: it no longer exists")
                        continue
                    if failure is None:
                        failure = DetailFetchError(f"Failed to describe {identifier}: {exc}", identifier)
                        failure.__cause__ = exc
                    continue
                yield record

            if failure is not None:
                raise failure
    finally:
        for future in pending:
            future.cancel()
        executor.shutdown(wait=False, cancel_futures=True)
