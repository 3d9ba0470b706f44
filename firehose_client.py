"""
This module provides the AWS access used by the connector: a boto3 session built from the configuration,
the account id lookup, and a thin Firehose client wrapper for one region.
The wrapper exposes the three calls the sync needs (list, describe, list tags) and the error
predicates that decide whether a failure is skipped or fatal.
"""

from typing import Any, Dict, Iterator, Optional

import boto3  # AWS SDK for Python to interact with Kinesis Data Firehose and STS
from botocore.config import Config as BotoConfig  # For setting retry and timeout configs
from botocore.exceptions import ClientError  # Exception handling for AWS responses

# For enabling Logs in your connector code
from fivetran_connector_sdk import Logging as log

from cancellation import CancellationToken
from config import FirehoseConfig
from paginator import paginate

_NOT_FOUND_CODES = {"ResourceNotFoundException"}

# Error codes under which a region is skipped instead of failing the sync:
# the credentials may not reach the service, or the region may not be enabled for the account
_IGNORABLE_CODES = {
    "AccessDenied",
    "AccessDeniedException",
    "UnauthorizedOperation",
    "UnrecognizedClientException",
    "InvalidClientTokenId",
    "OptInRequired",
    "SubscriptionRequiredException",
}


def error_code(exc: BaseException) -> Optional[str]:
    """Return the AWS error code of a botocore ClientError, following the exception chain."""
    while exc is not None:
        if isinstance(exc, ClientError):
            return exc.response.get("Error", {}).get("Code")
        exc = exc.__cause__
    return None


def is_not_found_error(exc: BaseException) -> bool:
    return error_code(exc) in _NOT_FOUND_CODES


def is_ignorable_error(exc: BaseException) -> bool:
    return error_code(exc) in _IGNORABLE_CODES


def create_session(config: FirehoseConfig):
    """
    Create a boto3 session from the configured credentials.
    When no access key is configured, boto3 falls back to its default credential chain.
    """
    if config.aws_access_key_id:
        return boto3.session.Session(
            aws_access_key_id=config.aws_access_key_id,
            aws_secret_access_key=config.aws_secret_access_key,
            aws_session_token=config.aws_session_token or None,
        )
    return boto3.session.Session()


def boto_config(config: FirehoseConfig) -> BotoConfig:
    """Retry and timeout settings applied to every client, so no request blocks indefinitely."""
    return BotoConfig(
        retries={"max_attempts": config.max_retry_attempts, "mode": "standard"},
        connect_timeout=config.request_timeout_seconds,
        read_timeout=config.request_timeout_seconds,
    )


def resolve_account_id(session, config: FirehoseConfig) -> str:
    """
    Return the AWS account id the credentials belong to.
    The configured account_id wins; otherwise STS GetCallerIdentity is called once per sync.
    """
    if config.account_id:
        return config.account_id

    sts = session.client("sts", region_name=config.regions[0], config=boto_config(config))
    account_id = sts.get_caller_identity()["Account"]
    log.info(f"Resolved AWS account id {account_id}")
    return account_id


class FirehoseClient:
    """
    Kinesis Data Firehose client for a single region.
    The underlying boto3 client is only read from, so one instance is shared by all describe workers.
    """

    def __init__(self, session, region: str, config: FirehoseConfig):
        self.region = region
        self.list_page_size = config.list_page_size
        self._client = session.client("firehose", region_name=region, config=boto_config(config))

    def list_delivery_streams(self, **kwargs) -> Dict[str, Any]:
        return self._client.list_delivery_streams(**kwargs)

    def describe_delivery_stream(self, delivery_stream_name: str) -> Dict[str, Any]:
        response = self._client.describe_delivery_stream(DeliveryStreamName=delivery_stream_name)
        return response["DeliveryStreamDescription"]

    def list_tags_for_delivery_stream(self, **kwargs) -> Dict[str, Any]:
        return self._client.list_tags_for_delivery_stream(**kwargs)

    def iter_delivery_stream_names(self, cancel_token: Optional[CancellationToken] = None) -> Iterator[str]:
        """
        Lazily list every delivery stream name in the region.
        ListDeliveryStreams pages with the last name of the previous page as ExclusiveStartDeliveryStreamName
        until HasMoreDeliveryStreams is false.
        """
        return paginate(
            self.list_delivery_streams,
            items_key="DeliveryStreamNames",
            more_key="HasMoreDeliveryStreams",
            cursor_param="ExclusiveStartDeliveryStreamName",
            cancel_token=cancel_token,
            request_kwargs={"Limit": self.list_page_size},
        )
