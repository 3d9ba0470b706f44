"""
Shared fixtures for the Kinesis Firehose connector tests.
The fakes below stand in for the AWS side only: a boto3-like Firehose client backed by in-memory
delivery streams, and a session that hands it out. The Fivetran SDK used is the real one.
"""

from datetime import datetime, timezone

import pytest
from botocore.exceptions import ClientError

from fivetran_connector_sdk import Logging


@pytest.fixture(autouse=True)
def log_level():
    """The SDK logger compares against LOG_LEVEL, which is only set when running under the Fivetran tester."""
    previous = getattr(Logging, "LOG_LEVEL", None)
    Logging.LOG_LEVEL = Logging.Level.INFO
    yield
    Logging.LOG_LEVEL = previous


def client_error(code: str, operation: str = "DescribeDeliveryStream") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": f"{code} raised by test"}}, operation)


def make_processors(count: int, parameters_per_processor: int = 2):
    return [
        {
            "Type": "Lambda",
            "Parameters": [
                {"ParameterName": f"Param{index}_{position}", "ParameterValue": f"value-{index}-{position}"}
                for position in range(parameters_per_processor)
            ],
        }
        for index in range(count)
    ]


def make_extended_s3_destination(bucket: str, processors: int = 3):
    return {
        "RoleARN": "arn:aws:iam::123456789012:role/firehose",
        "BucketARN": f"arn:aws:s3:::{bucket}",
        "Prefix": "raw/",
        "ErrorOutputPrefix": "errors/",
        "BufferingHints": {"SizeInMBs": 5, "IntervalInSeconds": 300},
        "CompressionFormat": "GZIP",
        "EncryptionConfiguration": {"NoEncryptionConfig": "NoEncryption"},
        "CloudWatchLoggingOptions": {"Enabled": True, "LogGroupName": "/aws/firehose", "LogStreamName": "S3Delivery"},
        "ProcessingConfiguration": {"Enabled": True, "Processors": make_processors(processors)},
        "S3BackupMode": "Disabled",
        "DataFormatConversionConfiguration": {
            "Enabled": True,
            "InputFormatConfiguration": {
                "Deserializer": {"HiveJsonSerDe": {"TimestampFormats": ["yyyy-MM-dd", "millis"]}}
            },
            "OutputFormatConfiguration": {
                "Serializer": {"ParquetSerDe": {"BlockSizeBytes": 268435456, "Compression": "SNAPPY"}}
            },
        },
    }


def make_description(name: str, destinations=None, **overrides):
    """A DescribeDeliveryStream 'DeliveryStreamDescription' shaped like the boto3 response."""
    description = {
        "DeliveryStreamName": name,
        "DeliveryStreamARN": f"arn:aws:firehose:us-east-1:123456789012:deliverystream/{name}",
        "DeliveryStreamStatus": "ACTIVE",
        "DeliveryStreamEncryptionConfiguration": {"Status": "DISABLED"},
        "DeliveryStreamType": "DirectPut",
        "VersionId": "1",
        "CreateTimestamp": datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc),
        "Destinations": destinations if destinations is not None else [],
        "HasMoreDestinations": False,
    }
    description.update(overrides)
    return description


class FakeBotoFirehose:
    """
    In-memory stand-in for boto3.client("firehose").
    Listing honours Limit and ExclusiveStart* the way the real API does.
    """

    def __init__(
        self, descriptions=None, tags=None, describe_errors=None, list_error=None, tag_errors=None, listed_names=None
    ):
        self.descriptions = dict(descriptions or {})
        # Names may be listed without a description, like a stream deleted between list and describe
        self.stream_names = sorted(set(self.descriptions) | set(listed_names or []))
        self.tags = tags or {}
        self.describe_errors = describe_errors or {}
        self.list_error = list_error
        self.tag_errors = tag_errors or {}
        self.list_calls = []
        self.describe_calls = []
        self.tag_calls = []

    def list_delivery_streams(self, Limit=10, ExclusiveStartDeliveryStreamName=None, **kwargs):
        self.list_calls.append(ExclusiveStartDeliveryStreamName)
        if self.list_error is not None:
            raise self.list_error
        names = self.stream_names
        if ExclusiveStartDeliveryStreamName is not None:
            names = [name for name in names if name > ExclusiveStartDeliveryStreamName]
        page = names[:Limit]
        return {"DeliveryStreamNames": page, "HasMoreDeliveryStreams": len(names) > Limit}

    def describe_delivery_stream(self, DeliveryStreamName):
        self.describe_calls.append(DeliveryStreamName)
        if DeliveryStreamName in self.describe_errors:
            raise self.describe_errors[DeliveryStreamName]
        if DeliveryStreamName not in self.descriptions:
            raise client_error("ResourceNotFoundException")
        return {"DeliveryStreamDescription": self.descriptions[DeliveryStreamName]}

    def list_tags_for_delivery_stream(self, DeliveryStreamName, Limit=50, ExclusiveStartTagKey=None):
        self.tag_calls.append((DeliveryStreamName, ExclusiveStartTagKey))
        if DeliveryStreamName in self.tag_errors:
            raise self.tag_errors[DeliveryStreamName]
        tags = self.tags.get(DeliveryStreamName, [])
        start = 0
        if ExclusiveStartTagKey is not None:
            start = [tag["Key"] for tag in tags].index(ExclusiveStartTagKey) + 1
        page = tags[start:start + Limit]
        return {"Tags": page, "HasMoreTags": start + Limit < len(tags)}


class FakeSTS:
    def __init__(self, account_id="123456789012"):
        self.account_id = account_id

    def get_caller_identity(self):
        return {"Account": self.account_id, "Arn": "arn:aws:iam::123456789012:user/test"}


class FakeSession:
    """Stand-in for boto3.session.Session returning one fake Firehose client per region."""

    def __init__(self, firehose_by_region, sts=None):
        self.firehose_by_region = firehose_by_region
        self.sts = sts or FakeSTS()
        self.client_calls = []

    def client(self, service_name, region_name=None, config=None):
        self.client_calls.append((service_name, region_name))
        if service_name == "sts":
            return self.sts
        return self.firehose_by_region[region_name]


@pytest.fixture
def base_configuration():
    return {
        "aws_access_key_id": "AKIATEST",
        "aws_secret_access_key": "secret",
        "regions": "us-east-1",
        "max_workers": "4",
        "list_page_size": "2",
        "tag_page_size": "3",
    }
