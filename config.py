"""Configuration management for the Kinesis Firehose connector."""

from dataclasses import dataclass, field
from typing import Any, List, Optional

# Constants
_DEFAULT_REGION = "us-east-1"
_DEFAULT_MAX_WORKERS = 8
_DEFAULT_LIST_PAGE_SIZE = 100
_MAX_LIST_PAGE_SIZE = 10000  # ListDeliveryStreams Limit upper bound
_DEFAULT_TAG_PAGE_SIZE = 50
_MAX_TAG_PAGE_SIZE = 50  # ListTagsForDeliveryStream Limit upper bound
_DEFAULT_TIMEOUT = 30
_DEFAULT_RETRY_ATTEMPTS = 5


@dataclass
class FirehoseConfig:
    """Configuration class for the Kinesis Firehose connector."""

    aws_access_key_id: str = ""
    aws_secret_access_key: str = ""
    aws_session_token: str = ""
    regions: List[str] = field(default_factory=lambda: [_DEFAULT_REGION])
    account_id: str = ""
    max_workers: int = _DEFAULT_MAX_WORKERS
    list_page_size: int = _DEFAULT_LIST_PAGE_SIZE
    tag_page_size: int = _DEFAULT_TAG_PAGE_SIZE
    request_timeout_seconds: int = _DEFAULT_TIMEOUT
    max_retry_attempts: int = _DEFAULT_RETRY_ATTEMPTS
    sync_timeout_seconds: Optional[int] = None


def parse_configuration(configuration: dict) -> FirehoseConfig:
    """Parse the configuration dictionary. Fivetran passes every configuration value as a string."""

    def safe_int(value: Any, default: Optional[int]) -> Optional[int]:
        if value is None or str(value).strip() == "":
            return default
        try:
            return int(str(value).strip())
        except (ValueError, TypeError):
            raise ValueError(f"Expected an integer configuration value, got {value!r}")

    def parse_regions(regions_str: Any) -> List[str]:
        if not regions_str or str(regions_str).strip() == "":
            return [_DEFAULT_REGION]
        return [region.strip() for region in str(regions_str).split(",") if region.strip()]

    return FirehoseConfig(
        aws_access_key_id=str(configuration.get("aws_access_key_id", "")).strip(),
        aws_secret_access_key=str(configuration.get("aws_secret_access_key", "")).strip(),
        aws_session_token=str(configuration.get("aws_session_token", "")).strip(),
        regions=parse_regions(configuration.get("regions")),
        account_id=str(configuration.get("account_id", "")).strip(),
        max_workers=safe_int(configuration.get("max_workers"), _DEFAULT_MAX_WORKERS),
        list_page_size=safe_int(configuration.get("list_page_size"), _DEFAULT_LIST_PAGE_SIZE),
        tag_page_size=safe_int(configuration.get("tag_page_size"), _DEFAULT_TAG_PAGE_SIZE),
        request_timeout_seconds=safe_int(configuration.get("request_timeout_seconds"), _DEFAULT_TIMEOUT),
        max_retry_attempts=safe_int(configuration.get("max_retry_attempts"), _DEFAULT_RETRY_ATTEMPTS),
        sync_timeout_seconds=safe_int(configuration.get("sync_timeout_seconds"), None),
    )


def validate_configuration(config: FirehoseConfig):
    """
    Validate the parsed configuration.
    Raises:
        ValueError: if a credential is half configured or a numeric value is out of range.
    """
    if bool(config.aws_access_key_id) != bool(config.aws_secret_access_key):
        raise ValueError("aws_access_key_id and aws_secret_access_key must be provided together")

    if not config.regions:
        raise ValueError("At least one region is required")

    if config.max_workers < 1:
        raise ValueError("max_workers must be at least 1")

    if not 1 <= config.list_page_size <= _MAX_LIST_PAGE_SIZE:
        raise ValueError(f"list_page_size must be between 1 and {_MAX_LIST_PAGE_SIZE}")

    if not 1 <= config.tag_page_size <= _MAX_TAG_PAGE_SIZE:
        raise ValueError(f"tag_page_size must be between 1 and {_MAX_TAG_PAGE_SIZE}")

    if config.request_timeout_seconds < 1:
        raise ValueError("request_timeout_seconds must be at least 1")

    if config.max_retry_attempts < 1:
        raise ValueError("max_retry_attempts must be at least 1")

    if config.sync_timeout_seconds is not None and config.sync_timeout_seconds < 1:
        raise ValueError("sync_timeout_seconds must be at least 1")
