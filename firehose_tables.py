"""
This file contains the table specifications for the Kinesis Firehose connector.
The root table holds one row per delivery stream. Destinations, their processors and the processor
parameters are broken out into child tables, each row carrying its parent's _cq_id.
You can add or remove columns here; a column without an explicit path reads the CamelCase field
named after it (for example delivery_stream_status reads DeliveryStreamStatus).
"""

from path_resolver import json_resolver, path_resolver
from table_schema import Column, ColumnType, Relation, Table
from tags import tags_resolver

FIREHOSES_TABLE = "aws_kinesis_firehoses"
OPEN_SEARCH_DESTINATION_TABLE = "aws_kinesis_firehose_open_search_destination"
EXTENDED_S3_DESTINATION_TABLE = "aws_kinesis_firehose_extended_s3_destination"


def account_id_resolver(record, context):
    return context.account_id


def region_resolver(record, context):
    return context.region


def column(name: str, column_type: ColumnType, path: str = None, description: str = "") -> Column:
    """Shorthand for a column read from path, or from the CamelCase field named after the column."""
    extractor = path_resolver(path) if path else None
    return Column(name=name, type=column_type, extractor=extractor, description=description)


def cloud_watch_logging_columns(prefix: str, path: str):
    return [
        column(f"{prefix}cloud_watch_logging_options_enabled", ColumnType.BOOLEAN,
               f"{path}CloudWatchLoggingOptions.Enabled", "Enables or disables CloudWatch logging"),
        column(f"{prefix}cloud_watch_logging_options_log_group_name", ColumnType.STRING,
               f"{path}CloudWatchLoggingOptions.LogGroupName", "The CloudWatch group name for logging"),
        column(f"{prefix}cloud_watch_logging_options_log_stream_name", ColumnType.STRING,
               f"{path}CloudWatchLoggingOptions.LogStreamName", "The CloudWatch log stream name for logging"),
    ]


def processor_tables(destination: str) -> Table:
    """
    The processors of a destination's processing configuration, with their parameters as a further child table.
    """
    parameters = Table(
        name=f"{destination}_processor_parameters",
        parent_reference="processor_cq_id",
        description="Processor parameters of a data transformation processor",
        columns=[
            column("parameter_name", ColumnType.STRING, description="The name of the parameter"),
            column("parameter_value", ColumnType.STRING, description="The parameter value"),
        ],
    )
    return Table(
        name=f"{destination}_processors",
        parent_reference=f"{destination.replace('aws_kinesis_firehose_', '')}_cq_id",
        description="A data processor of a destination's processing configuration",
        columns=[
            column("type", ColumnType.STRING, description="The type of processor"),
            Column("parameters", ColumnType.JSON, json_resolver("Parameters"), "The processor parameters"),
        ],
        relations=[Relation(path="Parameters", table=parameters)],
    )


def open_search_destination_table() -> Table:
    return Table(
        name=OPEN_SEARCH_DESTINATION_TABLE,
        parent_reference="firehose_cq_id",
        description="The destination description in Amazon OpenSearch Service",
        columns=[
            Column("processing_configuration_processors", ColumnType.JSON,
                   json_resolver("ProcessingConfiguration.Processors"), "The data processors"),
            column("buffering_hints_interval_in_seconds", ColumnType.INTEGER, "BufferingHints.IntervalInSeconds"),
            column("buffering_hints_size_in_mb_s", ColumnType.INTEGER, "BufferingHints.SizeInMBs"),
            *cloud_watch_logging_columns("", ""),
            column("cluster_endpoint", ColumnType.STRING),
            column("domain_arn", ColumnType.STRING, "DomainARN"),
            column("index_name", ColumnType.STRING),
            column("index_rotation_period", ColumnType.STRING),
            column("processing_configuration_enabled", ColumnType.BOOLEAN, "ProcessingConfiguration.Enabled",
                   "Enables or disables data processing"),
            column("retry_options_duration_in_seconds", ColumnType.INTEGER, "RetryOptions.DurationInSeconds"),
            column("role_arn", ColumnType.STRING, "RoleARN"),
            column("s3_backup_mode", ColumnType.STRING),
            column("s3_destination_bucket_arn", ColumnType.STRING, "S3DestinationDescription.BucketARN",
                   "The ARN of the S3 bucket"),
            column("s3_destination_buffering_hints_interval_in_seconds", ColumnType.INTEGER,
                   "S3DestinationDescription.BufferingHints.IntervalInSeconds"),
            column("s3_destination_buffering_hints_size_in_mb_s", ColumnType.INTEGER,
                   "S3DestinationDescription.BufferingHints.SizeInMBs"),
            column("s3_destination_compression_format", ColumnType.STRING,
                   "S3DestinationDescription.CompressionFormat", "The compression format"),
            column("s3_destination_kms_encryption_config_aws_kms_key_arn", ColumnType.STRING,
                   "S3DestinationDescription.EncryptionConfiguration.KMSEncryptionConfig.AWSKMSKeyARN",
                   "The Amazon Resource Name (ARN) of the encryption key"),
            column("s3_destination_no_encryption_config", ColumnType.STRING,
                   "S3DestinationDescription.EncryptionConfiguration.NoEncryptionConfig"),
            column("s3_destination_role_arn", ColumnType.STRING, "S3DestinationDescription.RoleARN"),
            *cloud_watch_logging_columns("s3_destination_", "S3DestinationDescription."),
            column("s3_destination_error_output_prefix", ColumnType.STRING,
                   "S3DestinationDescription.ErrorOutputPrefix"),
            column("s3_destination_prefix", ColumnType.STRING, "S3DestinationDescription.Prefix"),
            column("type_name", ColumnType.STRING),
            column("vpc_configuration_description_role_arn", ColumnType.STRING,
                   "VpcConfigurationDescription.RoleARN"),
            column("vpc_configuration_description_security_group_ids", ColumnType.STRING_ARRAY,
                   "VpcConfigurationDescription.SecurityGroupIds"),
            column("vpc_configuration_description_subnet_ids", ColumnType.STRING_ARRAY,
                   "VpcConfigurationDescription.SubnetIds"),
            column("vpc_configuration_description_vpc_id", ColumnType.STRING, "VpcConfigurationDescription.VpcId"),
        ],
        relations=[
            Relation(path="ProcessingConfiguration.Processors", table=processor_tables(OPEN_SEARCH_DESTINATION_TABLE))
        ],
    )


def extended_s3_destination_table() -> Table:
    conversion = "DataFormatConversionConfiguration."
    deserializer = conversion + "InputFormatConfiguration.Deserializer."
    orc = conversion + "OutputFormatConfiguration.Serializer.OrcSerDe."
    parquet = conversion + "OutputFormatConfiguration.Serializer.ParquetSerDe."
    schema_configuration = conversion + "SchemaConfiguration."

    return Table(
        name=EXTENDED_S3_DESTINATION_TABLE,
        parent_reference="firehose_cq_id",
        description="Describes a destination in Amazon S3",
        columns=[
            Column("processing_configuration_processors", ColumnType.JSON,
                   json_resolver("ProcessingConfiguration.Processors"), "The data processors"),
            column("bucket_arn", ColumnType.STRING, "BucketARN", "The ARN of the S3 bucket"),
            column("buffering_hints_interval_in_seconds", ColumnType.INTEGER, "BufferingHints.IntervalInSeconds"),
            column("buffering_hints_size_in_mb_s", ColumnType.INTEGER, "BufferingHints.SizeInMBs"),
            column("compression_format", ColumnType.STRING, description="The compression format"),
            column("encryption_configuration_kms_encryption_config_aws_kms_key_arn", ColumnType.STRING,
                   "EncryptionConfiguration.KMSEncryptionConfig.AWSKMSKeyARN"),
            column("encryption_configuration_no_encryption_config", ColumnType.STRING,
                   "EncryptionConfiguration.NoEncryptionConfig"),
            column("role_arn", ColumnType.STRING, "RoleARN"),
            *cloud_watch_logging_columns("", ""),
            column("enabled", ColumnType.BOOLEAN, conversion + "Enabled", "Defaults to true"),
            column("deserializer_hive_json_ser_de_timestamp_formats", ColumnType.STRING_ARRAY,
                   deserializer + "HiveJsonSerDe.TimestampFormats"),
            column("deserializer_open_x_json_ser_de_case_insensitive", ColumnType.BOOLEAN,
                   deserializer + "OpenXJsonSerDe.CaseInsensitive"),
            column("deserializer_open_x_json_ser_de_column_to_json_key_mappings", ColumnType.JSON,
                   deserializer + "OpenXJsonSerDe.ColumnToJsonKeyMappings"),
            column("deserializer_open_x_json_ser_de_convert_dots_in_json_keys_to_underscores", ColumnType.BOOLEAN,
                   deserializer + "OpenXJsonSerDe.ConvertDotsInJsonKeysToUnderscores"),
            column("serializer_orc_ser_de_block_size_bytes", ColumnType.INTEGER, orc + "BlockSizeBytes"),
            column("serializer_orc_ser_de_bloom_filter_columns", ColumnType.STRING_ARRAY, orc + "BloomFilterColumns"),
            column("serializer_orc_ser_de_bloom_filter_false_positive_probability", ColumnType.FLOAT,
                   orc + "BloomFilterFalsePositiveProbability"),
            column("serializer_orc_ser_de_compression", ColumnType.STRING, orc + "Compression"),
            column("serializer_orc_ser_de_dictionary_key_threshold", ColumnType.FLOAT, orc + "DictionaryKeyThreshold"),
            column("serializer_orc_ser_de_enable_padding", ColumnType.BOOLEAN, orc + "EnablePadding"),
            column("serializer_orc_ser_de_format_version", ColumnType.STRING, orc + "FormatVersion"),
            column("serializer_orc_ser_de_padding_tolerance", ColumnType.FLOAT, orc + "PaddingTolerance"),
            column("serializer_orc_ser_de_row_index_stride", ColumnType.INTEGER, orc + "RowIndexStride"),
            column("serializer_orc_ser_de_stripe_size_bytes", ColumnType.INTEGER, orc + "StripeSizeBytes"),
            column("serializer_parquet_ser_de_block_size_bytes", ColumnType.INTEGER, parquet + "BlockSizeBytes"),
            column("serializer_parquet_ser_de_compression", ColumnType.STRING, parquet + "Compression"),
            column("serializer_parquet_ser_de_enable_dictionary_compression", ColumnType.BOOLEAN,
                   parquet + "EnableDictionaryCompression"),
            column("serializer_parquet_ser_de_max_padding_bytes", ColumnType.INTEGER, parquet + "MaxPaddingBytes"),
            column("serializer_parquet_ser_de_page_size_bytes", ColumnType.INTEGER, parquet + "PageSizeBytes"),
            column("serializer_parquet_ser_de_writer_version", ColumnType.STRING, parquet + "WriterVersion"),
            column("schema_configuration_catalog_id", ColumnType.STRING, schema_configuration + "CatalogId"),
            column("schema_configuration_database_name", ColumnType.STRING, schema_configuration + "DatabaseName"),
            column("schema_configuration_region", ColumnType.STRING, schema_configuration + "Region"),
            column("schema_configuration_role_arn", ColumnType.STRING, schema_configuration + "RoleARN"),
            column("schema_configuration_table_name", ColumnType.STRING, schema_configuration + "TableName"),
            column("schema_configuration_version_id", ColumnType.STRING, schema_configuration + "VersionId"),
            column("dynamic_partitioning_configuration_enabled", ColumnType.BOOLEAN,
                   "DynamicPartitioningConfiguration.Enabled"),
            column("dynamic_partitioning_configuration_retry_options_duration_in_seconds", ColumnType.INTEGER,
                   "DynamicPartitioningConfiguration.RetryOptions.DurationInSeconds"),
            column("error_output_prefix", ColumnType.STRING),
            column("prefix", ColumnType.STRING),
            column("processing_configuration_enabled", ColumnType.BOOLEAN, "ProcessingConfiguration.Enabled",
                   "Enables or disables data processing"),
            column("s3_backup_bucket_arn", ColumnType.STRING, "S3BackupDescription.BucketARN"),
            column("s3_backup_buffering_hints_interval_in_seconds", ColumnType.INTEGER,
                   "S3BackupDescription.BufferingHints.IntervalInSeconds"),
            column("s3_backup_buffering_hints_size_in_mb_s", ColumnType.INTEGER,
                   "S3BackupDescription.BufferingHints.SizeInMBs"),
            column("s3_backup_compression_format", ColumnType.STRING, "S3BackupDescription.CompressionFormat"),
            column("s3_backup_kms_encryption_config_aws_kms_key_arn", ColumnType.STRING,
                   "S3BackupDescription.EncryptionConfiguration.KMSEncryptionConfig.AWSKMSKeyARN"),
            column("s3_backup_no_encryption_config", ColumnType.STRING,
                   "S3BackupDescription.EncryptionConfiguration.NoEncryptionConfig"),
            column("s3_backup_role_arn", ColumnType.STRING, "S3BackupDescription.RoleARN"),
            *cloud_watch_logging_columns("s3_backup_", "S3BackupDescription."),
            column("s3_backup_error_output_prefix", ColumnType.STRING, "S3BackupDescription.ErrorOutputPrefix"),
            column("s3_backup_prefix", ColumnType.STRING, "S3BackupDescription.Prefix"),
            column("s3_backup_mode", ColumnType.STRING, description="The Amazon S3 backup mode"),
        ],
        relations=[
            Relation(path="ProcessingConfiguration.Processors", table=processor_tables(EXTENDED_S3_DESTINATION_TABLE))
        ],
    )


def firehoses_table() -> Table:
    """Build the full table tree, rooted at the delivery stream table."""
    encryption = "DeliveryStreamEncryptionConfiguration."
    kinesis_source = "Source.KinesisStreamSourceDescription."

    return Table(
        name=FIREHOSES_TABLE,
        description="Contains information about a delivery stream",
        primary_key_columns=["arn"],
        columns=[
            Column("account_id", ColumnType.STRING, account_id_resolver, "The AWS Account ID of the resource"),
            Column("region", ColumnType.STRING, region_resolver, "The AWS Region of the resource"),
            Column("tags", ColumnType.JSON, tags_resolver, "The tags of the delivery stream"),
            column("arn", ColumnType.STRING, "DeliveryStreamARN", "The Amazon Resource Name (ARN) of the delivery stream"),
            column("delivery_stream_arn", ColumnType.STRING, "DeliveryStreamARN"),
            column("delivery_stream_name", ColumnType.STRING, description="The name of the delivery stream"),
            column("delivery_stream_status", ColumnType.STRING, description="The status of the delivery stream"),
            column("delivery_stream_type", ColumnType.STRING, description="The delivery stream type"),
            column("version_id", ColumnType.STRING),
            column("create_timestamp", ColumnType.TIMESTAMP),
            column("encryption_config_failure_description_details", ColumnType.STRING,
                   encryption + "FailureDescription.Details"),
            column("encryption_config_failure_description_type", ColumnType.STRING,
                   encryption + "FailureDescription.Type"),
            column("encryption_config_key_arn", ColumnType.STRING, encryption + "KeyARN"),
            column("encryption_config_key_type", ColumnType.STRING, encryption + "KeyType"),
            column("encryption_config_status", ColumnType.STRING, encryption + "Status"),
            column("failure_description_details", ColumnType.STRING, "FailureDescription.Details"),
            column("failure_description_type", ColumnType.STRING, "FailureDescription.Type"),
            column("has_more_destinations", ColumnType.BOOLEAN),
            column("last_update_timestamp", ColumnType.TIMESTAMP),
            column("source_kinesis_stream_delivery_start_timestamp", ColumnType.TIMESTAMP,
                   kinesis_source + "DeliveryStartTimestamp"),
            column("source_kinesis_stream_kinesis_stream_arn", ColumnType.STRING, kinesis_source + "KinesisStreamARN"),
            column("source_kinesis_stream_role_arn", ColumnType.STRING, kinesis_source + "RoleARN"),
        ],
        relations=[
            Relation(path="Destinations.AmazonopensearchserviceDestinationDescription",
                     table=open_search_destination_table()),
            Relation(path="Destinations.ExtendedS3DestinationDescription", table=extended_s3_destination_table()),
        ],
    )
