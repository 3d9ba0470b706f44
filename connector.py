"""
This connector inventories AWS Kinesis Data Firehose delivery streams and flattens their nested configuration
into relational tables: one row per delivery stream, plus child tables for its OpenSearch and extended S3
destinations, their data processors and the processor parameters, all linked by synthetic _cq_id keys.
It lists delivery streams page by page, describes them in parallel, resolves their tags and upserts the rows.
See the Technical Reference documentation (https://fivetran.com/docs/connectors/connector-sdk/technical-reference#update)
and the Best Practices documentation (https://fivetran.com/docs/connectors/connector-sdk/best-practices) for details
"""

# For reading configuration from a JSON file
import json

# For recording when each region was last synced
from datetime import datetime, timezone

# Import required classes from fivetran_connector_sdk
from fivetran_connector_sdk import Connector

# For enabling Logs in your connector code
from fivetran_connector_sdk import Logging as log

# For supporting Data operations like upsert(), update(), delete() and checkpoint()
from fivetran_connector_sdk import Operations as op

# Import the connector's own modules
from cancellation import CancellationToken
from config import parse_configuration, validate_configuration
from errors import FirehoseSyncError, SyncCancelledError
from firehose_client import FirehoseClient, create_session, is_ignorable_error, resolve_account_id
from firehose_tables import firehoses_table
from materializer import ResolveContext
from pipeline import sync_region
from table_schema import CQ_ID_COLUMN, to_fivetran_schema

# Number of upserts after which an intermediate checkpoint is emitted
__CHECKPOINT_INTERVAL = 1000


def schema(configuration: dict):
    """
    Define the schema function which lets you configure the schema your connector delivers.
    See the technical reference documentation for more details on the schema function:
    https://fivetran.com/docs/connectors/connector-sdk/technical-reference#schema
    Every table uses the synthetic _cq_id column as its primary key; child tables also declare
    the column referencing their parent's _cq_id.
    Args:
        configuration: a dictionary that holds the configuration settings for the connector.
    """
    return to_fivetran_schema(firehoses_table())


def update(configuration: dict, state: dict):
    """
    Define the update function, which is a required function, and is called by Fivetran during each sync.
    See the technical reference documentation for more details on the update function
    https://fivetran.com/docs/connectors/connector-sdk/technical-reference#update
    Each configured region is synced in turn. When a region completes, rows recorded for it in the previous
    sync that were not seen again are deleted. When a region fails, the rows already upserted are kept,
    stale-row deletion is skipped, and the sync fails with the stage (list, detail) it aborted at.
    Args:
        configuration: A dictionary containing connection details
        state: A dictionary containing state information from previous runs
        The state dictionary is empty for the first sync or for any full re-sync
    """
    config = parse_configuration(configuration)
    validate_configuration(config)

    cancel_token = CancellationToken(config.sync_timeout_seconds)
    session = create_session(config)
    account_id = resolve_account_id(session, config)
    root_table = firehoses_table()

    for region in config.regions:
        state_key = f"{account_id}/{region}"
        log.info(f"Syncing Kinesis Firehose delivery streams in account {account_id}, region {region}")

        client = FirehoseClient(session, region, config)
        context = ResolveContext(
            account_id=account_id,
            region=region,
            client=client,
            cancel_token=cancel_token,
            tag_page_size=config.tag_page_size,
        )

        try:
            synced_ids = upsert_region_rows(client, root_table, context, config.max_workers, state)
        except SyncCancelledError as exc:
            # Rows upserted so far are kept; the region's previous id set stays in state
            op.checkpoint(state)
            raise RuntimeError(f"Sync cancelled while syncing region {region}") from exc
        except FirehoseSyncError as exc:
            if is_ignorable_error(exc):
                log.warning(f"Skipping region {region}: Kinesis Firehose is not accessible ({exc})")
                continue
            log.severe(f"Failed to sync region {region} at stage '{exc.stage}'", exc)
            op.checkpoint(state)
            raise RuntimeError(
                f"Failed to sync Kinesis Firehose delivery streams in {region} at stage '{exc.stage}': {exc}"
            ) from exc

        previous_ids = state.get(state_key, {}).get("synced_ids", {})
        deleted = delete_stale_rows(previous_ids, synced_ids)

        state[state_key] = {
            "synced_ids": {table: sorted(ids) for table, ids in synced_ids.items()},
            "synced_at": datetime.now(timezone.utc).isoformat(),
        }

        # Save the progress by checkpointing the state. This is important for ensuring that the sync process can resume
        # from the correct position in case of next sync or interruptions.
        # Learn more about how and where to checkpoint by reading our best practices documentation
        # (https://fivetran.com/docs/connectors/connector-sdk/best-practices#largedatasetrecommendation).
        op.checkpoint(state)

        delivery_streams = len(synced_ids.get(root_table.name, ()))
        log.info(f"Synced {delivery_streams} delivery stream(s) in {region}, deleted {deleted} stale row(s)")


def upsert_region_rows(client, root_table, context: ResolveContext, max_workers: int, state: dict) -> dict:
    """
    Upsert every row of the region and return the _cq_ids seen, grouped by table.
    Args:
        client: the Firehose client of the region.
        root_table: the root of the table tree.
        context: extractor context for the region.
        max_workers: number of concurrent describe calls.
        state: the state checkpointed at regular intervals while rows are upserted.
    Returns:
        A dictionary mapping each table name to the set of _cq_ids upserted into it.
    """
    synced_ids = {}
    upserted = 0

    for row in sync_region(client, root_table, context, max_workers):
        # The 'upsert' operation is used to insert or update data in the destination table.
        # The first argument is the name of the destination table.
        # The second argument is a dictionary containing the record to be upserted.
        op.upsert(table=row.table, data=row.data)
        synced_ids.setdefault(row.table, set()).add(row.cq_id)
        upserted += 1

        if upserted % __CHECKPOINT_INTERVAL == 0:
            op.checkpoint(state)

    return synced_ids


def delete_stale_rows(previous_ids: dict, synced_ids: dict) -> int:
    """
    Delete rows recorded by the previous sync of a region that were not upserted again.
    These belong to delivery streams (or destinations, processors, parameters) that no longer exist.
    Args:
        previous_ids: table name to list of _cq_ids from the previous sync's state.
        synced_ids: table name to set of _cq_ids upserted in this sync.
    Returns:
        The number of rows deleted.
    """
    deleted = 0
    for table, ids in previous_ids.items():
        current = synced_ids.get(table, set())
        for cq_id in ids:
            if cq_id in current:
                continue
            # The 'delete' operation marks the row with this primary key as deleted in the destination.
            op.delete(table=table, keys={CQ_ID_COLUMN: cq_id})
            deleted += 1
    return deleted


# Create the connector object using the schema and update functions
connector = Connector(update=update, schema=schema)

# Check if the script is being run as the main module.
# This is Python's standard entry method allowing your script to be run directly from the command line or IDE 'run' button.
# This is useful for debugging while you write your code. Note this method is not called by Fivetran when executing your connector in production.
# Please test using the Fivetran debug command prior to finalizing and deploying your connector.
if __name__ == "__main__":
    # Open the configuration.json file and load its contents
    with open("configuration.json", "r") as f:
        configuration = json.load(f)

    # Test the connector locally
    connector.debug(configuration=configuration)
