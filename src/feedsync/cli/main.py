"""Command line entry point for checking sync accounts."""

import json
import logging
import sys
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import NoReturn

import click
import structlog

from feedsync import __version__
from feedsync.account.metadata import AccountMetadata
from feedsync.feedbin.caller import FeedbinAPICaller
from feedsync.feedbin.constants import SERVICE_FEEDBIN
from feedsync.feedly.caller import FeedlyAPICaller
from feedsync.feedly.operations import GetEntriesOperation, GetStreamIdsOperation
from feedsync.observability.logging import bind_sync_context, configure_logging
from feedsync.operations.compound import CompoundOperation
from feedsync.operations.queue import OperationQueue
from feedsync.settings import AppSettings, get_settings
from feedsync.transport.client import HttpTransport
from feedsync.transport.errors import TransportError
from feedsync.transport.rate_limiter import get_service_rate_limiter


logger = structlog.get_logger()

COMPONENT_CLI = "cli"
GLOBAL_ALL_STREAM = "user/{user_id}/category/global.all"


@dataclass
class CliContext:
    """State shared by the subcommands."""

    settings: AppSettings
    sync_id: str
    state_path: Path | None = None


def _fail(message: str) -> NoReturn:
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


@contextmanager
def _reporting_transport_errors(command: str) -> Iterator[None]:
    """Exit with status 1 and the error on stderr when a call fails."""
    try:
        yield
    except TransportError as e:
        logger.warning(
            "command_failed", component=COMPONENT_CLI, command=command, **e.to_dict()
        )
        _fail(str(e))


def _load_metadata(path: Path | None) -> AccountMetadata:
    if path is None or not path.exists():
        return AccountMetadata(account_id=SERVICE_FEEDBIN)
    return AccountMetadata.from_dict(json.loads(path.read_text(encoding="utf-8")))


def _save_metadata(path: Path | None, metadata: AccountMetadata) -> None:
    if path is None:
        return
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(metadata.to_dict(), indent=2), encoding="utf-8")


def _feedbin_caller(
    ctx: CliContext, transport: HttpTransport, metadata: AccountMetadata
) -> FeedbinAPICaller:
    credentials = ctx.settings.feedbin_credentials()
    if credentials is None:
        _fail("FEEDBIN_USERNAME and FEEDBIN_PASSWORD must be set")
    return FeedbinAPICaller(
        transport,
        credentials=credentials,
        account_metadata=metadata,
        rate_limiter=get_service_rate_limiter(
            SERVICE_FEEDBIN, ctx.settings.feedbin_max_qps
        ),
    )


def _feedly_caller(ctx: CliContext, transport: HttpTransport) -> FeedlyAPICaller:
    credentials = ctx.settings.feedly_credentials()
    if credentials is None:
        _fail("FEEDLY_ACCESS_TOKEN must be set")
    return FeedlyAPICaller(transport, credentials=credentials)


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--json-logs/--console-logs",
    default=False,
    help="Use JSON format for logs (default: console).",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging.")
@click.pass_context
def cli(ctx: click.Context, json_logs: bool, verbose: bool) -> None:
    """Check Feedbin and Feedly sync accounts from the command line."""
    configure_logging(
        level=logging.DEBUG if verbose else logging.INFO, json_format=json_logs
    )
    sync_id = str(uuid.uuid4())
    bind_sync_context(sync_id)
    ctx.obj = CliContext(settings=get_settings(), sync_id=sync_id)


# Feedbin


@cli.group()
@click.option(
    "--state",
    "state_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="JSON file keeping conditional-get validators and fetch times.",
)
@click.pass_obj
def feedbin(ctx: CliContext, state_path: Path | None) -> None:
    """Feedbin account commands."""
    ctx.state_path = state_path


@feedbin.command()
@click.pass_obj
def check(ctx: CliContext) -> None:
    """Validate the Feedbin credentials."""
    metadata = _load_metadata(ctx.state_path)
    with HttpTransport(ctx.settings.transport_config()) as transport:
        caller = _feedbin_caller(ctx, transport, metadata)
        with _reporting_transport_errors("feedbin_check"):
            credentials = caller.validate_credentials()

    if credentials is None:
        _fail("Feedbin rejected the credentials")
    click.echo("Credentials accepted.")


@feedbin.command()
@click.pass_obj
def subscriptions(ctx: CliContext) -> None:
    """List Feedbin subscriptions, one JSON object per line."""
    metadata = _load_metadata(ctx.state_path)
    with HttpTransport(ctx.settings.transport_config()) as transport:
        caller = _feedbin_caller(ctx, transport, metadata)
        with _reporting_transport_errors("feedbin_subscriptions"):
            result = caller.retrieve_subscriptions()
    _save_metadata(ctx.state_path, metadata)

    if result is None:
        click.echo("Subscriptions not modified since the last check.", err=True)
        return
    for subscription in result:
        click.echo(subscription.model_dump_json())


@feedbin.command()
@click.option(
    "--pages",
    type=click.IntRange(min=1),
    default=1,
    help="Maximum number of pages to fetch (default: 1).",
)
@click.pass_obj
def entries(ctx: CliContext, pages: int) -> None:
    """List entries published since the last fetch."""
    metadata = _load_metadata(ctx.state_path)
    log = logger.bind(component=COMPONENT_CLI, command="feedbin_entries")
    started_at = datetime.now(UTC)

    with HttpTransport(ctx.settings.transport_config()) as transport:
        caller = _feedbin_caller(ctx, transport, metadata)
        with _reporting_transport_errors("feedbin_entries"):
            page = caller.retrieve_entries()
            fetched = list(page.entries or [])
            next_page = page.next_page
            page_count = 1
            while next_page and page_count < pages:
                page_entries, next_page = caller.retrieve_entries_page(next_page)
                fetched.extend(page_entries or [])
                page_count += 1

    metadata.last_article_fetch_start_time = page.date or started_at
    metadata.last_article_fetch_end_time = datetime.now(UTC)
    _save_metadata(ctx.state_path, metadata)

    log.info(
        "entries_listed",
        count=len(fetched),
        pages=page_count,
        last_page_number=page.last_page_number,
        has_more=next_page is not None,
    )
    for entry in fetched:
        click.echo(entry.model_dump_json())


# Feedly


@cli.group()
def feedly() -> None:
    """Feedly account commands."""


@feedly.command()
@click.pass_obj
def collections(ctx: CliContext) -> None:
    """List Feedly collections, one JSON object per line."""
    with HttpTransport(ctx.settings.transport_config()) as transport:
        caller = _feedly_caller(ctx, transport)
        with _reporting_transport_errors("feedly_collections"):
            result = caller.get_collections()
    for collection in result:
        click.echo(collection.model_dump_json())


@feedly.command(name="entries")
@click.option(
    "--stream",
    "stream_id",
    default=None,
    help="Stream id to read (default: all of the user's feeds).",
)
@click.option("--unread-only", is_flag=True, help="Only fetch unread entries.")
@click.pass_obj
def feedly_entries(ctx: CliContext, stream_id: str | None, unread_only: bool) -> None:
    """Fetch the newest entries of a stream as parsed articles."""
    if stream_id is None:
        if not ctx.settings.feedly_user_id:
            _fail("--stream is required when FEEDLY_USER_ID is not set")
        stream_id = GLOBAL_ALL_STREAM.format(user_id=ctx.settings.feedly_user_id)

    queue = OperationQueue(name="feedly", max_workers=ctx.settings.max_workers)
    with HttpTransport(ctx.settings.transport_config()) as transport:
        caller = _feedly_caller(ctx, transport)
        get_stream_ids = GetStreamIdsOperation(
            caller, stream_id, unread_only=unread_only or None
        )
        get_entries = GetEntriesOperation(caller, get_stream_ids)
        get_entries.add_dependency(get_stream_ids)
        fetch = CompoundOperation([get_stream_ids, get_entries], name="fetch_stream")

        queue.add_operation(fetch)
        fetch.wait()
        queue.shutdown()

    error = fetch.error
    if isinstance(error, TransportError):
        _fail(str(error))
    elif error is not None:
        raise error

    for item in sorted(get_entries.parsed_entries, key=lambda item: item.unique_id):
        click.echo(item.model_dump_json())
    if get_entries.dropped_entry_ids:
        click.echo(
            f"Skipped {len(get_entries.dropped_entry_ids)} entries without a feed.",
            err=True,
        )


def main() -> None:
    """Console script entry point."""
    cli()
