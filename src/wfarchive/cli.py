"""wfarchive Command Line Interface.

Operator access to an archive database: inspect, delete and sweep
archived workflows within one tenant scope.
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path

import typer
from pydantic import ValidationError

from wfarchive import __version__
from wfarchive.contracts import ArchiveError, Workflow
from wfarchive.contracts.workflow import format_time
from wfarchive.core.archive import ArchiveDB, WorkflowArchive, parse_selector
from wfarchive.core.config import ArchiveSettings, LoggingSettings, load_settings, parse_duration
from wfarchive.core.instanceid import StaticInstanceIDService
from wfarchive.core.logging import LogOverrides, configure_logging, get_logger
from wfarchive.core.retention import RetentionSweeper

__all__ = ["app"]

logger = get_logger(__name__)

app = typer.Typer(
    name="wfarchive",
    help="wfarchive: archived workflow store.",
    no_args_is_help=True,
)

_DATETIME_FORMATS = ["%Y-%m-%d", "%Y-%m-%dT%H:%M:%S", "%Y-%m-%dT%H:%M:%SZ", "%Y-%m-%d %H:%M:%S"]

SettingsOption = typer.Option(None, "--settings", "-s", help="Path to settings YAML (default: ./settings.yaml if present).")
DatabaseOption = typer.Option(None, "--database", "-d", help="SQLAlchemy database URL (overrides settings).")
ClusterOption = typer.Option(None, "--cluster-name", help="Cluster identity (overrides settings).")
InstanceOption = typer.Option(None, "--instance-id", help="Owning instance id (overrides settings).")


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"wfarchive version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose/debug logging.",
    ),
    json_logs: bool = typer.Option(
        False,
        "--json-logs",
        help="Output structured JSON logs (for machine processing).",
    ),
) -> None:
    """wfarchive: archived workflow store."""
    overrides = LogOverrides(verbose=verbose, json_logs=json_logs)
    # Quiet until a command loads its settings
    configure_logging(LoggingSettings(level="WARNING"), overrides)
    ctx.obj = overrides


def _resolve_settings(settings_path: Path | None) -> ArchiveSettings:
    if settings_path is None:
        default = Path("settings.yaml")
        if not default.exists():
            return ArchiveSettings()
        settings_path = default
    try:
        return load_settings(settings_path)
    except FileNotFoundError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None
    except ValidationError as e:
        typer.echo(f"Error: invalid settings in {settings_path}:\n{e}", err=True)
        raise typer.Exit(1) from None


@contextmanager
def _open_archive(
    ctx: typer.Context,
    settings_path: Path | None,
    database: str | None,
    cluster_name: str | None,
    instance_id: str | None,
) -> Iterator[tuple[WorkflowArchive, ArchiveSettings]]:
    """Open the archive for one command; archive errors become exit code 1."""
    settings = _resolve_settings(settings_path)
    configure_logging(settings.logging, ctx.find_root().obj)
    url = database or settings.database.url
    try:
        db = ArchiveDB.from_url(url, echo=settings.database.echo)
    except Exception as e:
        typer.echo(f"Error connecting to database: {e}", err=True)
        raise typer.Exit(1) from None
    logger.debug("Opened archive database", url=db.safe_url, dialect=db.dialect.value)

    archive = WorkflowArchive(
        db,
        cluster_name=cluster_name or settings.cluster_name,
        managed_namespace=settings.managed_namespace,
        instance_id_service=StaticInstanceIDService(instance_id if instance_id is not None else settings.instance_id),
    )
    try:
        yield archive, settings
    except ArchiveError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from None
    finally:
        db.close()


def _format_row(workflow: Workflow) -> str:
    return "\t".join(
        [
            workflow.namespace,
            workflow.name,
            workflow.uid,
            workflow.status.phase.value,
            format_time(workflow.status.started_at) or "",
            format_time(workflow.status.finished_at) or "",
        ]
    )


@app.command("list")
def list_command(
    ctx: typer.Context,
    namespace: str = typer.Option("", "--namespace", "-n", help="Only this namespace."),
    name: str = typer.Option("", "--name", help="Exact workflow name."),
    name_prefix: str = typer.Option("", "--prefix", help="Workflow name prefix."),
    selector: str = typer.Option("", "--selector", "-l", help="Label selector, e.g. 'app=foo,env notin (dev)'."),
    min_started_at: datetime | None = typer.Option(None, "--started-after", formats=_DATETIME_FORMATS, help="Started after (UTC)."),
    max_started_at: datetime | None = typer.Option(None, "--started-before", formats=_DATETIME_FORMATS, help="Started before (UTC)."),
    limit: int = typer.Option(0, "--limit", min=0, help="Maximum results (0 = all)."),
    offset: int = typer.Option(0, "--offset", min=0, help="Skip this many results."),
    json_output: bool = typer.Option(False, "--json", help="One JSON document per line."),
    settings: Path | None = SettingsOption,
    database: str | None = DatabaseOption,
    cluster_name: str | None = ClusterOption,
    instance_id: str | None = InstanceOption,
) -> None:
    """List archived workflows, most recently started first."""
    with _open_archive(ctx, settings, database, cluster_name, instance_id) as (archive, _):
        workflows = archive.list_workflows(
            namespace=namespace,
            name=name,
            name_prefix=name_prefix,
            min_started_at=min_started_at,
            max_started_at=max_started_at,
            label_requirements=parse_selector(selector),
            limit=limit,
            offset=offset,
        )
    for workflow in workflows:
        typer.echo(json.dumps(workflow.to_dict(), sort_keys=True) if json_output else _format_row(workflow))


@app.command("count")
def count_command(
    ctx: typer.Context,
    namespace: str = typer.Option("", "--namespace", "-n", help="Only this namespace."),
    name: str = typer.Option("", "--name", help="Exact workflow name."),
    name_prefix: str = typer.Option("", "--prefix", help="Workflow name prefix."),
    selector: str = typer.Option("", "--selector", "-l", help="Label selector."),
    min_started_at: datetime | None = typer.Option(None, "--started-after", formats=_DATETIME_FORMATS, help="Started after (UTC)."),
    max_started_at: datetime | None = typer.Option(None, "--started-before", formats=_DATETIME_FORMATS, help="Started before (UTC)."),
    settings: Path | None = SettingsOption,
    database: str | None = DatabaseOption,
    cluster_name: str | None = ClusterOption,
    instance_id: str | None = InstanceOption,
) -> None:
    """Count archived workflows."""
    with _open_archive(ctx, settings, database, cluster_name, instance_id) as (archive, _):
        total = archive.count_workflows(
            namespace=namespace,
            name=name,
            name_prefix=name_prefix,
            min_started_at=min_started_at,
            max_started_at=max_started_at,
            label_requirements=parse_selector(selector),
        )
    typer.echo(str(total))


@app.command("get")
def get_command(
    ctx: typer.Context,
    uid: str = typer.Option("", "--uid", help="Workflow uid."),
    namespace: str = typer.Option("", "--namespace", "-n", help="Namespace (with --name, when no uid)."),
    name: str = typer.Option("", "--name", help="Workflow name (with --namespace, when no uid)."),
    settings: Path | None = SettingsOption,
    database: str | None = DatabaseOption,
    cluster_name: str | None = ClusterOption,
    instance_id: str | None = InstanceOption,
) -> None:
    """Print one archived workflow as JSON."""
    with _open_archive(ctx, settings, database, cluster_name, instance_id) as (archive, _):
        workflow = archive.get_workflow(uid=uid, namespace=namespace, name=name)
    if workflow is None:
        typer.echo("Error: archived workflow not found", err=True)
        raise typer.Exit(1)
    typer.echo(json.dumps(workflow.to_dict(), sort_keys=True, indent=2))


@app.command("delete")
def delete_command(
    ctx: typer.Context,
    uid: str = typer.Argument(..., help="Workflow uid."),
    settings: Path | None = SettingsOption,
    database: str | None = DatabaseOption,
    cluster_name: str | None = ClusterOption,
    instance_id: str | None = InstanceOption,
) -> None:
    """Delete one archived workflow."""
    with _open_archive(ctx, settings, database, cluster_name, instance_id) as (archive, _):
        deleted = archive.delete_workflow(uid)
    typer.echo(f"Deleted {deleted} archived workflow(s).")


@app.command("sweep")
def sweep_command(
    ctx: typer.Context,
    ttl: str | None = typer.Option(None, "--ttl", help="Retention period, e.g. '30d' (default: archive_ttl from settings)."),
    settings: Path | None = SettingsOption,
    database: str | None = DatabaseOption,
    cluster_name: str | None = ClusterOption,
    instance_id: str | None = InstanceOption,
) -> None:
    """Delete archived workflows finished longer ago than the retention period."""
    with _open_archive(ctx, settings, database, cluster_name, instance_id) as (archive, config):
        if ttl is not None:
            try:
                retention = parse_duration(ttl)
            except ValueError as e:
                typer.echo(f"Error: {e}", err=True)
                raise typer.Exit(1) from None
        elif config.archive_ttl is not None:
            retention = config.archive_ttl
        else:
            typer.echo("Error: no --ttl given and archive_ttl is not configured.", err=True)
            raise typer.Exit(1)
        result = RetentionSweeper(archive).sweep(retention)
    typer.echo(f"Deleted {result.deleted_count} archived workflow(s) older than {result.ttl_seconds}s.")


@app.command("label-keys")
def label_keys_command(
    ctx: typer.Context,
    settings: Path | None = SettingsOption,
    database: str | None = DatabaseOption,
    cluster_name: str | None = ClusterOption,
    instance_id: str | None = InstanceOption,
) -> None:
    """List label keys used by archived workflows."""
    with _open_archive(ctx, settings, database, cluster_name, instance_id) as (archive, _):
        keys = archive.list_label_keys()
    for key in sorted(keys):
        typer.echo(key)


@app.command("label-values")
def label_values_command(
    ctx: typer.Context,
    key: str = typer.Argument(..., help="Label key."),
    settings: Path | None = SettingsOption,
    database: str | None = DatabaseOption,
    cluster_name: str | None = ClusterOption,
    instance_id: str | None = InstanceOption,
) -> None:
    """List values of one label key across archived workflows."""
    with _open_archive(ctx, settings, database, cluster_name, instance_id) as (archive, _):
        values = archive.list_label_values(key)
    for value in sorted(values):
        typer.echo(value)
