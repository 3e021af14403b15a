"""CLI entry point for prtrigger.

This module provides the Typer-based CLI with commands:
- prtrigger validate: Validate configuration
- prtrigger dispatch: Feed one webhook payload through the dispatcher
- prtrigger match: Show which jobs track a pull request
- prtrigger queue: List recorded builds

Exit codes:
- 0: Success (including deliveries that triggered nothing)
- 1: Configuration error
- 2: Input error
- 4: Fatal error
"""

from __future__ import annotations

import asyncio
import json
import sqlite3
from enum import IntEnum
from pathlib import Path
from typing import TYPE_CHECKING, Annotated, Any

import typer

from prtrigger import __version__
from prtrigger.adapters import WebhookService, default_adapters
from prtrigger.config import load_config
from prtrigger.config.loader import (
    ConfigError,
    ConfigNotFoundError,
    ConfigValidationError,
    EnvironmentVariableError,
)
from prtrigger.github import (
    GitHubConnector,
    GitHubPermissionOracle,
    MalformedRepositoryUrlError,
    get_github_token,
    parse_repository_url,
)
from prtrigger.jobs import InMemoryJobRegistry, RecordingScheduler, elevated_context, find_jobs
from prtrigger.logging import configure_logging, get_logger
from prtrigger.paths import get_default_state_dir
from prtrigger.rules import DispatchEngine
from prtrigger.state import BuildQueue

if TYPE_CHECKING:
    from prtrigger.adapters.service import DeliveryOutcome
    from prtrigger.config.schema import Config
    from prtrigger.jobs import BuildScheduler

DB_FILENAME = "builds.db"


class ExitCode(IntEnum):
    """CLI exit codes."""

    SUCCESS = 0
    CONFIG_ERROR = 1
    INPUT_ERROR = 2
    FATAL_ERROR = 4


app = typer.Typer(
    name="prtrigger",
    help="Trigger pull request builds from GitHub comments, labels, reviews and edits.",
    add_completion=False,
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"prtrigger {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """Trigger pull request builds from GitHub webhook events."""


ConfigOption = Annotated[
    Path | None,
    typer.Option(
        "--config",
        "-c",
        help="Path to configuration file.",
    ),
]
VerboseOption = Annotated[
    bool,
    typer.Option(
        "--verbose",
        "-v",
        help="Enable debug logging.",
    ),
]
StateDirOption = Annotated[
    Path | None,
    typer.Option(
        "--state-dir",
        help="State directory path.",
    ),
]


def _fail(message: str, code: ExitCode) -> typer.Exit:
    typer.echo(typer.style(f"✗ {message}", fg=typer.colors.RED), err=True)
    return typer.Exit(code)


def _load_config_or_exit(path: Path | None) -> Config:
    try:
        return load_config(path)
    except ConfigError as e:
        raise _fail(f"Configuration error: {e}", ExitCode.CONFIG_ERROR) from e


def _read_payload(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise _fail(f"Cannot read payload file: {e}", ExitCode.INPUT_ERROR) from e
    except json.JSONDecodeError as e:
        raise _fail(f"Payload is not valid JSON: {e}", ExitCode.INPUT_ERROR) from e
    if not isinstance(data, dict):
        raise _fail("Payload must be a JSON object", ExitCode.INPUT_ERROR)
    return data


@app.command()
def validate(
    config: ConfigOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Validate configuration without running.

    Loads the configuration file, expands environment variables,
    and validates against the schema. Exits with code 0 if valid,
    or code 1 if there are errors.
    """
    configure_logging(verbose=verbose, json_output=False)
    log = get_logger("prtrigger.cli")

    try:
        cfg = load_config(config)
    except (ConfigNotFoundError, EnvironmentVariableError, ConfigValidationError) as e:
        raise _fail(str(e), ExitCode.CONFIG_ERROR) from e
    except ConfigError as e:
        log.exception("Configuration error")
        raise _fail(str(e), ExitCode.CONFIG_ERROR) from e

    typer.echo(typer.style("✓ Configuration is valid", fg=typer.colors.GREEN))
    typer.echo(f"  Owners: {len(cfg.owners)}")
    typer.echo(f"  Jobs: {cfg.job_count}")

    if verbose:
        typer.echo(f"  API URL: {cfg.github.api_url}")
        typer.echo(f"  Default token: {'configured' if cfg.github.token else 'not set'}")
        for owner in cfg.owners:
            typer.echo(f"  {owner.name} ({owner.kind.value})")
            for job in owner.jobs:
                kinds = ", ".join(rule.type for rule in job.triggers) or "no triggers"
                typer.echo(f"    {job.name}: {kinds}")

    raise typer.Exit(ExitCode.SUCCESS)


@app.command()
def dispatch(
    event_name: Annotated[str, typer.Argument(help="Webhook event name, e.g. issue_comment.")],
    payload_file: Annotated[Path, typer.Argument(help="JSON webhook payload.")],
    config: ConfigOption = None,
    state_dir: StateDirOption = None,
    dry_run: Annotated[
        bool,
        typer.Option(
            "--dry-run",
            help="Record builds in memory and skip reactions.",
        ),
    ] = False,
    delivery_id: Annotated[
        str | None,
        typer.Option(
            "--delivery-id",
            help="Webhook delivery identifier.",
        ),
    ] = None,
    verbose: VerboseOption = False,
) -> None:
    """Dispatch one webhook payload.

    Exits 0 whether or not any build was triggered, like a webhook
    endpoint that acknowledges every delivery.
    """
    configure_logging(verbose=verbose)
    log = get_logger("prtrigger.cli")

    cfg = _load_config_or_exit(config)
    payload = _read_payload(payload_file)

    registry = InMemoryJobRegistry.from_config(cfg)
    connector = GitHubConnector(
        api_url=cfg.github.api_url,
        token=cfg.github.token or get_github_token(),
        timeout=cfg.github.timeout,
    )
    engine = DispatchEngine(
        registry,
        GitHubPermissionOracle(connector, timeout=cfg.github.timeout),
        max_concurrent_authorizations=cfg.dispatch.max_concurrent_authorizations,
    )

    scheduler: BuildScheduler
    build_queue: BuildQueue | None = None
    if dry_run:
        scheduler = RecordingScheduler()
    else:
        directory = state_dir or cfg.state.get_directory()
        try:
            build_queue = BuildQueue(directory / DB_FILENAME)
        except (OSError, sqlite3.Error) as e:
            log.exception("Cannot open build queue")
            raise _fail(f"Cannot open build queue: {e}", ExitCode.FATAL_ERROR) from e
        scheduler = build_queue

    service = WebhookService(
        engine,
        scheduler,
        default_adapters(None if dry_run else connector),
    )

    try:
        outcome = asyncio.run(service.handle(event_name, payload, delivery_id=delivery_id))
    finally:
        if build_queue is not None:
            build_queue.close()

    _print_outcome(outcome, dry_run=dry_run)
    raise typer.Exit(ExitCode.SUCCESS)


def _print_outcome(outcome: DeliveryOutcome, *, dry_run: bool) -> None:
    if outcome.error:
        typer.echo(typer.style(f"! {outcome.error}", fg=typer.colors.YELLOW))
    if outcome.ignored:
        typer.echo(f"Ignored {outcome.event_name} delivery")
        return

    verb = "Would build" if dry_run else "Scheduled"
    for name in outcome.scheduled:
        typer.echo(typer.style(f"✓ {verb} {name}", fg=typer.colors.GREEN))
    for name in outcome.schedule_failures:
        typer.echo(typer.style(f"✗ Failed to schedule {name}", fg=typer.colors.RED))
    for result in outcome.dispatches:
        if result.abort_reason is not None:
            typer.echo(f"  Dispatch aborted: {result.abort_reason.value}")
        for job_outcome in result.outcomes:
            if job_outcome.reason is not None:
                typer.echo(f"  Skipped {job_outcome.job_name}: {job_outcome.reason.value}")
    if not outcome.scheduled and not outcome.schedule_failures:
        typer.echo("No builds triggered")


@app.command()
def match(
    repository_url: Annotated[str, typer.Argument(help="Repository URL, e.g. https://github.com/o/r.")],
    pr_number: Annotated[int, typer.Argument(help="Pull request number.", min=1)],
    config: ConfigOption = None,
) -> None:
    """List the jobs that build a pull request."""
    cfg = _load_config_or_exit(config)

    try:
        repository = parse_repository_url(repository_url)
    except MalformedRepositoryUrlError as e:
        raise _fail(str(e), ExitCode.INPUT_ERROR) from e

    registry = InMemoryJobRegistry.from_config(cfg)
    with elevated_context("cli match") as context:
        jobs = list(find_jobs(registry, repository, pr_number, context))

    if not jobs:
        typer.echo(f"No job tracks PR #{pr_number} of {repository.full_name}")
        raise typer.Exit(ExitCode.SUCCESS)

    for job in jobs:
        kinds = ", ".join(rule.kind.value for rule in job.triggers) or "no triggers"
        typer.echo(f"{job.full_name} ({kinds})")
    raise typer.Exit(ExitCode.SUCCESS)


def _resolve_state_dir(config: Path | None) -> Path:
    try:
        return load_config(config).state.get_directory()
    except ConfigNotFoundError:
        if config is not None:
            raise _fail(f"Config file not found: {config}", ExitCode.CONFIG_ERROR) from None
        return get_default_state_dir()
    except ConfigError as e:
        raise _fail(f"Configuration error: {e}", ExitCode.CONFIG_ERROR) from e


@app.command()
def queue(
    job: Annotated[
        str | None,
        typer.Option(
            "--job",
            help="Only show builds of this job (owner/job).",
        ),
    ] = None,
    limit: Annotated[
        int,
        typer.Option(
            "--limit",
            "-n",
            help="Maximum records to show.",
        ),
    ] = 50,
    state_dir: StateDirOption = None,
    config: ConfigOption = None,
) -> None:
    """List recorded builds, newest first.

    Reads the queue from --state-dir, else from the configured state
    directory, else from the default data directory when no configuration
    file exists.
    """
    if state_dir is None:
        state_dir = _resolve_state_dir(config)

    db_path = state_dir / DB_FILENAME
    if not db_path.exists():
        typer.echo(typer.style(f"No build queue found at {db_path}", fg=typer.colors.YELLOW))
        raise typer.Exit(ExitCode.SUCCESS)

    build_queue = BuildQueue(db_path)
    try:
        builds = build_queue.list_builds(job=job, limit=limit)
    finally:
        build_queue.close()

    if not builds:
        typer.echo("No builds recorded.")
        raise typer.Exit(ExitCode.SUCCESS)

    typer.echo(typer.style(f"Builds ({len(builds)})", bold=True))
    typer.echo("─" * 60)
    for build in builds:
        typer.echo(f"[{build['scheduled_at']}] {build['job_name']}")
        typer.echo(f"  Cause: {build['short_description']}")
        if build.get("delivery_id"):
            typer.echo(f"  Delivery: {build['delivery_id']}")

    raise typer.Exit(ExitCode.SUCCESS)
