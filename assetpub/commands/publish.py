"""Publish commands for uploading bundler output."""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path
from typing import Any

import click
import httpx
import structlog
from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table

from assetpub.core.config import AppConfig, PublishConfig
from assetpub.core.errors import PublishError
from assetpub.core.remote import GraphQLPublishClient, PresignedUploader
from assetpub.core.scanner import collect_assets
from assetpub.core.types import DEFAULT_PUBLISH_PLATFORMS, Platform, UpdateInfoGroup, UploadResult
from assetpub.core.update_info import build_unsorted_update_info_group
from assetpub.core.upload import deduplicate_assets, flatten_update_info_group, upload_assets

logger = structlog.get_logger()


def _get_context_objects(ctx: click.Context) -> tuple[AppConfig, Console, bool, bool]:
    """Extract common context objects."""
    config: AppConfig = ctx.obj["config"]
    console: Console = ctx.obj["console"]
    verbose: bool = ctx.obj["verbose"]
    debug: bool = ctx.obj["debug"]
    return config, console, verbose, debug


def _output_json(data: dict[str, Any]) -> None:
    """Output data as JSON."""
    print(json.dumps(data, indent=2, default=str))


def _load_app_config(path: Path | None) -> dict[str, Any]:
    """Read the app config attached to every platform as extra metadata."""
    if path is None:
        return {}
    with open(path) as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise click.BadParameter("App config must be a JSON object", param_hint="--app-config")
    return {"expoClient": data}


def _build_group(
    input_dir: Path,
    platforms: tuple[str, ...],
    extra: dict[str, Any],
    publish_config: PublishConfig,
) -> UpdateInfoGroup:
    """Collect and address the assets of a bundler output directory."""
    platform_assets = collect_assets(input_dir, platforms or [str(p) for p in DEFAULT_PUBLISH_PLATFORMS])
    return build_unsorted_update_info_group(
        platform_assets, extra, max_workers=publish_config.hash_workers
    )


def _show_group_summary(group: UpdateInfoGroup, console: Console) -> None:
    """Print per-platform asset counts and the deduplicated total."""
    table = Table(title="Update Info Group")
    table.add_column("Platform", style="cyan")
    table.add_column("Launch Asset", style="magenta")
    table.add_column("Assets", justify="right")

    for platform, update_info in group.items():
        table.add_row(platform, update_info.launch_asset.storage_key, str(len(update_info.assets)))

    console.print(table)

    references = flatten_update_info_group(group)
    console.print(
        f"[blue]{len(references)} asset references, "
        f"{len(deduplicate_assets(references))} unique[/blue]"
    )


def _show_upload_result(result: UploadResult, console: Console) -> None:
    """Print the outcome of an upload."""
    table = Table(title="Upload Result")
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="magenta")

    table.add_row("Asset references", str(result.asset_count))
    table.add_row("Unique assets", str(result.unique_asset_count))
    table.add_row("Uploaded", str(result.unique_uploaded_asset_count))
    table.add_row("Limit per update group", str(result.asset_limit_per_update_group))

    console.print(table)


@click.group()
@click.pass_context
def publish(ctx: click.Context) -> None:
    """Publish bundler output to the asset store."""
    pass


@publish.command()
@click.option(
    "--input-dir",
    "-i",
    type=click.Path(path_type=Path),
    default=Path("dist"),
    show_default=True,
    help="Bundler output directory",
)
@click.option(
    "--platform",
    "-p",
    "platforms",
    type=click.Choice([p.value for p in Platform], case_sensitive=False),
    multiple=True,
    help="Platform to include (repeatable, default: all)",
)
@click.pass_context
def inspect(ctx: click.Context, input_dir: Path, platforms: tuple[str, ...]) -> None:
    """Show the update info group without uploading."""
    config, console, verbose, debug = _get_context_objects(ctx)

    try:
        group = _build_group(input_dir, platforms, {}, config.publish)
    except (PublishError, OSError) as e:
        logger.error("inspect_failed", input_dir=str(input_dir), error=str(e))
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    if config.output_format == "json":
        _output_json({
            platform: update_info.model_dump(mode="json", by_alias=True)
            for platform, update_info in group.items()
        })
        return

    _show_group_summary(group, console)


@publish.command()
@click.option(
    "--input-dir",
    "-i",
    type=click.Path(path_type=Path),
    default=Path("dist"),
    show_default=True,
    help="Bundler output directory",
)
@click.option(
    "--platform",
    "-p",
    "platforms",
    type=click.Choice([p.value for p in Platform], case_sensitive=False),
    multiple=True,
    help="Platform to include (repeatable, default: all)",
)
@click.option("--project-id", required=True, help="Project the update group belongs to")
@click.option(
    "--app-config",
    type=click.Path(exists=True, path_type=Path),
    help="JSON app config attached to every platform",
)
@click.option(
    "--token",
    envvar="ASSETPUB_TOKEN",
    help="Access token for the publishing API",
)
@click.pass_context
def upload(
    ctx: click.Context,
    input_dir: Path,
    platforms: tuple[str, ...],
    project_id: str,
    app_config: Path | None,
    token: str | None,
) -> None:
    """Upload assets the store does not already hold."""
    config, console, verbose, debug = _get_context_objects(ctx)

    try:
        group = _build_group(input_dir, platforms, _load_app_config(app_config), config.publish)
    except (PublishError, OSError, json.JSONDecodeError) as e:
        logger.error("collect_failed", input_dir=str(input_dir), error=str(e))
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    if verbose:
        _show_group_summary(group, console)

    async def _run(progress: Progress) -> UploadResult:
        task = progress.add_task("Checking assets...", total=None)

        def on_progress(total: int, missing: int) -> None:
            progress.update(
                task,
                description="Uploading assets..." if missing else "Assets uploaded",
                total=total,
                completed=total - missing,
            )

        remote = GraphQLPublishClient(config.publish, access_token=token)
        uploader = PresignedUploader(config.publish)
        try:
            return await upload_assets(
                remote, uploader, group, project_id, on_progress, config=config.publish
            )
        finally:
            await remote.aclose()
            await uploader.aclose()

    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            MofNCompleteColumn(),
            TimeElapsedColumn(),
            console=console,
            disable=config.output_format == "json",
        ) as progress:
            result = asyncio.run(_run(progress))
    except (PublishError, httpx.HTTPError) as e:
        logger.error("upload_failed", project_id=project_id, error=str(e))
        console.print(f"[red]Error uploading assets: {e}[/red]")
        sys.exit(1)

    if config.output_format == "json":
        _output_json(result.model_dump(by_alias=True))
        return

    _show_upload_result(result, console)
    console.print(
        f"[green]Uploaded {result.unique_uploaded_asset_count} of "
        f"{result.unique_asset_count} unique assets[/green]"
    )
