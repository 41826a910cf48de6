#!/usr/bin/env python
"""Metadata backfill worker - generates categorical metadata for indexed videos.

Lists the videos of an index, runs an ingestion pass over the ones without
metadata, and optionally stores their clip embeddings in the vector store.
Also exposes similarity search and vector status checks.

Usage:
    # Generate metadata for the first page of an index
    adlibrary-worker ingest --index <index_id>

    # Same, for the index named by ADS_INDEX_ID
    adlibrary-worker ingest

    # Several pages, 5 videos at a time, storing embeddings afterwards
    adlibrary-worker ingest --index <index_id> --pages 3 --limit 5 --store-embeddings

    # Preview what would be processed
    adlibrary-worker ingest --index <index_id> --dry-run

    # Find ads similar to a content video
    adlibrary-worker similar <video_id> [<ads_index_id>]

    # Check whether a video has vectors
    adlibrary-worker status <video_id> <index_id>

Environment variables:
    TWELVELABS_API_URL / TWELVELABS_API_KEY: Video API connection
    ADS_INDEX_ID: Default --index for ingest and target index for similar
    QDRANT_URL / QDRANT_COLLECTION: Vector store connection
    METADATA_CONCURRENCY_LIMIT: Default --limit (default: 10)
    OTLP_ENDPOINT: OpenTelemetry endpoint (metrics disabled when empty)
"""

import asyncio
import logging
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from adlibrary.lib.config_manager import config
from adlibrary.lib.errors import DataShapeError, UpstreamError, ValidationError
from adlibrary.lib.logging_config import CorrelationFilter, setup_logging
from adlibrary.lib.telemetry import setup_telemetry
from adlibrary.services.ingestion import (
    EmbeddingStorer,
    IngestionReport,
    MetadataIngestionScheduler,
    VideoSummary,
)
from adlibrary.services.tagging import ClassifiedMetadata
from adlibrary.services.twelvelabs import TwelveLabsClient, UploadTracker
from adlibrary.services.vectors import SimilarityMatcher, create_qdrant_store

app = typer.Typer(help="Metadata backfill and similarity worker for the ads library")
console = Console(width=120)
logger = logging.getLogger(__name__)

CLI_ERRORS = (ValidationError, UpstreamError, DataShapeError)

# Set by main(); lets each ingestion pass tag log records with its correlation id
correlation_filter: Optional[CorrelationFilter] = None


async def collect_videos(client: TwelveLabsClient, index_id: str, pages: int) -> list[VideoSummary]:
    """List up to `pages` pages of an index as ingestion candidates."""
    videos = []
    page = 1
    while page <= pages:
        result = await client.list_videos(index_id, page=page)
        videos.extend(
            VideoSummary(
                video_id=item.id,
                index_id=item.index_id or index_id,
                user_metadata=item.user_metadata,
            )
            for item in result.data
        )
        if not result.has_more:
            break
        page += 1
    return videos


async def load_upload_tracker(client: TwelveLabsClient, index_id: str, pages: int = 1) -> UploadTracker:
    """Track the index's recent upload tasks so mid-indexing videos are left alone."""
    tracker = UploadTracker()
    page = 1
    while page <= pages:
        result = await client.list_indexing_tasks(index_id, page=page)
        tracker.track_tasks(result.data)
        if not result.has_more:
            break
        page += 1

    indexing = tracker.pending()
    if indexing:
        logger.info(f"{len(indexing)} videos in {index_id} are still indexing")
    return tracker


def _print_report(report: IngestionReport) -> None:
    table = Table(title="Ingestion Pass")
    table.add_column("Outcome", style="cyan")
    table.add_column("Count", justify="right")
    table.add_row("Processed", str(len(report.processed)))
    table.add_row("Skipped (has metadata)", str(len(report.skipped)))
    table.add_row("Failed", str(len(report.failed)))
    console.print(table)

    for video_id in report.failed:
        console.print(f"  [yellow]Failed[/] {video_id}")


@app.command()
def ingest(
    index: Optional[str] = typer.Option(
        None,
        "--index",
        "-i",
        help="Index whose videos are processed (default: ADS_INDEX_ID)",
    ),
    limit: Optional[int] = typer.Option(
        None,
        "--limit",
        "-l",
        help="Videos processed concurrently (default: METADATA_CONCURRENCY_LIMIT)",
    ),
    pages: int = typer.Option(1, "--pages", "-p", help="Number of listing pages to fetch"),
    store_embeddings: bool = typer.Option(
        False,
        "--store-embeddings",
        help="Store clip embeddings in the vector store after each video",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Preview what would be processed without making changes",
    ),
):
    """Generate and persist metadata for videos without it."""
    limit = limit if limit is not None else config.get("METADATA_CONCURRENCY_LIMIT")
    index = index or config.get("ADS_INDEX_ID")
    if not index:
        console.print("[red]ERROR[/] No index given: pass --index or set ADS_INDEX_ID")
        raise typer.Exit(code=1)

    async def _ingest() -> IngestionReport | None:
        async with TwelveLabsClient() as client:
            videos = await collect_videos(client, index, pages)
            tracker = await load_upload_tracker(client, index)
            console.print(f"[bold]Found {len(videos)} videos in {index}[/]")

            if dry_run:
                indexing = [v for v in videos if tracker.is_indexing(v.video_id)]
                pending = [
                    v for v in videos
                    if not v.has_metadata() and not tracker.is_indexing(v.video_id)
                ]
                for video in pending[:10]:
                    console.print(f"  Would process: {video.video_id}")
                if len(pending) > 10:
                    console.print(f"  ... and {len(pending) - 10} more")
                console.print(f"  {len(indexing)} still indexing")
                console.print(f"  {len(videos) - len(pending) - len(indexing)} already have metadata")
                return None

            storer = EmbeddingStorer(client, create_qdrant_store()) if store_embeddings else None

            def _on_complete(video_id: str, metadata: ClassifiedMetadata) -> None:
                console.print(f"  [green]OK[/] {video_id}: {metadata.sector or '-'} / {metadata.brands or '-'}")

            scheduler = MetadataIngestionScheduler(
                client,
                indexing=tracker,
                on_complete=_on_complete,
                embedding_storer=storer,
                correlation_filter=correlation_filter,
            )
            return await scheduler.run(videos, limit=limit)

    try:
        report = asyncio.run(_ingest())
    except CLI_ERRORS as e:
        console.print(f"[red]ERROR[/] {e}")
        raise typer.Exit(code=1)

    if report is not None:
        _print_report(report)
        if report.failed:
            raise typer.Exit(code=1)


@app.command()
def similar(
    video_id: str = typer.Argument(..., help="Source video"),
    target_index: Optional[str] = typer.Argument(
        None, help="Index searched for similar videos (default: ADS_INDEX_ID)"
    ),
    top: int = typer.Option(10, "--top", "-n", help="Number of results to show"),
):
    """Find videos in a target index similar to a source video."""
    target_index = target_index or config.get("ADS_INDEX_ID")

    async def _similar():
        matcher = SimilarityMatcher(create_qdrant_store())
        return await matcher.find_similar(video_id, target_index)

    try:
        matches = asyncio.run(_similar())
    except CLI_ERRORS as e:
        console.print(f"[red]ERROR[/] {e}")
        raise typer.Exit(code=1)

    if not matches:
        console.print(f"[yellow]No similar videos found for {video_id}[/]")
        return

    table = Table(title=f"Videos similar to {video_id}")
    table.add_column("Rank", justify="right")
    table.add_column("Video", style="cyan")
    table.add_column("Score", justify="right")
    table.add_column("Clip")
    for rank, match in enumerate(matches[:top], start=1):
        table.add_row(str(rank), match.video_id or "?", f"{match.score:.4f}", match.id)
    console.print(table)


@app.command()
def status(
    video_id: str = typer.Argument(..., help="Video to check"),
    index_id: str = typer.Argument(..., help="Index the video belongs to"),
):
    """Check whether a video already has vectors in the store."""

    async def _status():
        matcher = SimilarityMatcher(create_qdrant_store())
        return await matcher.check_status(video_id, index_id)

    try:
        result = asyncio.run(_status())
    except CLI_ERRORS as e:
        console.print(f"[red]ERROR[/] {e}")
        raise typer.Exit(code=1)

    state = "[green]processed[/]" if result.processed else "[yellow]not processed[/]"
    console.print(f"{video_id} ({result.category}): {state}, {result.matches_count} match(es)")


@app.command(name="config")
def show_config():
    """Show effective configuration (secrets masked)."""
    table = Table(title="Configuration")
    table.add_column("Key", style="cyan")
    table.add_column("Value")
    for key, value in sorted(config.get_all(masked=True).items()):
        table.add_row(key, str(value))
    console.print(table)


def main(service_name: Optional[str] = None) -> None:
    """Console entry point: configure logging and telemetry, then run the CLI."""
    global correlation_filter

    service_name = service_name or "adlibrary-worker"
    correlation_filter = setup_logging(service_name, config.get("LOG_LEVEL"))
    setup_telemetry(service_name, otlp_endpoint=config.get("OTLP_ENDPOINT"))
    app()


if __name__ == "__main__":
    main()
