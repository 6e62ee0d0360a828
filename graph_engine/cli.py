"""Command-line entry point.

Usage (from project root):
    python -m graph_engine.cli search "attention is all you need"
    python -m graph_engine.cli build W2741809807 --extend --export out/
    python -m graph_engine.cli build 10.48550/arXiv.1706.03762 --threshold 2
"""

import argparse
import asyncio
import logging
import sys
from typing import Optional

from core.config import get_log_level
from core.logging import configure_logging
from core.utils import cleanup_all_clients
from sources.openalex import get_openalex_client

from .categorize import categorize_citations
from .events import (
    FatalErrorEvent,
    GraphEvent,
    ProgressEvent,
    StatusEvent,
)
from .export import write_csv_bundle
from .mirror import GraphMirror
from .session import GraphSession
from .types import AppState

logger = logging.getLogger(__name__)


class EventPrinter:
    """Sink that folds events into a mirror and prints a running log."""

    def __init__(self):
        self.mirror = GraphMirror()

    def __call__(self, batch: list[GraphEvent]) -> None:
        self.mirror.apply_batch(batch)
        for event in batch:
            if isinstance(event, StatusEvent):
                suffix = f" - {event.message}" if event.message else ""
                print(f"[status] {event.state.value}{suffix}")
            elif isinstance(event, ProgressEvent):
                print(f"[{event.percent:5.1f}%] {event.message or ''}")
            elif isinstance(event, FatalErrorEvent):
                print(f"[fatal] {event.message}", file=sys.stderr)
        deltas = [e for e in batch if not isinstance(e, (StatusEvent, ProgressEvent, FatalErrorEvent))]
        if deltas:
            print(
                f"  +{len(deltas)} deltas "
                f"(papers={len(self.mirror.papers)}, authors={len(self.mirror.authors)}, "
                f"edges={len(self.mirror.relationships)})"
            )


async def run_search(query: str, limit: int) -> int:
    client = get_openalex_client()
    works = await client.search_by_title(query, limit=limit)
    if not works:
        print("No results")
        return 1
    for work in works:
        year = work.publication_year or "n.d."
        print(f"{work.id}  ({year})  {work.best_title}")
    return 0


async def run_build(
    master: str,
    extend: bool,
    threshold: Optional[int],
    export_dir: Optional[str],
) -> int:
    printer = EventPrinter()
    async with GraphSession(sink=printer, stub_creation_threshold=threshold) as session:
        status = await session.start(master)
        if status == AppState.ACTIVE and extend:
            status = await session.extend()
        if status == AppState.ERROR:
            return 2

        snapshot = session.snapshot()
        categories = categorize_citations(snapshot)
        print(
            f"Graph: {snapshot.counts()}\n"
            f"First degree: {len(categories.first_degree)}, "
            f"second degree: {len(categories.second_degree)}, "
            f"referenced by first degree: {len(categories.referenced_by_first_degree)}"
        )
        if export_dir:
            paths = write_csv_bundle(snapshot, export_dir)
            print(f"Exported {len(paths)} tables to {export_dir}")
    return 0


async def _main(args: argparse.Namespace) -> int:
    try:
        if args.command == "search":
            return await run_search(args.query, args.limit)
        return await run_build(args.master, args.extend, args.threshold, args.export)
    finally:
        await cleanup_all_clients()


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Assemble a citation graph around one paper",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s search "attention is all you need"
  %(prog)s build W2741809807 --extend
  %(prog)s build 10.1000/xyz123 --threshold 2 --export out/
        """,
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    search = subparsers.add_parser("search", help="Search OpenAlex works by title")
    search.add_argument("query", help="Title text to search for")
    search.add_argument("--limit", "-n", type=int, default=25, help="Maximum results (default: 25)")

    build = subparsers.add_parser("build", help="Build the graph around a master paper")
    build.add_argument("master", help="OpenAlex work id (W...) or DOI")
    build.add_argument("--extend", action="store_true", help="Also run second-degree extension")
    build.add_argument(
        "--threshold",
        "-t",
        type=int,
        default=None,
        help="Stub creation threshold (default: STUB_CREATION_THRESHOLD or 3)",
    )
    build.add_argument("--export", metavar="DIR", help="Write CSV tables to DIR")

    args = parser.parse_args(argv)
    configure_logging(console_level=get_log_level())
    return asyncio.run(_main(args))


if __name__ == "__main__":
    sys.exit(main())
