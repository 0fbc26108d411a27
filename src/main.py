# src/main.py — v2
"""CLI entry point: get, ensure, batch, status, seed commands.

Usage:
    techknowledge get <name>
    techknowledge ensure <name> [--version V]
    techknowledge batch <name[@version]>...
    techknowledge status <name>
    techknowledge seed
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from techknowledge.version import __version__

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    _setup_logging(args.verbose)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        return asyncio.run(_run(args))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="techknowledge",
        description=f"techknowledge v{__version__}: shared technology knowledge cache",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command")

    p_get = subparsers.add_parser("get", help="Print ready concepts for a technology")
    p_get.add_argument("name", help="Technology name")
    p_get.set_defaults(func=_cmd_get)

    p_ensure = subparsers.add_parser(
        "ensure", help="Generate concepts for a technology if missing",
    )
    p_ensure.add_argument("name", help="Technology name")
    p_ensure.add_argument(
        "--version", dest="tech_version", default=None,
        help="Technology version (informational)",
    )
    p_ensure.set_defaults(func=_cmd_ensure)

    p_batch = subparsers.add_parser(
        "batch", help="Generate missing concepts for many technologies",
    )
    p_batch.add_argument(
        "names", nargs="+", help="Technology names, optionally name@version",
    )
    p_batch.set_defaults(func=_cmd_batch)

    p_status = subparsers.add_parser(
        "status", help="Show the raw cache entry for a technology",
    )
    p_status.add_argument("name", help="Technology name")
    p_status.set_defaults(func=_cmd_status)

    p_seed = subparsers.add_parser("seed", help="Insert bundled seed knowledge")
    p_seed.set_defaults(func=_cmd_seed)

    return parser


async def _run(args: argparse.Namespace) -> int:
    from techknowledge.api.facade import open_service

    service = await open_service()
    try:
        return await args.func(args, service)
    finally:
        service.close()


async def _cmd_get(args: argparse.Namespace, service) -> int:
    """Print ready concepts, or report that none are available."""
    from techknowledge.api.facade import get_ready

    hints = await get_ready(args.name, service=service)
    if hints is None:
        print(f"No ready knowledge for {args.name}")
        return 1
    print(f"\n{args.name}: {len(hints)} concepts")
    for hint in hints:
        prereqs = ", ".join(hint.prerequisite_concepts) or "-"
        print(f"  {hint.concept_key:24s} {hint.concept_name}  (after: {prereqs})")
    return 0


async def _cmd_ensure(args: argparse.Namespace, service) -> int:
    """Run the claim-and-generate path for one technology."""
    from techknowledge.api.facade import ensure_generated

    outcome = await ensure_generated(args.name, args.tech_version, service=service)
    print(f"{args.name}: {outcome.value}")
    return 0


async def _cmd_batch(args: argparse.Namespace, service) -> int:
    """Run batch generation and print its summary."""
    from techknowledge.api.facade import ensure_generated_batch

    result = await ensure_generated_batch(args.names, service=service)

    print(f"\nBatch {result.batch_id} complete:")
    print(f"  Requested:    {result.requested}")
    print(f"  Skipped:      {result.skipped}")
    print(f"  Generated:    {result.generated}")
    print(f"  Unavailable:  {result.unavailable}")
    print(f"  Failed:       {result.failed}")
    print(f"  Errors:       {result.errors}")
    print(f"  Duration:     {result.duration_seconds:.1f}s")
    return 0


async def _cmd_status(args: argparse.Namespace, service) -> int:
    """Display an entry regardless of status."""
    from techknowledge.knowledge.models import normalize_key

    entry = await service.store.lookup_any(normalize_key(args.name))
    if entry is None:
        print(f"No entry for {args.name}")
        return 1
    print(f"\nEntry {entry.key}:")
    print(f"  Display name:  {entry.display_name}")
    print(f"  Version:       {entry.version or '-'}")
    print(f"  Status:        {entry.status.value}")
    print(f"  Source:        {entry.source_kind.value}")
    print(f"  Concepts:      {len(entry.content)}")
    if entry.generator_meta:
        meta = entry.generator_meta
        print(f"  Generator:     {meta.provider_id}/{meta.model_id}")
    if entry.last_error:
        print(f"  Last error:    {entry.last_error}")
    print(f"  Version stamp: {entry.version_stamp.isoformat()}")
    return 0


async def _cmd_seed(args: argparse.Namespace, service) -> int:
    """Insert bundled seed knowledge."""
    from techknowledge.knowledge.seeds import seed_store

    inserted = await seed_store(service.store)
    print(f"Seeded {inserted} entries")
    return 0


def _setup_logging(verbose: bool) -> None:
    """Configure logging for CLI usage."""
    from techknowledge.logging.logger import setup_logging

    setup_logging(level="DEBUG" if verbose else "INFO", log_format="text")
    # Quiet noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


if __name__ == "__main__":
    sys.exit(main())
