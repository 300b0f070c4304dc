"""
Command-line interface for Steam Review Guesser.

Stands in for the browser page: picks the next game, records guesses,
and exports or imports the seen-games history.
"""

import asyncio
import json
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from review_guesser.config import get_settings
from review_guesser.exceptions import ImportReadError, NothingToExport, NothingToImport
from review_guesser.logger import get_logger, setup_logging
from review_guesser.selection import SelectionMode
from review_guesser.service import ReviewGuesserService

logger = get_logger(__name__, component="cli")

_OUTCOME_WORDS = {
    "correct": True,
    "1": True,
    "incorrect": False,
    "wrong": False,
    "0": False,
    "unknown": None,
    "?": None,
}


class CLIOutput(BaseModel):
    """Structured output for CLI commands."""

    success: bool
    command: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    data: dict[str, Any] | list[Any] | None = None
    error: str | None = None


def print_json(output: CLIOutput) -> None:
    """Print output as formatted JSON."""
    print(json.dumps(output.model_dump(), indent=2, default=str))


async def cmd_next(mode: str) -> CLIOutput:
    """Pick the next unseen game."""
    async with ReviewGuesserService.from_settings() as service:
        app_id = await service.resolve_next(SelectionMode(mode))
        return CLIOutput(
            success=True,
            command="next",
            data={
                "mode": mode,
                "app_id": app_id,
                "url": service.store_url(app_id),
            },
        )


async def cmd_mark(app_id: str, outcome_word: str) -> CLIOutput:
    """Record the outcome of a guess."""
    if outcome_word.lower() not in _OUTCOME_WORDS:
        return CLIOutput(
            success=False,
            command="mark",
            error=f"Unknown outcome: {outcome_word} (use correct, incorrect or unknown)",
        )

    async with ReviewGuesserService.from_settings() as service:
        record = service.mark_seen(app_id, _OUTCOME_WORDS[outcome_word.lower()])

    if record is None:
        return CLIOutput(success=False, command="mark", error=f"Invalid app id: {app_id}")
    return CLIOutput(success=True, command="mark", data=record.model_dump(mode="json"))


async def cmd_export(path: str | None) -> CLIOutput:
    """Write the seen games to a CSV file."""
    async with ReviewGuesserService.from_settings() as service:
        try:
            payload = service.export_seen()
        except NothingToExport as e:
            return CLIOutput(success=False, command="export", error=str(e))

        target = Path(path) if path else Path(service.export_filename())
        target.write_bytes(payload)
        return CLIOutput(
            success=True,
            command="export",
            data={"path": str(target), "games": service.stats().total},
        )


async def cmd_import(path: str) -> CLIOutput:
    """Merge a previously exported CSV file into the seen games."""
    try:
        payload = Path(path).read_bytes()
    except OSError as e:
        logger.warning("Failed to read import file", path=path, error=str(e))
        return CLIOutput(success=False, command="import", error="Failed to read the file.")

    async with ReviewGuesserService.from_settings() as service:
        try:
            summary = service.import_seen(payload)
        except (NothingToImport, ImportReadError) as e:
            return CLIOutput(success=False, command="import", error=str(e))

    return CLIOutput(success=True, command="import", data=summary.to_dict())


async def cmd_stats() -> CLIOutput:
    """Show counts of seen games per outcome."""
    async with ReviewGuesserService.from_settings() as service:
        return CLIOutput(success=True, command="stats", data=service.stats().to_dict())


async def cmd_seen(app_id: str) -> CLIOutput:
    """Check whether a game has been seen."""
    async with ReviewGuesserService.from_settings() as service:
        return CLIOutput(
            success=True,
            command="seen",
            data={"app_id": app_id, "seen": service.has_seen(app_id)},
        )


async def cmd_clear() -> CLIOutput:
    """Forget every seen game."""
    async with ReviewGuesserService.from_settings() as service:
        service.clear_seen()
    return CLIOutput(success=True, command="clear")


async def cmd_test_config() -> CLIOutput:
    """Test configuration loading."""
    settings = get_settings()
    return CLIOutput(
        success=True,
        command="test-config",
        data={
            "environment": settings.environment,
            "catalog_base_url": settings.catalog.base_url,
            "catalog_data_dir": str(settings.catalog.data_dir),
            "full_catalog": settings.catalog.full_catalog,
            "partitions": settings.catalog.partitions,
            "storage_path": str(settings.storage.path),
            "fallback_app_id": settings.selection.fallback_app_id,
        },
    )


def print_usage() -> None:
    """Print CLI usage information."""
    usage = """
Steam Review Guesser CLI
========================

Usage: review-guesser <command> [args]

Commands:
  next [pure|smart]                 Pick the next unseen game (default: smart)
  mark <app_id> <correct|incorrect|unknown>
                                    Record the outcome of a guess
  seen <app_id>                     Check whether a game was already shown
  export [path]                     Export seen games to CSV
  import <path>                     Merge an exported CSV (never overwrites)
  stats                             Counts of seen games per outcome
  clear                             Forget every seen game
  test-config                       Show the loaded configuration
  help                              Show this message

Examples:
  review-guesser next smart
  review-guesser mark 570 correct
  review-guesser export seen.csv
"""
    print(usage)


def _require(count: int, message: str) -> None:
    if len(sys.argv) < count:
        print(f"Error: {message}")
        sys.exit(1)


def main() -> None:
    """Main CLI entry point."""
    if len(sys.argv) < 2:
        print_usage()
        sys.exit(1)

    setup_logging()
    command = sys.argv[1]

    try:
        if command == "next":
            mode = sys.argv[2] if len(sys.argv) > 2 else SelectionMode.SMART.value
            if mode not in {m.value for m in SelectionMode}:
                print(f"Error: unknown mode {mode} (use pure or smart)")
                sys.exit(1)
            output = asyncio.run(cmd_next(mode))

        elif command == "mark":
            _require(4, "app_id and outcome required")
            output = asyncio.run(cmd_mark(sys.argv[2], sys.argv[3]))

        elif command == "seen":
            _require(3, "app_id required")
            output = asyncio.run(cmd_seen(sys.argv[2]))

        elif command == "export":
            output = asyncio.run(cmd_export(sys.argv[2] if len(sys.argv) > 2 else None))

        elif command == "import":
            _require(3, "path required")
            output = asyncio.run(cmd_import(sys.argv[2]))

        elif command == "stats":
            output = asyncio.run(cmd_stats())

        elif command == "clear":
            output = asyncio.run(cmd_clear())

        elif command == "test-config":
            output = asyncio.run(cmd_test_config())

        elif command in ("help", "--help", "-h"):
            print_usage()
            return

        else:
            print(f"Unknown command: {command}")
            print_usage()
            sys.exit(1)

    except KeyboardInterrupt:
        print("\nInterrupted by user")
        sys.exit(130)
    except Exception as e:
        logger.exception("CLI error", error=str(e))
        output = CLIOutput(
            success=False,
            command=command,
            error=str(e),
        )
        print_json(output)
        sys.exit(1)

    print_json(output)
    if not output.success:
        sys.exit(1)


if __name__ == "__main__":
    main()
