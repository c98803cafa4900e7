"""CLI entry point: python -m exercise_pipeline DATA_FILE [DATA_FILE ...] [options]"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from exercise_pipeline import settings
from exercise_pipeline.cleanup import ProcessingReport, process_file
from exercise_pipeline.errors import ConfigError, PipelineError
from exercise_pipeline.overrides import find_orphans
from exercise_pipeline.profiles import load_config, load_overrides

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="exercise_pipeline",
        description=(
            "Clean scraped exercise descriptions, apply curated tag overrides\n"
            "and drop non-exercise pages. Files are rewritten in place."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("files", nargs="+", metavar="DATA_FILE",
                        help="Exercise collection JSON file(s) to process")
    parser.add_argument("--config", default=None, metavar="FILE",
                        help="YAML cleanup profile (skipSections, blockedTags, overrides, …)")
    parser.add_argument("--overrides", default=None, metavar="FILE",
                        help="Curated tag overrides file; takes precedence over --config")
    parser.add_argument("--dry-run", action="store_true", default=False,
                        help="Report what would change without writing files")
    parser.add_argument("--report", default=None, metavar="FILE",
                        help="Write the processing report(s) as JSON to FILE")
    parser.add_argument("--log-level", default=settings.LOG_LEVEL,
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        metavar="{DEBUG,INFO,WARNING,ERROR}",
                        help=f"Logging level (default: {settings.LOG_LEVEL})")
    return parser


def _print_summary(
    reports: dict[str, ProcessingReport],
    failed: dict[str, str],
    orphans: tuple[str, ...],
) -> None:
    from rich import box
    from rich.console import Console
    from rich.rule import Rule
    from rich.table import Table

    console = Console()
    console.print()
    console.print(Rule("[bold cyan]Cleanup Summary[/bold cyan]"))

    tbl = Table(box=box.SIMPLE_HEAVY, show_lines=False)
    tbl.add_column("File",      style="cyan",   max_width=40, no_wrap=True)
    tbl.add_column("In",        justify="right")
    tbl.add_column("Cleaned",   justify="right", style="green")
    tbl.add_column("Merged",    justify="right", style="green")
    tbl.add_column("Filtered",  justify="right", style="yellow")
    tbl.add_column("Malformed", justify="right", style="red")
    tbl.add_column("No id",     justify="right", style="red")
    tbl.add_column("Out",       justify="right", style="bold")
    for name, r in reports.items():
        tbl.add_row(
            name, str(r.input_count), str(r.cleaned), str(r.merged),
            str(r.filtered), str(r.malformed), str(r.missing_fields),
            str(r.output_count),
        )
    console.print(tbl)

    for name, reason in failed.items():
        console.print(f"  [bold red]✗ {name}[/bold red]: {reason}")

    missing = sum(r.missing_summaries for r in reports.values())
    if missing:
        console.print(f"  [yellow]⚠ {missing} exercise(s) are missing summaries[/yellow]")

    if orphans:
        console.print(
            f"  [yellow]⚠ {len(orphans)} override id(s) not found in any data file:[/yellow]",
        )
        for orphan in orphans:
            console.print(f"    - {orphan}")
    console.print()


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=args.log_level, format=settings.LOG_FORMAT)

    try:
        config = load_config(args.config)
        override_map = (
            load_overrides(args.overrides) if args.overrides else config.override_map
        )
    except ConfigError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1

    logger.info(
        "Loaded %d override tag(s) covering %d exercise(s)",
        len(override_map), len(override_map.exercise_ids),
    )

    reports: dict[str, ProcessingReport] = {}
    failed: dict[str, str] = {}
    matched: set[str] = set()
    for file_name in args.files:
        try:
            report = process_file(
                file_name,
                config,
                override_map=override_map,
                report_orphans=False,
                dry_run=args.dry_run,
            )
        except PipelineError as exc:
            logger.error("Error processing %s: %s", file_name, exc)
            failed[file_name] = str(exc)
            continue
        reports[file_name] = report
        matched.update(report.matched_override_ids)

    # One override file spans every provider, so orphans are only meaningful
    # across all processed files.
    orphans = find_orphans(override_map, matched)
    if orphans:
        logger.warning("%d override id(s) not found in any data file", len(orphans))

    _print_summary(reports, failed, orphans)

    if args.report:
        payload = {
            "files": {name: r.model_dump() for name, r in reports.items()},
            "failed": failed,
            "orphaned_ids": list(orphans),
        }
        Path(args.report).write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")

    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
