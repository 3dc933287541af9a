# src/iatirollup/app.py
"""
Application Entry Point - Load, Parse, Aggregate, Report

This module is the composition root. It wires settings, logging, document
sources, the XML parser and the aggregation engine together.

Usage:

    iati-rollup <file.xml|url> [more ...]
    python -m iatirollup <file.xml|url> [more ...]

Exit codes: 0 when every activity parsed, 1 when any activity or document
failed, 2 when there is nothing to do or the FX setup is unusable.

Files that USE this module:
- iatirollup.__main__ (module entry point)
- pyproject.toml console script (iati-rollup)

Files that this module USES:
- iatirollup.shared.logging_conf (setup_logging for logging configuration)
- iatirollup.config (settings for configuration management)
- iatirollup.adapters.sources (load_document for files and URLs)
- iatirollup.adapters.xml (parse_activities)
- iatirollup.adapters.persistence (load_fx_table for FX conversion)
- iatirollup.adapters.formatting (text output)
- iatirollup.application (aggregation)
"""

from __future__ import annotations  # Enable postponed evaluation of annotations

import logging  # Standard library for logging messages and errors
import sys  # Command line arguments and exit codes
from typing import List, Optional, Sequence  # Type hints

from iatirollup.shared.logging_conf import setup_logging  # Configure logging with file rotation
from iatirollup.adapters.formatting import (
    format_parse_report,  # "N parsed, M failed" plus reasons
    format_type_sums,  # Totals by type and currency
    format_year_type_sums,  # Totals by year, type and currency
)
from iatirollup.adapters.persistence import load_fx_table  # JSON FX rate table
from iatirollup.adapters.sources import load_document  # Files and URLs
from iatirollup.adapters.xml import parse_activities  # Streaming XML parser
from iatirollup.application import (
    NATIVE,
    FxMode,
    aggregate_by_type,
    aggregate_by_year_and_type,
)
from iatirollup.domain.errors import ParseError, SourceUnavailableError
from iatirollup.domain.models import Activity

USAGE = "Usage: iati-rollup <file.xml|url> [more ...]"


def _build_fx_mode(config) -> FxMode:
    """
    Pick native grouping or conversion from settings.

    Raises:
        SourceUnavailableError: If the configured FX rates file is unusable
    """
    log = logging.getLogger(__name__)
    if not config.fx_enabled:
        if config.fx_rates_file is not None or config.fx_target is not None:
            log.warning("FX conversion needs both IATI_FX_RATES_FILE and IATI_FX_TARGET; grouping by native currency")
        return NATIVE
    table = load_fx_table(config.fx_rates_file)
    log.info("Converting amounts to %s", config.fx_target)
    return FxMode.convert_to(config.fx_target, table)


def main(locations: Optional[Sequence[str]] = None, config=None) -> int:
    """
    Parse every document, print per-document reports and the totals table.

    Args:
        locations: File paths or URLs (defaults to sys.argv[1:])
        config: Settings instance (defaults to the global settings)

    Returns:
        Process exit code
    """
    if config is None:
        # Imported here so a bad environment surfaces when the app runs, not on import
        from iatirollup.config import settings as config

    setup_logging(
        level=config.log_level,
        log_file=config.log_file,
        log_dir=config.log_dir,
        max_bytes=config.log_max_bytes,
        backup_count=config.log_backup_count,
        log_to_stdout=config.log_stdout,
    )
    log = logging.getLogger(__name__)

    locations = list(sys.argv[1:] if locations is None else locations)
    if not locations:
        print(USAGE, file=sys.stderr)
        return 2

    try:
        fx_mode = _build_fx_mode(config)
    except SourceUnavailableError as e:
        log.error("FX setup failed: %s", e)
        return 2

    activities: List[Activity] = []
    failed = 0
    for location in locations:
        try:
            data = load_document(location, timeout=config.http_timeout_seconds)
        except SourceUnavailableError as e:
            log.error("Skipping %s: %s", location, e)
            failed += 1
            continue

        try:
            report = parse_activities(data, policy=config.parse_policy)
        except ParseError as e:
            # Only reachable under the fail_fast policy
            log.error("Stopping at %s: %s", location, e)
            return 1

        print(format_parse_report(report, source=location))
        activities.extend(report.activities)
        failed += report.failed_count

    log.info("%d activities parsed, %d failed in total", len(activities), failed)

    if config.by_year:
        print(format_year_type_sums(aggregate_by_year_and_type(activities, fx_mode)))
    else:
        print(format_type_sums(aggregate_by_type(activities, fx_mode)))

    return 1 if failed else 0


def run() -> None:
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    run()
