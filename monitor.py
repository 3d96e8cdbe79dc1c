#!/usr/bin/env python3
"""
LibreSpeed monitor CLI -- measure and record LibreSpeed server performance.

Usage::

    python monitor.py                             # test all configured servers
    python monitor.py --config servers.json       # use a specific config file
    python monitor.py --server https://host/      # test an ad-hoc server
    python monitor.py --json                      # JSON to stdout
    python monitor.py --simple                    # plain text
    python monitor.py -o result.json              # save to file
    python monitor.py --csv log.csv               # append CSV rows
    python monitor.py --no-save                   # do not store results
    python monitor.py --history --limit 20        # show past results
    python monitor.py --history --server-name X   # history for one server
    python monitor.py --stats https://host/       # averages for one server
"""
from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Any, Dict, List, Optional

from libreprobe.campaign import run_campaign
from libreprobe.config import build_servers, build_settings, load_config
from libreprobe.grading import compare_with_previous
from libreprobe.history import ResultStore
from libreprobe.logging_setup import configure_logging
from libreprobe.models import HistoryRecord, ServerConfig, SpeedTestResult
from ui.dashboard import (
    console,
    print_campaign_summary,
    print_header,
    print_history,
    print_server_result,
    print_stats,
)
from ui.output import append_csv, create_result_json, format_text_result, save_json

LOGGER = logging.getLogger("libreprobe.cli")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _select_servers(config: Dict[str, Any], urls: Optional[List[str]]) -> List[ServerConfig]:
    """Servers given on the command line win over the configured ones."""
    if urls:
        return [ServerConfig(url=url) for url in urls]
    return build_servers(config)


def _exit_code(results: List[SpeedTestResult]) -> int:
    """0 when at least one server produced a measurement."""
    return 0 if any(r.has_measurements for r in results) else 1


# ---------------------------------------------------------------------------
# Core test runner
# ---------------------------------------------------------------------------

async def run_monitor(
    config: Dict[str, Any],
    servers: List[ServerConfig],
    *,
    json_output: bool = False,
    simple: bool = False,
    output_file: Optional[str] = None,
    csv_file: Optional[str] = None,
    save: bool = True,
) -> List[SpeedTestResult]:
    """Test *servers*, persist and report the results."""
    settings = build_settings(config)
    store = ResultStore(config["database_url"]) if save else None

    show_ui = not json_output and not simple

    if show_ui:
        print_header(len(servers))

    previous: Dict[str, Optional[HistoryRecord]] = {}

    def _report(result: SpeedTestResult, record: Optional[HistoryRecord]) -> None:
        if csv_file:
            append_csv(csv_file, result)
        if simple and not json_output:
            print(format_text_result(result))
        elif show_ui:
            delta = compare_with_previous(result, previous.get(result.server_url))
            print_server_result(result, delta)

    try:
        if store is not None:
            store.open()
            previous = {s.url: store.latest(s.url) for s in servers}

        results = await run_campaign(
            servers,
            settings,
            store=store,
            save_failed=bool(config.get("save_failed", True)),
            on_result=_report,
        )
    finally:
        if store is not None:
            store.close()

    document = create_result_json(results, settings=settings.to_dict())
    if json_output:
        print(json.dumps(document, indent=2, ensure_ascii=False))
    elif show_ui:
        print_campaign_summary(results)

    if output_file:
        save_json(document, output_file)
        if show_ui:
            console.print(f"\n[green]Results saved to:[/green] {output_file}")

    return results


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="LibreSpeed monitor -- measure and record server performance",
    )
    parser.add_argument("--config", "-c", type=str, metavar="FILE", help="Path to JSON config file")
    parser.add_argument("--server", action="append", metavar="URL", help="Test this server URL instead of the configured ones (repeatable)")

    # Output modes
    parser.add_argument("--json", "-j", action="store_true", help="Output results as JSON")
    parser.add_argument("--simple", "-s", action="store_true", help="Plain text output (no panels or tables)")
    parser.add_argument("--output", "-o", type=str, metavar="FILE", help="Save results to JSON file")
    parser.add_argument("--csv", type=str, metavar="FILE", help="Append results as CSV rows")
    parser.add_argument("--no-save", action="store_true", help="Do not store results in the database")

    # History
    parser.add_argument("--history", action="store_true", help="Show past test results and exit")
    parser.add_argument("--server-name", type=str, metavar="NAME", help="Filter --history by server name")
    parser.add_argument("--limit", type=int, default=10, metavar="N", help="Number of history rows (default: 10)")
    parser.add_argument("--stats", type=str, metavar="URL", help="Show averages for a server URL and exit")

    parser.add_argument("--log-level", type=str, metavar="LEVEL", help="Override the configured log level")
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args.config)
    except FileNotFoundError as exc:
        console.print(f"[red]Error: {exc}[/red]")
        sys.exit(1)

    configure_logging(
        level=args.log_level or config.get("log_level", "INFO"),
        log_file=config.get("log_file") or None,
    )

    # History / stats modes
    if args.history or args.stats:
        if args.limit < 1:
            console.print("[red]Error: --limit must be >= 1[/red]")
            sys.exit(1)
        with ResultStore(config["database_url"]) as store:
            if args.history:
                print_history(store.query_history(args.limit, args.server_name))
            if args.stats:
                print_stats(store.stats(args.stats))
        return

    try:
        servers = _select_servers(config, args.server)
        build_settings(config)
    except (TypeError, ValueError) as exc:
        console.print(f"[red]Error: {exc}[/red]")
        sys.exit(1)

    if not servers:
        console.print("[red]Error: No servers configured[/red]")
        sys.exit(1)

    try:
        results = asyncio.run(
            run_monitor(
                config,
                servers,
                json_output=args.json,
                simple=args.simple,
                output_file=args.output,
                csv_file=args.csv,
                save=not args.no_save,
            )
        )
    except KeyboardInterrupt:
        console.print("\n[yellow]Test cancelled by user[/yellow]")
        sys.exit(1)
    except Exception as exc:
        LOGGER.debug("Run aborted", exc_info=True)
        console.print(f"\n[red]Error: {exc}[/red]")
        sys.exit(1)

    sys.exit(_exit_code(results))


if __name__ == "__main__":
    main()
