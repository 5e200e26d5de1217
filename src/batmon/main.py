#!/usr/bin/env python3
"""
batmon - batman-adv Originator Collector

Samples `batctl o` and reports freshness, link quality and next-hop
stability for every originator.

Usage:
    batmon [options]

Options:
    --once              Run a single pass (default)
    --watch             Sample continuously
    --interval N        Seconds between passes (default: BATMON_INTERVAL or 10)
    --command CMD       Table command (default: BATMON_COMMAND or "batctl o")
    --input FILE        Replay a saved `batctl o` dump instead of running batctl
    --format FMT        table, json or log
    --prometheus-port N Serve metrics for Prometheus on port N
    --list              Print the parsed table once, without stability tracking
    --show-config       Print the effective configuration and exit

Examples:
    # One pass, rich table
    batmon

    # Continuous JSON lines for a log shipper
    batmon --watch --format json --interval 30

    # Exporter for Prometheus
    batmon --watch --format log --prometheus-port 9532
"""

import argparse
import logging
import sys
import time
import signal
from typing import List, Optional

from rich.markup import escape
from rich.table import Table

from .__version__ import __version__
from .collector import Collector
from .commands import batctl
from .commands.base import CommandResult, ResultStatus
from .monitoring.originators import format_mac
from .monitoring.sinks import (
    FRESHNESS, HOP_STABILITY, QUALITY,
    CollectingSink, JsonLinesSink, LoggingSink, MetricSink, MultiSink, PrometheusSink,
)
from .utils import env_config
from .utils.console import get_console
from .utils.logging_config import DEBUG_FORMAT, DEFAULT_FORMAT, setup_logging

logger = logging.getLogger(__name__)

# Handle graceful shutdown
_running = True


def signal_handler(sig, frame):
    global _running
    _running = False
    logger.info("Shutting down after current pass...")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='batmon',
        description='batman-adv originator table collector',
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument('--once', action='store_false', dest='watch', default=False,
                      help='Run a single pass (default)')
    mode.add_argument('--watch', action='store_true', help='Sample continuously')
    parser.add_argument('--interval', type=float, default=None, help='Seconds between passes')
    parser.add_argument('--passes', type=int, default=None, help='Stop after N passes (watch mode)')
    parser.add_argument('--command', default=None, help='Originator table command')
    parser.add_argument('--input', dest='input_path', default=None, help='Replay a saved table dump')
    parser.add_argument('--format', dest='output_format', choices=env_config.OUTPUT_FORMATS,
                        default=None, help='Output format')
    parser.add_argument('--prometheus-port', type=int, default=None, help='Prometheus exporter port')
    parser.add_argument('--hostname', default=None, help='Host tag for metrics')
    parser.add_argument('--list', action='store_true', help='Print the parsed table once and exit')
    parser.add_argument('--show-config', action='store_true', help='Show configuration and exit')
    parser.add_argument('--debug', action='store_true', help='Debug logging')
    parser.add_argument('--log-file', default=None, help='Also log to this file')
    parser.add_argument('--env-file', default=None, help='Load settings from this .env file')
    return parser


def format_stability(value: float) -> str:
    if value >= 1.0:
        return "[stable]stable[/stable]"
    return "[changed]changed[/changed]"


def render_table(batches, title: str) -> Table:
    """Rich table of one pass"""
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Originator", style="node")
    table.add_column("Last seen", justify="right")
    table.add_column("Quality", justify="right")
    table.add_column("Next hop stability")

    for batch in batches:
        table.add_row(
            format_mac(int(batch.type_instance, 16)),
            f"{batch.value(FRESHNESS):.3f}s",
            f"{int(batch.value(QUALITY))}/255",
            format_stability(batch.value(HOP_STABILITY)),
        )
    return table


def build_sink(output_format: str, prometheus_port: int) -> MetricSink:
    """Output sink for the chosen format, plus the exporter if enabled."""
    if output_format == 'json':
        sink = JsonLinesSink(sys.stdout)
    elif output_format == 'log':
        sink = LoggingSink()
    else:
        sink = CollectingSink()

    if prometheus_port:
        return MultiSink(sink, PrometheusSink(port=prometheus_port))
    return sink


def _table_sink(sink: MetricSink) -> Optional[CollectingSink]:
    if isinstance(sink, CollectingSink):
        return sink
    if isinstance(sink, MultiSink):
        for inner in sink.sinks:
            if isinstance(inner, CollectingSink):
                return inner
    return None


def report_pass(result: CommandResult, sink: MetricSink, pass_number: int) -> None:
    """Show the outcome of a pass on the console."""
    table_sink = _table_sink(sink)
    console = get_console()

    if table_sink is not None:
        stamp = time.strftime('%H:%M:%S', time.localtime(result.data.get('time', time.time())))
        if table_sink.batches:
            console.print(render_table(table_sink.batches, f"Originators (pass {pass_number}, {stamp})"))
        elif result:
            console.print("[dim]No originators[/dim]")
        table_sink.clear()

    if not result:
        console.print(f"[error]{escape(result.message)}: {escape(str(result.error))}[/error]")


def run_list(command: str, input_path: Optional[str] = None) -> int:
    """--list: parse the table once and print it"""
    result = batctl.get_originators(command, input_path=input_path)
    console = get_console()

    if result.status == ResultStatus.NOT_AVAILABLE:
        console.print(f"[warning]{result.message}[/warning] ({result.data.get('fix_hint')})")
        return 1
    if not result:
        console.print(f"[error]{escape(result.message)}[/error]")
        return 1

    table = Table(title=f"{result.data['count']} originators", header_style="bold cyan")
    for column in ("Originator", "Last seen", "Quality", "Next hop"):
        table.add_column(column)
    for entry in result.data['originators']:
        table.add_row(entry['originator'], f"{entry['age']:.3f}s",
                      str(entry['quality']), entry['next_hop'])
    console.print(table)
    return 0


def run_collector(collector: Collector, watch: bool, interval: float,
                  passes: Optional[int] = None) -> int:
    """Run passes until stopped; exit status reflects the last pass."""
    global _running
    _running = True

    previous = {}
    if watch:
        for sig in (signal.SIGINT, signal.SIGTERM):
            previous[sig] = signal.signal(sig, signal_handler)

    collector.init()
    result = None
    try:
        while _running:
            started = time.monotonic()
            result = collector.read()
            report_pass(result, collector.sink, collector.passes)

            if not watch or (passes is not None and collector.passes >= passes):
                break

            # Sleep in short steps so a signal ends the wait promptly
            while _running and time.monotonic() - started < interval:
                time.sleep(min(0.5, max(0.0, interval - (time.monotonic() - started))))
    finally:
        collector.shutdown()
        for sig, handler in previous.items():
            signal.signal(sig, handler if handler is not None else signal.SIG_DFL)

    return 0 if result is not None and result.success else 1


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    env_config.load_env_file(args.env_file)
    validation = env_config.validate_config()
    config = validation['config']

    level = 'DEBUG' if args.debug else config['log_level'] if validation['valid'] else 'INFO'
    setup_logging(
        level=level,
        log_file=args.log_file or config["log_file"] or None,
        log_format=DEBUG_FORMAT if args.debug else DEFAULT_FORMAT,
        force=True,
    )

    for warning in validation['warnings']:
        logger.warning(warning)

    if args.show_config:
        env_config.show_config_summary()
        if not validation['valid']:
            for error in validation["errors"]:
                get_console().print(f"[error]{error}[/error]")
        return 0 if validation['valid'] else 1

    if not validation['valid']:
        for error in validation['errors']:
            logger.error(error)
        return 1

    command = args.command or config['command']
    if args.list:
        return run_list(command, input_path=args.input_path)

    output_format = args.output_format or config['output_format']
    port = args.prometheus_port if args.prometheus_port is not None else config['prometheus_port']
    interval = args.interval if args.interval is not None else config['interval']
    if interval <= 0:
        logger.error(f"Interval must be positive: {interval}")
        return 1

    sink = build_sink(output_format, port)
    collector = Collector.from_config(
        sink,
        command=command,
        input_path=args.input_path,
        hostname=args.hostname,
    )
    return run_collector(collector, watch=args.watch, interval=interval, passes=args.passes)


if __name__ == "__main__":
    sys.exit(main())
