"""
steadybench command line interface.

Usage:
    steadybench [options] -- command [args...]

Runs the command until its mean run time is known to the requested
precision and prints the result with its uncertainty.
"""

import argparse
import subprocess
import sys
from pathlib import Path
from typing import Optional, Sequence

from dotenv import find_dotenv, load_dotenv

from .errors import BenchmarkError
from .harness.reporter import ChartReporter, ConsoleReporter, JSONReporter
from .harness.runner import BenchmarkConfig, BenchmarkSession
from .instances.command import CommandInstance
from .instrumentation.traces import init_tracing, shutdown_tracing


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="steadybench",
        description="steadybench - Benchmark a command with a robust error estimate",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    steadybench -- ls -l
    steadybench -p 0.005 -i 30 -- ./testprogram --testprogramoption
    steadybench -v --json results/ --plot results/charts -- python -c pass

Defaults can also be set with STEADYBENCH_* environment variables
or a .env file.
        """,
    )

    parser.add_argument(
        "command",
        nargs="*",
        help="Command to benchmark (put it after --)",
    )
    parser.add_argument(
        "-p", "--precision",
        dest="target_rel_precision",
        type=float,
        default=None,
        help="Target relative precision (default: 0.05)",
    )
    parser.add_argument(
        "-a", "--absolute-precision",
        dest="target_abs_precision",
        type=float,
        default=None,
        help="Target absolute precision in seconds (default: disabled)",
    )
    parser.add_argument(
        "-i", "--initial-runs",
        dest="initial_runs",
        type=int,
        default=None,
        help="Number of guaranteed initial runs (default: 20)",
    )
    parser.add_argument(
        "-m", "--max-iterations",
        dest="max_iterations",
        type=int,
        default=None,
        help="Hard cap on runs per pass (default: 10000)",
    )
    parser.add_argument(
        "--outlier-rejection",
        dest="outlier_rejection",
        type=float,
        default=None,
        help="Reject samples this many MADs from the median, 0 disables (default: 2.5)",
    )
    parser.add_argument(
        "-v", "--verbose",
        dest="verbosity",
        action="count",
        default=None,
        help="Increase verbosity (repeatable)",
    )
    parser.add_argument(
        "--raw",
        action="store_true",
        help="Print only the rounded result",
    )
    parser.add_argument(
        "--json",
        type=Path,
        default=None,
        help="Directory to save JSON results to",
    )
    parser.add_argument(
        "--plot",
        type=Path,
        default=None,
        help="Directory to save charts to",
    )
    parser.add_argument(
        "--trace",
        action="store_true",
        help="Emit OpenTelemetry spans for each measurement pass",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colored output",
    )
    return parser


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    argv = list(sys.argv[1:] if argv is None else argv)
    parser = build_parser()

    # Everything after "--" belongs to the benchmarked command
    command: list[str] = []
    if "--" in argv:
        split = argv.index("--")
        argv, command = argv[:split], argv[split + 1:]

    args = parser.parse_args(argv)
    args.command = list(args.command) + command
    if not args.command:
        parser.error("no command to benchmark given")
    return args


def main(argv: Optional[Sequence[str]] = None) -> int:
    load_dotenv(find_dotenv(usecwd=True))
    args = parse_args(argv)

    tracer = init_tracing() if args.trace else None

    try:
        config = BenchmarkConfig.from_env(
            target_rel_precision=args.target_rel_precision,
            target_abs_precision=args.target_abs_precision,
            initial_runs=args.initial_runs,
            max_iterations=args.max_iterations,
            outlier_rejection=args.outlier_rejection,
            verbosity=args.verbosity,
        )
        session = BenchmarkSession(config, tracer=tracer)
        session.add(CommandInstance(args.command))
        session.run()
    except KeyboardInterrupt:
        print("\nBenchmark interrupted by user")
        return 130
    except subprocess.CalledProcessError as e:
        print(f"\nError: command failed with exit status {e.returncode}: {e.cmd}")
        return 1
    except BenchmarkError as e:
        print(f"\nError: {e}")
        return 1
    finally:
        if tracer is not None:
            shutdown_tracing()

    reporter = ConsoleReporter(
        use_color=not args.no_color and sys.stdout.isatty(),
        verbosity=config.verbosity,
    )
    for instance in session.instances:
        if args.raw:
            print(reporter.raw_line(instance))
        else:
            print(reporter.single_result(instance))

    if args.json:
        path = JSONReporter(args.json).save_session(session, name=session.instances[0].name)
        if not args.raw:
            print(f"Saved results to {path}")

    if args.plot:
        charts = ChartReporter(args.plot, config=session.config)
        for instance in session.instances:
            path = charts.timing_distribution(instance)
            if path and not args.raw:
                print(f"Saved chart to {path}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
