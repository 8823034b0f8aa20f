#!/usr/bin/env python3
"""
Command line interface for the local MapReduce engine
"""

import argparse
import logging
import os
import sys

from localmr.config import EngineConfig
from localmr.engine import MapReduce
from localmr.errors import MapReduceError
from localmr.function_loader import FunctionLoader
from localmr.shuffle import PARTITION_POLICIES
from localmr.verify import check_output_dir, cleanup_output_dir

logger = logging.getLogger(__name__)


def format_size(size_bytes: int) -> str:
    """Format bytes into human-readable size."""
    for unit in ['B', 'KB', 'MB', 'GB']:
        if size_bytes < 1024.0:
            return f"{size_bytes:.2f} {unit}"
        size_bytes /= 1024.0
    return f"{size_bytes:.2f} TB"


def run_job(args):
    config = EngineConfig.from_env(mappers_count=args.num_map,
                                   reducers_count=args.num_reduce,
                                   partition_policy=args.policy,
                                   use_combiner=False if args.no_combiner else None)
    loader = FunctionLoader(args.job_file)
    map_function = loader.get_map_function()
    reduce_function = loader.get_reduce_function()

    engine = MapReduce(config.mappers_count, config.reducers_count, config)
    engine.set_mapper(map_function)
    engine.set_reducer(lambda index: reduce_function(index, engine.partition_path(index)))
    engine.run(args.input, args.output, act_combiner=config.use_combiner)

    metrics = engine.metrics
    print(f"Input: {args.input} ({format_size(metrics.input_size_bytes)})")
    print(f"Map tasks: {config.mappers_count}, reduce tasks: {config.reducers_count}, "
          f"combiner: {'on' if config.use_combiner else 'off'}, policy: {config.partition_policy}")
    print(f"Map output: {metrics.map_records} records, "
          f"{format_size(metrics.intermediate_size_bytes)}")
    if config.use_combiner:
        print(f"After combiner: {format_size(metrics.combined_size_bytes)} "
              f"({metrics.combiner_reduction_ratio:.1%} smaller)")
    for index, size in enumerate(metrics.partition_sizes_bytes):
        result = engine.reduce_results[index]
        suffix = f" -> {result}" if result is not None else ""
        print(f"  reduce_{index}: {format_size(size)}{suffix}")
    print(f"Completed in {metrics.total_time_seconds:.3f}s")

    if args.metrics_file:
        metrics.save_to_file(args.metrics_file)
        print(f"Metrics written to {args.metrics_file}")
    return 0


def inspect_output(args):
    report = check_output_dir(args.output)
    for title, files in (("Map files", report.map_files),
                         ("Partition files", report.partition_files)):
        print(f"{title}: {len(files)}")
        for summary in files:
            keys = f" [{summary.first_key} .. {summary.last_key}]" if summary.records else ""
            print(f"  {summary.name}: {summary.records} records, "
                  f"{format_size(summary.size_bytes)}{keys}")

    if report.ok:
        print("Partitions are globally sorted and no key spans two partitions")
        return 0
    for problem in report.problems:
        print(f"  problem: {problem}")
    return 1


def cleanup(args):
    files_deleted, bytes_freed = cleanup_output_dir(args.output, dry_run=args.dry_run)
    verb = "Would delete" if args.dry_run else "Deleted"
    print(f"{verb} {files_deleted} files ({format_size(bytes_freed)})")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="localmr", description="Local MapReduce engine")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    run_parser = subparsers.add_parser("run", help="Run a job file over an input file")
    run_parser.add_argument("--input", required=True, help="Input file path")
    run_parser.add_argument("--output", required=True, help="Output directory (emptied first)")
    run_parser.add_argument("--job-file", required=True,
                            help="Python file with map_function and reduce_function")
    run_parser.add_argument("--num-map", type=int, help="Number of map tasks")
    run_parser.add_argument("--num-reduce", type=int, help="Number of reduce tasks")
    run_parser.add_argument("--no-combiner", action="store_true", help="Skip the combine phase")
    run_parser.add_argument("--policy", choices=PARTITION_POLICIES,
                            help="Shuffle partitioning policy")
    run_parser.add_argument("--metrics-file", help="Write run metrics as JSON to this file")

    inspect_parser = subparsers.add_parser("inspect", help="Summarize and verify an output directory")
    inspect_parser.add_argument("output", help="Output directory of a previous run")

    cleanup_parser = subparsers.add_parser("cleanup", help="Remove map and partition files")
    cleanup_parser.add_argument("output", help="Output directory of a previous run")
    cleanup_parser.add_argument("--dry-run", action="store_true",
                                help="Show what would be deleted without deleting")
    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    commands = {"run": run_job, "inspect": inspect_output, "cleanup": cleanup}
    if args.command not in commands:
        parser.print_help()
        return 1

    if args.command != "run" and not os.path.isdir(args.output):
        print(f"Output directory does not exist: {args.output}")
        return 1

    try:
        return commands[args.command](args)
    except MapReduceError as e:
        logger.error(f"{args.command} failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
