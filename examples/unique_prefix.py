#!/usr/bin/env python3
"""
Shortest unique prefix search.

Finds the smallest n such that the first n characters of every line of the
input are pairwise distinct, re-running the engine with n = 1, 2, ... until
no reducer reports a duplicate prefix.
"""

import argparse
import logging
import sys
import threading
from urllib.parse import quote

from localmr import MapReduce, read_partition


def prefix_key(line: str, length: int) -> str:
    """Lower-cased prefix, quoted so that it carries no whitespace."""
    return quote(line[:length].lower(), safe='')


def find_min_prefix(input_path, output_dir, mappers_count=4, reducers_count=2,
                    max_length=50):
    """
    Return the shortest prefix length that makes every non-blank line unique.

    Returns None when no length up to max_length works (for example when the
    input holds two identical lines).
    """
    engine = MapReduce(mappers_count, reducers_count)
    duplicate_found = threading.Event()

    def reducer(index):
        prev_key = None
        for record in read_partition(output_dir, index):
            if duplicate_found.is_set():
                return
            if record.key == prev_key or record.value > 1:
                duplicate_found.set()
                return
            prev_key = record.key

    engine.set_reducer(reducer)

    for length in range(1, max_length + 1):
        def mapper(index, block, length=length):
            for line in block.iter_lines():
                if line.strip():
                    yield (prefix_key(line, length), 1)

        engine.set_mapper(mapper)
        duplicate_found.clear()
        engine.run(input_path, output_dir)

        if not duplicate_found.is_set():
            return length
    return None


def main(argv=None):
    parser = argparse.ArgumentParser(description="Find the shortest unique line prefix")
    parser.add_argument("input", help="Input file path")
    parser.add_argument("--output", default="out", help="Scratch output directory")
    parser.add_argument("--num-map", type=int, default=4, help="Number of map tasks")
    parser.add_argument("--num-reduce", type=int, default=2, help="Number of reduce tasks")
    parser.add_argument("--max-length", type=int, default=50, help="Longest prefix to try")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.WARNING,
                        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    length = find_min_prefix(args.input, args.output, args.num_map, args.num_reduce,
                             args.max_length)
    if length is None:
        print("min prefix: fail")
        return 1
    print(f"min prefix: {length}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
