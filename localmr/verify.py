"""
Checks over an output directory left by a run: lists map and partition
files and verifies the global key order of the partitions
"""

import os
import re
from dataclasses import dataclass, field
from typing import List, Optional

from localmr.records import read_records

_ENGINE_FILE = re.compile(r'^(map|reduce)_(\d+)$')


@dataclass
class FileSummary:
    name: str
    size_bytes: int
    records: int
    first_key: Optional[str] = None
    last_key: Optional[str] = None


@dataclass
class OutputReport:
    map_files: List[FileSummary] = field(default_factory=list)
    partition_files: List[FileSummary] = field(default_factory=list)
    problems: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.problems


def engine_files(output_dir: str, kind: str) -> List[str]:
    """Names of the map_<i> or reduce_<j> files in output_dir, in index order"""
    found = []
    for name in os.listdir(output_dir):
        match = _ENGINE_FILE.match(name)
        if match and match.group(1) == kind:
            found.append((int(match.group(2)), name))
    return [name for _, name in sorted(found)]


def summarize(path: str, problems: List[str]) -> FileSummary:
    """Summarize one sorted file, noting keys that go backwards"""
    summary = FileSummary(os.path.basename(path), os.path.getsize(path), 0)
    for record in read_records(path):
        if summary.last_key is not None and record.key < summary.last_key:
            problems.append(f"{summary.name}: key {record.key!r} after {summary.last_key!r}")
        if summary.first_key is None:
            summary.first_key = record.key
        summary.last_key = record.key
        summary.records += 1
    return summary


def check_output_dir(output_dir: str) -> OutputReport:
    """
    Verify every map file is sorted and every partition file is sorted,
    with partitions ordered so no key appears in two of them
    """
    report = OutputReport()
    for name in engine_files(output_dir, 'map'):
        report.map_files.append(summarize(os.path.join(output_dir, name), report.problems))

    previous = None
    for name in engine_files(output_dir, 'reduce'):
        summary = summarize(os.path.join(output_dir, name), report.problems)
        report.partition_files.append(summary)
        if summary.records == 0:
            continue
        if previous is not None and summary.first_key <= previous.last_key:
            report.problems.append(
                f"{summary.name}: first key {summary.first_key!r} does not follow "
                f"{previous.name}'s last key {previous.last_key!r}")
        previous = summary
    return report


def cleanup_output_dir(output_dir: str, dry_run: bool = False):
    """
    Remove engine files from a directory

    Returns:
        tuple: (files_deleted, bytes_freed)
    """
    files_deleted = 0
    bytes_freed = 0
    for kind in ('map', 'reduce'):
        for name in engine_files(output_dir, kind):
            path = os.path.join(output_dir, name)
            bytes_freed += os.path.getsize(path)
            files_deleted += 1
            if not dry_run:
                os.remove(path)
    return files_deleted, bytes_freed
