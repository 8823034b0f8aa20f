"""
Shuffle
External multiway merge of the sorted map files into key-ordered,
roughly size-balanced partition files, one per reducer
"""

import heapq
import logging
import os
from contextlib import ExitStack
from dataclasses import dataclass, field
from typing import Iterator, List

from localmr.errors import ConfigurationError, FileSystemError
from localmr.records import (Record, RecordCursor, encode_record, map_path,
                             partition_path)

logger = logging.getLogger(__name__)

PARTITION_POLICIES = ('rollover', 'balanced')


@dataclass
class ShuffleResult:
    """Outcome of a shuffle: per-partition record counts and byte sizes"""
    total_input_bytes: int
    target_size: int
    partition_records: List[int] = field(default_factory=list)
    partition_bytes: List[int] = field(default_factory=list)

    @property
    def partitions_count(self) -> int:
        return len(self.partition_records)


class Shuffler:
    """Merges map_0 .. map_<M-1> into reduce_0 .. reduce_<R-1>"""

    def __init__(self, output_dir: str, mappers_count: int, reducers_count: int,
                 policy: str = 'rollover'):
        """
        Initialize the shuffler

        Args:
            output_dir: Directory holding the map files, receives the partitions
            mappers_count: Number of map files to merge
            reducers_count: Number of partition files to produce
            policy: 'rollover' cuts a partition once it outgrows the target
                size; 'balanced' measures key groups first and cuts exactly
                reducers_count contiguous partitions
        """
        if policy not in PARTITION_POLICIES:
            raise ConfigurationError(f"Unknown partition policy: {policy}")
        self.output_dir = output_dir
        self.mappers_count = mappers_count
        self.reducers_count = reducers_count
        self.policy = policy

    def run(self) -> ShuffleResult:
        """
        Execute the shuffle

        Returns:
            ShuffleResult describing the partition files written
        """
        total = sum(self._map_file_size(index) for index in range(self.mappers_count))
        result = ShuffleResult(total_input_bytes=total,
                               target_size=total // self.reducers_count,
                               partition_records=[0] * self.reducers_count,
                               partition_bytes=[0] * self.reducers_count)

        logger.info(f"Starting shuffle of {self.mappers_count} map files ({total} bytes) "
                    f"into {self.reducers_count} partitions, policy={self.policy}")
        try:
            if self.policy == 'balanced':
                self._write_balanced(result)
            else:
                self._write_rollover(result)
        except OSError as e:
            raise FileSystemError.wrap(e, 'write partition in', self.output_dir) from e

        logger.info(f"Finished shuffle: partition sizes {result.partition_bytes}")
        return result

    def merge(self) -> Iterator[Record]:
        """
        Yield the records of every map file in global key order

        Equal keys come out in mapper index order.
        """
        with ExitStack() as stack:
            cursors = [stack.enter_context(RecordCursor(map_path(self.output_dir, index)))
                       for index in range(self.mappers_count)]
            heap = []
            for index, cursor in enumerate(cursors):
                cursor.raise_if_error()
                if cursor.has_value:
                    heap.append((cursor.record.key, index))
            heapq.heapify(heap)

            while heap:
                _, index = heapq.heappop(heap)
                cursor = cursors[index]
                yield cursor.record
                cursor.advance()
                cursor.raise_if_error()
                if cursor.has_value:
                    heapq.heappush(heap, (cursor.record.key, index))

    def _write_rollover(self, result: ShuffleResult):
        partition = 0
        written = 0
        prev_key = None
        with ExitStack() as stack:
            out = stack.enter_context(open(partition_path(self.output_dir, partition), 'wb'))
            for record in self.merge():
                if (written > result.target_size and record.key != prev_key
                        and partition < self.reducers_count - 1):
                    out.close()
                    partition += 1
                    written = 0
                    out = stack.enter_context(open(partition_path(self.output_dir, partition), 'wb'))
                written += self._write(out, record, result, partition)
                prev_key = record.key

        # every reducer gets a file, even when the data ran out early
        for index in range(partition + 1, self.reducers_count):
            open(partition_path(self.output_dir, index), 'wb').close()

    def _write_balanced(self, result: ShuffleResult):
        assignment = self._assign_groups(self._measure_groups())
        with ExitStack() as stack:
            outs = [stack.enter_context(open(partition_path(self.output_dir, index), 'wb'))
                    for index in range(self.reducers_count)]
            group = -1
            prev_key = None
            for record in self.merge():
                if record.key != prev_key:
                    group += 1
                    prev_key = record.key
                partition = assignment[group]
                self._write(outs[partition], record, result, partition)

    def _measure_groups(self) -> List[int]:
        """Byte size of each key group, in key order"""
        sizes = []
        prev_key = None
        for record in self.merge():
            size = len(encode_record(record).encode('utf-8'))
            if record.key == prev_key:
                sizes[-1] += size
            else:
                sizes.append(size)
                prev_key = record.key
        return sizes

    def _assign_groups(self, sizes: List[int]) -> List[int]:
        """
        Assign contiguous key groups to exactly reducers_count partitions

        A partition is closed once the running total reaches its share of
        the data, or when the groups left are just enough to give every
        remaining partition one group.
        """
        total = sum(sizes)
        assignment = []
        partition = 0
        cumulative = 0
        for index, size in enumerate(sizes):
            assignment.append(partition)
            cumulative += size
            groups_left = len(sizes) - index - 1
            partitions_left = self.reducers_count - partition - 1
            if partitions_left > 0 and (
                    cumulative * self.reducers_count >= (partition + 1) * total
                    or groups_left <= partitions_left):
                partition += 1
        return assignment

    def _write(self, out, record: Record, result: ShuffleResult, partition: int) -> int:
        line = encode_record(record).encode('utf-8')
        out.write(line)
        result.partition_records[partition] += 1
        result.partition_bytes[partition] += len(line)
        return len(line)

    def _map_file_size(self, index: int) -> int:
        path = map_path(self.output_dir, index)
        try:
            return os.path.getsize(path)
        except OSError as e:
            raise FileSystemError.wrap(e, 'stat map file', path) from e
