"""
Combiner
Pre-aggregates each mapper's sorted output in place, summing the values
of consecutive records that share a key
"""

import logging
import os
from dataclasses import dataclass

from localmr.errors import FileSystemError
from localmr.records import Record, encode_record, map_path, read_records

logger = logging.getLogger(__name__)


@dataclass
class CombineStats:
    """Sizes of one map file before and after combining"""
    records_in: int = 0
    records_out: int = 0
    bytes_in: int = 0
    bytes_out: int = 0


def combine_file(path) -> CombineStats:
    """
    Combine one sorted map file in place

    Identical keys are contiguous in a sorted file, so a single linear
    scan aggregates them. Aggregates whose sum is not positive are dropped.
    """
    stats = CombineStats()
    tmp_path = f"{path}.combine.tmp"

    try:
        stats.bytes_in = os.path.getsize(path)
        with open(tmp_path, 'wb') as out:
            pending = None
            for record in read_records(path):
                stats.records_in += 1
                if pending is not None and pending.key == record.key:
                    pending = Record(pending.key, pending.value + record.value)
                    continue
                if pending is not None:
                    stats.bytes_out += _write_aggregate(out, pending, stats)
                pending = record
            if pending is not None:
                stats.bytes_out += _write_aggregate(out, pending, stats)
        os.replace(tmp_path, path)
    except OSError as e:
        raise FileSystemError.wrap(e, 'combine', path) from e
    finally:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)

    return stats


def _write_aggregate(out, record: Record, stats: CombineStats) -> int:
    if record.value <= 0:
        return 0
    line = encode_record(record).encode('utf-8')
    out.write(line)
    stats.records_out += 1
    return len(line)


def run_combiner(output_dir: str, mappers_count: int) -> CombineStats:
    """Combine map_0 .. map_<mappers_count - 1> sequentially"""
    logger.info(f"Starting combine phase over {mappers_count} map files")
    total = CombineStats()
    for index in range(mappers_count):
        stats = combine_file(map_path(output_dir, index))
        logger.debug(f"Combined map_{index}: {stats.records_in} -> {stats.records_out} records")
        total.records_in += stats.records_in
        total.records_out += stats.records_out
        total.bytes_in += stats.bytes_in
        total.bytes_out += stats.bytes_out
    logger.info(f"Finished combine phase: {total.records_in} -> {total.records_out} records")
    return total
