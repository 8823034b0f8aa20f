"""
Map Task Executor
Executes map tasks by applying the mapper callback to an input block,
sorting the emitted records by key and writing one intermediate file
per mapper
"""

import logging
import threading
import time
from typing import Callable, Iterable, List, Optional, Tuple

from localmr.errors import FileSystemError
from localmr.phases import run_phase
from localmr.records import Block, Record, encode_record, make_record, map_path

logger = logging.getLogger(__name__)

Mapper = Callable[[int, Block], Optional[Iterable[Tuple[str, int]]]]


class MapExecutor:
    """Executes a single map task"""

    def __init__(self, task_id: int, block: Block, output_dir: str, mapper: Mapper):
        """
        Initialize the map executor

        Args:
            task_id: Mapper index, also used to name the output file
            block: Byte range of the input this task owns
            output_dir: Directory receiving map_<task_id>
            mapper: Callback returning the (key, value) pairs for the block
        """
        self.task_id = task_id
        self.block = block
        self.output_dir = output_dir
        self.mapper = mapper
        self.output_path = map_path(output_dir, task_id)

    def execute(self, cancel_event: Optional[threading.Event] = None) -> dict:
        """
        Execute the map task

        Args:
            cancel_event: Set when a sibling task failed; checked between records

        Returns:
            Dictionary with 'records', 'bytes_written', 'execution_time_ms'
            and 'cancelled' fields
        """
        start_time = time.time()

        logger.debug(f"Map task {self.task_id}: Mapping bytes "
                     f"[{self.block.start_offset}, {self.block.end_offset})")
        records = self._collect_records(cancel_event)
        if records is None:
            logger.debug(f"Map task {self.task_id}: Cancelled")
            return {'records': 0, 'bytes_written': 0,
                    'execution_time_ms': int((time.time() - start_time) * 1000),
                    'cancelled': True}

        # stable sort, records emitted earlier stay first within a key
        records.sort(key=lambda record: record.key)
        bytes_written = self._write_intermediate_file(records)

        execution_time = int((time.time() - start_time) * 1000)
        logger.debug(f"Map task {self.task_id}: Wrote {len(records)} records "
                     f"({bytes_written} bytes) in {execution_time}ms")
        return {
            'records': len(records),
            'bytes_written': bytes_written,
            'execution_time_ms': execution_time,
            'cancelled': False
        }

    def _collect_records(self, cancel_event) -> Optional[List[Record]]:
        emitted = self.mapper(self.task_id, self.block)
        records = []
        if emitted is None:
            return records

        for key, value in emitted:
            if cancel_event is not None and cancel_event.is_set():
                return None
            records.append(make_record(key, value))
        return records

    def _write_intermediate_file(self, records: List[Record]) -> int:
        """
        Write sorted records as '<key> <value>' lines

        Returns:
            Number of bytes written
        """
        bytes_written = 0
        try:
            with open(self.output_path, 'wb') as f:
                for record in records:
                    line = encode_record(record).encode('utf-8')
                    f.write(line)
                    bytes_written += len(line)
            return bytes_written
        except OSError as e:
            raise FileSystemError.wrap(e, 'write map output', self.output_path) from e


def run_mappers(blocks: List[Block], mapper: Mapper, output_dir: str) -> List[dict]:
    """Run one map task per block concurrently and wait for all of them"""
    executors = [MapExecutor(index, block, output_dir, mapper)
                 for index, block in enumerate(blocks)]
    return run_phase('map', [executor.execute for executor in executors])
