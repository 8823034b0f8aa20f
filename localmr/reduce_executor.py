"""
Reduce Task Executor
Executes reduce tasks by handing each partition index to the reducer
callback, which reads and interprets its own partition file
"""

import logging
import threading
import time
from typing import Any, Callable, Iterator, List, Optional

from localmr.phases import run_phase
from localmr.records import Record, partition_path, read_records

logger = logging.getLogger(__name__)

Reducer = Callable[[int], Any]


class ReduceExecutor:
    """Executes a single reduce task"""

    def __init__(self, task_id: int, reducer: Reducer):
        self.task_id = task_id
        self.reducer = reducer

    def execute(self, cancel_event: Optional[threading.Event] = None) -> Any:
        """
        Execute the reduce task

        Reducers are user code and run to completion; the cancel event only
        prevents a task from starting after a sibling already failed.

        Returns:
            Whatever the reducer returned
        """
        if cancel_event is not None and cancel_event.is_set():
            logger.debug(f"Reduce task {self.task_id}: Skipped after sibling failure")
            return None

        start_time = time.time()
        result = self.reducer(self.task_id)
        execution_time = int((time.time() - start_time) * 1000)
        logger.debug(f"Reduce task {self.task_id}: Completed in {execution_time}ms")
        return result


def run_reducers(count: int, reducer: Reducer) -> List[Any]:
    """Run reducer(0) .. reducer(count - 1) concurrently and wait for all of them"""
    executors = [ReduceExecutor(index, reducer) for index in range(count)]
    return run_phase('reduce', [executor.execute for executor in executors])


def read_partition(output_dir: str, index: int) -> Iterator[Record]:
    """Yield the records of reduce_<index> for reducers that want parsed input"""
    return read_records(partition_path(output_dir, index))
