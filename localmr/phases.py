"""
Fork/join runner for the parallel map and reduce phases
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Callable, List

from localmr.errors import FileSystemError, PhaseError

logger = logging.getLogger(__name__)


def run_phase(phase: str, tasks: List[Callable[[threading.Event], Any]]) -> List[Any]:
    """
    Run every task on its own thread and wait for all of them

    Each task receives the phase's cancel event, which is set as soon as
    any task fails so cooperative tasks can stop early.

    Args:
        phase: Phase name used in logs and errors
        tasks: Callables taking the cancel event

    Returns:
        Task results, in task order

    Raises:
        FileSystemError: If the earliest failure was a filesystem error
        PhaseError: If any other task failed
    """
    if not tasks:
        return []

    cancel_event = threading.Event()
    results = [None] * len(tasks)
    failures = []

    logger.info(f"Starting {phase} phase with {len(tasks)} workers")
    with ThreadPoolExecutor(max_workers=len(tasks),
                            thread_name_prefix=f"localmr-{phase}") as executor:
        futures = {executor.submit(task, cancel_event): index
                   for index, task in enumerate(tasks)}
        for future in as_completed(futures):
            index = futures[future]
            try:
                results[index] = future.result()
            except Exception as e:
                logger.error(f"{phase} worker {index} failed: {e}")
                failures.append((index, e))
                cancel_event.set()

    if failures:
        first = failures[0][1]
        if isinstance(first, FileSystemError):
            raise first
        raise PhaseError(phase, failures) from first

    logger.info(f"Finished {phase} phase")
    return results
