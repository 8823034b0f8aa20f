"""
Performance metrics collection for MapReduce runs.
"""

import json
import time
from dataclasses import dataclass, asdict, field
from typing import List

import psutil


@dataclass
class JobMetrics:
    """Metrics for a single engine run."""

    input_path: str
    num_map_tasks: int
    num_reduce_tasks: int
    use_combiner: bool
    partition_policy: str
    input_size_bytes: int = 0
    start_time: float = 0.0
    end_time: float = 0.0
    map_phase_start: float = 0.0
    map_phase_end: float = 0.0
    combine_phase_start: float = 0.0
    combine_phase_end: float = 0.0
    shuffle_phase_start: float = 0.0
    shuffle_phase_end: float = 0.0
    reduce_phase_start: float = 0.0
    reduce_phase_end: float = 0.0
    map_records: int = 0
    intermediate_size_bytes: int = 0
    combined_size_bytes: int = 0
    partition_sizes_bytes: List[int] = field(default_factory=list)
    peak_rss_bytes: int = 0
    combiner_reduction_ratio: float = 0.0

    @property
    def total_time_seconds(self) -> float:
        """Total run time in seconds."""
        return self.end_time - self.start_time

    @property
    def map_phase_time_seconds(self) -> float:
        return self.map_phase_end - self.map_phase_start

    @property
    def shuffle_phase_time_seconds(self) -> float:
        return self.shuffle_phase_end - self.shuffle_phase_start

    @property
    def reduce_phase_time_seconds(self) -> float:
        return self.reduce_phase_end - self.reduce_phase_start

    def to_dict(self) -> dict:
        """Convert metrics to dictionary."""
        return asdict(self)

    def save_to_file(self, filepath: str):
        """Save metrics to JSON file."""
        with open(filepath, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)


class MetricsCollector:
    """Fills in a JobMetrics as the engine moves through its phases."""

    def __init__(self, metrics: JobMetrics):
        self.metrics = metrics
        self.process = psutil.Process()

    def sample_memory(self):
        """Record the current resident set size if it is a new peak."""
        rss = self.process.memory_info().rss
        self.metrics.peak_rss_bytes = max(self.metrics.peak_rss_bytes, rss)

    def start_job(self, input_size: int):
        self.metrics.input_size_bytes = input_size
        self.metrics.start_time = time.time()
        self.sample_memory()

    def start_phase(self, phase: str):
        setattr(self.metrics, f"{phase}_phase_start", time.time())

    def end_phase(self, phase: str):
        setattr(self.metrics, f"{phase}_phase_end", time.time())
        self.sample_memory()

    def record_map_output(self, map_results: List[dict]):
        self.metrics.map_records = sum(result['records'] for result in map_results)
        self.metrics.intermediate_size_bytes = sum(result['bytes_written'] for result in map_results)
        self.metrics.combined_size_bytes = self.metrics.intermediate_size_bytes

    def record_combine(self, bytes_out: int):
        """Record the combined map output size and the resulting reduction ratio."""
        self.metrics.combined_size_bytes = bytes_out
        if self.metrics.intermediate_size_bytes > 0:
            self.metrics.combiner_reduction_ratio = \
                1.0 - (bytes_out / self.metrics.intermediate_size_bytes)

    def record_shuffle(self, partition_bytes: List[int]):
        self.metrics.partition_sizes_bytes = list(partition_bytes)

    def end_job(self):
        self.metrics.end_time = time.time()
        self.sample_memory()
