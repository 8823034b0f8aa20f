"""
MapReduce orchestrator
Sequences split, map, combine, shuffle and reduce with a full barrier
between phases and owns the output directory's lifecycle
"""

import logging
import os
import shutil
from dataclasses import replace
from typing import Any, List, Optional

from localmr.combiner import run_combiner
from localmr.config import EngineConfig
from localmr.errors import ConfigurationError, FileSystemError
from localmr.map_executor import Mapper, run_mappers
from localmr.metrics import JobMetrics, MetricsCollector
from localmr.records import map_path, partition_path
from localmr.reduce_executor import Reducer, run_reducers
from localmr.shuffle import Shuffler
from localmr.splitter import split_file

logger = logging.getLogger(__name__)


def prepare_output_dir(output_dir: str):
    """Create output_dir, or empty it when it already exists"""
    try:
        if not os.path.exists(output_dir):
            os.makedirs(output_dir)
            return
        for entry in os.scandir(output_dir):
            if entry.is_dir(follow_symlinks=False):
                shutil.rmtree(entry.path)
            else:
                os.remove(entry.path)
    except OSError as e:
        raise FileSystemError.wrap(e, 'prepare output directory', output_dir) from e


class MapReduce:
    """Single-machine MapReduce engine with a fixed number of mappers and reducers"""

    def __init__(self, mappers_count: int, reducers_count: int,
                 config: Optional[EngineConfig] = None):
        """
        Initialize the engine

        Args:
            mappers_count: Number of input blocks and map workers
            reducers_count: Number of partition files and reduce workers
            config: Remaining settings; its counts are replaced by the arguments

        Raises:
            ConfigurationError: If a count is not positive
        """
        config = replace(config or EngineConfig(),
                         mappers_count=mappers_count, reducers_count=reducers_count)
        config.validate()

        self.config = config
        self.mapper: Optional[Mapper] = None
        self.reducer: Optional[Reducer] = None
        self.output_dir: Optional[str] = None
        self.metrics: Optional[JobMetrics] = None
        self.reduce_results: List[Any] = []

    @property
    def mappers_count(self) -> int:
        return self.config.mappers_count

    @property
    def reducers_count(self) -> int:
        return self.config.reducers_count

    def set_mapper(self, mapper: Mapper):
        self.mapper = mapper

    def set_reducer(self, reducer: Reducer):
        self.reducer = reducer

    def map_path(self, index: int) -> str:
        return map_path(self._require_output_dir(), index)

    def partition_path(self, index: int) -> str:
        return partition_path(self._require_output_dir(), index)

    def run(self, input_path, output_dir, act_combiner: Optional[bool] = None):
        """
        Execute one full pass over input_path

        Args:
            input_path: Text file to process
            output_dir: Directory for map and partition files; emptied first
            act_combiner: Whether to combine map files before the shuffle;
                None follows config.use_combiner

        Raises:
            ConfigurationError: If the mapper or reducer is not set
            FileSystemError: If the input or output directory cannot be used
            PhaseError: If a map or reduce callback failed
            MalformedRecordError: If an intermediate file is corrupt
        """
        if self.mapper is None or self.reducer is None:
            raise ConfigurationError("set_mapper and set_reducer must be called before run")
        if act_combiner is None:
            act_combiner = self.config.use_combiner

        input_path = os.fspath(input_path)
        output_dir = os.fspath(output_dir)
        self.output_dir = output_dir
        self.reduce_results = []
        self.metrics = JobMetrics(input_path=input_path,
                                  num_map_tasks=self.mappers_count,
                                  num_reduce_tasks=self.reducers_count,
                                  use_combiner=act_combiner,
                                  partition_policy=self.config.partition_policy)
        collector = MetricsCollector(self.metrics)

        blocks = split_file(input_path, self.mappers_count)
        collector.start_job(blocks[-1].end_offset if blocks else 0)
        prepare_output_dir(output_dir)

        if not blocks:
            logger.info(f"Input {input_path} is empty, nothing to do")
            collector.end_job()
            return

        collector.start_phase('map')
        map_results = run_mappers(blocks, self.mapper, output_dir)
        collector.end_phase('map')
        collector.record_map_output(map_results)

        if act_combiner:
            collector.start_phase('combine')
            stats = run_combiner(output_dir, self.mappers_count)
            collector.end_phase('combine')
            collector.record_combine(stats.bytes_out)

        collector.start_phase('shuffle')
        shuffler = Shuffler(output_dir, self.mappers_count, self.reducers_count,
                            policy=self.config.partition_policy)
        shuffle_result = shuffler.run()
        collector.end_phase('shuffle')
        collector.record_shuffle(shuffle_result.partition_bytes)

        collector.start_phase('reduce')
        self.reduce_results = run_reducers(shuffle_result.partitions_count, self.reducer)
        collector.end_phase('reduce')

        collector.end_job()
        logger.info(f"Run over {input_path} completed in "
                    f"{self.metrics.total_time_seconds:.3f}s")

    def _require_output_dir(self) -> str:
        if self.output_dir is None:
            raise ConfigurationError("No output directory yet, call run first")
        return self.output_dir
