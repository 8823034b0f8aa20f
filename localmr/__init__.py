"""
Single-machine MapReduce engine: split, map, combine, shuffle, reduce
"""

from localmr.config import EngineConfig
from localmr.engine import MapReduce
from localmr.errors import (ConfigurationError, FileSystemError, InvalidRecordError,
                            MalformedRecordError, MapReduceError, PhaseError)
from localmr.records import Block, Record, read_records
from localmr.reduce_executor import read_partition
from localmr.splitter import split_file

__version__ = '0.1.0'

__all__ = [
    'Block',
    'ConfigurationError',
    'EngineConfig',
    'FileSystemError',
    'InvalidRecordError',
    'MalformedRecordError',
    'MapReduce',
    'MapReduceError',
    'PhaseError',
    'Record',
    'read_partition',
    'read_records',
    'split_file',
]
