"""
Unit tests for MapExecutor
"""

import pytest
import os
import threading
from unittest.mock import Mock

from localmr.errors import FileSystemError, InvalidRecordError, PhaseError
from localmr.map_executor import MapExecutor, run_mappers
from localmr.records import Block, Record
from localmr.splitter import split_file

from conftest import read_all, word_mapper


class TestMapExecutorExecution:
    """Tests for a single map task"""

    def test_writes_sorted_records(self, sample_input_file, temp_dir):
        block = Block(sample_input_file, 0, os.path.getsize(sample_input_file))
        executor = MapExecutor(0, block, temp_dir, word_mapper)

        result = executor.execute()

        records = read_all(os.path.join(temp_dir, 'map_0'))
        assert result['records'] == len(records)
        assert result['cancelled'] is False
        assert [r.key for r in records] == sorted(r.key for r in records)
        assert records.count(Record('the', 1)) == 4

    def test_reports_bytes_written(self, sample_input_file, temp_dir):
        block = Block(sample_input_file, 0, os.path.getsize(sample_input_file))
        result = MapExecutor(2, block, temp_dir, word_mapper).execute()

        assert result['bytes_written'] == os.path.getsize(os.path.join(temp_dir, 'map_2'))

    def test_sort_is_stable_within_a_key(self, sample_input_file, temp_dir):
        def mapper(index, block):
            return [('b', 1), ('a', 3), ('b', 2), ('a', 1)]

        MapExecutor(0, Block(sample_input_file, 0, 0), temp_dir, mapper).execute()

        assert read_all(os.path.join(temp_dir, 'map_0')) == [
            Record('a', 3), Record('a', 1), Record('b', 1), Record('b', 2)]

    def test_mapper_receives_index_and_block(self, sample_input_file, temp_dir):
        mapper = Mock(return_value=[])
        block = Block(sample_input_file, 0, 10)

        MapExecutor(3, block, temp_dir, mapper).execute()

        mapper.assert_called_once_with(3, block)

    def test_none_from_mapper_writes_empty_file(self, sample_input_file, temp_dir):
        MapExecutor(0, Block(sample_input_file, 0, 0), temp_dir, lambda i, b: None).execute()

        assert os.path.getsize(os.path.join(temp_dir, 'map_0')) == 0

    def test_invalid_key_raises(self, sample_input_file, temp_dir):
        executor = MapExecutor(0, Block(sample_input_file, 0, 0), temp_dir,
                               lambda i, b: [('two words', 1)])

        with pytest.raises(InvalidRecordError):
            executor.execute()

    def test_unencodable_key_raises_before_writing(self, sample_input_file, temp_dir):
        executor = MapExecutor(0, Block(sample_input_file, 0, 0), temp_dir,
                               lambda i, b: [('ok', 1), ('lone\ud800', 1)])

        with pytest.raises(InvalidRecordError):
            executor.execute()

    def test_stops_when_cancelled(self, sample_input_file, temp_dir):
        cancel_event = threading.Event()
        cancel_event.set()
        executor = MapExecutor(0, Block(sample_input_file, 0, 0), temp_dir,
                               lambda i, b: [('a', 1)])

        result = executor.execute(cancel_event)

        assert result['cancelled'] is True
        assert not os.path.exists(os.path.join(temp_dir, 'map_0'))

    def test_unwritable_output_raises_filesystem_error(self, sample_input_file, temp_dir):
        missing_dir = os.path.join(temp_dir, 'missing')
        executor = MapExecutor(0, Block(sample_input_file, 0, 0), missing_dir,
                               lambda i, b: [('a', 1)])

        with pytest.raises(FileSystemError):
            executor.execute()


class TestRunMappers:
    """Tests for the parallel map phase"""

    def test_one_file_per_block(self, sample_input_file, temp_dir):
        blocks = split_file(sample_input_file, 3)

        results = run_mappers(blocks, word_mapper, temp_dir)

        assert len(results) == 3
        for index in range(3):
            assert os.path.exists(os.path.join(temp_dir, f'map_{index}'))

    def test_all_words_are_emitted_once(self, sample_input_file, sample_text, temp_dir):
        blocks = split_file(sample_input_file, 4)

        run_mappers(blocks, word_mapper, temp_dir)

        emitted = sorted(r.key for i in range(4) for r in read_all(os.path.join(temp_dir, f'map_{i}')))
        expected = sorted(w.strip('.,') for w in sample_text.lower().split())
        assert emitted == expected

    def test_failing_mapper_raises_phase_error(self, sample_input_file, temp_dir):
        blocks = split_file(sample_input_file, 3)

        def mapper(index, block):
            if index == 1:
                raise RuntimeError("boom")
            return word_mapper(index, block)

        with pytest.raises(PhaseError) as excinfo:
            run_mappers(blocks, mapper, temp_dir)

        assert excinfo.value.phase == 'map'
        assert [index for index, _ in excinfo.value.failures] == [1]
        assert isinstance(excinfo.value.__cause__, RuntimeError)

    def test_missing_input_raises_filesystem_error(self, temp_dir):
        blocks = [Block(os.path.join(temp_dir, 'missing.txt'), 0, 10)]

        with pytest.raises(FileSystemError):
            run_mappers(blocks, word_mapper, temp_dir)
