"""
Tests for the shortest unique prefix driver in examples/
"""

import pytest
import importlib.util
import os

from conftest import EXAMPLES_DIR, write_lines


@pytest.fixture(scope='module')
def unique_prefix():
    spec = importlib.util.spec_from_file_location(
        'unique_prefix', os.path.join(EXAMPLES_DIR, 'unique_prefix.py'))
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.mark.integration
class TestUniquePrefix:
    """The iterative driver re-running the engine with growing prefixes"""

    @pytest.mark.parametrize('mappers,reducers', [(1, 1), (2, 2), (3, 4)])
    def test_finds_shortest_prefix(self, unique_prefix, temp_dir, mappers, reducers):
        input_path = write_lines(os.path.join(temp_dir, 'fruit.txt'),
                                 ['apple', 'Apricot', 'banana', 'blueberry', 'cherry'])

        length = unique_prefix.find_min_prefix(input_path, os.path.join(temp_dir, 'out'),
                                               mappers, reducers)

        assert length == 3

    def test_prefixes_with_spaces(self, unique_prefix, temp_dir):
        input_path = write_lines(os.path.join(temp_dir, 'names.txt'),
                                 ['ann lee', 'ann li', 'bob'])

        length = unique_prefix.find_min_prefix(input_path, os.path.join(temp_dir, 'out'), 2, 2)

        assert length == 6

    def test_identical_lines_never_become_unique(self, unique_prefix, temp_dir):
        input_path = write_lines(os.path.join(temp_dir, 'dups.txt'), ['same', 'other', 'same'])

        length = unique_prefix.find_min_prefix(input_path, os.path.join(temp_dir, 'out'), 2, 2,
                                               max_length=6)

        assert length is None

    def test_main_prints_result(self, unique_prefix, temp_dir, capsys):
        input_path = write_lines(os.path.join(temp_dir, 'words.txt'), ['xa', 'ya'])

        exit_code = unique_prefix.main([input_path, '--output', os.path.join(temp_dir, 'out')])

        assert exit_code == 0
        assert 'min prefix: 1' in capsys.readouterr().out
