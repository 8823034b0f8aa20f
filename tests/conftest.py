"""
Pytest configuration and shared fixtures
"""

import pytest
import os
import tempfile
import shutil

from localmr.records import read_records


@pytest.fixture
def temp_dir():
    """Create temporary directory for test files"""
    dirpath = tempfile.mkdtemp()
    yield dirpath
    shutil.rmtree(dirpath)


@pytest.fixture
def sample_text():
    """Sample text for testing"""
    return """The quick brown fox jumps over the lazy dog.
The dog was really lazy.
The fox was very quick and brown.
Quick brown foxes are amazing animals.
Lazy dogs sleep all day.
"""


@pytest.fixture
def sample_input_file(temp_dir, sample_text):
    """Create a sample input file for testing"""
    filepath = os.path.join(temp_dir, 'input.txt')
    with open(filepath, 'w') as f:
        f.write(sample_text)
    return filepath


@pytest.fixture
def output_dir(temp_dir):
    """Output directory path inside the temp dir (not created)"""
    return os.path.join(temp_dir, 'out')


def write_lines(path, lines):
    with open(path, 'w') as f:
        for line in lines:
            f.write(line + '\n')
    return path


def word_mapper(index, block):
    """Mapper emitting (word, 1) for each lower-cased word"""
    for line in block.iter_lines():
        for word in line.lower().split():
            yield (word.strip('.,'), 1)


def line_mapper(index, block):
    """Mapper emitting (line, 1) for each line"""
    for line in block.iter_lines():
        yield (line, 1)


def read_all(path):
    return list(read_records(path))


EXAMPLES_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'examples')


@pytest.fixture
def wordcount_job_file():
    """Path to word count example job file"""
    return os.path.join(EXAMPLES_DIR, 'wordcount.py')
