"""
Pytest configuration and shared fixtures
"""

import pytest
import os
import sys
import glob
import tempfile
import shutil
import textwrap

from jarcount.common.config import JobConfig


@pytest.fixture
def temp_dir():
    """Create temporary directory for test files"""
    dirpath = tempfile.mkdtemp()
    yield dirpath
    shutil.rmtree(dirpath)


@pytest.fixture
def sample_text():
    """Sample text for testing"""
    return """The quick brown fox jumps over the lazy dog
The dog was really lazy
The fox was very quick and brown
Quick brown foxes are amazing animals
Lazy dogs sleep all day
"""


@pytest.fixture
def sample_input_file(temp_dir, sample_text):
    """Create a sample input file for testing"""
    filepath = os.path.join(temp_dir, 'input.txt')
    with open(filepath, 'w') as f:
        f.write(sample_text)
    return filepath


@pytest.fixture
def make_program(temp_dir):
    """
    Write a small Python program and return its path.

    Programs run as `python <path> <param1> <param2>`, matching how the job
    passes its two fixed parameters.
    """
    def _make(body: str, name: str = 'program.py') -> str:
        path = os.path.join(temp_dir, name)
        with open(path, 'w') as f:
            f.write('import sys, os\n' + textwrap.dedent(body))
        return path
    return _make


@pytest.fixture
def quiet_program(make_program):
    """Program that prints one line and succeeds"""
    return make_program('print("ok")\n', name='quiet.py')


@pytest.fixture
def make_config(temp_dir, sample_input_file, quiet_program):
    """Build a JobConfig that runs quiet_program, with overrides"""
    def _make(**overrides) -> JobConfig:
        settings = dict(
            input_path=sample_input_file,
            output_path=os.path.join(temp_dir, 'output'),
            executable=sys.executable,
            params=(quiet_program, 'param2'),
            working_dir=temp_dir,
        )
        settings.update(overrides)
        return JobConfig(**settings)
    return _make


@pytest.fixture
def write_file(temp_dir):
    """Write text to a file under temp_dir and return its path"""
    def _write(name: str, content: str) -> str:
        path = os.path.join(temp_dir, name)
        with open(path, 'w') as f:
            f.write(content)
        return path
    return _write


@pytest.fixture
def read_word_counts():
    """Return a reader for word<TAB>count lines from every part file"""
    return _read_word_counts


def _read_word_counts(output_dir: str) -> dict:
    """Collect word<TAB>count lines from every part file"""
    counts = {}
    for part in sorted(glob.glob(os.path.join(output_dir, 'part-*.txt'))):
        with open(part) as f:
            for line in f:
                word, count = line.rstrip('\n').split('\t')
                assert word not in counts, f"{word} appears in more than one part file"
                counts[word] = int(count)
    return counts
