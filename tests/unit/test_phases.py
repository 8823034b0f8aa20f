"""
Unit tests for the fork/join phase runner
"""

import pytest
import threading

from localmr.errors import FileSystemError, PhaseError
from localmr.phases import run_phase


class TestRunPhase:
    """Tests for barrier semantics and failure handling"""

    def test_no_tasks(self):
        assert run_phase('map', []) == []

    def test_results_in_task_order(self):
        tasks = [lambda event, n=n: n * n for n in range(5)]

        assert run_phase('map', tasks) == [0, 1, 4, 9, 16]

    def test_waits_for_every_task(self):
        finished = []
        release = threading.Event()

        def slow(event):
            release.wait(5)
            finished.append('slow')

        def fast(event):
            release.set()
            finished.append('fast')

        run_phase('reduce', [slow, fast])

        assert sorted(finished) == ['fast', 'slow']

    def test_failure_sets_cancel_event(self):
        observed = threading.Event()
        failed = threading.Event()

        def failing(event):
            failed.set()
            raise RuntimeError("boom")

        def watcher(event):
            failed.wait(5)
            if event.wait(5):
                observed.set()

        with pytest.raises(PhaseError) as excinfo:
            run_phase('map', [failing, watcher])

        assert observed.is_set()
        assert excinfo.value.failures[0][0] == 0
        assert 'boom' in str(excinfo.value)

    def test_filesystem_error_is_reraised_unchanged(self):
        error = FileSystemError("cannot open", path='input.txt')

        def failing(event):
            raise error

        with pytest.raises(FileSystemError) as excinfo:
            run_phase('map', [failing])

        assert excinfo.value is error
