"""
Exception hierarchy for the local MapReduce engine
"""


class MapReduceError(Exception):
    """Base class for every error raised by the engine"""


class ConfigurationError(MapReduceError, ValueError):
    """Invalid engine configuration or missing callbacks"""


class FileSystemError(MapReduceError):
    """An OSError raised while touching the input or the output directory"""

    def __init__(self, message: str, path=None):
        super().__init__(message)
        self.path = path

    @classmethod
    def wrap(cls, err: OSError, action: str, path=None):
        """Build a FileSystemError describing a failed action on path"""
        path = path if path is not None else getattr(err, 'filename', None)
        return cls(f"Failed to {action} {path}: {err.strerror or err}", path)


class InvalidRecordError(MapReduceError, ValueError):
    """A mapper emitted a record that cannot be encoded"""


class MalformedRecordError(MapReduceError):
    """A line in an intermediate file does not parse as '<key> <value>'"""

    def __init__(self, path, line_no: int, line: str):
        super().__init__(f"{path}:{line_no}: malformed record {line!r}")
        self.path = path
        self.line_no = line_no
        self.line = line


class PhaseError(MapReduceError):
    """One or more workers of a parallel phase failed"""

    def __init__(self, phase: str, failures):
        self.phase = phase
        self.failures = sorted(failures, key=lambda failure: failure[0])
        index, first = self.failures[0]
        super().__init__(
            f"{phase} phase failed in {len(self.failures)} worker(s); "
            f"first failure in worker {index}: {first}"
        )
