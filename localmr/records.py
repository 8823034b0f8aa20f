"""
Record model and on-disk codec
Blocks describe a mapper's byte range of the input, Records are the
'<key> <value>' lines flowing through map, combine, shuffle and reduce
"""

import os
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, NamedTuple

from localmr.errors import FileSystemError, InvalidRecordError, MalformedRecordError


@dataclass(frozen=True)
class Block:
    """Half-open, line-aligned byte range [start_offset, end_offset) of an input file"""
    path: str
    start_offset: int
    end_offset: int

    @property
    def size(self) -> int:
        return self.end_offset - self.start_offset

    def iter_lines(self, encoding: str = 'utf-8') -> Iterator[str]:
        """
        Yield every line of the block with its terminator stripped

        Reading stops once the file position reaches end_offset, so a
        block never yields a line owned by the next block.
        """
        try:
            f = open(self.path, 'rb')
        except OSError as e:
            raise FileSystemError.wrap(e, 'open input', self.path) from e

        with f:
            f.seek(self.start_offset)
            while f.tell() < self.end_offset:
                raw = f.readline()
                if not raw:
                    break
                yield raw.rstrip(b'\r\n').decode(encoding, errors='replace')


class Record(NamedTuple):
    key: str
    value: int


def make_record(key, value) -> Record:
    """Validate a mapper emission and coerce it to a Record"""
    if not isinstance(key, str):
        raise InvalidRecordError(f"Record key must be str, got {type(key).__name__}")
    if not key or any(ch.isspace() for ch in key):
        raise InvalidRecordError(f"Record key must be non-empty without whitespace: {key!r}")
    try:
        key.encode('utf-8')
    except UnicodeEncodeError as e:
        raise InvalidRecordError(f"Record key is not encodable as UTF-8: {key!r}") from e
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidRecordError(f"Record value for {key!r} must be int, got {value!r}")
    return Record(key, value)


def encode_record(record: Record) -> str:
    return f"{record.key} {record.value}\n"


def parse_record(line: str) -> Record:
    """
    Parse one '<key> <value>' line

    Raises:
        ValueError: If the line does not hold exactly a key and an integer
    """
    parts = line.split()
    if len(parts) != 2:
        raise ValueError(f"expected 2 fields, got {len(parts)}")
    return Record(parts[0], int(parts[1]))


class CursorState(Enum):
    """State of a RecordCursor"""
    HAS_VALUE = "has_value"
    EXHAUSTED = "exhausted"
    ERROR = "error"


class RecordCursor:
    """
    Sequential reader over an intermediate file holding the next unread Record

    End of input and malformed input are distinct states, never signalled
    through the record itself.
    """

    def __init__(self, path, encoding: str = 'utf-8'):
        self.path = path
        self.encoding = encoding
        self.record = None
        self.state = CursorState.EXHAUSTED
        self.line_no = 0
        self.bad_line = None
        try:
            self._file = open(path, 'rb')
        except OSError as e:
            raise FileSystemError.wrap(e, 'open intermediate file', path) from e
        try:
            self.advance()
        except Exception:
            self._file.close()
            raise

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def close(self):
        self._file.close()

    @property
    def has_value(self) -> bool:
        return self.state is CursorState.HAS_VALUE

    def advance(self):
        """Move to the next Record, skipping blank lines"""
        if self.state is CursorState.ERROR:
            return
        for raw in self._file:
            self.line_no += 1
            if not raw.strip():
                continue
            try:
                self.record = parse_record(raw.decode(self.encoding))
            except ValueError:
                # UnicodeDecodeError is a ValueError
                self.record = None
                self.bad_line = raw.rstrip(b'\r\n').decode(self.encoding, errors='replace')
                self.state = CursorState.ERROR
                return
            self.state = CursorState.HAS_VALUE
            return
        self.record = None
        self.state = CursorState.EXHAUSTED

    def raise_if_error(self):
        if self.state is CursorState.ERROR:
            raise MalformedRecordError(self.path, self.line_no, self.bad_line)


def read_records(path, encoding: str = 'utf-8') -> Iterator[Record]:
    """Yield every Record of a map or partition file, raising on malformed lines"""
    with RecordCursor(path, encoding) as cursor:
        while cursor.has_value:
            yield cursor.record
            cursor.advance()
        cursor.raise_if_error()


def map_path(output_dir, index: int) -> str:
    return os.path.join(output_dir, f"map_{index}")


def partition_path(output_dir, index: int) -> str:
    return os.path.join(output_dir, f"reduce_{index}")
