"""
Input splitter
Divides an input file into line-aligned blocks, one per mapper
"""

import logging
import os
from typing import List

from localmr.errors import FileSystemError
from localmr.records import Block

logger = logging.getLogger(__name__)


def split_file(path, blocks_count: int) -> List[Block]:
    """
    Split a file into blocks_count contiguous, line-aligned blocks

    Nominal boundaries sit at filesize * k // blocks_count. Each one is
    pushed forward past the next newline (or to end of file) so no line
    is cut between two blocks.

    Args:
        path: Input file path
        blocks_count: Number of blocks to produce

    Returns:
        List of Blocks tiling [0, filesize], empty for an empty file

    Raises:
        ValueError: If blocks_count is not positive
        FileSystemError: If the input cannot be read
    """
    if blocks_count < 1:
        raise ValueError(f"blocks_count must be positive, got {blocks_count}")

    path = os.fspath(path)
    try:
        filesize = os.path.getsize(path)
        f = open(path, 'rb')
    except OSError as e:
        raise FileSystemError.wrap(e, 'open input', path) from e

    blocks = []
    with f:
        if filesize == 0:
            logger.info(f"Input {path} is empty, nothing to split")
            return blocks

        start = 0
        for k in range(1, blocks_count + 1):
            boundary = filesize * k // blocks_count
            if boundary < start:
                # a long line already carried the previous block past this boundary
                end = start
            else:
                f.seek(boundary)
                end = boundary + len(f.readline())
            blocks.append(Block(path, start, end))
            start = end

    logger.debug(f"Split {path} ({filesize} bytes) into {len(blocks)} blocks")
    return blocks
