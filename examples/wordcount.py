"""
Classic MapReduce word count job.
Counts the frequency of each word in the input text.

Run with:
    localmr run --input story.txt --output out --job-file examples/wordcount.py
"""

import string

from localmr import read_records


def map_function(index, block):
    """
    Map function: emit (word, 1) for each word in the block.

    Args:
        index: Map task index (unused)
        block: Byte range of the input owned by this task

    Yields:
        (word, 1) tuples
    """
    for line in block.iter_lines():
        # Remove punctuation and split into words
        words = line.translate(str.maketrans('', '', string.punctuation)).split()

        for word in words:
            yield (word.lower(), 1)


def reduce_function(index, partition_path):
    """
    Reduce function: total the counts of every word in one partition.

    Without the combiner a word can still appear on several consecutive
    lines, so counts are summed per key.

    Args:
        index: Partition index
        partition_path: Path of the reduce_<index> file

    Returns:
        (distinct_words, most_common_word) for the partition
    """
    counts = {}
    for record in read_records(partition_path):
        counts[record.key] = counts.get(record.key, 0) + record.value

    if not counts:
        return (0, None)
    most_common = max(counts.items(), key=lambda item: (item[1], item[0]))
    return (len(counts), most_common)
