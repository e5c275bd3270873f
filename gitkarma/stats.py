import typing
from collections import Counter

from loguru import logger
from tqdm import tqdm

from gitkarma.karma import KarmaConfig, KarmaResolver
from gitkarma.model import AggregationInvariantViolation, Block


def weighted_sum(histogram: typing.Mapping[int, int]) -> int:
    return sum(length * count for length, count in histogram.items())


class FileKarma(object):
    def __init__(self, name: str):
        self.name: str = name
        self.total: int = 0
        self.with_karma: int = 0

    @property
    def full_karma(self) -> bool:
        return self.total == self.with_karma


class Stats(object):
    """
    karma statistics of a set of files

    block_length_histogram counts every karma-positive block by its length,
    karma_run_histogram counts maximal runs of karma-positive lines, which
    may span blocks of different commits. both partition the same lines.
    """

    def __init__(self):
        self.files_with_full_karma: int = 0
        self.files_total: int = 0
        self.block_length_histogram: typing.Counter[int] = Counter()
        self.karma_run_histogram: typing.Counter[int] = Counter()
        self.total_lines: int = 0
        self.total_karma_lines: int = 0

    def merge(self, other: "Stats") -> "Stats":
        ret = Stats()
        ret.files_with_full_karma = self.files_with_full_karma + other.files_with_full_karma
        ret.files_total = self.files_total + other.files_total
        ret.block_length_histogram = self.block_length_histogram + other.block_length_histogram
        ret.karma_run_histogram = self.karma_run_histogram + other.karma_run_histogram
        ret.total_lines = self.total_lines + other.total_lines
        ret.total_karma_lines = self.total_karma_lines + other.total_karma_lines
        return ret

    def finalize(self) -> "Stats":
        run_lines = weighted_sum(self.karma_run_histogram)
        block_lines = weighted_sum(self.block_length_histogram)
        if run_lines != block_lines:
            raise AggregationInvariantViolation(
                f"karma lines by run ({run_lines}) differ from karma lines by block ({block_lines})"
            )
        self.total_karma_lines = run_lines
        return self


class Aggregator(object):
    def __init__(self, config: KarmaConfig = None):
        self.resolver = KarmaResolver(config)

    def accumulate_file(self, name: str, blocks: typing.Iterable[Block]) -> Stats:
        """ partial stats of one file, blocks in line order """
        stats = Stats()
        file_karma = FileKarma(name)
        run_length = 0

        for each in blocks:
            n = len(each.lines)
            file_karma.total += n

            if self.resolver(each) > 0:
                file_karma.with_karma += n
                run_length += n
                stats.block_length_histogram[n] += 1
            elif run_length > 0:
                stats.karma_run_histogram[run_length] += 1
                run_length = 0
        # END block loop

        # file may end inside a run
        if run_length > 0:
            stats.karma_run_histogram[run_length] += 1

        stats.files_total = 1
        if file_karma.full_karma:
            stats.files_with_full_karma = 1
        stats.total_lines = file_karma.total

        logger.debug(f"file {name}: {file_karma.with_karma}/{file_karma.total} lines with karma")
        return stats

    def accumulate(self, files: typing.Mapping[str, typing.Iterable[Block]]) -> Stats:
        logger.info(f"start accumulating karma of {len(files)} files")
        ret = Stats()
        for name, blocks in tqdm(files.items()):
            ret = ret.merge(self.accumulate_file(name, blocks))
        ret.finalize()
        logger.info(f"karma ready: {ret.total_karma_lines}/{ret.total_lines} lines")
        return ret
