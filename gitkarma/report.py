import typing

import pandas as pd
from loguru import logger
from pydantic import BaseModel

from gitkarma.stats import Stats

# noteworthy contiguous span sizes, in lines
DEFAULT_THRESHOLDS: typing.Tuple[int, ...] = (140, 70, 50, 30, 15, 7, 3)


class DistributionRow(BaseModel):
    threshold: int
    group_pct: float
    group_count: int
    line_pct: float
    line_count: int


def percent(part: int, whole: int) -> float:
    if not whole:
        return 0.0
    return part * 100.0 / whole


def report(
        histogram: typing.Mapping[int, int],
        total_lines: int,
        thresholds: typing.Iterable[int],
) -> typing.List[DistributionRow]:
    """
    for each threshold, the groups of at least that many lines

    thresholds are evaluated independently, not as bucket ranges.
    group_pct is relative to all groups in the histogram, line_pct to total_lines.
    """
    total_groups = sum(histogram.values())

    ret = []
    for threshold in thresholds:
        group_count = 0
        line_count = 0
        for length, count in histogram.items():
            if length < threshold:
                continue
            group_count += count
            line_count += length * count

        ret.append(DistributionRow(
            threshold=threshold,
            group_pct=percent(group_count, total_groups),
            group_count=group_count,
            line_pct=percent(line_count, total_lines),
            line_count=line_count,
        ))
    return ret


class DistributionReport(object):
    HISTOGRAM_BLOCK = "block"
    HISTOGRAM_RUN = "run"

    def __init__(self, rows_df: pd.DataFrame):
        self.rows_df = rows_df

    @classmethod
    def from_stats(cls, stats: Stats, thresholds: typing.Iterable[int] = DEFAULT_THRESHOLDS) -> "DistributionReport":
        thresholds = list(thresholds)
        records = []
        for histogram_name, histogram in (
                (cls.HISTOGRAM_BLOCK, stats.block_length_histogram),
                (cls.HISTOGRAM_RUN, stats.karma_run_histogram),
        ):
            for each in report(histogram, stats.total_lines, thresholds):
                records.append({"histogram": histogram_name, **each.model_dump()})
        return DistributionReport(rows_df=pd.DataFrame.from_records(records))

    @classmethod
    def import_csv(cls, path: str) -> "DistributionReport":
        return DistributionReport(rows_df=pd.read_csv(path))

    def export_csv(self, path: str = "gitkarma-output.csv") -> None:
        logger.info(f"dump distribution to csv: {path}")
        self.rows_df.to_csv(path, index=False)

    def rows(self, histogram_name: str) -> typing.List[DistributionRow]:
        if self.rows_df.empty:
            return []
        df = self.rows_df[self.rows_df["histogram"] == histogram_name]
        return [
            DistributionRow(**{k: v for k, v in each.items() if k != "histogram"})
            for each in df.to_dict(orient="records")
        ]


def format_row(row: DistributionRow) -> str:
    return f"{row.threshold}: {row.group_pct:.2f}% groups ({row.group_count}) {row.line_pct:.2f}% lines ({row.line_count})"


def render_summary(stats: Stats, thresholds: typing.Iterable[int] = DEFAULT_THRESHOLDS) -> typing.List[str]:
    thresholds = list(thresholds)
    lines = [
        f"{percent(stats.files_with_full_karma, stats.files_total):.2f}% files has absolutely good karma "
        f"({stats.files_with_full_karma}/{stats.files_total})",
        f"{percent(stats.total_karma_lines, stats.total_lines):.2f}% of lines has good karma "
        f"({stats.total_karma_lines}/{stats.total_lines})",
    ]

    for title, histogram in (
            ("same commit blocks:", stats.block_length_histogram),
            ("continuous karma runs:", stats.karma_run_histogram),
    ):
        lines.append(title)
        lines.extend(format_row(each) for each in report(histogram, stats.total_lines, thresholds))
    return lines
