from gitkarma.collector import Collector, CollectorConfig
from gitkarma.karma import KarmaConfig, KarmaResolver, karma
from gitkarma.model import (
    AggregationInvariantViolation,
    Block,
    CommitMetadata,
    ConfigError,
    FileContext,
    GitKarmaException,
    LineEntry,
    ParseError,
    RuntimeContext,
)
from gitkarma.parser import parse_blocks, split_trace
from gitkarma.report import DEFAULT_THRESHOLDS, DistributionReport, DistributionRow, render_summary, report
from gitkarma.stats import Aggregator, Stats

__all__ = [
    "AggregationInvariantViolation",
    "Aggregator",
    "Block",
    "Collector",
    "CollectorConfig",
    "CommitMetadata",
    "ConfigError",
    "DEFAULT_THRESHOLDS",
    "DistributionReport",
    "DistributionRow",
    "FileContext",
    "GitKarmaException",
    "KarmaConfig",
    "KarmaResolver",
    "LineEntry",
    "ParseError",
    "RuntimeContext",
    "Stats",
    "karma",
    "parse_blocks",
    "render_summary",
    "report",
    "split_trace",
]
