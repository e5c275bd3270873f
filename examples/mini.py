from gitkarma.collector import Collector
from gitkarma.karma import KarmaConfig
from gitkarma.report import DistributionReport, render_summary
from gitkarma.stats import Aggregator

collector = Collector()
collector.config.repo_root = ".."
collector.config.include_regex = r".*\.py$"

ctx = collector.collect_metadata()
config = KarmaConfig(karma={"someone@example.com": 1})
stats = Aggregator(config).accumulate(ctx.blocks_by_file())

for each in render_summary(stats):
    print(each)
DistributionReport.from_stats(stats).export_csv("karma.csv")
