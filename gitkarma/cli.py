import typing

import click
from loguru import logger

from gitkarma.collector import Collector
from gitkarma.karma import KarmaConfig, KarmaResolver
from gitkarma.model import GitKarmaException
from gitkarma.report import DEFAULT_THRESHOLDS, DistributionReport, render_summary
from gitkarma.stats import Aggregator


@click.group()
def cli():
    pass


def load_config(config_path: str) -> KarmaConfig:
    if not config_path:
        logger.warning("no config provided, nobody has karma except marked commits")
        return KarmaConfig()
    try:
        return KarmaConfig.load_from_json_file(config_path)
    except GitKarmaException as e:
        raise click.ClickException(str(e)) from e


def parse_thresholds(value: str) -> typing.List[int]:
    try:
        ret = [int(each) for each in value.split(",") if each.strip()]
    except ValueError:
        raise click.BadParameter(f"not a comma separated list of integers: {value}")
    if not ret:
        raise click.BadParameter("at least one threshold required")
    return ret


@cli.command()
@click.option("--repo-root", default=".", help="Repository root directory")
@click.option("--config", "config_path", default="", help="Path to a JSON config with the karma map")
@click.option("--include-regex", default="", help="File include regex pattern")
@click.option("--workers", default=4, help="Parallel blame workers")
@click.option("--thresholds", default=",".join(str(each) for each in DEFAULT_THRESHOLDS),
              help="Comma separated span sizes for the distributions")
@click.option("--output-path", default="", help="Output file path for CSV")
def stats(repo_root, config_path, include_regex, workers, thresholds, output_path):
    """ karma statistics of your repo """
    threshold_list = parse_thresholds(thresholds)
    config = load_config(config_path)

    collector = Collector()
    collector.config.repo_root = repo_root
    collector.config.include_regex = include_regex
    collector.config.workers = workers

    try:
        ctx = collector.collect_metadata()
        result = Aggregator(config).accumulate(ctx.blocks_by_file())
    except GitKarmaException as e:
        raise click.ClickException(str(e)) from e

    for each in render_summary(result, threshold_list):
        click.echo(each)

    if output_path:
        DistributionReport.from_stats(result, threshold_list).export_csv(path=output_path)


@cli.command()
@click.argument("file_path")  # relative to the repository root
@click.option("--repo-root", default=".", help="Repository root directory")
@click.option("--config", "config_path", default="", help="Path to a JSON config with the karma map")
def show(file_path, repo_root, config_path):
    """ karma of each block in a file """
    resolver = KarmaResolver(load_config(config_path))

    collector = Collector()
    collector.config.repo_root = repo_root
    collector.config.include_file_list = [file_path]
    collector.config.workers = 1

    try:
        ctx = collector.collect_metadata()
    except GitKarmaException as e:
        raise click.ClickException(str(e)) from e
    file_ctx = ctx.files.get(file_path)
    if not file_ctx:
        raise click.ClickException(f"no blame for {file_path}, not tracked or binary")

    for each in file_ctx.blocks:
        click.echo(
            f"{each.first_line}-{each.last_line}\t{each.commit_id[:8]}\t"
            f"{each.meta.author} <{each.meta.author_mail}>\t{resolver(each)}"
        )


if __name__ == '__main__':
    cli()
