"""Typer CLI for ccstats: analyze and summary commands."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated

import typer
from result import Err, Ok, Result

from ccstats.config import Config
from ccstats.data.records import RecordLoadError, load_records, load_summary
from ccstats.models.analytics import AnalysisReport
from ccstats.services.container import ServiceContainer
from ccstats.services.trends import TREND_ANALYZERS

app = typer.Typer(
    name="ccstats",
    help="Claude Code usage analytics: efficiency, trends, insights and recommendations.",
    no_args_is_help=True,
)

LanguageOption = Annotated[
    str, typer.Option("--language", "-l", help="Report language: zh-CN or en-US")
]
TimeframeOption = Annotated[
    str, typer.Option("--timeframe", "-t", help="Label of the analysed window")
]
VerboseOption = Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging")]


@app.command()
def analyze(
    file: Annotated[Path, typer.Argument(help="Usage records (.jsonl or .json)")],
    language: LanguageOption = "zh-CN",
    timeframe: TimeframeOption = "week",
    granularity: Annotated[
        str, typer.Option("--granularity", "-g", help="Trend buckets: day, week or month")
    ] = "day",
    trend_analyzer: Annotated[
        str, typer.Option("--trend-analyzer", help="Trend analyzer: basic or advanced")
    ] = "basic",
    verbose: VerboseOption = False,
) -> None:
    """Analyze a file of usage records and print the report as JSON."""
    _configure_logging(verbose)
    if trend_analyzer not in TREND_ANALYZERS:
        typer.echo(f"Unknown trend analyzer: {trend_analyzer}", err=True)
        raise typer.Exit(code=1)

    config = Config(language=language, trend_analyzer=trend_analyzer, granularity=granularity)
    services = ServiceContainer.create(config)
    try:
        records = load_records(file)
    except RecordLoadError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc

    _emit(
        services.analytics_service.analyze_records(
            records, language=language, timeframe=timeframe, granularity=granularity
        )
    )


@app.command()
def summary(
    file: Annotated[Path, typer.Argument(help="Aggregated summary (.json)")],
    language: LanguageOption = "zh-CN",
    timeframe: TimeframeOption = "week",
    verbose: VerboseOption = False,
) -> None:
    """Analyze one pre-aggregated summary and print the report as JSON."""
    _configure_logging(verbose)
    services = ServiceContainer.create(Config(language=language))
    try:
        data = load_summary(file)
    except RecordLoadError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc

    _emit(services.analytics_service.analyze_summary(data, language=language, timeframe=timeframe))


def _emit(result: Result[AnalysisReport, str]) -> None:
    match result:
        case Ok(report):
            typer.echo(report.model_dump_json(indent=2))
        case Err(message):
            typer.echo(message, err=True)
            raise typer.Exit(code=1)


def _configure_logging(verbose: bool) -> None:
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
