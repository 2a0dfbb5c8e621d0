"""CLI commands for popjoin."""

import logging
from pathlib import Path
from typing import Dict, Optional, Tuple

import click
import pandas as pd

from popjoin import (
    DataManager,
    Envelope,
    JoinResult,
    JoinStrategy,
    MissingParentError,
    SourceError,
    StrategyDivergenceError,
    compare_strategies,
    run_strategy,
)

STRATEGY_NAMES = [s.value for s in JoinStrategy]


@click.group()
@click.version_option(package_name="popjoin")
@click.option(
    "--data-dir",
    "-d",
    default="data",
    envvar="POPJOIN_DATA_DIR",
    show_default=True,
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory holding the population and boundary files",
)
@click.option("--verbose", is_flag=True, help="Log loading and timing details")
@click.pass_context
def cli(ctx: click.Context, data_dir: Path, verbose: bool):
    """popjoin: Sum population per county with point-in-polygon joins."""
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = DataManager(data_dir=data_dir)


def _load_inputs(manager: DataManager, state_file: bool):
    """Load points, counties and (optionally) state envelopes."""
    points = manager.load_weighted_points()
    click.echo(f"Found {len(points)} population centers.")
    counties = manager.load_counties()
    click.echo(f"Found {len(counties)} county polygons.")

    state_envelopes: Optional[Dict[str, Envelope]] = None
    if state_file:
        state_envelopes = manager.load_state_envelopes()
        click.echo(f"Found {len(state_envelopes)} state envelopes.")
    return points, counties, state_envelopes


def _report(result: JoinResult) -> None:
    click.echo(
        f"Calculating with {result.strategy.description} took "
        f"{result.elapsed_seconds * 1000:.0f}ms, "
        f"with {result.regions_populated} counties populated"
    )


def _write_totals(result: JoinResult, output_path: Path) -> None:
    """Save per-region totals as CSV or Parquet, chosen by file suffix."""
    frame = result.to_series().rename("weight").reset_index()
    if output_path.suffix == ".parquet":
        frame.to_parquet(output_path, index=False)
    else:
        frame.to_csv(output_path, index=False)
    click.echo(f"Wrote {len(frame)} region totals -> {output_path}")


@cli.command()
@click.option(
    "--strategy",
    "-s",
    "strategies",
    multiple=True,
    type=click.Choice(STRATEGY_NAMES),
    help="Strategies to compare (default: all, first one is the baseline)",
)
@click.option(
    "--state-file/--no-state-file",
    default=True,
    help="Prune with envelopes from the state boundary file, "
    "or derive them from the counties",
)
@click.option("--progress/--no-progress", default=False, help="Show progress bars")
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write the agreed per-county totals to a .csv or .parquet file",
)
@click.pass_obj
def compare(
    manager: DataManager,
    strategies: Tuple[str, ...],
    state_file: bool,
    progress: bool,
    output: Optional[Path],
):
    """Run the join strategies and check they produce identical totals."""
    selected = [JoinStrategy(s) for s in strategies] or list(JoinStrategy)
    needs_states = state_file and JoinStrategy.HIERARCHICAL in selected

    try:
        points, counties, state_envelopes = _load_inputs(manager, needs_states)
        results = compare_strategies(
            points,
            counties,
            strategies=selected,
            parent_envelopes=state_envelopes,
            progress=progress,
            on_result=_report,
        )
    except (SourceError, MissingParentError, StrategyDivergenceError) as e:
        raise click.ClickException(str(e))

    base = results[0]
    for result in results[1:]:
        click.echo(
            f"Population counts are the same for "
            f"{base.strategy.value} and {result.strategy.value}."
        )

    if output is not None:
        _write_totals(base, output)


@cli.command()
@click.option(
    "--strategy",
    "-s",
    default=JoinStrategy.INDEX.value,
    show_default=True,
    type=click.Choice(STRATEGY_NAMES),
)
@click.option(
    "--state-file/--no-state-file",
    default=False,
    help="Use the state boundary file for hierarchical pruning",
)
@click.option("--progress/--no-progress", default=False, help="Show a progress bar")
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write per-county totals to a .csv or .parquet file",
)
@click.option("--top", default=10, show_default=True, help="Rows to print without --output")
@click.pass_obj
def join(
    manager: DataManager,
    strategy: str,
    state_file: bool,
    progress: bool,
    output: Optional[Path],
    top: int,
):
    """Sum population per county with a single strategy."""
    selected = JoinStrategy(strategy)
    needs_states = state_file and selected is JoinStrategy.HIERARCHICAL

    try:
        points, counties, state_envelopes = _load_inputs(manager, needs_states)
        result = run_strategy(
            selected,
            points,
            counties,
            parent_envelopes=state_envelopes,
            progress=progress,
        )
    except (SourceError, MissingParentError) as e:
        raise click.ClickException(str(e))

    _report(result)
    if output is not None:
        _write_totals(result, output)
    else:
        series: pd.Series = result.to_series().sort_values(ascending=False)
        for region_id, weight in series.head(top).items():
            click.echo(f"  {region_id}: {weight:,.1f}")


@cli.command()
@click.pass_obj
def info(manager: DataManager):
    """Show which source files are present."""
    click.echo(f"\nData directory: {manager.data_dir}")
    click.echo("\nSource files:")
    for data_type, present in manager.available_files().items():
        status = "ok" if present else "missing"
        click.echo(f"  {data_type}: {manager.path_for(data_type).name} ({status})")


if __name__ == "__main__":
    cli()
