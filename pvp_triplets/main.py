"""
CLI Entry Point for PvP Triplets.

Provides commands for:
- Searching the best 3-member teams of a meta pool
- Running a single battle
- Exploring the meta pool and gamemaster data
"""

import json
import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .config import SearchConfig, load_config
from .data_loader import GameMaster, load_meta_pool
from .errors import TripletSearchError
from .models import SearchResult
from .search import TripletSearch
from .simulator import BattleSimulator

# Setup rich consoles: reports on stdout, logs and progress on stderr
console = Console()
err_console = Console(stderr=True)

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format="%(message)s",
    handlers=[RichHandler(console=err_console, rich_tracebacks=True)],
)
logger = logging.getLogger(__name__)

# Create Typer app
app = typer.Typer(
    name="pvp-triplets",
    help="Exhaustive best-team search for PvP metagames",
    add_completion=False,
)

DataDirOption = typer.Option(None, "--data-dir", help="Directory holding gamemaster and rankings")
ConfigOption = typer.Option(None, "--config", help="YAML config file")
CpOption = typer.Option(None, "--cp", help="League CP cap (default 1500)")
CupOption = typer.Option(None, "--cup", help="Ruleset name (default all)")


def build_config(config_file: Optional[Path], **overrides) -> SearchConfig:
    """Load configuration, exiting on invalid settings."""
    try:
        return load_config(config_file, **overrides)
    except TripletSearchError as e:
        console.print(f"[red]Error: {e}[/]")
        raise typer.Exit(1)


def print_report(result: SearchResult) -> None:
    """Print the evaluated count and the ranked teams."""
    console.print(f"Evaluated {result.evaluated} team combinations", highlight=False)
    for rank, entry in enumerate(result.entries, 1):
        console.print(entry.format(rank), highlight=False, markup=False)


# =============================================================================
# COMMANDS
# =============================================================================


@app.callback()
def main_options(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
):
    """Search a PvP meta pool for its best 3-member teams."""
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)


@app.command()
def search(
    meta: Optional[int] = typer.Option(None, "--meta", help="Meta pool size (default 25)"),
    limit: Optional[int] = typer.Option(None, "--limit", help="Max team combinations to evaluate"),
    workers: Optional[int] = typer.Option(None, "--workers", "-w", help="Parallel scoring threads"),
    cp: Optional[int] = CpOption,
    cup: Optional[str] = CupOption,
    data_dir: Optional[Path] = DataDirOption,
    config_file: Optional[Path] = ConfigOption,
    output_json: bool = typer.Option(False, "--json", help="Output raw JSON"),
):
    """Find the best scoring 3-member teams of the meta pool."""
    config = build_config(
        config_file,
        data_dir=data_dir,
        meta_count=meta,
        limit=limit,
        workers=workers,
        cp_cap=cp,
        cup=cup,
    )

    try:
        game_master = GameMaster.from_file(config.gamemaster_path)
        pool = load_meta_pool(config.rankings_path, config.meta_count, game_master)
        simulator = BattleSimulator(game_master, cp_cap=config.cp_cap, cup=config.cup)
        runner = TripletSearch(pool, simulator, limit=config.limit, workers=config.workers)

        with err_console.status("Scoring teams...") as status:
            result = runner.run(
                progress=lambda done, total: status.update(f"Scoring teams... {done}/{total}"),
            )
    except TripletSearchError as e:
        console.print(f"[red]Error: {e}[/]")
        raise typer.Exit(1)

    if output_json:
        console.print(result.model_dump_json(indent=2), highlight=False, markup=False, soft_wrap=True)
        return

    print_report(result)


@app.command()
def battle(
    attacker: str = typer.Argument(..., help="Attacker species ID"),
    defender: str = typer.Argument(..., help="Defender species ID"),
    shields_a: int = typer.Option(1, "--shields-a", help="Attacker shields (0-2)"),
    shields_b: int = typer.Option(1, "--shields-b", help="Defender shields (0-2)"),
    cp: Optional[int] = CpOption,
    cup: Optional[str] = CupOption,
    data_dir: Optional[Path] = DataDirOption,
    config_file: Optional[Path] = ConfigOption,
):
    """Simulate one battle and print the attacker's rating."""
    config = build_config(config_file, data_dir=data_dir, cp_cap=cp, cup=cup)

    try:
        game_master = GameMaster.from_file(config.gamemaster_path)
        simulator = BattleSimulator(game_master, cp_cap=config.cp_cap, cup=config.cup)
        rating = simulator.simulate(attacker, defender, shields_a, shields_b)
        builds = [simulator.get_build(attacker), simulator.get_build(defender)]
        names = [game_master.get_pokemon_by_id(s).display_name for s in (attacker, defender)]
    except TripletSearchError as e:
        console.print(f"[red]Error: {e}[/]")
        raise typer.Exit(1)

    table = Table(title=f"CP {config.cp_cap} battle")
    table.add_column("Side", style="cyan")
    table.add_column("Species", style="green")
    table.add_column("CP", justify="right")
    table.add_column("Level", justify="right")
    table.add_column("Moves")

    for side, name, build in zip(("Attacker", "Defender"), names, builds):
        moves = [build.fast_move.move_id] + [m.move_id for m in build.charged_moves]
        table.add_row(side, name, str(build.cp), f"{build.level:g}", ", ".join(moves))

    console.print(table)
    outcome = "win" if rating > 500 else "loss"
    console.print(f"Rating {rating} ({outcome}) with shields {shields_a}-{shields_b}", highlight=False)


@app.command("meta")
def list_meta(
    meta: Optional[int] = typer.Option(None, "--meta", help="Meta pool size (default 25)"),
    cp: Optional[int] = CpOption,
    cup: Optional[str] = CupOption,
    data_dir: Optional[Path] = DataDirOption,
    config_file: Optional[Path] = ConfigOption,
):
    """List the meta pool in rank order."""
    config = build_config(config_file, data_dir=data_dir, meta_count=meta, cp_cap=cp, cup=cup)

    try:
        pool = load_meta_pool(config.rankings_path, config.meta_count)
    except TripletSearchError as e:
        console.print(f"[red]Error: {e}[/]")
        raise typer.Exit(1)

    console.print(f"[bold]Meta pool ({len(pool)} species):[/]")
    for rank, species_id in enumerate(pool, 1):
        console.print(f"  {rank:>3}. {species_id}", highlight=False, markup=False)


@app.command()
def info(
    species_id: str = typer.Argument(..., help="Species ID"),
    data_dir: Optional[Path] = DataDirOption,
    config_file: Optional[Path] = ConfigOption,
):
    """Show the gamemaster entry of a species."""
    config = build_config(config_file, data_dir=data_dir)

    try:
        pokemon = GameMaster.from_file(config.gamemaster_path).get_pokemon_by_id(species_id)
    except TripletSearchError as e:
        console.print(f"[red]Error: {e}[/]")
        raise typer.Exit(1)

    console.print(
        json.dumps(pokemon.model_dump(by_alias=True), indent=2),
        highlight=False,
        markup=False,
        soft_wrap=True,
    )


def main():
    """Entry point."""
    app()


if __name__ == "__main__":
    main()
