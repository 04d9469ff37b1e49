#!/usr/bin/env python3
"""
CLI for testing the Dohyo Basho sumo engine
"""
import random
from collections import Counter

import click
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.progress import track

from app.config import settings, configure_logging
from app.database import init_db, get_session
from app.models import Participant
from app.engine import BoutEngine, Side
from app.engine.errors import BoutError
from app.engine.tables import PHASE_ORDER, PHASE_TABLES, SIGNATURE_MOVES
from app.engine.tournament_engine import TournamentEngine, get_or_create_tournament
from app.generators.cpu_generator import CpuGenerator, ROSTER
from app.validators.build_validator import BuildValidator

console = Console()


@click.group()
@click.option("--log-level", default=None, help="Log level (default WARNING)")
def cli(log_level):
    """Dohyo Basho - Turn-based Sumo Tournament"""
    configure_logging(log_level or "WARNING")


@cli.command()
def init():
    """Initialize the database"""
    console.print("[yellow]Initializing database...[/yellow]")
    init_db()
    console.print("[green]Database initialized successfully![/green]")


@cli.command()
def tables():
    """Show the phase choices and matchup tables"""
    for name in PHASE_ORDER:
        definition = PHASE_TABLES[name]
        console.print(Panel(f"[bold]{definition.title}[/bold] - {definition.description}"))

        if definition.matchups is None:
            for choice in definition.choices:
                effects = definition.effects.get(choice, {})
                effect_text = ", ".join(f"{stat} {value:+d}" for stat, value in effects.items()) or "-"
                console.print(f"  {definition.labels[choice]}: {effect_text}")
            continue

        table = Table(title=f"{definition.title} (east win %)")
        table.add_column("East \\ West", style="cyan")
        for west in definition.choices:
            table.add_column(west, justify="right")
        for east in definition.choices:
            row = [f"{definition.matchup(east, west)[0] * 100:.0f}%" for west in definition.choices]
            table.add_row(east, *row)
        console.print(table)

    moves = Table(title="Signature Moves")
    moves.add_column("Move", style="cyan")
    moves.add_column("Kanji")
    moves.add_column("Best with", style="magenta")
    moves.add_column("Description")
    for move in SIGNATURE_MOVES.values():
        moves.add_row(move.name, move.japanese, move.best_with, move.description)
    console.print(moves)


def _print_bout(match):
    """Print a phase-by-phase account of a match"""
    table = Table(title=f"{match.east.display_name} (E) vs {match.west.display_name} (W)")
    table.add_column("Phase", style="cyan")
    table.add_column("East")
    table.add_column("West")
    table.add_column("Odds (E/W)", justify="right")
    table.add_column("Winner", style="green")

    for phase, outcome in match.phase_results.items():
        odds = "-"
        if outcome.probabilities:
            odds = f"{outcome.probabilities[0]:.2f}/{outcome.probabilities[1]:.2f}"
        table.add_row(
            PHASE_TABLES[phase].title,
            outcome.east_choice,
            outcome.west_choice,
            odds,
            outcome.winner.value if outcome.winner else "",
        )
    console.print(table)

    for outcome in match.phase_results.values():
        console.print(f"  [dim]{outcome.narrative}[/dim]")

    console.print(
        f"\n[bold green]Winner: {match.winner_participant.display_name} ({match.winner.value}) "
        f"by {match.winning_move}[/bold green] "
        f"({match.phase_wins(Side.EAST)}-{match.phase_wins(Side.WEST)} in phases)"
    )


@cli.command()
@click.option("--seed", default=None, type=int, help="Seed for a reproducible bout")
def simulate(seed):
    """Simulate one CPU vs CPU bout between two roster wrestlers"""
    rng = random.Random(seed)
    east_entry, west_entry = rng.sample(ROSTER, 2)
    east = CpuGenerator.from_roster(east_entry, 0, rng)
    west = CpuGenerator.from_roster(west_entry, 1, rng)

    engine = BoutEngine(rng=rng)
    match = engine.create_match(east, west)
    engine.resolve_cpu_match(match)
    _print_bout(match)


@cli.command()
@click.option("--name", default="Player", help="Your shikona")
@click.option("--height", default=5, help="Height (1-10)")
@click.option("--weight", default=5, help="Weight (1-10)")
@click.option("--speed", default=5, help="Speed (1-10)")
@click.option("--technique", default=5, help="Technique (1-10)")
@click.option("--signature", default="yorikiri", help="Signature move")
@click.option("--seed", default=None, type=int, help="Seed for a reproducible bout")
def play(name, height, weight, speed, technique, signature, seed):
    """Fight a bout against a CPU rikishi from the terminal"""
    stats = {"height": height, "weight": weight, "speed": speed, "technique": technique}
    validation = BuildValidator.validate(stats, signature, settings.BUILD_MODE)
    if not validation["valid"]:
        for error in validation["errors"]:
            console.print(f"[red]{error}[/red]")
        return

    rng = random.Random(seed)
    player = Participant(
        email="player@local",
        player_name=name,
        display_name=name,
        signature_move=signature,
        is_cpu=False,
        **stats,
    )
    opponent = CpuGenerator.from_roster(rng.choice(ROSTER), 0, rng)
    console.print(Panel(f"[bold]{name}[/bold] (East) vs [bold]{opponent.display_name}[/bold] (West)"))

    engine = BoutEngine(rng=rng)
    match = engine.create_match(player, opponent)

    while match.is_active:
        definition = PHASE_TABLES[match.current_phase]
        console.print(f"\n[bold cyan]{definition.title}[/bold cyan] - {definition.description}")
        for choice in definition.choices:
            console.print(f"  {choice}: {definition.labels[choice]}")
        choice = click.prompt("Your move", type=click.Choice(list(definition.choices)))

        try:
            result = engine.submit_choice(match, Side.EAST, choice)
        except BoutError as e:
            console.print(f"[red]{e}[/red]")
            continue

        outcome = result.outcome
        console.print(f"  {outcome.east_announcement}")
        console.print(f"  {outcome.west_announcement}")
        console.print(f"  [yellow]{outcome.narrative}[/yellow]")

    console.print()
    _print_bout(match)


@cli.command()
@click.option("--seed", default=None, type=int, help="Seed for a reproducible basho")
def tournament(seed):
    """Run a full basho until a champion is crowned (the AI fights for registered players)"""
    init_db()
    session = get_session()
    rng = random.Random(seed)
    engine = TournamentEngine(session, get_or_create_tournament(session), rng=rng)

    humans = [p for p in engine.participants() if not p.is_cpu]
    console.print(f"[yellow]Starting basho with {len(humans)} registered players...[/yellow]")

    engine.start_tournament()
    while True:
        match = engine.current_match
        if match is None:
            break
        if match.is_active:
            engine.autoplay_active_match()
        console.print(
            f"Bout {len(engine.bout_history())}: {match.east.display_name} vs {match.west.display_name} "
            f"-> [green]{match.winner_participant.display_name}[/green] ({match.winning_move})"
        )
        if engine.create_next_match() is None:
            break

    table = Table(title=f"{engine.tournament.name} Banzuke")
    table.add_column("#", justify="right")
    table.add_column("Rikishi", style="cyan")
    table.add_column("W", justify="right", style="green")
    table.add_column("L", justify="right", style="red")
    table.add_column("Cups", justify="right")
    for standing in engine.standings():
        name = standing.participant.display_name
        if standing.is_champion:
            name = f"[bold yellow]{name} (Champion)[/bold yellow]"
        table.add_row(str(standing.position), name, str(standing.wins), str(standing.losses),
                      str(standing.tournament_wins))
    console.print(table)

    session.close()


@cli.command()
@click.option("--bouts", default=1000, help="Number of bouts to simulate")
@click.option("--seed", default=None, type=int, help="Seed for reproducible statistics")
def benchmark(bouts: int, seed):
    """Run many CPU bouts to check the balance tables"""
    rng = random.Random(seed)
    engine = BoutEngine(rng=rng)

    winners = Counter()
    styles = Counter()
    moves = Counter()
    margins = Counter()
    phase_winners = Counter()

    console.print(f"[yellow]Running {bouts} simulations...[/yellow]")

    for _ in track(range(bouts), description="Simulating..."):
        east_entry, west_entry = rng.sample(ROSTER, 2)
        match = engine.create_match(CpuGenerator.from_roster(east_entry, 0, rng), CpuGenerator.from_roster(west_entry, 1, rng))
        engine.resolve_cpu_match(match)

        winners[match.winner.value] += 1
        winner_entry = east_entry if match.winner is Side.EAST else west_entry
        styles[winner_entry["style"]] += 1
        moves[match.winning_move] += 1
        margins[f"{match.phase_wins(match.winner)}-{match.phase_wins(match.winner.opponent)}"] += 1
        for phase, outcome in match.phase_results.items():
            if outcome.winner is not None:
                phase_winners[(phase, outcome.winner is match.winner)] += 1

    console.print(Panel("[bold]Simulation Statistics[/bold]"))
    console.print(f"[cyan]East Win %:[/cyan] {winners['east'] / bouts * 100:.1f}%")
    console.print(f"[cyan]West Win %:[/cyan] {winners['west'] / bouts * 100:.1f}%")

    console.print("\n[bold]Wins by Style:[/bold]")
    for style, count in styles.most_common():
        console.print(f"  {style:>10}: {count / bouts * 100:.1f}%")

    console.print("\n[bold]Winning Moves:[/bold]")
    for move, count in moves.most_common():
        pct = count / bouts * 100
        bar = "█" * int(pct / 2)
        console.print(f"  {move:>10}: {bar} {pct:.1f}%")

    console.print("\n[bold]Phase Margins:[/bold]")
    for margin, count in sorted(margins.items(), reverse=True):
        console.print(f"  {margin:>5}: {count / bouts * 100:.1f}%")

    console.print("\n[bold]Bout Winner Also Won Phase:[/bold]")
    for phase in PHASE_ORDER:
        if not PHASE_TABLES[phase].has_winner:
            continue
        won = phase_winners[(phase, True)]
        console.print(f"  {phase:>10}: {won / bouts * 100:.1f}%")


if __name__ == "__main__":
    cli()
