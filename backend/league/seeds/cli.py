import random
from datetime import date, timedelta
import click
from flask.cli import AppGroup
from league.extensions import db
from league.models.team import Team
from league.models.user import User
from league.models.player import Player
from league.models.fixture import Fixture
from league.models.knockout import KnockoutFixture, STAGE_ORDER
from league.seeds.data import (
    DEFAULT_ADMIN,
    TEAMS,
    PLAYERS_PER_TEAM,
    FIRST_NAMES,
    LAST_NAMES,
    KNOCKOUT_SLOTS,
)
from league.services.fixture_service import generate_group_fixtures
from league.services.knockout_service import create_knockout
from league.services.standings import (
    apply_result,
    recompute_standings,
    recover_pending_results,
)

league_cli = AppGroup("league", help="League maintenance commands.")


def _ensure_admin():
    user = User.query.filter_by(email=DEFAULT_ADMIN["email"]).first()
    if user:
        click.echo("Admin user already exists.")
        return user

    user = User(email=DEFAULT_ADMIN["email"], name=DEFAULT_ADMIN["name"])
    user.set_password(DEFAULT_ADMIN["password"])
    db.session.add(user)
    db.session.commit()
    click.echo(f"Created admin user: {DEFAULT_ADMIN['email']}")
    return user


@league_cli.command("admin")
def seed_admin():
    """Seed the default admin user."""
    _ensure_admin()


@league_cli.command("seed")
@click.option("--start", type=click.DateTime(formats=["%Y-%m-%d"]), default=None,
              help="Date of the first matchday (default: two weeks ago).")
@click.option("--played-rounds", type=int, default=1, show_default=True,
              help="Matchdays to record random results for.")
def seed_league(start, played_rounds):
    """Seed a demo league: teams, players, fixtures and knockout slots."""
    if Team.query.count() > 0:
        click.echo("League already seeded.")
        raise SystemExit(1)

    rng = random.Random(42)  # deterministic for reproducibility
    _ensure_admin()

    teams = []
    for group_name, name in TEAMS:
        team = Team(name=name, group_name=group_name)
        db.session.add(team)
        teams.append(team)
    db.session.flush()

    for team in teams:
        for _ in range(PLAYERS_PER_TEAM):
            db.session.add(Player(
                name=f"{rng.choice(FIRST_NAMES)} {rng.choice(LAST_NAMES)}",
                team_id=team.id,
                goals=rng.randint(0, 6),
                assists=rng.randint(0, 4),
            ))
    db.session.commit()
    click.echo(f"Seeded {len(teams)} teams and {len(teams) * PLAYERS_PER_TEAM} players.")

    first_day = start.date() if start else date.today() - timedelta(days=14)
    fixtures = generate_group_fixtures(first_day)
    click.echo(f"Seeded {len(fixtures)} fixtures.")

    rounds = {}
    for fixture in fixtures:
        rounds.setdefault(fixture.date, []).append(fixture.id)
    matchdays = sorted(rounds)

    applied = 0
    for matchday in matchdays[:played_rounds]:
        for fixture_id in rounds[matchday]:
            apply_result(fixture_id, rng.randint(0, 4), rng.randint(0, 3))
            applied += 1
    click.echo(f"Recorded {applied} results.")

    knockout_day = first_day + timedelta(weeks=len(matchdays) + 1)
    for offset, (stage, match_number) in enumerate(KNOCKOUT_SLOTS):
        create_knockout({
            "stage": stage,
            "match_number": match_number,
            "date": knockout_day + timedelta(days=offset),
        })
    click.echo(f"Seeded {len(KNOCKOUT_SLOTS)} knockout slots.")


@league_cli.command("recompute")
@click.option("--dry-run", is_flag=True, help="Report drift without writing.")
def recompute(dry_run):
    """Rebuild team aggregates from played fixtures."""
    drift = recompute_standings(dry_run=dry_run)
    if not drift:
        click.echo("Standings are consistent.")
        return

    names = {team.id: team.name for team in Team.query.all()}
    for item in drift:
        click.echo(
            f"{names.get(item.team_id, item.team_id)}: {item.field} "
            f"stored={item.stored} expected={item.expected}"
        )
    verb = "Found" if dry_run else "Fixed"
    click.echo(f"{verb} {len(drift)} drifting counters.")


@league_cli.command("recover")
def recover():
    """Finish or roll back results left half-applied."""
    completed, rolled_back = recover_pending_results()
    click.echo(f"Completed {completed} pending results, rolled back {rolled_back}.")


@league_cli.command("check")
def check():
    """Exit non-zero when stored aggregates disagree with fixture history."""
    drift = recompute_standings(dry_run=True)
    played = Fixture.query.filter_by(played=True).count()
    click.echo(f"{played} played fixtures, {len(drift)} drifting counters.")
    if drift:
        raise SystemExit(1)


@league_cli.command("knockouts")
def list_knockouts():
    """Print the knockout bracket."""
    bracket = sorted(
        KnockoutFixture.query.all(),
        key=lambda k: (STAGE_ORDER[k.stage], k.match_number),
    )
    for knockout in bracket:
        team1 = knockout.team1.name if knockout.team1 else "TBD"
        team2 = knockout.team2.name if knockout.team2 else "TBD"
        click.echo(
            f"{knockout.stage.value} {knockout.match_number}: "
            f"{team1} vs {team2} ({knockout.date} {knockout.time})"
        )
