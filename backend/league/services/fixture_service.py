import logging
from datetime import timedelta

from flask import current_app

from league import store
from league.extensions import db
from league.errors import InvalidInput, ReconciliationRequired
from league.models.fixture import Fixture, FixtureStatus
from league.models.team import Team

logger = logging.getLogger(__name__)


def _check_teams(home_team_id, away_team_id):
    if home_team_id == away_team_id:
        raise InvalidInput("Home and away teams must differ")
    store.get_record(Team, home_team_id)
    store.get_record(Team, away_team_id)


def create_fixture(data):
    _check_teams(data["home_team_id"], data["away_team_id"])

    fixture = Fixture(
        date=data["date"],
        time=data.get("time") or current_app.config["DEFAULT_KICKOFF_TIME"],
        home_team_id=data["home_team_id"],
        away_team_id=data["away_team_id"],
        status=FixtureStatus.SCHEDULED,
        played=False,
    )
    return store.insert(fixture)


def update_fixture(fixture_id, data):
    """Edit schedule details. Scores go through ``apply_result``."""
    fixture = store.get_record(Fixture, fixture_id)

    changes_teams = "home_team_id" in data or "away_team_id" in data
    if fixture.played and (changes_teams or "status" in data):
        raise ReconciliationRequired(
            "Fixture is finished; its teams and status can no longer change"
        )

    if changes_teams:
        _check_teams(
            data.get("home_team_id", fixture.home_team_id),
            data.get("away_team_id", fixture.away_team_id),
        )

    values = {
        key: data[key]
        for key in ("date", "time", "home_team_id", "away_team_id")
        if key in data
    }
    if "status" in data:
        values["status"] = FixtureStatus(data["status"])

    return store.update(fixture, values)


def delete_fixture(fixture_id):
    fixture = store.get_record(Fixture, fixture_id)

    if fixture.played:
        logger.warning("Refusing to delete played fixture %s", fixture.id)
        raise ReconciliationRequired(
            "Fixture has been applied to the standings and cannot be deleted"
        )

    return store.delete(fixture)


def round_robin_rounds(teams):
    """Split a single round robin into matchdays using the circle method.

    For n teams: n-1 matchdays (n rounded up to even), n/2 pairings each.
    A None slot is a bye and its pairing is dropped.
    """
    teams = list(teams)
    if len(teams) % 2 != 0:
        teams.append(None)
    n = len(teams)
    half = n // 2
    rotating = list(range(1, n))

    rounds = []
    for _ in range(n - 1):
        pairs = [(0, rotating[0])]
        for i in range(1, half):
            pairs.append((rotating[i], rotating[n - 1 - i]))
        rounds.append([
            (teams[a], teams[b]) for a, b in pairs
            if teams[a] is not None and teams[b] is not None
        ])
        rotating = [rotating[-1]] + rotating[:-1]
    return rounds


def generate_group_fixtures(start_date, interval_days=7):
    """Schedule a single round robin inside every group.

    Matchday k of every group is played on ``start_date + k * interval_days``.
    Refuses to run when fixtures already exist.
    """
    if store.count_records(Fixture) > 0:
        raise InvalidInput("Fixtures already generated")

    by_group = {}
    for team in store.list_records(Team, Team.group_name, Team.name):
        by_group.setdefault(team.group_name, []).append(team)

    kickoff = current_app.config["DEFAULT_KICKOFF_TIME"]
    fixtures = []
    for group_name, teams in by_group.items():
        if len(teams) < 2:
            logger.info("Group %s has fewer than two teams, skipping", group_name)
            continue
        for matchday, pairs in enumerate(round_robin_rounds(teams)):
            for home, away in pairs:
                fixtures.append(Fixture(
                    date=start_date + timedelta(days=matchday * interval_days),
                    time=kickoff,
                    home_team_id=home.id,
                    away_team_id=away.id,
                    status=FixtureStatus.SCHEDULED,
                    played=False,
                ))

    db.session.add_all(fixtures)
    store.commit()
    logger.info("Generated %d group fixtures", len(fixtures))
    return fixtures
