import enum
import logging
from collections import namedtuple
from dataclasses import dataclass

from league import store
from league.errors import InvalidInput, NotFound, ReconciliationRequired
from league.events import event_bus
from league.extensions import db
from league.models.fixture import Fixture, FixtureStatus
from league.models.pending_result import PendingResult, PendingState
from league.models.team import Team

logger = logging.getLogger(__name__)

AGGREGATE_FIELDS = ("wins", "draws", "losses", "goals_for", "goals_against")

Drift = namedtuple("Drift", ["team_id", "field", "stored", "expected"])


class ApplyOutcome(enum.Enum):
    APPLIED = "applied"
    ALREADY_APPLIED = "already_applied"


@dataclass
class TeamAggregate:
    wins: int = 0
    draws: int = 0
    losses: int = 0
    goals_for: int = 0
    goals_against: int = 0

    @property
    def played(self):
        return self.wins + self.draws + self.losses


def _validate_score(value, side):
    if value is None:
        raise InvalidInput(f"{side} score is required")
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInput(f"{side} score must be an integer")
    if value < 0:
        raise InvalidInput(f"{side} score must be non-negative")


def _apply_scoreline(home, away, home_score, away_score):
    """Add one result to two aggregates (Team rows or TeamAggregate)."""
    if home_score > away_score:
        home.wins += 1
        away.losses += 1
    elif away_score > home_score:
        away.wins += 1
        home.losses += 1
    else:
        home.draws += 1
        away.draws += 1

    home.goals_for += home_score
    home.goals_against += away_score
    away.goals_for += away_score
    away.goals_against += home_score


def _resubmission(fixture, home_score, away_score):
    """Outcome of submitting a result for a fixture that is already played."""
    if fixture.scoreline == (home_score, away_score):
        logger.info("Fixture %s already applied, skipping", fixture.id)
        return ApplyOutcome.ALREADY_APPLIED
    logger.warning(
        "Fixture %s finished %s-%s, resubmitted as %s-%s",
        fixture.id, fixture.home_score, fixture.away_score,
        home_score, away_score,
    )
    raise ReconciliationRequired(
        "Fixture is already finished with a different score; "
        "standings require manual reconciliation"
    )


def apply_result(fixture_id, home_score, away_score):
    """Record a fixture's final score and fold it into both teams' aggregates.

    The fixture is marked played and a pending log entry written in one
    commit; the team counters are updated in a second commit under row
    locks. A crash between the two leaves a pending entry that
    :func:`recover_pending_results` completes.

    Returns ``ApplyOutcome.ALREADY_APPLIED`` without writing anything when
    the fixture is already played with the same scores. Raises
    ``ReconciliationRequired`` when it is played with different scores.
    """
    _validate_score(home_score, "Home")
    _validate_score(away_score, "Away")

    fixture = store.get_record(Fixture, fixture_id, lock=True)
    if fixture.played:
        return fixture, _resubmission(fixture, home_score, away_score)

    # Step 1: claim the transition, then log it. The played guard is part of
    # the UPDATE so a concurrent submission that got here first wins.
    claimed = store.update_where(
        Fixture, fixture.id, Fixture.played.is_(False),
        {
            "home_score": home_score,
            "away_score": away_score,
            "played": True,
            "status": FixtureStatus.FINISHED,
        },
    )
    if not claimed:
        db.session.rollback()
        fixture = store.get_record(Fixture, fixture_id)
        return fixture, _resubmission(fixture, home_score, away_score)

    entry = PendingResult(
        fixture_id=fixture.id,
        home_team_id=fixture.home_team_id,
        away_team_id=fixture.away_team_id,
        home_score=home_score,
        away_score=away_score,
    )
    store.insert(entry)

    # Step 2: the aggregates
    _apply_pending(entry)
    store.commit()

    logger.info(
        "Applied fixture %s: %s %s-%s %s",
        fixture.id, fixture.home_team_id, home_score, away_score,
        fixture.away_team_id,
    )
    event_bus.publish("result_applied", {
        "fixture_id": fixture.id,
        "home_team_id": fixture.home_team_id,
        "away_team_id": fixture.away_team_id,
        "home_score": home_score,
        "away_score": away_score,
    })
    return fixture, ApplyOutcome.APPLIED


def _apply_pending(entry):
    """Lock both teams, add the logged result and mark the entry applied.

    Leaves the commit to the caller.
    """
    # Lock in id order so concurrent results sharing a team cannot deadlock
    team_ids = sorted({entry.home_team_id, entry.away_team_id})
    teams = {tid: store.get_record(Team, tid, lock=True) for tid in team_ids}

    _apply_scoreline(
        teams[entry.home_team_id], teams[entry.away_team_id],
        entry.home_score, entry.away_score,
    )
    entry.resolve(PendingState.APPLIED)


def compute_aggregates(fixtures):
    """Replay played fixtures into ``{team_id: TeamAggregate}``."""
    aggregates = {}
    for fixture in fixtures:
        if not fixture.played:
            continue
        home = aggregates.setdefault(fixture.home_team_id, TeamAggregate())
        away = aggregates.setdefault(fixture.away_team_id, TeamAggregate())
        _apply_scoreline(home, away, fixture.home_score, fixture.away_score)
    return aggregates


def find_drift(teams, aggregates):
    """Compare stored team counters with recomputed aggregates."""
    drift = []
    for team in teams:
        expected = aggregates.get(team.id, TeamAggregate())
        for field in AGGREGATE_FIELDS:
            stored = getattr(team, field)
            wanted = getattr(expected, field)
            if stored != wanted:
                drift.append(Drift(team.id, field, stored, wanted))
    return drift


def recompute_standings(dry_run=False):
    """Rebuild every team's aggregates from fixture history.

    Offline reconciliation for counters that drifted (a resubmitted score,
    a crash between the two commits of ``apply_result``). Returns the
    drift found; writes the recomputed counters unless ``dry_run``.
    """
    fixtures = store.list_records(Fixture, played=True)
    teams = store.list_records(Team, Team.id)
    aggregates = compute_aggregates(fixtures)
    drift = find_drift(teams, aggregates)

    if dry_run:
        logger.info("Recompute dry run: %d drifting counters", len(drift))
        return drift

    for team in teams:
        expected = aggregates.get(team.id, TeamAggregate())
        for field in AGGREGATE_FIELDS:
            setattr(team, field, getattr(expected, field))

    # History now covers every played fixture, pending ones included
    played_ids = {f.id for f in fixtures}
    for entry in store.list_records(PendingResult, state=PendingState.PENDING):
        if entry.fixture_id in played_ids:
            entry.resolve(PendingState.APPLIED)

    store.commit()
    logger.info("Recomputed standings: %d drifting counters fixed", len(drift))
    return drift


def recover_pending_results():
    """Finish or roll back results left half-applied.

    An entry is completed when its fixture is still played with the logged
    scoreline, and rolled back otherwise. Aggregates are only touched for
    completed entries. Returns ``(completed, rolled_back)``.
    """
    completed = rolled_back = 0
    pending = store.list_records(
        PendingResult, PendingResult.id, state=PendingState.PENDING
    )

    for entry in pending:
        fixture = None
        if entry.fixture_id is not None:
            try:
                fixture = store.get_record(Fixture, entry.fixture_id)
            except NotFound:
                fixture = None

        if fixture is not None and fixture.scoreline == (entry.home_score, entry.away_score):
            _apply_pending(entry)
            completed += 1
            logger.info("Recovered pending result for fixture %s", entry.fixture_id)
        else:
            entry.resolve(PendingState.ROLLED_BACK)
            rolled_back += 1
            logger.warning(
                "Rolled back pending result for fixture %s", entry.fixture_id
            )
        store.commit()

    return completed, rolled_back


def sort_standings(teams):
    """Order a group table: points, goal difference, goals for, then name."""
    by_name = sorted(teams, key=lambda t: t.name.lower())
    return sorted(
        by_name,
        key=lambda t: (t.points, t.goal_difference, t.goals_for),
        reverse=True,
    )


def group_table(group_name):
    return sort_standings(store.list_records(Team, group_name=group_name))
