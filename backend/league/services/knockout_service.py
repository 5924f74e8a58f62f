from flask import current_app

from league import store
from league.errors import InvalidInput
from league.models.fixture import FixtureStatus
from league.models.knockout import KnockoutFixture, KnockoutStage, STAGE_SLOTS
from league.models.team import Team


def _match_number(stage, match_number):
    """Check the match number against the stage. The final has a single slot."""
    if stage is KnockoutStage.FINAL:
        return 1
    slots = STAGE_SLOTS[stage]
    if not 1 <= match_number <= slots:
        raise InvalidInput(
            f"Match number for {stage.value} must be between 1 and {slots}"
        )
    return match_number


def _check_teams(team1_id, team2_id):
    if team1_id is not None and team1_id == team2_id:
        raise InvalidInput("A team cannot play itself")
    for team_id in (team1_id, team2_id):
        if team_id is not None:
            store.get_record(Team, team_id)


def create_knockout(data):
    stage = KnockoutStage(data["stage"])
    _check_teams(data.get("team1_id"), data.get("team2_id"))

    knockout = KnockoutFixture(
        stage=stage,
        match_number=_match_number(stage, data.get("match_number", 1)),
        team1_id=data.get("team1_id"),
        team2_id=data.get("team2_id"),
        date=data["date"],
        time=data.get("time") or current_app.config["DEFAULT_KICKOFF_TIME"],
        status=FixtureStatus.SCHEDULED,
    )
    return store.insert(knockout)


def update_knockout(knockout_id, data):
    knockout = store.get_record(KnockoutFixture, knockout_id)

    stage = KnockoutStage(data["stage"]) if "stage" in data else knockout.stage
    match_number = data.get("match_number", knockout.match_number)
    team1_id = data.get("team1_id", knockout.team1_id)
    team2_id = data.get("team2_id", knockout.team2_id)
    _check_teams(team1_id, team2_id)

    values = {
        "stage": stage,
        "match_number": _match_number(stage, match_number),
        "team1_id": team1_id,
        "team2_id": team2_id,
    }
    for key in ("date", "time", "team1_score", "team2_score"):
        if key in data:
            values[key] = data[key]
    if "status" in data:
        values["status"] = FixtureStatus(data["status"])

    return store.update(knockout, values)


def delete_knockout(knockout_id):
    knockout = store.get_record(KnockoutFixture, knockout_id)
    return store.delete(knockout)
