from league import store
from league.errors import InvalidInput
from league.models.fixture import Fixture
from league.models.player import Player
from league.models.team import Team


def create_team(data):
    team = Team(
        name=data["name"],
        group_name=data["group_name"],
        logo_url=data.get("logo_url"),
    )
    return store.insert(team)


def update_team(team_id, data):
    """Edit name, group or logo. Aggregates are never touched here."""
    team = store.get_record(Team, team_id)

    values = {}
    if "name" in data:
        values["name"] = data["name"]
    if "group_name" in data:
        values["group_name"] = data["group_name"]
    if "logo_url" in data:
        values["logo_url"] = data["logo_url"]

    return store.update(team, values)


def delete_team(team_id):
    team = store.get_record(Team, team_id)

    if store.count_records(Player, team_id=team.id) > 0:
        raise InvalidInput("Cannot delete team with registered players")

    fixtures = (
        store.count_records(Fixture, home_team_id=team.id)
        + store.count_records(Fixture, away_team_id=team.id)
    )
    if fixtures > 0:
        raise InvalidInput("Cannot delete team with scheduled or played fixtures")

    return store.delete(team)
