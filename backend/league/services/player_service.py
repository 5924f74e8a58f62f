from league import store
from league.models.player import Player
from league.models.team import Team


def _require_team(team_id):
    # A player always belongs to an existing team
    return store.get_record(Team, team_id)


def create_player(data):
    team = _require_team(data["team_id"])

    player = Player(
        name=data["name"],
        team_id=team.id,
        goals=data.get("goals", 0),
        assists=data.get("assists", 0),
        photo_url=data.get("photo_url"),
    )
    return store.insert(player)


def update_player(player_id, data):
    player = store.get_record(Player, player_id)

    if "team_id" in data:
        _require_team(data["team_id"])

    values = {
        key: data[key]
        for key in ("name", "team_id", "goals", "assists", "photo_url")
        if key in data
    }
    return store.update(player, values)


def delete_player(player_id):
    player = store.get_record(Player, player_id)
    return store.delete(player)
