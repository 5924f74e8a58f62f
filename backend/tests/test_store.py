import json
from unittest import mock

import pytest
from sqlalchemy.exc import OperationalError

from league import store
from league.errors import InvalidInput, NotFound, StorageUnavailable
from league.events import event_bus
from league.extensions import db
from league.models.player import Player
from league.models.team import Team

from factories import make_player, make_team


def _db_down(*args, **kwargs):
    raise OperationalError("SELECT 1", {}, Exception("connection refused"))


def test_get_record_not_found_names_the_kind():
    with pytest.raises(NotFound) as exc:
        store.get_record(Player, 42)
    assert exc.value.message == "Player not found"
    assert exc.value.status_code == 404


def test_get_record_maps_driver_failure():
    with mock.patch.object(db.session, "get", side_effect=_db_down):
        with pytest.raises(StorageUnavailable):
            store.get_record(Team, 1)


def test_commit_failure_rolls_back():
    team = make_team("Team X")
    team.name = "Renamed"

    with mock.patch.object(db.session, "commit", side_effect=_db_down):
        with pytest.raises(StorageUnavailable):
            store.commit()

    db.session.refresh(team)
    assert team.name == "Team X"


def test_unique_violation_is_invalid_input():
    make_team("Team X")

    with pytest.raises(InvalidInput):
        store.insert(Team(name="Team X", group_name="B"))

    assert Team.query.count() == 1


def test_list_and_count_with_filters():
    x = make_team("Team X")
    y = make_team("Team Y")
    make_player("B", x, goals=1)
    make_player("A", x, goals=4)
    make_player("C", y)

    players = store.list_records(Player, Player.goals.desc(), team_id=x.id)

    assert [p.name for p in players] == ["A", "B"]
    assert store.count_records(Player, team_id=y.id) == 1


def test_delete_record():
    team = make_team("Team X")

    store.delete(team)

    with pytest.raises(NotFound):
        store.get_record(Team, team.id)


def test_update_where_only_touches_matching_row():
    team = make_team("Team X")

    changed = store.update_where(Team, team.id, Team.wins == 0, {"wins": 1})
    store.commit()
    unchanged = store.update_where(Team, team.id, Team.wins == 0, {"wins": 5})
    store.commit()

    db.session.refresh(team)
    assert (changed, unchanged) == (1, 0)
    assert team.wins == 1


def test_update_where_feeds_change_notifications():
    team = make_team("Team X")
    q = event_bus.subscribe()

    store.update_where(Team, team.id, Team.wins == 0, {"wins": 1})
    store.commit()

    assert json.loads(q.get_nowait())["data"]["table"] == "teams"


def test_read_snapshot_sees_rows_committed_elsewhere(app):
    team = make_team("Team X")
    store.read_snapshot(Team, Team.id, dump=list)

    with app.app_context():
        store.update(store.get_record(Team, team.id), {"name": "Atlas"})

    names = store.read_snapshot(Team, Team.id, dump=lambda teams: [t.name for t in teams])
    assert names == ["Atlas"]


def test_read_snapshot_maps_driver_failure():
    with mock.patch.object(store, "Session") as session_cls:
        session_cls.return_value.scalars.side_effect = _db_down
        with pytest.raises(StorageUnavailable):
            store.read_snapshot(Team, dump=list)
        session_cls.return_value.close.assert_called_once()
