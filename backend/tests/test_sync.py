import pytest

from league.errors import InvalidInput, NotFound, StorageUnavailable
from league.events import EventBus, event_bus
from league.query import PLAYER_QUERY
from league.services.player_service import update_player
from league.services.standings import apply_result
from league.services.team_service import update_team
from league.services.view_service import fetch_family, list_family, open_session, open_view
from league.sync import ViewSession, ViewSynchronizer

from factories import make_fixture, make_player, make_team


def _names(items):
    return [item["name"] for item in items]


class FakeStore:
    """Stands in for the storage collaborator: a mutable list of dicts."""

    def __init__(self, records):
        self.records = list(records)
        self.fetches = 0
        self.fail = False

    def fetch(self):
        self.fetches += 1
        if self.fail:
            raise StorageUnavailable("down")
        return [dict(r) for r in self.records]


def _player(pid, name, goals, team_id=1):
    team = {"id": team_id, "name": f"Team {team_id}", "group_name": "A"}
    return {"id": pid, "name": name, "team_id": team_id, "team": team,
            "goals": goals, "assists": 0}


# ── ViewSynchronizer with a fake store ──────────────────────────────────────


class TestViewSynchronizer:
    def test_initial_fetch_and_pipeline(self):
        bus = EventBus()
        fake = FakeStore([_player(1, "A", 1), _player(2, "B", 5)])

        view = ViewSynchronizer("players", fake.fetch, PLAYER_QUERY, bus, ["players"],
                                sort_key="goals", sort_order="desc")

        assert fake.fetches == 1
        assert _names(view.view) == ["B", "A"]
        assert set(view.entities) == {1, 2}
        view.close()

    def test_poll_without_notifications_does_not_fetch(self):
        bus = EventBus()
        fake = FakeStore([_player(1, "A", 1)])
        with ViewSynchronizer("players", fake.fetch, PLAYER_QUERY, bus, ["players"]) as view:
            assert view.poll() is False
            assert fake.fetches == 1

    def test_relevant_change_triggers_single_refetch(self):
        bus = EventBus()
        fake = FakeStore([_player(1, "A", 1)])
        with ViewSynchronizer("players", fake.fetch, PLAYER_QUERY, bus, ["players", "teams"]) as view:
            fake.records.append(_player(2, "B", 2))
            bus.notify_change("players")
            bus.notify_change("teams")
            bus.notify_change("players")

            assert view.poll() is True
            assert fake.fetches == 2
            assert _names(view.view) == ["A", "B"]

    def test_unrelated_change_ignored(self):
        bus = EventBus()
        fake = FakeStore([_player(1, "A", 1)])
        with ViewSynchronizer("players", fake.fetch, PLAYER_QUERY, bus, ["players"]) as view:
            bus.notify_change("fixtures")
            assert view.poll() is False
            assert fake.fetches == 1

    def test_deleted_record_disappears(self):
        bus = EventBus()
        fake = FakeStore([_player(1, "A", 1), _player(2, "B", 2)])
        with ViewSynchronizer("players", fake.fetch, PLAYER_QUERY, bus, ["players"]) as view:
            fake.records.pop(0)
            bus.notify_change("players")
            view.poll()
            assert set(view.entities) == {2}

    def test_set_params_reruns_without_fetch(self):
        bus = EventBus()
        fake = FakeStore([_player(1, "A", 1, team_id=1), _player(2, "B", 2, team_id=2)])
        with ViewSynchronizer("players", fake.fetch, PLAYER_QUERY, bus, ["players"]) as view:
            view.set_params(filters={"team": "2"})
            assert _names(view.view) == ["B"]
            assert view.params["filters"] == {"team": "2"}
            assert fake.fetches == 1

    def test_bad_params_leave_view_untouched(self):
        bus = EventBus()
        fake = FakeStore([_player(1, "A", 1)])
        with ViewSynchronizer("players", fake.fetch, PLAYER_QUERY, bus, ["players"]) as view:
            before = view.view
            with pytest.raises(InvalidInput):
                view.set_params(sort_key="height")
            assert view.view == before
            assert view.params["sort_key"] is None

    def test_bad_initial_params_rejected_without_subscription(self):
        bus = EventBus()
        fake = FakeStore([])
        with pytest.raises(InvalidInput):
            ViewSynchronizer("players", fake.fetch, PLAYER_QUERY, bus, ["players"],
                             sort_key="height")
        assert bus.subscriber_count == 0

    def test_failed_refetch_keeps_previous_collection(self):
        bus = EventBus()
        fake = FakeStore([_player(1, "A", 1)])
        with ViewSynchronizer("players", fake.fetch, PLAYER_QUERY, bus, ["players"]) as view:
            fake.fail = True
            bus.notify_change("players")
            with pytest.raises(StorageUnavailable):
                view.poll()
            assert _names(view.view) == ["A"]

    def test_failed_initial_fetch_releases_subscription(self):
        bus = EventBus()
        fake = FakeStore([])
        fake.fail = True
        with pytest.raises(StorageUnavailable):
            ViewSynchronizer("players", fake.fetch, PLAYER_QUERY, bus, ["players"])
        assert bus.subscriber_count == 0

    def test_dropped_subscription_resubscribes_and_refetches(self):
        bus = EventBus(maxsize=1)
        fake = FakeStore([_player(1, "A", 1)])
        with ViewSynchronizer("players", fake.fetch, PLAYER_QUERY, bus, ["players"]) as view:
            bus.notify_change("players")
            bus.notify_change("players")  # overflows, bus drops the view
            assert bus.subscriber_count == 0

            assert view.poll() is True
            assert bus.subscriber_count == 1
            assert fake.fetches == 2

    def test_wait_times_out_without_changes(self):
        bus = EventBus()
        fake = FakeStore([])
        with ViewSynchronizer("players", fake.fetch, PLAYER_QUERY, bus, ["players"]) as view:
            assert view.wait(timeout=0.01) is False

    def test_wait_refreshes_on_change(self):
        bus = EventBus()
        fake = FakeStore([])
        with ViewSynchronizer("players", fake.fetch, PLAYER_QUERY, bus, ["players"]) as view:
            fake.records.append(_player(1, "A", 1))
            bus.notify_change("players")
            assert view.wait(timeout=0.1) is True
            assert _names(view.view) == ["A"]

    def test_close_unsubscribes(self):
        bus = EventBus()
        view = ViewSynchronizer("players", FakeStore([]).fetch, PLAYER_QUERY, bus, ["players"])
        view.close()
        assert view.closed
        assert bus.subscriber_count == 0
        with pytest.raises(RuntimeError):
            view.poll()

    def test_view_returns_copies(self):
        bus = EventBus()
        fake = FakeStore([_player(1, "A", 1)])
        with ViewSynchronizer("players", fake.fetch, PLAYER_QUERY, bus, ["players"]) as view:
            view.view.clear()
            assert _names(view.view) == ["A"]


class TestViewSession:
    def test_session_closes_all_views(self):
        bus = EventBus()
        session = ViewSession()
        session.add(ViewSynchronizer("players", FakeStore([]).fetch, PLAYER_QUERY, bus, ["players"]))
        assert "players" in session
        assert bus.subscriber_count == 1

        session.close()

        assert bus.subscriber_count == 0
        assert "players" not in session

    def test_duplicate_family_rejected(self):
        bus = EventBus()
        with ViewSession() as session:
            session.add(ViewSynchronizer("players", FakeStore([]).fetch, PLAYER_QUERY, bus, ["players"]))
            duplicate = ViewSynchronizer("players", FakeStore([]).fetch, PLAYER_QUERY, bus, ["players"])
            with pytest.raises(ValueError):
                session.add(duplicate)
            duplicate.close()


# ── Views over the database ─────────────────────────────────────────────────


class TestDatabaseViews:
    def test_fetch_family_serializes_with_team(self):
        x = make_team("Team X")
        make_player("Amine", x, goals=2)

        players = fetch_family("players")

        assert players[0]["name"] == "Amine"
        assert players[0]["team"]["name"] == "Team X"

    def test_unknown_family(self):
        with pytest.raises(NotFound):
            fetch_family("referees")

    def test_list_family_scenario_filter_and_sort(self):
        x = make_team("Team X")
        y = make_team("Team Y")
        make_player("A", x, goals=3)
        make_player("B", x, goals=3)
        make_player("C", y, goals=9)
        make_player("D", x, goals=5)

        result = list_family("players", filters={"team": x.id}, sort_key="goals",
                             sort_order="desc")

        assert _names(result) == ["D", "A", "B"]

    def test_fixture_view_follows_result(self):
        x = make_team("Team X")
        y = make_team("Team Y")
        fixture = make_fixture(x, y)

        with open_view("fixtures", filters={"status": "played"}) as view:
            assert view.view == []

            apply_result(fixture.id, 2, 1)

            assert view.poll() is True
            assert [f["id"] for f in view.view] == [fixture.id]
            assert view.view[0]["home_score"] == 2

    def test_team_view_follows_aggregates(self):
        x = make_team("Team X")
        y = make_team("Team Y")
        fixture = make_fixture(x, y)

        with open_view("teams", sort_key="points", sort_order="desc") as view:
            apply_result(fixture.id, 0, 1)
            view.poll()
            assert _names(view.view) == ["Team Y", "Team X"]
            assert view.view[0]["wins"] == 1
            assert view.view[0]["points"] == 3

    def test_player_view_picks_up_team_rename(self):
        x = make_team("Team X")
        make_player("Amine", x)

        with open_view("players", search_term="atlas") as view:
            assert view.view == []
            update_team(x.id, {"name": "Atlas"})
            assert view.poll() is True
            assert _names(view.view) == ["Amine"]

    def test_session_polls_each_family(self):
        x = make_team("Team X")
        player = make_player("Amine", x)

        with open_session({"players": {}, "fixtures": {}}) as session:
            update_player(player.id, {"goals": 4})
            refreshed = session.poll()

            assert refreshed == ["players"]
            assert session["players"].view[0]["goals"] == 4

        assert event_bus.subscriber_count == 0

    def test_open_session_cleans_up_on_bad_params(self):
        with pytest.raises(InvalidInput):
            open_session({"players": {}, "teams": {"sort_key": "height"}})
        assert event_bus.subscriber_count == 0

    def test_view_sees_commits_from_another_session(self, app):
        x = make_team("Team X")
        y = make_team("Team Y")
        fixture_id = make_fixture(x, y).id

        with open_view("teams") as view:
            with app.app_context():
                apply_result(fixture_id, 2, 1)

            assert view.poll() is True
            wins = {team["name"]: team["wins"] for team in view.view}
            assert wins == {"Team X": 1, "Team Y": 0}

    def test_view_sees_rename_from_another_session(self, app):
        x = make_team("Team X")
        make_player("Amine", x)

        with open_view("players") as view:
            assert view.view[0]["team"]["name"] == "Team X"
            with app.app_context():
                update_team(x.id, {"name": "Atlas"})

            view.poll()
            assert view.view[0]["team"]["name"] == "Atlas"
