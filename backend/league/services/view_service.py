from dataclasses import dataclass

from flask import current_app

from league import store
from league.errors import NotFound
from league.events import event_bus
from league.models.fixture import Fixture
from league.models.knockout import KnockoutFixture
from league.models.player import Player
from league.models.team import Team
from league.query import (
    ASC,
    KNOCKOUT_QUERY,
    PLAYER_QUERY,
    TEAM_QUERY,
    evaluate,
    fixture_query,
)
from league.schemas import (
    FixtureSchema,
    KnockoutFixtureSchema,
    PlayerSchema,
    TeamSchema,
)
from league.sync import ViewSession, ViewSynchronizer


@dataclass(frozen=True)
class Family:
    model: type
    schema: object
    order_by: tuple
    # Tables whose changes invalidate this family's view
    tables: tuple


FAMILIES = {
    "teams": Family(
        Team, TeamSchema(many=True),
        (Team.group_name, Team.name),
        ("teams",),
    ),
    "players": Family(
        Player, PlayerSchema(many=True),
        (Player.goals.desc(), Player.id),
        ("players", "teams"),
    ),
    "fixtures": Family(
        Fixture, FixtureSchema(many=True),
        (Fixture.date.desc(), Fixture.time, Fixture.id),
        ("fixtures", "teams"),
    ),
    "knockouts": Family(
        KnockoutFixture, KnockoutFixtureSchema(many=True),
        (KnockoutFixture.date, KnockoutFixture.time, KnockoutFixture.id),
        ("knockout_fixtures", "teams"),
    ),
}


def get_family(name):
    try:
        return FAMILIES[name]
    except KeyError:
        raise NotFound(f"Unknown collection: {name}") from None


def query_for(name):
    get_family(name)
    if name == "fixtures":
        return fixture_query(current_app.config["DATE_DISPLAY_FORMAT"])
    return {
        "teams": TEAM_QUERY,
        "players": PLAYER_QUERY,
        "knockouts": KNOCKOUT_QUERY,
    }[name]


def fetch_family(name):
    """Read a whole family, serialized, in its storage order.

    Reads from a fresh snapshot rather than the request session, so a view
    kept open across commits made elsewhere picks up their rows.
    """
    family = get_family(name)
    return store.read_snapshot(family.model, *family.order_by, dump=family.schema.dump)


def list_family(name, filters=None, search_term="", sort_key=None, sort_order=ASC):
    """One-shot fetch and evaluate for the plain list endpoints."""
    return evaluate(
        fetch_family(name),
        filters=filters,
        search_term=search_term,
        sort_key=sort_key,
        sort_order=sort_order,
        query=query_for(name),
    )


def open_view(name, bus=event_bus, **params):
    family = get_family(name)
    return ViewSynchronizer(
        name,
        fetch=lambda: fetch_family(name),
        query=query_for(name),
        bus=bus,
        tables=family.tables,
        **params,
    )


def open_session(params_by_family, bus=event_bus):
    """Build a ViewSession with one view per requested family."""
    session = ViewSession()
    try:
        for name, params in params_by_family.items():
            session.add(open_view(name, bus=bus, **params))
    except Exception:
        session.close()
        raise
    return session
