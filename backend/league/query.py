"""Filter -> search -> sort evaluation shared by every list view.

Entities are the plain dicts produced by the marshmallow schemas. An
``EntityQuery`` names, for one family, the fields that can be filtered on,
the strings a search term is matched against, and the available sort keys.
"""
from dataclasses import dataclass, field
from datetime import date
from typing import Callable, Optional

from league.errors import InvalidInput

ALL = "all"
ASC = "asc"
DESC = "desc"
SORT_ORDERS = (ASC, DESC)


@dataclass(frozen=True)
class FilterField:
    """How to read a filterable value off an entity.

    ``selector`` returns a single value, or a tuple of values when
    ``multi`` is set (the clause then matches if any of them does).
    ``normalize`` converts raw clause values (usually query-string text).
    """

    selector: Callable
    normalize: Optional[Callable] = None
    multi: bool = False


@dataclass(frozen=True)
class EntityQuery:
    name: str
    filters: dict = field(default_factory=dict)
    search: tuple = ()
    sort_keys: dict = field(default_factory=dict)


# ── Stages ───────────────────────────────────────────────────────────────────

def _is_unrestricted(value):
    return value is None or value == ALL or value == ""


def _clause(query, name, value):
    try:
        filter_field = query.filters[name]
    except KeyError:
        raise InvalidInput(f"Unknown {query.name} filter: {name}") from None

    normalize = filter_field.normalize or (lambda v: v)
    if isinstance(value, (list, tuple, set, frozenset)):
        # "all" or blank members of a repeated parameter carry no restriction
        members = [v for v in value if not _is_unrestricted(v)]
        if not members:
            return None
        wanted = {normalize(v) for v in members}
    else:
        wanted = {normalize(value)}

    def matches(entity):
        selected = filter_field.selector(entity)
        candidates = selected if filter_field.multi else (selected,)
        return any(c in wanted for c in candidates)

    return matches


def apply_filters(items, filters, query):
    clauses = [
        _clause(query, name, value)
        for name, value in (filters or {}).items()
        if not _is_unrestricted(value)
    ]
    clauses = [c for c in clauses if c is not None]
    if not clauses:
        return list(items)
    return [item for item in items if all(c(item) for c in clauses)]


def apply_search(items, search_term, query):
    term = (search_term or "").strip().lower()
    if not term:
        return list(items)
    return [
        item for item in items
        if any(term in (project(item) or "").lower() for project in query.search)
    ]


def apply_sort(items, sort_key, sort_order, query):
    if sort_order not in SORT_ORDERS:
        raise InvalidInput(f"Sort order must be one of {', '.join(SORT_ORDERS)}")
    if sort_key is None:
        return list(items)
    try:
        key = query.sort_keys[sort_key]
    except KeyError:
        raise InvalidInput(f"Unknown {query.name} sort key: {sort_key}") from None
    # sorted() is stable, with reverse=True too
    return sorted(items, key=key, reverse=sort_order == DESC)


def evaluate(collection, filters=None, search_term=None, sort_key=None,
             sort_order=ASC, *, query):
    """Run filter, search and sort over a copy of ``collection``.

    Pure: the input is left untouched and the same arguments always give
    the same sequence. Re-evaluating a result with the same arguments
    returns it unchanged.
    """
    items = list(collection)
    items = apply_filters(items, filters, query)
    items = apply_search(items, search_term, query)
    return apply_sort(items, sort_key, sort_order, query)


# ── Projections ──────────────────────────────────────────────────────────────

def _lower(value):
    return (value or "").lower()


def _nested_name(key):
    def project(entity):
        nested = entity.get(key) or {}
        return nested.get("name") or ""

    return project


def _nested_group(entity, key):
    return (entity.get(key) or {}).get("group_name")


def _as_int(value):
    try:
        return int(value)
    except (TypeError, ValueError):
        raise InvalidInput(f"Expected an integer id, got {value!r}") from None


def _date_projection(date_format):
    def project(entity):
        value = entity.get("date")
        if not value:
            return ""
        return date.fromisoformat(value).strftime(date_format)

    return project


# ── Families ─────────────────────────────────────────────────────────────────

FIXTURE_STATUS_ALIASES = {"played": "finished", "upcoming": "scheduled"}

_STATUS_ORDER = {"scheduled": 0, "live": 1, "finished": 2}
_STAGE_ORDER = {"quarter": 0, "semi": 1, "final": 2}


TEAM_QUERY = EntityQuery(
    name="team",
    filters={
        "group": FilterField(lambda t: t.get("group_name")),
    },
    search=(lambda t: t.get("name"),),
    sort_keys={
        "name": lambda t: _lower(t.get("name")),
        "points": lambda t: t["points"],
        "goal_difference": lambda t: t["goal_difference"],
        "goals_for": lambda t: t["goals_for"],
        "wins": lambda t: t["wins"],
    },
)


PLAYER_QUERY = EntityQuery(
    name="player",
    filters={
        "team": FilterField(lambda p: p.get("team_id"), normalize=_as_int),
    },
    search=(
        lambda p: p.get("name"),
        _nested_name("team"),
    ),
    sort_keys={
        "name": lambda p: _lower(p.get("name")),
        "goals": lambda p: p["goals"],
        "assists": lambda p: p["assists"],
        "total": lambda p: p["goals"] + p["assists"],
    },
)


def fixture_query(date_format="%d/%m/%Y"):
    """Fixture query; ``date_format`` drives the display-date search projection."""
    return EntityQuery(
        name="fixture",
        filters={
            "status": FilterField(
                lambda f: f.get("status"),
                normalize=lambda v: FIXTURE_STATUS_ALIASES.get(v, v),
            ),
            "group": FilterField(
                lambda f: (_nested_group(f, "home_team"), _nested_group(f, "away_team")),
                multi=True,
            ),
            "team": FilterField(
                lambda f: (f.get("home_team_id"), f.get("away_team_id")),
                normalize=_as_int,
                multi=True,
            ),
        },
        search=(
            _nested_name("home_team"),
            _nested_name("away_team"),
            lambda f: f.get("date") or "",
            _date_projection(date_format),
        ),
        sort_keys={
            "date": lambda f: (f.get("date") or "", f.get("time") or ""),
            "status": lambda f: _STATUS_ORDER.get(f.get("status"), len(_STATUS_ORDER)),
        },
    )


FIXTURE_QUERY = fixture_query()


KNOCKOUT_QUERY = EntityQuery(
    name="knockout",
    filters={
        "stage": FilterField(lambda k: k.get("stage")),
        "status": FilterField(
            lambda k: k.get("status"),
            normalize=lambda v: FIXTURE_STATUS_ALIASES.get(v, v),
        ),
    },
    search=(
        _nested_name("team1"),
        _nested_name("team2"),
        lambda k: k.get("stage"),
    ),
    sort_keys={
        "stage": lambda k: (_STAGE_ORDER.get(k.get("stage"), len(_STAGE_ORDER)),
                            k.get("match_number") or 0),
        "date": lambda k: (k.get("date") or "", k.get("time") or ""),
    },
)
