from flask import Blueprint, request, jsonify
from marshmallow import EXCLUDE

from league import store
from league.models.fixture import Fixture
from league.models.knockout import KnockoutFixture
from league.models.player import Player
from league.models.team import Team

from league.schemas import (
    TeamSchema,
    CreateTeamSchema,
    UpdateTeamSchema,
    PlayerSchema,
    CreatePlayerSchema,
    UpdatePlayerSchema,
    FixtureSchema,
    CreateFixtureSchema,
    UpdateFixtureSchema,
    SubmitResultSchema,
    GenerateFixturesSchema,
    KnockoutFixtureSchema,
    CreateKnockoutSchema,
    UpdateKnockoutSchema,
    QueryParamsSchema,
)

from league.auth.decorators import auth_required
from league.services.team_service import create_team, update_team, delete_team
from league.services.player_service import create_player, update_player, delete_player
from league.services.fixture_service import (
    create_fixture,
    update_fixture,
    delete_fixture,
    generate_group_fixtures,
)
from league.services.knockout_service import (
    create_knockout,
    update_knockout,
    delete_knockout,
)
from league.services.standings import apply_result, group_table
from league.services.view_service import list_family, query_for

api_bp = Blueprint("api", __name__)

# ── Schema instances ─────────────────────────────────────────────────────────
team_schema = TeamSchema()
teams_schema = TeamSchema(many=True)
create_team_schema = CreateTeamSchema()
update_team_schema = UpdateTeamSchema()

player_schema = PlayerSchema()
create_player_schema = CreatePlayerSchema()
update_player_schema = UpdatePlayerSchema()

fixture_schema = FixtureSchema()
create_fixture_schema = CreateFixtureSchema()
update_fixture_schema = UpdateFixtureSchema()
submit_result_schema = SubmitResultSchema()
generate_fixtures_schema = GenerateFixturesSchema()

knockout_schema = KnockoutFixtureSchema()
create_knockout_schema = CreateKnockoutSchema()
update_knockout_schema = UpdateKnockoutSchema()

query_params_schema = QueryParamsSchema(unknown=EXCLUDE)


def pipeline_params(family):
    """Read filter, search and sort parameters for ``family`` from the query string.

    A repeated filter parameter becomes a membership test.
    """
    params = query_params_schema.load(request.args)
    filters = {}
    for name in query_for(family).filters:
        values = request.args.getlist(name)
        if len(values) == 1:
            filters[name] = values[0]
        elif values:
            filters[name] = values
    return {
        "filters": filters,
        "search_term": params["search"],
        "sort_key": params["sort"],
        "sort_order": params["order"],
    }


def _list_response(family):
    items = list_family(family, **pipeline_params(family))
    return jsonify({family: items, "count": len(items)}), 200


# ─── Teams ────────────────────────────────────────────────────────────────────

@api_bp.route("/teams", methods=["GET"])
def get_teams():
    return _list_response("teams")


@api_bp.route("/teams/<int:team_id>", methods=["GET"])
def get_team(team_id):
    team = store.get_record(Team, team_id)
    return jsonify({"team": team_schema.dump(team)}), 200


@api_bp.route("/teams", methods=["POST"])
@auth_required
def create_team_route():
    data = create_team_schema.load(request.get_json())
    team = create_team(data)
    return jsonify({"team": team_schema.dump(team)}), 201


@api_bp.route("/teams/<int:team_id>", methods=["PUT"])
@auth_required
def update_team_route(team_id):
    data = update_team_schema.load(request.get_json())
    team = update_team(team_id, data)
    return jsonify({"team": team_schema.dump(team)}), 200


@api_bp.route("/teams/<int:team_id>", methods=["DELETE"])
@auth_required
def delete_team_route(team_id):
    delete_team(team_id)
    return jsonify({"message": "Team deleted"}), 200


@api_bp.route("/standings", methods=["GET"])
def get_standings():
    groups = request.args.getlist("group") or sorted(
        {team.group_name for team in store.list_records(Team)}
    )
    tables = {group: teams_schema.dump(group_table(group)) for group in groups}
    return jsonify({"standings": tables}), 200


# ─── Players ──────────────────────────────────────────────────────────────────

@api_bp.route("/players", methods=["GET"])
def get_players():
    return _list_response("players")


@api_bp.route("/players/<int:player_id>", methods=["GET"])
def get_player(player_id):
    player = store.get_record(Player, player_id)
    return jsonify({"player": player_schema.dump(player)}), 200


@api_bp.route("/players", methods=["POST"])
@auth_required
def create_player_route():
    data = create_player_schema.load(request.get_json())
    player = create_player(data)
    return jsonify({"player": player_schema.dump(player)}), 201


@api_bp.route("/players/<int:player_id>", methods=["PUT"])
@auth_required
def update_player_route(player_id):
    data = update_player_schema.load(request.get_json())
    player = update_player(player_id, data)
    return jsonify({"player": player_schema.dump(player)}), 200


@api_bp.route("/players/<int:player_id>", methods=["DELETE"])
@auth_required
def delete_player_route(player_id):
    delete_player(player_id)
    return jsonify({"message": "Player deleted"}), 200


# ─── Fixtures ─────────────────────────────────────────────────────────────────

@api_bp.route("/fixtures", methods=["GET"])
def get_fixtures():
    return _list_response("fixtures")


@api_bp.route("/fixtures/<int:fixture_id>", methods=["GET"])
def get_fixture(fixture_id):
    fixture = store.get_record(Fixture, fixture_id)
    return jsonify({"fixture": fixture_schema.dump(fixture)}), 200


@api_bp.route("/fixtures", methods=["POST"])
@auth_required
def create_fixture_route():
    data = create_fixture_schema.load(request.get_json())
    fixture = create_fixture(data)
    return jsonify({"fixture": fixture_schema.dump(fixture)}), 201


@api_bp.route("/fixtures/<int:fixture_id>", methods=["PUT"])
@auth_required
def update_fixture_route(fixture_id):
    data = update_fixture_schema.load(request.get_json())
    fixture = update_fixture(fixture_id, data)
    return jsonify({"fixture": fixture_schema.dump(fixture)}), 200


@api_bp.route("/fixtures/<int:fixture_id>", methods=["DELETE"])
@auth_required
def delete_fixture_route(fixture_id):
    delete_fixture(fixture_id)
    return jsonify({"message": "Fixture deleted"}), 200


@api_bp.route("/fixtures/generate", methods=["POST"])
@auth_required
def generate_fixtures_route():
    data = generate_fixtures_schema.load(request.get_json())
    fixtures = generate_group_fixtures(data["start_date"], data["interval_days"])
    return jsonify({"count": len(fixtures)}), 201


@api_bp.route("/fixtures/<int:fixture_id>/result", methods=["POST"])
@auth_required
def record_result(fixture_id):
    data = submit_result_schema.load(request.get_json())
    fixture, outcome = apply_result(fixture_id, data["home_score"], data["away_score"])
    return jsonify({
        "fixture": fixture_schema.dump(fixture),
        "outcome": outcome.value,
    }), 200


# ─── Knockouts ────────────────────────────────────────────────────────────────

@api_bp.route("/knockouts", methods=["GET"])
def get_knockouts():
    return _list_response("knockouts")


@api_bp.route("/knockouts/<int:knockout_id>", methods=["GET"])
def get_knockout(knockout_id):
    knockout = store.get_record(KnockoutFixture, knockout_id)
    return jsonify({"knockout": knockout_schema.dump(knockout)}), 200


@api_bp.route("/knockouts", methods=["POST"])
@auth_required
def create_knockout_route():
    data = create_knockout_schema.load(request.get_json())
    knockout = create_knockout(data)
    return jsonify({"knockout": knockout_schema.dump(knockout)}), 201


@api_bp.route("/knockouts/<int:knockout_id>", methods=["PUT"])
@auth_required
def update_knockout_route(knockout_id):
    data = update_knockout_schema.load(request.get_json())
    knockout = update_knockout(knockout_id, data)
    return jsonify({"knockout": knockout_schema.dump(knockout)}), 200


@api_bp.route("/knockouts/<int:knockout_id>", methods=["DELETE"])
@auth_required
def delete_knockout_route(knockout_id):
    delete_knockout(knockout_id)
    return jsonify({"message": "Knockout fixture deleted"}), 200
