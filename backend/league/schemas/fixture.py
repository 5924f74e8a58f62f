from league.extensions import ma
from league.models.fixture import Fixture
from marshmallow import Schema, ValidationError, fields, validate, validates_schema

TIME_FORMAT = validate.Regexp(r"^([01]\d|2[0-3]):[0-5]\d$", error="Time must be HH:MM.")


class FixtureSchema(ma.SQLAlchemyAutoSchema):
    class Meta:
        model = Fixture
        load_instance = True
        include_fk = True

    status = fields.Function(lambda obj: obj.status.value if obj.status else None)
    home_team = ma.Nested("TeamSchema", only=("id", "name", "group_name", "logo_url"), dump_only=True)
    away_team = ma.Nested("TeamSchema", only=("id", "name", "group_name", "logo_url"), dump_only=True)


class _DistinctTeamsMixin:
    @validates_schema
    def validate_distinct_teams(self, data, **kwargs):
        home = data.get("home_team_id")
        if home is not None and home == data.get("away_team_id"):
            raise ValidationError("Home and away teams must differ.", "away_team_id")


class CreateFixtureSchema(_DistinctTeamsMixin, Schema):
    date = fields.Date(required=True)
    time = fields.String(load_default=None, validate=TIME_FORMAT)
    home_team_id = fields.Integer(required=True)
    away_team_id = fields.Integer(required=True)


class UpdateFixtureSchema(_DistinctTeamsMixin, Schema):
    date = fields.Date()
    time = fields.String(validate=TIME_FORMAT)
    home_team_id = fields.Integer()
    away_team_id = fields.Integer()
    # finished is only reachable by recording a result
    status = fields.String(validate=validate.OneOf(["scheduled", "live"]))


class SubmitResultSchema(Schema):
    home_score = fields.Integer(required=True, strict=True, validate=validate.Range(min=0))
    away_score = fields.Integer(required=True, strict=True, validate=validate.Range(min=0))


class GenerateFixturesSchema(Schema):
    start_date = fields.Date(required=True)
    interval_days = fields.Integer(load_default=7, validate=validate.Range(min=1))
