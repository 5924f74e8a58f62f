from league.extensions import ma
from league.models.knockout import KnockoutFixture
from league.schemas.fixture import TIME_FORMAT
from marshmallow import Schema, ValidationError, fields, validate, validates_schema

STAGES = ["quarter", "semi", "final"]
STATUSES = ["scheduled", "live", "finished"]


class KnockoutFixtureSchema(ma.SQLAlchemyAutoSchema):
    class Meta:
        model = KnockoutFixture
        load_instance = True
        include_fk = True

    stage = fields.Function(lambda obj: obj.stage.value if obj.stage else None)
    status = fields.Function(lambda obj: obj.status.value if obj.status else None)
    team1 = ma.Nested("TeamSchema", only=("id", "name", "logo_url"), dump_only=True, allow_none=True)
    team2 = ma.Nested("TeamSchema", only=("id", "name", "logo_url"), dump_only=True, allow_none=True)


class _KnockoutTeamsMixin:
    @validates_schema
    def validate_distinct_teams(self, data, **kwargs):
        team1 = data.get("team1_id")
        if team1 is not None and team1 == data.get("team2_id"):
            raise ValidationError("A team cannot play itself.", "team2_id")


class CreateKnockoutSchema(_KnockoutTeamsMixin, Schema):
    stage = fields.String(required=True, validate=validate.OneOf(STAGES))
    match_number = fields.Integer(load_default=1, validate=validate.Range(min=1, max=4))
    team1_id = fields.Integer(load_default=None, allow_none=True)
    team2_id = fields.Integer(load_default=None, allow_none=True)
    date = fields.Date(required=True)
    time = fields.String(load_default=None, validate=TIME_FORMAT)


class UpdateKnockoutSchema(_KnockoutTeamsMixin, Schema):
    stage = fields.String(validate=validate.OneOf(STAGES))
    match_number = fields.Integer(validate=validate.Range(min=1, max=4))
    team1_id = fields.Integer(allow_none=True)
    team2_id = fields.Integer(allow_none=True)
    date = fields.Date()
    time = fields.String(validate=TIME_FORMAT)
    status = fields.String(validate=validate.OneOf(STATUSES))
    team1_score = fields.Integer(allow_none=True, validate=validate.Range(min=0))
    team2_score = fields.Integer(allow_none=True, validate=validate.Range(min=0))
