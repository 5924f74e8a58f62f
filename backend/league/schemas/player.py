from league.extensions import ma
from league.models.player import Player
from marshmallow import Schema, fields, validate


class PlayerSchema(ma.SQLAlchemyAutoSchema):
    class Meta:
        model = Player
        load_instance = True
        include_fk = True

    total = fields.Integer(dump_only=True)
    team = ma.Nested("TeamSchema", only=("id", "name", "group_name", "logo_url"), dump_only=True)


class CreatePlayerSchema(Schema):
    name = fields.String(required=True, validate=validate.Length(min=1, max=200))
    team_id = fields.Integer(required=True)
    goals = fields.Integer(load_default=0, validate=validate.Range(min=0))
    assists = fields.Integer(load_default=0, validate=validate.Range(min=0))
    photo_url = fields.String(load_default=None, validate=validate.Length(max=500), allow_none=True)


class UpdatePlayerSchema(Schema):
    name = fields.String(validate=validate.Length(min=1, max=200))
    team_id = fields.Integer()
    goals = fields.Integer(validate=validate.Range(min=0))
    assists = fields.Integer(validate=validate.Range(min=0))
    photo_url = fields.String(validate=validate.Length(max=500), allow_none=True)
