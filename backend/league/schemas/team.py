from flask import current_app
from league.extensions import ma
from league.models.team import Team
from marshmallow import Schema, ValidationError, fields, validate, validates


class TeamSchema(ma.SQLAlchemyAutoSchema):
    class Meta:
        model = Team
        load_instance = True

    played = fields.Integer(dump_only=True)
    goal_difference = fields.Integer(dump_only=True)
    points = fields.Integer(dump_only=True)


class _GroupLabelMixin:
    @validates("group_name")
    def validate_group_name(self, value, **kwargs):
        labels = current_app.config["GROUP_LABELS"]
        if value not in labels:
            raise ValidationError(f"Must be one of: {', '.join(labels)}.")


class CreateTeamSchema(_GroupLabelMixin, Schema):
    name = fields.String(required=True, validate=validate.Length(min=1, max=200))
    group_name = fields.String(required=True)
    logo_url = fields.String(load_default=None, validate=validate.Length(max=500), allow_none=True)


class UpdateTeamSchema(_GroupLabelMixin, Schema):
    # Counters are deliberately absent: only results change them
    name = fields.String(validate=validate.Length(min=1, max=200))
    group_name = fields.String()
    logo_url = fields.String(validate=validate.Length(max=500), allow_none=True)
