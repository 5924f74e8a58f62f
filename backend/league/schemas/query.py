from marshmallow import Schema, fields, validate

from league.query import SORT_ORDERS, ASC


class QueryParamsSchema(Schema):
    """Search and sort parameters shared by every list endpoint."""

    search = fields.String(load_default="")
    sort = fields.String(load_default=None)
    order = fields.String(load_default=ASC, validate=validate.OneOf(SORT_ORDERS))
