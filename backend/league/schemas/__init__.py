from league.schemas.team import TeamSchema, CreateTeamSchema, UpdateTeamSchema
from league.schemas.player import PlayerSchema, CreatePlayerSchema, UpdatePlayerSchema
from league.schemas.fixture import (
    FixtureSchema,
    CreateFixtureSchema,
    UpdateFixtureSchema,
    SubmitResultSchema,
    GenerateFixturesSchema,
)
from league.schemas.knockout import (
    KnockoutFixtureSchema,
    CreateKnockoutSchema,
    UpdateKnockoutSchema,
)
from league.schemas.user import UserSchema, RegisterSchema
from league.schemas.query import QueryParamsSchema

__all__ = [
    "TeamSchema",
    "CreateTeamSchema",
    "UpdateTeamSchema",
    "PlayerSchema",
    "CreatePlayerSchema",
    "UpdatePlayerSchema",
    "FixtureSchema",
    "CreateFixtureSchema",
    "UpdateFixtureSchema",
    "SubmitResultSchema",
    "GenerateFixturesSchema",
    "KnockoutFixtureSchema",
    "CreateKnockoutSchema",
    "UpdateKnockoutSchema",
    "UserSchema",
    "RegisterSchema",
    "QueryParamsSchema",
]
