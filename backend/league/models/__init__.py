from league.models.team import Team
from league.models.player import Player
from league.models.fixture import Fixture, FixtureStatus
from league.models.knockout import KnockoutFixture, KnockoutStage
from league.models.pending_result import PendingResult, PendingState
from league.models.user import User

__all__ = [
    "Team",
    "Player",
    "Fixture",
    "FixtureStatus",
    "KnockoutFixture",
    "KnockoutStage",
    "PendingResult",
    "PendingState",
    "User",
]
