from league.extensions import db
from datetime import datetime, timezone
import enum


class PendingState(enum.Enum):
    PENDING = "pending"
    APPLIED = "applied"
    ROLLED_BACK = "rolled_back"


class PendingResult(db.Model):
    """Log entry written with the fixture's played flag, resolved once the
    team aggregates have been updated (or abandoned by recovery)."""

    __tablename__ = "pending_results"

    id = db.Column(db.Integer, primary_key=True)
    fixture_id = db.Column(
        db.Integer, db.ForeignKey("fixtures.id", ondelete="SET NULL"),
        nullable=True, index=True,
    )
    home_team_id = db.Column(db.Integer, nullable=False)
    away_team_id = db.Column(db.Integer, nullable=False)
    home_score = db.Column(db.Integer, nullable=False)
    away_score = db.Column(db.Integer, nullable=False)
    state = db.Column(
        db.Enum(PendingState), nullable=False, default=PendingState.PENDING
    )
    created_at = db.Column(
        db.DateTime, nullable=False, default=lambda: datetime.now(timezone.utc)
    )
    resolved_at = db.Column(db.DateTime, nullable=True)

    def resolve(self, state):
        self.state = state
        self.resolved_at = datetime.now(timezone.utc)

    def __repr__(self):
        return f"<PendingResult fixture={self.fixture_id} {self.state.value}>"
