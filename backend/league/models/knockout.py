from league.extensions import db
from league.models.fixture import FixtureStatus
from datetime import datetime, timezone
import enum


class KnockoutStage(enum.Enum):
    QUARTER = "quarter"
    SEMI = "semi"
    FINAL = "final"


# Highest match number per stage
STAGE_SLOTS = {
    KnockoutStage.QUARTER: 4,
    KnockoutStage.SEMI: 2,
    KnockoutStage.FINAL: 1,
}

STAGE_ORDER = {
    KnockoutStage.QUARTER: 0,
    KnockoutStage.SEMI: 1,
    KnockoutStage.FINAL: 2,
}


class KnockoutFixture(db.Model):
    __tablename__ = "knockout_fixtures"

    id = db.Column(db.Integer, primary_key=True)
    stage = db.Column(db.Enum(KnockoutStage), nullable=False)
    match_number = db.Column(db.Integer, nullable=False, default=1)
    team1_id = db.Column(db.Integer, db.ForeignKey("teams.id"), nullable=True)
    team2_id = db.Column(db.Integer, db.ForeignKey("teams.id"), nullable=True)
    date = db.Column(db.Date, nullable=False)
    time = db.Column(db.String(5), nullable=False)
    status = db.Column(
        db.Enum(FixtureStatus), nullable=False, default=FixtureStatus.SCHEDULED
    )
    team1_score = db.Column(db.Integer, nullable=True)
    team2_score = db.Column(db.Integer, nullable=True)
    created_at = db.Column(
        db.DateTime, nullable=False, default=lambda: datetime.now(timezone.utc)
    )

    # Relationships
    team1 = db.relationship("Team", foreign_keys=[team1_id])
    team2 = db.relationship("Team", foreign_keys=[team2_id])

    __table_args__ = (
        db.UniqueConstraint("stage", "match_number", name="uq_knockout_stage_match"),
    )

    def __repr__(self):
        return f"<KnockoutFixture {self.stage.value} {self.match_number}>"
