from league.extensions import db
from datetime import datetime, timezone
import enum


class FixtureStatus(enum.Enum):
    SCHEDULED = "scheduled"
    LIVE = "live"
    FINISHED = "finished"


class Fixture(db.Model):
    __tablename__ = "fixtures"

    id = db.Column(db.Integer, primary_key=True)
    date = db.Column(db.Date, nullable=False)
    time = db.Column(db.String(5), nullable=False)
    home_team_id = db.Column(db.Integer, db.ForeignKey("teams.id"), nullable=False)
    away_team_id = db.Column(db.Integer, db.ForeignKey("teams.id"), nullable=False)
    status = db.Column(
        db.Enum(FixtureStatus), nullable=False, default=FixtureStatus.SCHEDULED
    )
    played = db.Column(db.Boolean, nullable=False, default=False)
    home_score = db.Column(db.Integer, nullable=True)
    away_score = db.Column(db.Integer, nullable=True)
    created_at = db.Column(
        db.DateTime, nullable=False, default=lambda: datetime.now(timezone.utc)
    )

    __table_args__ = (
        db.CheckConstraint("home_team_id <> away_team_id", name="distinct_teams"),
    )

    @property
    def scoreline(self):
        if not self.played:
            return None
        return self.home_score, self.away_score

    def __repr__(self):
        return f"<Fixture {self.home_team_id} vs {self.away_team_id}>"
