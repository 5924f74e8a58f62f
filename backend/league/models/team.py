from league.extensions import db
from datetime import datetime, timezone


class Team(db.Model):
    __tablename__ = "teams"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), unique=True, nullable=False)
    group_name = db.Column(db.String(10), nullable=False)
    logo_url = db.Column(db.String(500), nullable=True)

    # Aggregates, written only by the standings service
    wins = db.Column(db.Integer, nullable=False, default=0)
    draws = db.Column(db.Integer, nullable=False, default=0)
    losses = db.Column(db.Integer, nullable=False, default=0)
    goals_for = db.Column(db.Integer, nullable=False, default=0)
    goals_against = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(
        db.DateTime, nullable=False, default=lambda: datetime.now(timezone.utc)
    )

    # Relationships
    players = db.relationship("Player", backref="team", lazy="dynamic")
    home_fixtures = db.relationship(
        "Fixture", foreign_keys="Fixture.home_team_id", backref="home_team", lazy="dynamic"
    )
    away_fixtures = db.relationship(
        "Fixture", foreign_keys="Fixture.away_team_id", backref="away_team", lazy="dynamic"
    )

    __table_args__ = (
        db.CheckConstraint(
            "wins >= 0 AND draws >= 0 AND losses >= 0 "
            "AND goals_for >= 0 AND goals_against >= 0",
            name="counters_non_negative",
        ),
    )

    @property
    def played(self):
        return self.wins + self.draws + self.losses

    @property
    def goal_difference(self):
        return self.goals_for - self.goals_against

    @property
    def points(self):
        return self.wins * 3 + self.draws

    def __repr__(self):
        return f"<Team {self.name}>"
