from datetime import date

from league.extensions import db
from league.models.fixture import Fixture, FixtureStatus
from league.models.knockout import KnockoutFixture, KnockoutStage
from league.models.player import Player
from league.models.team import Team


def make_team(name, group_name="A"):
    team = Team(name=name, group_name=group_name)
    db.session.add(team)
    db.session.commit()
    return team


def make_fixture(home, away, day=date(2024, 5, 10), time="15:00"):
    fixture = Fixture(
        date=day,
        time=time,
        home_team_id=home.id,
        away_team_id=away.id,
        status=FixtureStatus.SCHEDULED,
        played=False,
    )
    db.session.add(fixture)
    db.session.commit()
    return fixture


def make_player(name, team, goals=0, assists=0):
    player = Player(name=name, team_id=team.id, goals=goals, assists=assists)
    db.session.add(player)
    db.session.commit()
    return player


def make_knockout(stage="quarter", match_number=1, team1=None, team2=None,
                  day=date(2024, 6, 1)):
    knockout = KnockoutFixture(
        stage=KnockoutStage(stage),
        match_number=match_number,
        team1_id=team1.id if team1 else None,
        team2_id=team2.id if team2 else None,
        date=day,
        time="15:00",
    )
    db.session.add(knockout)
    db.session.commit()
    return knockout
