import io

import pandas as pd
import pytest

from league.models import Player, PlayerTeamLink, Team


@pytest.fixture(autouse=True)
def audit_dir(settings, tmp_path):
    settings.LEAGUE_TRANSFER_AUDIT_DIR = tmp_path / 'audit'
    return settings.LEAGUE_TRANSFER_AUDIT_DIR


@pytest.fixture
def make_team():
    def _make(name, season='2024', **kwargs):
        values = {
            'abbreviation': name[:3].upper(),
            'color': '#000000',
        }
        values.update(kwargs)
        return Team.objects.create(name=name, season=season, **values)
    return _make


@pytest.fixture
def make_link():
    def _make(player, team, number=0, jersey='', statistics=None):
        if isinstance(player, str):
            player = Player.objects.create(name=player)
        return PlayerTeamLink.objects.create(
            player=player,
            team=team,
            season=team.season,
            number=number,
            jersey=jersey,
            statistics=statistics if statistics is not None else {},
        )
    return _make


@pytest.fixture
def league_2024(make_team, make_link):
    """Two teams in 2024 with two players each"""
    team_a = make_team('Team A', city='Curitiba', state_flag='pr.png', logo='a.png')
    team_b = make_team('Team B', city='Recife', state_flag='pe.png', logo='b.png')
    links = {
        'ana': make_link('Ana', team_a, number=1, jersey='a1.png'),
        'bia': make_link('Bia', team_a, number=2, jersey='a2.png'),
        'caio': make_link('Caio', team_b, number=10, jersey='b10.png'),
        'duda': make_link('Duda', team_b, number=11, jersey='b11.png'),
    }
    return {'team_a': team_a, 'team_b': team_b, 'links': links}


def xlsx_bytes(rows):
    buffer = io.BytesIO()
    pd.DataFrame(rows).to_excel(buffer, index=False)
    return buffer.getvalue()


@pytest.fixture
def make_xlsx():
    return xlsx_bytes
