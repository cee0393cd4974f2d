import pytest

from league.models import Player, PlayerTeamLink, Team
from league.roster_import import import_player_rows, import_team_rows, suggest_team_name


@pytest.mark.django_db
class TestImportTeams:
    def test_creates_then_updates(self, settings):
        settings.LEAGUE_DEFAULT_SEASON = '2025'
        rows = [{'nome': 'Sharks', 'sigla': 'SHK', 'cor': '#0000ff', 'cidade': 'Santos', 'temporada': 2025.0}]

        result = import_team_rows(rows)
        assert (result.success, result.created, result.updated) == (1, 1, 0)

        rows[0]['cor'] = '#00ff00'
        result = import_team_rows(rows)
        assert (result.success, result.created, result.updated) == (1, 0, 1)

        team = Team.objects.get(name='Sharks', season='2025')
        assert team.color == '#00ff00'
        assert team.city == 'Santos'

    def test_missing_required_columns(self):
        result = import_team_rows([{'nome': 'Sharks', 'sigla': 'SHK'}, {'sigla': 'X', 'cor': '#fff'}])

        assert result.success == 0
        assert [e['team'] for e in result.errors] == ['Sharks', 'Unknown']
        assert result.to_dict()['errors'] is not None
        assert not Team.objects.exists()

    def test_default_season(self, settings):
        settings.LEAGUE_DEFAULT_SEASON = '2027'
        import_team_rows([{'nome': 'Sharks', 'sigla': 'SHK', 'cor': '#000'}])
        assert Team.objects.get(name='Sharks').season == '2027'


@pytest.mark.django_db
class TestImportPlayers:
    def test_creates_player_and_link_with_totals(self, make_team):
        team = make_team('Sharks', season='2025')

        result = import_player_rows([{
            'nome': 'Quinn', 'time_nome': 'Sharks', 'temporada': '2025',
            'numero': 12.0, 'camisa': 'q12.png', 'tds_passe': 7, 'pressao_pct': '33',
        }])

        assert result.created == 1
        link = PlayerTeamLink.objects.get(player__name='Quinn', team=team)
        assert link.number == 12
        assert link.jersey == 'q12.png'
        assert link.statistics['passing']['passTDs'] == 7
        assert link.statistics['passing']['pressurePct'] == '33'
        assert link.statistics['defense']['tackles'] == 0

    def test_existing_link_is_updated(self, make_team, make_link):
        team = make_team('Sharks', season='2025')
        link = make_link('Quinn', team, number=1, statistics={'passing': {'passTDs': 1}})

        result = import_player_rows([
            {'nome': 'Quinn', 'time_nome': 'Sharks', 'temporada': '2025', 'numero': 3, 'tds_passe': 9},
        ])

        assert result.updated == 1
        link.refresh_from_db()
        assert link.number == 3
        assert link.statistics['passing']['passTDs'] == 9
        assert Player.objects.filter(name='Quinn').count() == 1

    def test_unknown_team_suggests_closest_name(self, make_team):
        make_team('Sharks', season='2025')

        result = import_player_rows([{'nome': 'Quinn', 'time_nome': 'Sharkz', 'temporada': '2025'}])

        assert result.success == 0
        assert 'did you mean "Sharks"' in result.errors[0]['error']
        assert not Player.objects.exists()

    def test_missing_required_columns(self):
        result = import_player_rows([{'nome': 'Quinn'}])
        assert result.errors == [{'player': 'Quinn', 'error': 'Missing required data (nome, time_nome)'}]

    def test_no_suggestion_without_teams(self):
        assert suggest_team_name('Sharks', '1999') is None
