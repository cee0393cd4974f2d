import json

import pytest
from django.core.files.uploadedfile import SimpleUploadedFile

from league.models import PlayerTeamLink, ProcessedGame, Team


def _upload(content, name='game.xlsx'):
    return SimpleUploadedFile(
        name, content,
        content_type='application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
    )


def test_health(client):
    response = client.get('/api/health/')
    assert response.status_code == 200
    assert response.json()['status'] == 'healthy'


@pytest.mark.django_db
class TestSeasonViews:
    def test_start_season(self, client, league_2024):
        team_a = league_2024['team_a']
        caio = league_2024['links']['caio'].player
        body = {
            'teamChanges': [{'teamId': team_a.id, 'name': 'Team A2'}],
            'transfers': [{'playerId': caio.id, 'newTeamName': 'Team A2'}],
        }

        response = client.post('/api/seasons/2025/start/', data=json.dumps(body), content_type='application/json')

        assert response.status_code == 201
        data = response.json()
        assert data['teams'] == 2
        assert data['players'] == 4
        assert data['transfers'] == 1
        assert data['transfersSaved'] == 1
        assert PlayerTeamLink.objects.get(player=caio, season='2025').team.name == 'Team A2'

        response = client.get('/api/transfers/', {'originSeason': '2024', 'destinationSeason': '2025'})
        assert response.status_code == 200
        assert response.json()[0]['destinationTeamName'] == 'Team A2'

    def test_start_season_without_previous_teams(self, client):
        response = client.post('/api/seasons/2025/start/', data='{}', content_type='application/json')
        assert response.status_code == 404
        assert 'No teams found in season 2024' in response.json()['error']

    def test_bad_body(self, client):
        response = client.post('/api/seasons/2025/start/', data='[', content_type='application/json')
        assert response.status_code == 400

    def test_transfers_not_found(self, client):
        response = client.get('/api/transfers/', {'originSeason': '1990', 'destinationSeason': '1991'})
        assert response.status_code == 404

    def test_transfers_need_both_seasons(self, client):
        assert client.get('/api/transfers/').status_code == 400

    def test_method_not_allowed(self, client):
        assert client.get('/api/seasons/2025/start/').status_code == 405


@pytest.mark.django_db
class TestGameViews:
    @pytest.fixture
    def qb(self, make_team, make_link):
        team = make_team('Sharks', season='2025')
        return make_link('Quinn', team, statistics={'passing': {'passTDs': 2}})

    def test_process_then_reprocess(self, client, qb, make_xlsx):
        rows = [{'jogador_id': qb.player_id, 'temporada': 2025, 'tds_passe': 1}]
        response = client.post('/api/games/process/', {
            'gameId': 'G1', 'gameDate': '2025-05-10', 'file': _upload(make_xlsx(rows)),
        })
        assert response.status_code == 200
        assert response.json()['playersProcessed'] == 1
        assert response.json()['errors'] is None
        qb.refresh_from_db()
        assert qb.statistics['passing']['passTDs'] == 3

        response = client.post('/api/games/process/', {
            'gameId': 'G1', 'gameDate': '2025-05-10', 'file': _upload(make_xlsx(rows)),
        })
        assert response.status_code == 400
        assert 'hint' in response.json()

        rows[0]['tds_passe'] = 2
        response = client.post('/api/games/reprocess/', {
            'gameId': 'G1', 'gameDate': '2025-05-10', 'file': _upload(make_xlsx(rows)),
        })
        assert response.status_code == 200
        assert response.json()['reversed'] == 1
        qb.refresh_from_db()
        assert qb.statistics['passing']['passTDs'] == 4

        listing = client.get('/api/games/processed/').json()
        assert listing['total'] == 1
        assert listing['games'][0]['reprocessed'] is True

    def test_reprocess_unknown_game(self, client, qb, make_xlsx):
        rows = [{'jogador_id': qb.player_id, 'tds_passe': 1}]
        response = client.post('/api/games/reprocess/', {
            'gameId': 'G7', 'gameDate': '2025-05-10', 'file': _upload(make_xlsx(rows)),
        })
        assert response.status_code == 400

        response = client.post('/api/games/reprocess/', {
            'gameId': 'G7', 'gameDate': '2025-05-10', 'force': 'true', 'file': _upload(make_xlsx(rows)),
        })
        assert response.status_code == 200
        assert ProcessedGame.objects.filter(game_id='G7').exists()

    def test_process_requires_file_and_ids(self, client, make_xlsx):
        assert client.post('/api/games/process/', {'gameId': 'G1', 'gameDate': '2025-05-10'}).status_code == 400
        response = client.post('/api/games/process/', {'gameId': 'G1', 'file': _upload(make_xlsx([{'a': 1}]))})
        assert response.status_code == 400

    def test_rejects_non_excel_upload(self, client):
        response = client.post('/api/games/process/', {
            'gameId': 'G1', 'gameDate': '2025-05-10', 'file': _upload(b'a,b\n1,2\n', name='game.csv'),
        })
        assert response.status_code == 400
        assert 'Excel' in response.json()['error']


@pytest.mark.django_db
class TestReadViews:
    def test_teams_and_players(self, client, league_2024):
        teams = client.get('/api/teams/', {'season': '2024'}).json()
        assert [t['name'] for t in teams] == ['Team A', 'Team B']
        assert [p['name'] for p in teams[0]['players']] == ['Ana', 'Bia']

        players = client.get('/api/players/', {'season': '2024', 'teamId': league_2024['team_b'].id}).json()
        assert [p['name'] for p in players] == ['Caio', 'Duda']
        assert players[0]['team']['name'] == 'Team B'

    def test_players_with_history(self, client, league_2024):
        client.post('/api/seasons/2025/start/', data='{}', content_type='application/json')

        players = client.get('/api/players/', {'season': '2025', 'includeHistory': 'true'}).json()
        assert len(players) == 4
        assert [h['season'] for h in players[0]['seasonHistory']] == ['2024', '2025']

    def test_player_season(self, client, league_2024):
        ana = league_2024['links']['ana']
        response = client.get(f'/api/players/{ana.player_id}/seasons/2024/')
        assert response.status_code == 200
        assert response.json()['team']['name'] == 'Team A'
        assert response.json()['number'] == 1

        assert client.get(f'/api/players/{ana.player_id}/seasons/1999/').status_code == 404

    def test_compare(self, client, league_2024):
        response = client.get('/api/teams/compare/', {
            'team1Id': league_2024['team_a'].id, 'team2Id': league_2024['team_b'].id, 'season': '2024',
        })
        assert response.status_code == 200
        assert set(response.json()['teams']) == {'team1', 'team2'}

        response = client.get('/api/teams/compare/', {'team1Id': league_2024['team_a'].id})
        assert response.status_code == 400

    def test_import_teams_and_players(self, client, make_xlsx):
        teams = [{'nome': 'Sharks', 'sigla': 'SHK', 'cor': '#00f', 'temporada': 2025}]
        response = client.post('/api/teams/import/', {'file': _upload(make_xlsx(teams), name='teams.xlsx')})
        assert response.status_code == 200
        assert Team.objects.filter(name='Sharks', season='2025').exists()

        players = [{'nome': 'Quinn', 'time_nome': 'Sharks', 'temporada': 2025, 'numero': 12}]
        response = client.post('/api/players/import/', {'file': _upload(make_xlsx(players), name='players.xlsx')})
        assert response.status_code == 200
        assert response.json()['created'] == 1
        assert PlayerTeamLink.objects.get(player__name='Quinn').number == 12
