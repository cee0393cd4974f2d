import pytest

from league.exceptions import GameAlreadyProcessed, GameNotProcessed, InvalidRequest
from league.ledger import apply_game_stats, list_processed_games, reprocess_game_stats
from league.models import GameStatDelta, ProcessedGame


@pytest.fixture
def roster(make_team, make_link):
    team = make_team('Sharks', season='2025')
    qb = make_link('Quinn', team, number=12, statistics={
        'passing': {'passTDs': 2, 'completions': 10, 'pressurePct': '20'},
        'rushing': {}, 'receiving': {}, 'defense': {},
    })
    lb = make_link('Lara', team, number=50, statistics={})
    return {'team': team, 'qb': qb, 'lb': lb}


def _stats(link):
    link.refresh_from_db()
    return link.statistics


@pytest.mark.django_db
class TestApply:
    def test_adds_game_to_season_totals(self, roster):
        qb = roster['qb']
        result = apply_game_stats('G1', '2025-05-10', [
            {'jogador_id': qb.player_id, 'temporada': '2025', 'tds_passe': 1, 'passes_completos': 5},
        ], source_filename='g1.xlsx')

        assert result.success == 1
        assert result.errors == []
        stats = _stats(qb)
        assert stats['passing']['passTDs'] == 3
        assert stats['passing']['completions'] == 15
        assert stats['rushing']['rushYards'] == 0

        game = ProcessedGame.objects.get(game_id='G1')
        assert game.players_processed == 1
        assert game.source_filename == 'g1.xlsx'
        assert not game.reprocessed
        assert game.deltas.count() == 1

    def test_player_by_name_and_team(self, roster):
        lb = roster['lb']
        result = apply_game_stats('G1', '2025-05-10', [
            {'jogador_nome': 'Lara', 'time_nome': 'Sharks', 'tck': 4, 'pressao_pct_def': '35'},
        ])

        assert result.success == 1
        stats = _stats(lb)
        assert stats['defense']['tackles'] == 4
        assert stats['defense']['pressurePct'] == '35'

    def test_season_defaults_from_settings(self, roster, settings):
        settings.LEAGUE_DEFAULT_SEASON = '2025'
        result = apply_game_stats('G1', '2025-05-10', [
            {'jogador_id': roster['qb'].player_id, 'tds_passe': 1},
        ])
        assert result.success == 1

    def test_row_errors_do_not_abort_the_batch(self, roster):
        qb = roster['qb']
        result = apply_game_stats('G1', '2025-05-10', [
            {'tds_passe': 1},
            {'jogador_id': 99999, 'temporada': '2025'},
            {'jogador_nome': 'Lara', 'temporada': '2025'},
            {'jogador_nome': 'Lara', 'time_nome': 'Dolphins', 'temporada': '2025'},
            {'jogador_nome': 'Ghost', 'time_nome': 'Sharks', 'temporada': '2025'},
            {'jogador_id': qb.player_id, 'temporada': '2025', 'tds_passe': 1},
        ])

        assert result.success == 1
        assert len(result.errors) == 5
        assert result.errors[0]['player'] == 'Unknown'
        assert _stats(qb)['passing']['passTDs'] == 3
        assert result.to_dict()['playersProcessed'] == 1

    def test_legacy_totals_are_converted_before_adding(self, roster, make_link):
        link = make_link('Old', roster['team'], statistics={
            'attack': {'tdPassed': 4}, 'defense': {'interceptionsForced': 1},
        })

        apply_game_stats('G1', '2025-05-10', [
            {'jogador_id': link.player_id, 'temporada': '2025', 'tds_passe': 1, 'int': 1},
        ])

        stats = _stats(link)
        assert 'attack' not in stats
        assert stats['passing']['passTDs'] == 5
        assert stats['defense']['interceptions'] == 2

    def test_additive_fields_sum_and_percentages_replace(self, roster):
        qb = roster['qb']
        player_id = qb.player_id
        apply_game_stats('G1', '2025-05-10', [
            {'jogador_id': player_id, 'temporada': '2025', 'jds_passe': 120, 'tds_passe': 1, 'pressao_pct': '40'},
        ])
        apply_game_stats('G2', '2025-05-17', [
            {'jogador_id': player_id, 'temporada': '2025', 'jds_passe': 80, 'tds_passe': 2, 'pressao_pct': '55'},
        ])

        stats = _stats(qb)
        assert stats['passing']['passYards'] == 200
        assert stats['passing']['passTDs'] == 2 + 1 + 2
        assert stats['passing']['pressurePct'] == '55'

    def test_same_player_twice_in_one_game(self, roster):
        qb = roster['qb']
        apply_game_stats('G1', '2025-05-10', [
            {'jogador_id': qb.player_id, 'temporada': '2025', 'tds_passe': 1},
            {'jogador_id': qb.player_id, 'temporada': '2025', 'tds_passe': 1},
        ])

        assert _stats(qb)['passing']['passTDs'] == 4
        assert GameStatDelta.objects.filter(game__game_id='G1').count() == 2

    def test_second_apply_is_rejected(self, roster):
        qb = roster['qb']
        rows = [{'jogador_id': qb.player_id, 'temporada': '2025', 'tds_passe': 1}]
        apply_game_stats('G1', '2025-05-10', rows)

        with pytest.raises(GameAlreadyProcessed):
            apply_game_stats('G1', '2025-05-10', rows)

        assert _stats(qb)['passing']['passTDs'] == 3
        assert ProcessedGame.objects.count() == 1

    def test_game_id_and_date_are_required(self):
        with pytest.raises(InvalidRequest):
            apply_game_stats('', '2025-05-10', [])
        with pytest.raises(InvalidRequest):
            apply_game_stats('G1', None, [])


@pytest.mark.django_db
class TestReprocess:
    def test_corrected_game_replaces_the_old_one(self, roster):
        """passTDs 2 -> game adds 1 (3) -> reprocessed with 2: reverse to 2, reapply to 4"""
        qb = roster['qb']
        apply_game_stats('G1', '2025-05-10', [
            {'jogador_id': qb.player_id, 'temporada': '2025', 'tds_passe': 1},
        ])
        assert _stats(qb)['passing']['passTDs'] == 3

        result = reprocess_game_stats('G1', '2025-05-10', [
            {'jogador_id': qb.player_id, 'temporada': '2025', 'tds_passe': 2},
        ], source_filename='g1-fixed.xlsx')

        assert result.reversed == 1
        assert result.success == 1
        assert _stats(qb)['passing']['passTDs'] == 4

        game = ProcessedGame.objects.get(game_id='G1')
        assert game.reprocessed
        assert game.source_filename == 'g1-fixed.xlsx'
        assert [d.statistics['passing']['passTDs'] for d in game.deltas.all()] == [2]

    def test_reverse_restores_previous_totals(self, roster):
        qb = roster['qb']
        before = _stats(qb)
        apply_game_stats('G1', '2025-05-10', [
            {'jogador_id': qb.player_id, 'temporada': '2025', 'tds_passe': 3, 'passes_completos': 7, 'pressao_pct': '60'},
        ])

        reprocess_game_stats('G1', '2025-05-10', [])

        after = _stats(qb)
        assert after['passing']['passTDs'] == before['passing']['passTDs']
        assert after['passing']['completions'] == before['passing']['completions']
        assert after['passing']['passYards'] == 0
        # overwrite fields are not reversed
        assert after['passing']['pressurePct'] == '60'
        assert not GameStatDelta.objects.exists()

    def test_reverse_never_goes_negative(self, roster):
        qb = roster['qb']
        apply_game_stats('G1', '2025-05-10', [
            {'jogador_id': qb.player_id, 'temporada': '2025', 'tds_passe': 3},
        ])
        qb.refresh_from_db()
        qb.statistics['passing']['passTDs'] = 1
        qb.save()

        reprocess_game_stats('G1', '2025-05-10', [])

        assert _stats(qb)['passing']['passTDs'] == 0

    def test_foreign_shape_is_reset(self, roster):
        qb = roster['qb']
        apply_game_stats('G1', '2025-05-10', [
            {'jogador_id': qb.player_id, 'temporada': '2025', 'tds_passe': 1},
        ])
        qb.refresh_from_db()
        qb.statistics = {'attack': {'tdPassed': 9}, 'defense': {}}
        qb.save()

        result = reprocess_game_stats('G1', '2025-05-10', [])

        assert result.reversed == 0
        assert _stats(qb) == {'passing': {}, 'rushing': {}, 'receiving': {}, 'defense': {}}

    def test_unknown_game_is_rejected_without_force(self, roster):
        with pytest.raises(GameNotProcessed):
            reprocess_game_stats('G9', '2025-05-10', [])
        assert not ProcessedGame.objects.exists()

    def test_force_applies_an_unknown_game(self, roster):
        qb = roster['qb']
        result = reprocess_game_stats('G9', '2025-05-10', [
            {'jogador_id': qb.player_id, 'temporada': '2025', 'tds_passe': 1},
        ], force=True)

        assert result.reversed == 0
        assert _stats(qb)['passing']['passTDs'] == 3
        assert ProcessedGame.objects.get(game_id='G9').reprocessed


@pytest.mark.django_db
class TestListing:
    def test_newest_first_with_limit(self, roster):
        for n in range(3):
            apply_game_stats(f'G{n}', f'2025-05-0{n + 1}', [])

        listing = list_processed_games(limit=2)

        assert listing['total'] == 3
        assert listing['limit'] == 2
        assert [g['gameId'] for g in listing['games']] == ['G2', 'G1']
        assert set(listing['games'][0]) == {'gameId', 'gameDate', 'processedAt', 'reprocessed', 'playersProcessed'}

    def test_default_limit_from_settings(self, settings):
        settings.LEAGUE_PROCESSED_GAMES_LIMIT = 7
        assert list_processed_games()['limit'] == 7
