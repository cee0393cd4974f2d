"""
Game statistics ledger

Applies one game's per-player statistic rows to the season totals stored on
PlayerTeamLink, and keeps what each game added (GameStatDelta) so the game
can later be reversed and re-applied with corrected rows.

Rows are plain dicts using the spreadsheet column names: the player is
identified by `jogador_id`, or by `jogador_nome` + `time_nome`, and
`temporada` defaults to LEAGUE_DEFAULT_SEASON.
"""

import logging
from dataclasses import dataclass, field

from django.conf import settings
from django.db import DatabaseError, IntegrityError, transaction
from django.utils import timezone

from league.db import league_transaction
from league.exceptions import GameAlreadyProcessed, GameNotProcessed, InvalidRequest
from league.models import GameStatDelta, PlayerTeamLink, ProcessedGame, Team
from league.spreadsheets import is_blank, season_of
from league.statistics import CurrentStatistics, is_current_shape, migrate_statistics, to_number

logger = logging.getLogger(__name__)


def _row_label(row):
    for key in ('jogador_nome', 'jogador_id'):
        if not is_blank(row.get(key)):
            return row[key]
    return 'Unknown'


class RowError(Exception):
    pass


@dataclass
class LedgerResult:
    game_id: str
    game_date: str
    success: int = 0
    errors: list = field(default_factory=list)
    reprocessed: bool = False
    reversed: int = 0

    def add_error(self, row, message):
        self.errors.append({'player': _row_label(row), 'error': message})

    def to_dict(self):
        verb = 'reprocessed' if self.reprocessed else 'processed'
        data = {
            'message': f"Statistics of game {self.game_id} {verb} successfully for {self.success} players",
            'gameId': self.game_id,
            'gameDate': self.game_date,
            'playersProcessed': self.success,
            'errors': self.errors or None,
        }
        if self.reprocessed:
            data['reversed'] = self.reversed
        return data


class LinkResolver:
    """
    Finds the season link of each row.

    Links and teams are loaded in batches up front; resolved links are cached
    so a player appearing twice in a game accumulates on the same object.
    """

    def __init__(self, rows):
        self.links = {}
        self._by_player = {}
        self._teams = {}

        seasons = {season_of(row.get('temporada')) for row in rows}
        player_ids = set()
        team_names = set()
        for row in rows:
            if not is_blank(row.get('jogador_id')):
                player_ids.add(int(to_number(row['jogador_id'])))
            elif not is_blank(row.get('time_nome')):
                team_names.add(str(row['time_nome']).strip())

        if player_ids:
            queryset = (
                PlayerTeamLink.objects.filter(player_id__in=player_ids, season__in=seasons)
                .select_related('player', 'team')
                .order_by('id')
            )
            for link in queryset:
                self._by_player.setdefault((link.player_id, link.season), self._cached(link))

        if team_names:
            for team in Team.objects.filter(name__in=team_names, season__in=seasons).order_by('id'):
                self._teams.setdefault((team.name, team.season), team)

    def _cached(self, link):
        return self.links.setdefault(link.id, link)

    def resolve(self, row):
        season = season_of(row.get('temporada'))

        if not is_blank(row.get('jogador_id')):
            player_id = int(to_number(row['jogador_id']))
            link = self._by_player.get((player_id, season))
            if link is None:
                raise RowError(f"Player ID {player_id} has no team in season {season}")
            return link

        name = str(row['jogador_nome']).strip()
        if is_blank(row.get('time_nome')):
            raise RowError('Team name is required when the player is identified by name')
        team_name = str(row['time_nome']).strip()

        team = self._teams.get((team_name, season))
        if team is None:
            raise RowError(f'Team "{team_name}" not found for season {season}')

        link = (
            PlayerTeamLink.objects.filter(player__name=name, team=team, season=season)
            .select_related('player', 'team')
            .order_by('id')
            .first()
        )
        if link is None:
            raise RowError(f'Player "{name}" not found on team "{team_name}" in season {season}')
        return self._cached(link)


def _save_links(links, deltas_by_link, result):
    """Persist updated totals; a failing link loses its deltas and becomes a row error"""
    try:
        with transaction.atomic():
            PlayerTeamLink.objects.bulk_update(links, ['statistics'])
        return
    except DatabaseError:
        logger.warning("Bulk update of %d links failed, saving one by one", len(links), exc_info=True)

    for link in links:
        try:
            with transaction.atomic():
                link.save(update_fields=['statistics'])
        except DatabaseError as e:
            logger.error("Could not save statistics of link %s", link.id, exc_info=True)
            failed = deltas_by_link.pop(link.id, [])
            result.success -= len(failed)
            result.errors.append({'player': link.player.name, 'error': str(e)})


def _apply_rows(game, rows, result, deadline):
    resolver = LinkResolver(rows)
    deltas_by_link = {}

    for row in rows:
        deadline.check()
        if is_blank(row.get('jogador_id')) and is_blank(row.get('jogador_nome')):
            result.add_error(row, 'Player id or name is required')
            continue
        try:
            link = resolver.resolve(row)
            delta = CurrentStatistics.from_row(row)
            link.statistics = migrate_statistics(link.statistics).plus(delta).to_dict()
        except RowError as e:
            result.add_error(row, str(e))
            continue
        except Exception as e:
            logger.error("Error processing statistics row for %s", _row_label(row), exc_info=True)
            result.add_error(row, str(e))
            continue

        deltas_by_link.setdefault(link.id, []).append(GameStatDelta(
            game=game,
            player_id=link.player_id,
            team_id=link.team_id,
            season=link.season,
            statistics=delta.to_dict(),
        ))
        result.success += 1

    touched = [resolver.links[link_id] for link_id in deltas_by_link]
    if touched:
        _save_links(touched, deltas_by_link, result)

    snapshot = [delta for deltas in deltas_by_link.values() for delta in deltas]
    GameStatDelta.objects.bulk_create(snapshot)
    return snapshot


def _reverse_snapshot(game, deadline):
    """Subtract every stored delta of `game` from the current totals; returns how many were reversed"""
    deltas = list(game.deltas.all())
    if not deltas:
        return 0

    links = {}
    queryset = PlayerTeamLink.objects.filter(
        player_id__in={d.player_id for d in deltas},
        season__in={d.season for d in deltas},
    ).order_by('id')
    for link in queryset:
        links.setdefault((link.player_id, link.team_id, link.season), link)

    touched = {}
    reversed_count = 0
    for delta in deltas:
        deadline.check()
        link = links.get((delta.player_id, delta.team_id, delta.season))
        if link is None:
            logger.warning(
                "Player %s not found on team %s in %s, cannot reverse game %s",
                delta.player_id, delta.team_id, delta.season, game.game_id,
            )
            continue

        if is_current_shape(link.statistics):
            current = CurrentStatistics.from_payload(link.statistics)
            link.statistics = current.minus(CurrentStatistics.from_payload(delta.statistics)).to_dict()
            reversed_count += 1
        else:
            logger.warning("Link %s has statistics in an unknown shape, resetting", link.id)
            link.statistics = CurrentStatistics.empty().to_dict()
        touched[link.id] = link

    PlayerTeamLink.objects.bulk_update(list(touched.values()), ['statistics'])
    game.deltas.all().delete()
    return reversed_count


def _clean_ids(game_id, game_date):
    game_id = '' if game_id is None else str(game_id).strip()
    game_date = '' if game_date is None else str(game_date).strip()
    if not game_id or not game_date:
        raise InvalidRequest('Game id and date are required')
    return game_id, game_date


def apply_game_stats(game_id, game_date, rows, source_filename=None):
    """
    Add one game's rows to the season totals.

    Raises GameAlreadyProcessed if the game id is registered; nothing is
    touched in that case. Per-row problems are reported in the result.
    """
    game_id, game_date = _clean_ids(game_id, game_date)
    rows = list(rows)

    if ProcessedGame.objects.filter(game_id=game_id).exists():
        raise GameAlreadyProcessed(game_id)

    result = LedgerResult(game_id, game_date)
    with league_transaction() as deadline:
        try:
            with transaction.atomic():
                game = ProcessedGame.objects.create(
                    game_id=game_id,
                    game_date=game_date,
                    source_filename=source_filename or '',
                )
        except IntegrityError:
            # registered by a concurrent request
            raise GameAlreadyProcessed(game_id)
        _apply_rows(game, rows, result, deadline)
        game.players_processed = result.success
        game.save(update_fields=['players_processed'])

    logger.info(
        "Game %s processed: %d players, %d errors",
        game_id, result.success, len(result.errors),
    )
    return result


def reprocess_game_stats(game_id, game_date, rows, source_filename=None, force=False):
    """
    Reverse what a game added to the season totals, then apply `rows` instead.

    Raises GameNotProcessed unless the game was processed before or `force`
    is set (a forced reprocess of an unknown game is a plain apply marked as
    reprocessed).
    """
    game_id, game_date = _clean_ids(game_id, game_date)
    rows = list(rows)

    result = LedgerResult(game_id, game_date, reprocessed=True)
    with league_transaction() as deadline:
        game = ProcessedGame.objects.select_for_update().filter(game_id=game_id).first()
        if game is None:
            if not force:
                raise GameNotProcessed(game_id)
            game = ProcessedGame.objects.create(game_id=game_id, game_date=game_date)
        else:
            result.reversed = _reverse_snapshot(game, deadline)

        _apply_rows(game, rows, result, deadline)

        game.game_date = game_date
        game.processed_at = timezone.now()
        game.reprocessed = True
        game.players_processed = result.success
        game.source_filename = source_filename or ''
        game.save()

    logger.info(
        "Game %s reprocessed: %d deltas reversed, %d players applied, %d errors",
        game_id, result.reversed, result.success, len(result.errors),
    )
    return result


def list_processed_games(limit=None):
    if limit is None:
        limit = settings.LEAGUE_PROCESSED_GAMES_LIMIT

    games = ProcessedGame.objects.order_by('-processed_at', '-id')[:limit]
    return {
        'games': [
            {
                'gameId': game.game_id,
                'gameDate': game.game_date,
                'processedAt': game.processed_at.isoformat(),
                'reprocessed': game.reprocessed,
                'playersProcessed': game.players_processed,
            }
            for game in games
        ],
        'total': ProcessedGame.objects.count(),
        'limit': limit,
    }
