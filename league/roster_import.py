"""
Roster import from spreadsheet rows

Team rows:   nome, sigla, cor, cidade, bandeira_estado, instagram, instagram2,
             logo, regiao, sexo, temporada
Player rows: nome, time_nome, temporada, numero, camisa + the statistic
             columns of league.statistics.STAT_COLUMNS (season totals)
"""

import logging
from dataclasses import dataclass, field

from django.db import transaction
from thefuzz import fuzz, process

from league.models import Player, PlayerTeamLink, Team
from league.spreadsheets import cell_text, is_blank, season_of
from league.statistics import CurrentStatistics, to_number

logger = logging.getLogger(__name__)

# spreadsheet column -> Team field
TEAM_COLUMNS = {
    'sigla': 'abbreviation',
    'cor': 'color',
    'cidade': 'city',
    'bandeira_estado': 'state_flag',
    'instagram': 'instagram',
    'instagram2': 'instagram2',
    'logo': 'logo',
    'regiao': 'region',
    'sexo': 'gender',
}

SUGGESTION_CUTOFF = 60


@dataclass
class ImportResult:
    kind: str
    success: int = 0
    created: int = 0
    updated: int = 0
    errors: list = field(default_factory=list)

    def add_error(self, name, message):
        self.errors.append({self.kind: name or 'Unknown', 'error': message})

    def to_dict(self):
        return {
            'message': f"Import finished: {self.success} {self.kind}s imported successfully",
            'created': self.created,
            'updated': self.updated,
            'errors': self.errors or None,
        }


def suggest_team_name(name, season):
    """Closest team name of `season`, or None"""
    names = list(Team.objects.filter(season=season).values_list('name', flat=True))
    if not names:
        return None
    match = process.extractOne(name, names, scorer=fuzz.token_sort_ratio, score_cutoff=SUGGESTION_CUTOFF)
    return match[0] if match else None


def _import_team(row, result):
    name = cell_text(row.get('nome'))
    if not name or is_blank(row.get('sigla')) or is_blank(row.get('cor')):
        result.add_error(name, 'Missing required data (nome, sigla, cor)')
        return

    season = season_of(row.get('temporada'))
    values = {field_name: cell_text(row.get(column)) for column, field_name in TEAM_COLUMNS.items()}

    team = Team.objects.filter(name=name, season=season).order_by('id').first()
    if team is None:
        Team.objects.create(name=name, season=season, **values)
        result.created += 1
        logger.info("Team %s (%s) created", name, season)
    else:
        for field_name, value in values.items():
            setattr(team, field_name, value)
        team.save()
        result.updated += 1
        logger.info("Team %s (%s) updated", name, season)
    result.success += 1


def import_team_rows(rows):
    result = ImportResult('team')
    for row in rows:
        try:
            with transaction.atomic():
                _import_team(row, result)
        except Exception as e:
            logger.error("Error importing team %s", row.get('nome'), exc_info=True)
            result.add_error(cell_text(row.get('nome')), str(e))
    return result


def _import_player(row, result):
    name = cell_text(row.get('nome'))
    team_name = cell_text(row.get('time_nome'))
    if not name or not team_name:
        result.add_error(name, 'Missing required data (nome, time_nome)')
        return

    season = season_of(row.get('temporada'))
    team = Team.objects.filter(name=team_name, season=season).order_by('id').first()
    if team is None:
        message = f'Team "{team_name}" not found for season {season}'
        suggestion = suggest_team_name(team_name, season)
        if suggestion:
            message += f' (did you mean "{suggestion}"?)'
        result.add_error(name, message)
        return

    statistics = CurrentStatistics.from_row(row).to_dict()
    number = int(to_number(row.get('numero')))
    jersey = cell_text(row.get('camisa'))

    link = (
        PlayerTeamLink.objects.filter(player__name=name, team=team, season=season)
        .order_by('id')
        .first()
    )
    if link is not None:
        link.number = number
        link.jersey = jersey
        link.statistics = statistics
        link.save(update_fields=['number', 'jersey', 'statistics'])
        result.updated += 1
    else:
        player = Player.objects.create(name=name)
        PlayerTeamLink.objects.create(
            player=player,
            team=team,
            season=season,
            number=number,
            jersey=jersey,
            statistics=statistics,
        )
        result.created += 1
    result.success += 1


def import_player_rows(rows):
    result = ImportResult('player')
    for row in rows:
        try:
            with transaction.atomic():
                _import_player(row, result)
        except Exception as e:
            logger.error("Error importing player %s", row.get('nome'), exc_info=True)
            result.add_error(cell_text(row.get('nome')), str(e))

    logger.info(
        "Player import: %d imported (%d created, %d updated), %d errors",
        result.success, result.created, result.updated, len(result.errors),
    )
    return result
