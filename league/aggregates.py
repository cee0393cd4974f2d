"""
Team statistics: season totals, standout players and side-by-side comparison
"""

import logging

from league.exceptions import InvalidRequest, TeamNotFound
from league.models import PlayerTeamLink, Team
from league.statistics import (
    DEFAULT_PERCENTAGE,
    OVERWRITE_FIELDS,
    STAT_COLUMNS,
    CurrentStatistics,
    is_current_shape,
    to_number,
)

logger = logging.getLogger(__name__)

# (highlight name, bucket, field)
HIGHLIGHTS = {
    'offense': (
        ('passer', 'passing', 'passTDs'),
        ('rusher', 'rushing', 'rushYards'),
        ('receiver', 'receiving', 'recTDs'),
    ),
    'defense': (
        ('tackler', 'defense', 'tackles'),
        ('pressure', 'defense', 'pressurePct'),
        ('interceptor', 'defense', 'interceptions'),
    ),
}


def _current(link):
    # Links still in the legacy layout contribute nothing
    if is_current_shape(link.statistics):
        return CurrentStatistics.from_payload(link.statistics)
    return None


def team_totals(links):
    """Sum every link's buckets; pressurePct is taken from the last link carrying the bucket"""
    totals = CurrentStatistics.zeroed().buckets
    for link in links:
        stats = _current(link)
        if stats is None:
            continue
        for name, columns in STAT_COLUMNS.items():
            if name not in stats.buckets:
                continue
            for key, _ in columns:
                if key in OVERWRITE_FIELDS:
                    value = stats.bucket(name).get(key)
                    totals[name][key] = str(value) if value else DEFAULT_PERCENTAGE
                else:
                    totals[name][key] += stats.number(name, key)
    return totals


def _value(stats, bucket, key):
    if key in OVERWRITE_FIELDS:
        return to_number(stats.percentage(bucket, key))
    return stats.number(bucket, key)


def _player_entry(link, stats):
    return {
        'id': link.player.id,
        'name': link.player.name,
        'jersey': link.jersey,
        'number': link.number,
        'statistics': stats.to_dict(),
    }


def team_highlights(links):
    """Best player per category; players at zero are not eligible"""
    candidates = []
    for link in links:
        stats = _current(link)
        if stats is not None:
            candidates.append((link, stats))

    highlights = {}
    for group, categories in HIGHLIGHTS.items():
        highlights[group] = {}
        for name, bucket, key in categories:
            best = None
            best_value = 0
            for link, stats in candidates:
                value = _value(stats, bucket, key)
                if value > best_value:
                    best, best_value = (link, stats), value
            highlights[group][name] = _player_entry(*best) if best else None
    return highlights


def _team_links(team, season):
    return list(
        PlayerTeamLink.objects.filter(team=team, season=season)
        .select_related('player')
        .order_by('id')
    )


def compare_teams(team1_id, team2_id, season):
    if not team1_id or not team2_id:
        raise InvalidRequest('Two different team ids are required')
    try:
        team1_id, team2_id = int(team1_id), int(team2_id)
    except (TypeError, ValueError):
        raise InvalidRequest('Team ids must be integers')
    if team1_id == team2_id:
        raise InvalidRequest('Teams must be different to be compared')

    teams = Team.objects.in_bulk([team1_id, team2_id])
    if len(teams) != 2:
        raise TeamNotFound('One or both teams were not found')

    result = {}
    for key, team_id in (('team1', team1_id), ('team2', team2_id)):
        team = teams[team_id]
        links = _team_links(team, season)
        result[key] = {
            'id': team.id,
            'name': team.name,
            'abbreviation': team.abbreviation,
            'color': team.color,
            'logo': team.logo,
            'statistics': team_totals(links),
            'highlights': team_highlights(links),
        }

    logger.debug("Compared teams %s and %s for season %s", team1_id, team2_id, season)
    return {'teams': result}
