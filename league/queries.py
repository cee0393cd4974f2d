"""
Read-side queries used by the JSON views
"""

from django.conf import settings

from league.exceptions import InvalidRequest, PlayerNotFound
from league.models import PlayerTeamLink, Team


def _team_brief(team):
    return {
        'id': team.id,
        'name': team.name,
        'abbreviation': team.abbreviation,
        'color': team.color,
    }


def team_payload(team):
    return {
        'id': team.id,
        'name': team.name,
        'abbreviation': team.abbreviation,
        'color': team.color,
        'city': team.city,
        'stateFlag': team.state_flag,
        'instagram': team.instagram,
        'instagram2': team.instagram2,
        'logo': team.logo,
        'region': team.region,
        'gender': team.gender,
        'season': team.season,
    }


def player_payload(player):
    return {
        'id': player.id,
        'name': player.name,
        'position': player.position,
        'sector': player.sector,
        'experience': player.experience,
        'age': player.age,
        'height': player.height,
        'weight': player.weight,
        'city': player.city,
        'nationality': player.nationality,
        'instagram': player.instagram,
        'instagram2': player.instagram2,
        'developingClub': player.developing_club,
    }


def _roster_entry(link):
    entry = player_payload(link.player)
    entry.update({
        'number': link.number,
        'jersey': link.jersey,
        'statistics': link.statistics or {},
        'teamId': link.team_id,
        'season': link.season,
    })
    return entry


def teams_for_season(season=None):
    """Teams of a season with their rosters"""
    season = str(season or settings.LEAGUE_DEFAULT_SEASON)
    links = (
        PlayerTeamLink.objects.filter(season=season)
        .select_related('player')
        .order_by('number', 'player__name')
    )
    rosters = {}
    for link in links:
        rosters.setdefault(link.team_id, []).append(_roster_entry(link))

    teams = []
    for team in Team.objects.filter(season=season).order_by('name'):
        data = team_payload(team)
        data['players'] = rosters.get(team.id, [])
        teams.append(data)
    return teams


def players_for_season(season=None, team_id=None, include_history=False):
    season = str(season or settings.LEAGUE_DEFAULT_SEASON)
    links = PlayerTeamLink.objects.filter(season=season).select_related('player', 'team')
    if team_id:
        try:
            links = links.filter(team_id=int(team_id))
        except (TypeError, ValueError):
            raise InvalidRequest('Invalid team id')
    links = links.order_by('number', 'player__name')

    players = []
    for link in links:
        entry = _roster_entry(link)
        entry['team'] = _team_brief(link.team)
        players.append(entry)

    # History is only attached to league-wide listings
    if include_history and not team_id and players:
        history = {}
        seen = set()
        all_links = (
            PlayerTeamLink.objects.filter(player_id__in={p['id'] for p in players})
            .select_related('team')
            .order_by('season', 'id')
        )
        for link in all_links:
            key = (link.player_id, link.season)
            if key in seen:
                continue
            seen.add(key)
            history.setdefault(link.player_id, []).append({
                'season': link.season,
                'team': {
                    'id': link.team.id,
                    'name': link.team.name,
                    'abbreviation': link.team.abbreviation,
                },
            })
        for entry in players:
            entry['seasonHistory'] = history.get(entry['id'], [])

    return players


def player_season(player_id, season):
    try:
        player_id = int(player_id)
    except (TypeError, ValueError):
        raise InvalidRequest('Invalid player id')

    link = (
        PlayerTeamLink.objects.filter(player_id=player_id, season=str(season))
        .select_related('player', 'team')
        .order_by('id')
        .first()
    )
    if link is None:
        raise PlayerNotFound('Player not found in this season')

    return {
        'player': player_payload(link.player),
        'team': team_payload(link.team),
        'statistics': link.statistics,
        'number': link.number,
        'jersey': link.jersey,
    }
